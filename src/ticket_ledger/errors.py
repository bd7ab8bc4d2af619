"""Ticketing exception hierarchy."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure classes that decide retry and surfacing behavior."""

    USER_ACTION_REQUIRED = "user_action_required"
    TRANSIENT_NETWORK = "transient_network"
    IDENTITY_MISMATCH = "identity_mismatch"
    DUPLICATE_REGISTRATION = "duplicate_registration"
    LEDGER_REJECTED = "ledger_rejected"
    RECONCILIATION = "reconciliation_required"


class TicketingError(Exception):
    """Base exception for all ticketing errors."""

    kind: ErrorKind = ErrorKind.USER_ACTION_REQUIRED
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "", user_message: str | None = None):
        self.message = message or self.user_message
        if user_message is not None:
            self.user_message = user_message
        super().__init__(self.message)


class NoWalletProvider(TicketingError):
    """No wallet provider is available to connect."""

    user_message = "No Cardano wallet found. Install Lace, Eternl or Nami."


class GrantDeclined(TicketingError):
    """The provider refused to grant a signing capability."""

    user_message = "The wallet connection request was declined."


class CapabilityMismatch(TicketingError):
    """The provider returned an object missing required wallet functions."""

    user_message = "The connected wallet does not support the required features."


class ConnectionInProgress(TicketingError):
    """A connect or reconnect attempt is already running."""

    user_message = "A wallet connection is already in progress."


class ConnectionCancelled(TicketingError):
    """A pending connect was superseded by a disconnect."""

    user_message = "The wallet connection was cancelled."


class WalletNotConnected(TicketingError):
    """An operation needed an active wallet session."""

    user_message = "Connect your wallet first."


class AddressUnresolved(TicketingError):
    """The session address is missing or cannot be decoded."""

    user_message = "Could not read an address from the connected wallet."


class KeyHashMissing(TicketingError):
    """The address has no payment key credential."""

    user_message = "The connected wallet address cannot sign ticket policies."


class PaymentNotConfirmed(TicketingError):
    """Minting was requested before payment was confirmed."""

    user_message = "Payment has not been confirmed yet."


class InvalidMintRequest(TicketingError):
    """The mint request failed precondition checks."""

    user_message = "The ticket request is incomplete."


class InvalidTicketRecord(TicketingError):
    """A ticket record is missing required fields."""

    user_message = "Missing required fields"


class LedgerUnavailable(TicketingError):
    """The ledger could not be reached after retries."""

    kind = ErrorKind.TRANSIENT_NETWORK
    user_message = "The blockchain service is unavailable. Please try again."


class MetadataUploadFailed(TicketingError):
    """The ticket metadata could not be uploaded."""

    kind = ErrorKind.TRANSIENT_NETWORK
    user_message = "Uploading ticket details failed. You were not charged on-chain."


class ConfirmationTimeout(TicketingError):
    """A submitted transaction was not seen on the ledger in time."""

    kind = ErrorKind.TRANSIENT_NETWORK
    user_message = "The transaction was submitted but is not confirmed yet."


class PolicyIdentityMismatch(TicketingError):
    """The signer's key hash differs from the policy key hash."""

    kind = ErrorKind.IDENTITY_MISMATCH
    user_message = "The connected wallet does not match the ticket policy."


class DuplicateKeyError(TicketingError):
    """The registry already holds a record for the asset unit."""

    kind = ErrorKind.DUPLICATE_REGISTRATION
    user_message = "Ticket already exists"


class LedgerRejected(TicketingError):
    """The ledger refused a submitted transaction."""

    kind = ErrorKind.LEDGER_REJECTED
    user_message = "The blockchain rejected the transaction."


class LedgerRequestFailed(TicketingError):
    """The ledger refused a query with a non-retryable client error."""

    kind = ErrorKind.LEDGER_REJECTED
    user_message = "The blockchain service refused the request."


class ReconciliationRequired(TicketingError):
    """A ticket was minted on-chain but could not be registered."""

    kind = ErrorKind.RECONCILIATION
    user_message = (
        "Your ticket was minted but its registration is still pending. "
        "Support has been notified."
    )

    def __init__(self, message: str, tx_hash: str, asset_unit: str):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.asset_unit = asset_unit
