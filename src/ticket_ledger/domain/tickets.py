"""Domain models for issued tickets."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class TicketStatus(str, Enum):
    """Registry status of an issued ticket."""

    VALID = "VALID"
    TRANSFERRED = "TRANSFERRED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class TicketRecord:
    """Represents a ticket stored in the registry."""

    asset_unit: str
    mint_tx_hash: str
    original_owner_wallet: str
    status: TicketStatus = TicketStatus.VALID
    created_at: datetime | None = None


@dataclass(frozen=True)
class RegistrationOutcome:
    """Result of a registry insert."""

    record: TicketRecord
    created: bool


@dataclass(frozen=True)
class VerificationResult:
    """Verdict for a presented ticket."""

    valid: bool
    reason: str | None = None


@dataclass(frozen=True)
class OwnedTicket:
    """Ticket token currently held by a wallet, with its on-chain metadata."""

    unit: str
    policy_id: str
    asset_name: str
    quantity: int
    onchain_metadata: dict[str, object]
    mint_tx_hash: str | None
