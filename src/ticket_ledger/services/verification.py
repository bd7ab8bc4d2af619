"""Authenticity verification of presented tickets."""

import logging
from dataclasses import dataclass

from ticket_ledger.domain.tickets import TicketStatus, VerificationResult
from ticket_ledger.services.ledger import LedgerGateway
from ticket_ledger.services.registry import TicketRegistry

UNKNOWN_TICKET = "unknown ticket"
TICKET_CANCELLED = "ticket cancelled"
MINT_TX_MISMATCH = "mint transaction mismatch"
NOT_HELD_ON_LEDGER = "ticket not held on ledger"
TRANSFERRED_OFF_PLATFORM = "transferred off-platform"

_logger = logging.getLogger(__name__)


@dataclass
class AuthenticityVerifier:
    """Reconciles registry provenance with the ledger's current holder."""

    registry: TicketRegistry
    ledger: LedgerGateway

    async def verify(
        self, asset_unit: str, mint_tx_hash: str | None = None
    ) -> VerificationResult:
        """Return whether the ticket is authentic and still with its original owner.

        The holder is always read fresh from the ledger; the registry status is
        only a cache of earlier outcomes, except for cancellation which the
        registry owns.
        """
        record = self.registry.find(asset_unit)
        if record is None:
            return VerificationResult(valid=False, reason=UNKNOWN_TICKET)
        if record.status == TicketStatus.CANCELLED:
            return VerificationResult(valid=False, reason=TICKET_CANCELLED)
        if mint_tx_hash and mint_tx_hash != record.mint_tx_hash:
            return VerificationResult(valid=False, reason=MINT_TX_MISMATCH)

        holders = await self.ledger.query_asset_holders(asset_unit)
        if not holders:
            return VerificationResult(valid=False, reason=NOT_HELD_ON_LEDGER)
        if any(holder != record.original_owner_wallet for holder in holders):
            _logger.info(
                "Ownership drift for %s: holders=%s original=%s",
                asset_unit,
                holders,
                record.original_owner_wallet,
            )
            try:
                self.registry.mark_transferred(record)
            except Exception:
                _logger.exception("Failed to cache transferred status for %s", asset_unit)
            return VerificationResult(valid=False, reason=TRANSFERRED_OFF_PLATFORM)
        return VerificationResult(valid=True)
