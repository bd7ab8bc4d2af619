"""Authoritative off-chain registry of issued tickets."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol

from ticket_ledger.domain.tickets import RegistrationOutcome, TicketRecord, TicketStatus
from ticket_ledger.errors import DuplicateKeyError, InvalidTicketRecord
from ticket_ledger.services.audit import AuditService

_logger = logging.getLogger(__name__)


class TicketRepository(Protocol):
    """Persistence interface for ticket records."""

    def create(self, record: TicketRecord) -> TicketRecord:
        """Insert a record; raise DuplicateKeyError if the unit exists."""

    def find_one(self, asset_unit: str) -> TicketRecord | None:
        """Return the record for an asset unit, if present."""

    def list_records(self, limit: int) -> list[TicketRecord]:
        """Return the most recent records."""

    def update_status(self, asset_unit: str, status: TicketStatus) -> None:
        """Set the status of an existing record."""


@dataclass
class TicketRegistry:
    """Create, look up and mutate ticket records."""

    repository: TicketRepository
    audit_service: AuditService

    def register(self, record: TicketRecord) -> RegistrationOutcome:
        """Insert a record; an existing unit is reported, never overwritten."""
        _validate(record)
        try:
            created = self.repository.create(record)
        except DuplicateKeyError:
            existing = self.repository.find_one(record.asset_unit)
            _logger.info("Ticket already registered: %s", record.asset_unit)
            return RegistrationOutcome(record=existing or record, created=False)
        self.audit_service.record_event(
            entity_type="ticket",
            entity_id=created.asset_unit,
            event_type="registered",
            after=_snapshot(created),
        )
        return RegistrationOutcome(record=created, created=True)

    def find(self, asset_unit: str) -> TicketRecord | None:
        """Return the record for an asset unit, if present."""
        return self.repository.find_one(asset_unit)

    def list_tickets(self, limit: int = 100) -> list[TicketRecord]:
        """Return recently issued tickets."""
        return self.repository.list_records(limit)

    def mark_transferred(self, record: TicketRecord) -> TicketRecord:
        """Cache a detected off-platform transfer on the record."""
        return self._set_status(record, TicketStatus.TRANSFERRED)

    def mark_cancelled(self, record: TicketRecord) -> TicketRecord:
        """Record that the ticket's token was burned."""
        return self._set_status(record, TicketStatus.CANCELLED)

    def _set_status(self, record: TicketRecord, status: TicketStatus) -> TicketRecord:
        if record.status == status:
            return record
        self.repository.update_status(record.asset_unit, status)
        updated = replace(record, status=status)
        self.audit_service.record_event(
            entity_type="ticket",
            entity_id=record.asset_unit,
            event_type=status.value.lower(),
            before=_snapshot(record),
            after=_snapshot(updated),
        )
        return updated


def _validate(record: TicketRecord) -> None:
    missing = [
        name
        for name in ("asset_unit", "mint_tx_hash", "original_owner_wallet")
        if not getattr(record, name)
    ]
    if missing:
        raise InvalidTicketRecord(f"Missing required fields: {', '.join(missing)}")


def _snapshot(record: TicketRecord) -> dict[str, object]:
    return {
        "asset_unit": record.asset_unit,
        "mint_tx_hash": record.mint_tx_hash,
        "original_owner_wallet": record.original_owner_wallet,
        "status": record.status.value,
    }
