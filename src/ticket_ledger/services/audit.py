"""Audit trail for ticket lifecycle events."""

from dataclasses import dataclass
from typing import Protocol


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(
        self,
        entity_type: str,
        entity_id: str,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""

    def list_events(self, event_type: str | None, limit: int) -> list[dict[str, object]]:
        """Return recent audit events, newest first."""


@dataclass
class AuditService:
    """Service for recording audit events."""

    repository: AuditRepository

    def record_event(
        self,
        entity_type: str,
        entity_id: str,
        event_type: str,
        before: dict[str, object] | None = None,
        after: dict[str, object] | None = None,
    ) -> None:
        """Persist an audit event."""
        self.repository.create_event(
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            before=before,
            after=after,
        )

    def reconciliation_alerts(self, limit: int = 50) -> list[dict[str, object]]:
        """Return mints that reached the ledger but not the registry."""
        return self.repository.list_events("reconciliation_required", limit)
