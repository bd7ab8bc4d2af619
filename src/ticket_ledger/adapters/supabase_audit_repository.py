"""Supabase repository for audit events."""

from dataclasses import dataclass

from supabase import Client

from ticket_ledger.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

    def create_event(
        self,
        entity_type: str,
        entity_id: str,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""
        self.client.table("audit_events").insert(
            {
                "entity_type": entity_type,
                "entity_id": entity_id,
                "event_type": event_type,
                "before_json": before,
                "after_json": after,
            }
        ).execute()

    def list_events(self, event_type: str | None, limit: int) -> list[dict[str, object]]:
        """Return recent audit events, optionally filtered by type."""
        query = self.client.table("audit_events").select("*")
        if event_type is not None:
            query = query.eq("event_type", event_type)
        response = query.order("created_at", desc=True).limit(limit).execute()
        return response.data or []
