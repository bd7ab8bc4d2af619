"""Supabase-backed ticket repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from postgrest.exceptions import APIError
from supabase import Client

from ticket_ledger.domain.tickets import TicketRecord, TicketStatus
from ticket_ledger.errors import DuplicateKeyError
from ticket_ledger.services.registry import TicketRepository

_UNIQUE_VIOLATION = "23505"
_COLUMNS = "asset_unit, mint_tx_hash, original_owner_wallet, status, created_at"


@dataclass
class SupabaseTicketRepository(TicketRepository):
    """Supabase implementation for ticket records."""

    client: Client

    def create(self, record: TicketRecord) -> TicketRecord:
        """Insert a ticket row; the unique index on asset_unit rejects repeats."""
        payload: dict[str, object] = {
            "asset_unit": record.asset_unit,
            "mint_tx_hash": record.mint_tx_hash,
            "original_owner_wallet": record.original_owner_wallet,
            "status": record.status.value,
        }
        if record.created_at is not None:
            payload["created_at"] = record.created_at.isoformat()
        try:
            response = self.client.table("tickets").insert(payload).execute()
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateKeyError(
                    f"Ticket {record.asset_unit} already exists"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create ticket")
        return _to_record(response.data[0])

    def find_one(self, asset_unit: str) -> TicketRecord | None:
        """Return a ticket by asset unit, if present."""
        response = (
            self.client.table("tickets")
            .select(_COLUMNS)
            .eq("asset_unit", asset_unit)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_record(response.data[0])

    def list_records(self, limit: int) -> list[TicketRecord]:
        """Return the most recently created tickets."""
        response = (
            self.client.table("tickets")
            .select(_COLUMNS)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_to_record(row) for row in response.data or []]

    def update_status(self, asset_unit: str, status: TicketStatus) -> None:
        """Update the status of a ticket."""
        self.client.table("tickets").update(
            {
                "status": status.value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("asset_unit", asset_unit).execute()


def _to_record(row: dict[str, object]) -> TicketRecord:
    created_at = row.get("created_at")
    return TicketRecord(
        asset_unit=str(row["asset_unit"]),
        mint_tx_hash=str(row["mint_tx_hash"]),
        original_owner_wallet=str(row["original_owner_wallet"]),
        status=TicketStatus(row.get("status") or TicketStatus.VALID.value),
        created_at=(
            datetime.fromisoformat(created_at)
            if isinstance(created_at, str) and created_at
            else None
        ),
    )
