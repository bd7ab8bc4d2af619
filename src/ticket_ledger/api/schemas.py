"""Pydantic models for the HTTP API payloads."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ticket_ledger.domain.tickets import OwnedTicket, TicketRecord, TicketStatus


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketIn(CamelModel):
    """Ticket registration payload."""

    asset_unit: str = Field(min_length=1)
    mint_tx_hash: str = Field(min_length=1)
    original_owner_wallet: str = Field(min_length=1)
    status: TicketStatus = TicketStatus.VALID


class TicketOut(CamelModel):
    """Registered ticket."""

    asset_unit: str
    mint_tx_hash: str
    original_owner_wallet: str
    status: TicketStatus
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: TicketRecord) -> "TicketOut":
        return cls(
            asset_unit=record.asset_unit,
            mint_tx_hash=record.mint_tx_hash,
            original_owner_wallet=record.original_owner_wallet,
            status=record.status,
            created_at=record.created_at,
        )


class VerifyIn(CamelModel):
    """Verification request, usually scanned from a ticket QR code."""

    asset_unit: str = Field(min_length=1)
    mint_tx_hash: str | None = None


class VerifyOut(CamelModel):
    valid: bool
    reason: str | None = None


class MintIn(CamelModel):
    """Purchase details for a paid seat."""

    event_name: str = Field(min_length=1)
    seat_id: str
    price: float = Field(gt=0, allow_inf_nan=False)
    event_description: str = ""
    image_url: str = ""
    payment_confirmed: bool = False


class MintOut(CamelModel):
    tx_hash: str
    asset_unit: str
    metadata_uri: str


class CancelOut(CamelModel):
    tx_hash: str
    registry_updated: bool


class WalletOut(CamelModel):
    """Current wallet session state."""

    state: str
    provider_id: str | None = None
    address: str | None = None
    connected_at: datetime | None = None


class OwnedTicketOut(CamelModel):
    unit: str
    policy_id: str
    asset_name: str
    quantity: int
    onchain_metadata: dict[str, object]
    mint_tx_hash: str | None = None

    @classmethod
    def from_owned(cls, ticket: OwnedTicket) -> "OwnedTicketOut":
        return cls(
            unit=ticket.unit,
            policy_id=ticket.policy_id,
            asset_name=ticket.asset_name,
            quantity=ticket.quantity,
            onchain_metadata=ticket.onchain_metadata,
            mint_tx_hash=ticket.mint_tx_hash,
        )
