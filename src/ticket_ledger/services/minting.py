"""Ticket minting pipeline."""

import asyncio
import json
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

from ticket_ledger.domain.assets import AssetIdentifier
from ticket_ledger.domain.minting import MintRequest, MintResult, TransactionSpec
from ticket_ledger.domain.tickets import TicketRecord, TicketStatus
from ticket_ledger.domain.wallet import WalletSession
from ticket_ledger.errors import (
    ErrorKind,
    InvalidMintRequest,
    MetadataUploadFailed,
    PaymentNotConfirmed,
    PolicyIdentityMismatch,
    ReconciliationRequired,
    TicketingError,
)
from ticket_ledger.services.asset_names import AssetNameAllocator
from ticket_ledger.services.audit import AuditService
from ticket_ledger.services.ledger import LedgerGateway
from ticket_ledger.services.policies import PolicyDeriver
from ticket_ledger.services.registry import TicketRegistry
from ticket_ledger.services.wallet_sessions import WalletSessionManager

# Ledger metadata strings are capped at 64 bytes; longer values become lists.
_METADATA_CHUNK_BYTES = 64

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable


class MetadataStore(Protocol):
    """Content-addressed store for off-chain ticket metadata."""

    async def upload(self, content: bytes, content_type: str) -> str:
        """Store content and return its URI."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class MintCoordinator:
    """Orchestrates metadata upload, policy derivation, minting and registration."""

    sessions: WalletSessionManager
    policy_deriver: PolicyDeriver
    name_allocator: AssetNameAllocator
    ledger: LedgerGateway
    registry: TicketRegistry
    metadata_store: MetadataStore
    audit_service: AuditService
    resale_ceiling_ratio: float = 1.1
    output_lovelace: int = 2_000_000
    upload_retry_attempts: int = 2
    registry_retry_attempts: int = 3
    retry_delay_seconds: float = 0.5
    clock: Callable[[], datetime] = _utcnow
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def mint(self, request: MintRequest) -> MintResult:
        """Mint one ticket token for a paid seat and register it."""
        if not request.payment_confirmed:
            raise PaymentNotConfirmed("Mint requested before payment confirmation")
        session = self.sessions.current()
        if not request.seat_id.strip():
            raise InvalidMintRequest("Seat identifier is required")
        if not math.isfinite(request.price) or request.price <= 0:
            raise InvalidMintRequest("Price must be positive")
        async with self._lock:
            return await self._mint(session, request)

    async def _mint(self, session: WalletSession, request: MintRequest) -> MintResult:
        issued_at = self.clock().isoformat()
        metadata = build_ticket_metadata(request, self.resale_ceiling_ratio, issued_at)
        metadata_uri = await self._upload_metadata(metadata)

        policy = self.policy_deriver.derive(session)
        signer_key_hash = await self.policy_deriver.signer_key_hash(session)
        if signer_key_hash != policy.key_hash:
            raise PolicyIdentityMismatch(
                f"Signer {signer_key_hash} does not match policy key {policy.key_hash}"
            )

        asset = AssetIdentifier(
            policy_id=policy.policy_id,
            asset_name_hex=self.name_allocator.allocate(request.seat_id),
        )
        spec = TransactionSpec(
            policy=policy,
            asset_unit=asset.unit,
            quantity=1,
            change_address=session.address or "",
            required_signer=policy.key_hash,
            recipient=session.address,
            output_lovelace=self.output_lovelace,
            metadata=build_onchain_metadata(asset, metadata, metadata_uri),
        )
        tx_hash = await self.ledger.build_and_submit(spec, session.capability)

        record = TicketRecord(
            asset_unit=asset.unit,
            mint_tx_hash=tx_hash,
            original_owner_wallet=session.address or "",
            status=TicketStatus.VALID,
            created_at=self.clock(),
        )
        await self._register(record)
        return MintResult(
            tx_hash=tx_hash, asset_unit=asset.unit, metadata_uri=metadata_uri
        )

    async def _upload_metadata(self, metadata: dict[str, object]) -> str:
        content = json.dumps(metadata).encode("utf-8")
        try:
            return await self._retry(
                lambda: self.metadata_store.upload(content, "application/json"),
                attempts=self.upload_retry_attempts,
                action="metadata upload",
            )
        except Exception as exc:
            raise MetadataUploadFailed(f"Metadata upload failed: {exc}") from exc

    async def _register(self, record: TicketRecord) -> None:
        async def insert() -> None:
            outcome = self.registry.register(record)
            if not outcome.created:
                _logger.info(
                    "Mint %s already registered; treating as success",
                    record.asset_unit,
                )

        try:
            await self._retry(
                insert, attempts=self.registry_retry_attempts, action="registry write"
            )
        except Exception as exc:
            self._escalate(record, exc)
            raise ReconciliationRequired(
                f"Minted {record.asset_unit} in {record.mint_tx_hash} "
                f"but registry write failed: {exc}",
                tx_hash=record.mint_tx_hash,
                asset_unit=record.asset_unit,
            ) from exc

    def _escalate(self, record: TicketRecord, exc: Exception) -> None:
        _logger.critical(
            "Ticket minted on-chain but not registered; manual reconciliation needed",
            extra={"tx_hash": record.mint_tx_hash, "asset_unit": record.asset_unit},
        )
        try:
            self.audit_service.record_event(
                entity_type="mint",
                entity_id=record.asset_unit,
                event_type="reconciliation_required",
                after={
                    "asset_unit": record.asset_unit,
                    "mint_tx_hash": record.mint_tx_hash,
                    "original_owner_wallet": record.original_owner_wallet,
                    "error": str(exc),
                },
            )
        except Exception:
            _logger.exception(
                "Failed to persist reconciliation alert",
                extra={"tx_hash": record.mint_tx_hash, "asset_unit": record.asset_unit},
            )

    async def _retry(
        self, func: "Callable[[], Awaitable[Any]]", *, attempts: int, action: str
    ) -> Any:
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                if (
                    isinstance(exc, TicketingError)
                    and exc.kind != ErrorKind.TRANSIENT_NETWORK
                ):
                    raise
                attempt += 1
                _logger.warning(
                    "Mint %s failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    attempts + 1,
                    exc,
                )
                if attempt > attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds * 2 ** (attempt - 1))


def build_ticket_metadata(
    request: MintRequest, resale_ceiling_ratio: float, issued_at: str
) -> dict[str, object]:
    """Build the off-chain JSON metadata for a ticket."""
    max_resale_price = round(request.price * resale_ceiling_ratio, 2)
    return {
        "name": f"{request.event_name} - Seat {request.seat_id}",
        "description": request.event_description,
        "image": request.image_url,
        "attributes": [
            {"trait_type": "Event", "value": request.event_name},
            {"trait_type": "Seat", "value": request.seat_id},
            {"trait_type": "Price", "value": _format_amount(request.price)},
            {"trait_type": "Max Resale Price", "value": f"{max_resale_price:.2f}"},
            {"trait_type": "Issued At", "value": issued_at},
        ],
    }


def build_onchain_metadata(
    asset: AssetIdentifier, metadata: dict[str, object], metadata_uri: str
) -> dict[str, object]:
    """Build the label-721 payload keyed by policy id and hex asset name."""
    traits = {
        str(item["trait_type"]): item["value"]
        for item in metadata.get("attributes", [])  # type: ignore[union-attr]
    }
    fields = {
        "name": metadata.get("name"),
        "image": metadata.get("image"),
        "description": metadata.get("description"),
        "event": traits.get("Event"),
        "seat": traits.get("Seat"),
        "price": traits.get("Price"),
        "max_resale_price": traits.get("Max Resale Price"),
        "issuedAt": traits.get("Issued At"),
        "metadataUrl": metadata_uri,
    }
    attributes = {key: _chunk(str(value)) for key, value in fields.items() if value}
    return {asset.policy_id: {asset.asset_name_hex: attributes}}


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.2f}"


def _chunk(value: str) -> str | list[str]:
    """Split a string into pieces of at most 64 UTF-8 bytes."""
    if len(value.encode("utf-8")) <= _METADATA_CHUNK_BYTES:
        return value
    chunks: list[str] = []
    current = ""
    for char in value:
        if len((current + char).encode("utf-8")) > _METADATA_CHUNK_BYTES:
            chunks.append(current)
            current = char
        else:
            current += char
    if current:
        chunks.append(current)
    return chunks
