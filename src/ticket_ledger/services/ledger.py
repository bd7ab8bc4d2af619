"""Ledger gateway over Blockfrost with bounded retries."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from ticket_ledger.adapters.blockfrost_client import BlockfrostClient
from ticket_ledger.domain.assets import AddressDetails, AssetMetadata
from ticket_ledger.domain.minting import TransactionSpec
from ticket_ledger.errors import (
    AddressUnresolved,
    ConfirmationTimeout,
    GrantDeclined,
    LedgerRejected,
    LedgerRequestFailed,
    LedgerUnavailable,
    TicketingError,
)
from ticket_ledger.services.cache import Cache
from ticket_ledger.services.wallet_sessions import WalletCapability

_LOVELACE = "lovelace"

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class LedgerCodec(Protocol):
    """Address decoding, script hashing and transaction serialization."""

    def decode_address(self, address: str) -> AddressDetails:
        """Decode a bech32 address; raise ValueError if it is malformed."""

    def policy_id(self, key_hash: str) -> str:
        """Return the policy id of a single-signature script for a key hash."""

    def build_transaction(self, spec: TransactionSpec) -> str:
        """Balance and serialize an unsigned transaction as CBOR hex."""

    def attach_witnesses(self, tx_cbor: str, witness_set_cbor: str) -> str:
        """Merge signer witnesses into a transaction and return CBOR hex."""


@dataclass
class LedgerGateway:
    """Read and submit access to the ledger."""

    client: BlockfrostClient
    codec: LedgerCodec
    cache: Cache
    retry_attempts: int = 2
    retry_delay_seconds: float = 0.5
    confirmation_timeout_seconds: float = 180
    confirmation_poll_seconds: float = 5
    metadata_ttl_seconds: int = 86400

    async def query_holdings(self, address: str) -> list[str]:
        """Return the non-ADA units held at an address."""
        return list(await self.query_balances(address))

    async def query_balances(self, address: str) -> dict[str, int]:
        """Return non-ADA unit quantities held at an address."""
        utxos = await self._call_with_retry(
            lambda: self.client.get_address_utxos(address), action="utxos"
        )
        totals: dict[str, int] = {}
        for utxo in utxos:
            for amount in utxo.get("amount", []):
                unit = str(amount.get("unit"))
                if unit == _LOVELACE:
                    continue
                totals[unit] = totals.get(unit, 0) + int(amount.get("quantity", 0))
        return {unit: quantity for unit, quantity in totals.items() if quantity > 0}

    async def query_asset_holders(self, unit: str) -> list[str]:
        """Return the addresses currently holding an asset. Never cached."""
        rows = await self._call_with_retry(
            lambda: self.client.get_asset_addresses(unit), action="asset_addresses"
        )
        return [
            str(row["address"])
            for row in rows
            if row.get("address") and int(row.get("quantity", 0)) > 0
        ]

    async def query_asset_metadata(self, unit: str) -> AssetMetadata | None:
        """Return the asset's on-chain mint metadata and mint tx hash."""
        cache_key = f"asset:{unit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, AssetMetadata):
            return cached

        payload = await self._call_with_retry(
            lambda: self.client.get_asset(unit), action="asset"
        )
        if payload is None:
            return None
        metadata = AssetMetadata(
            unit=unit,
            onchain_metadata=payload.get("onchain_metadata") or {},
            mint_tx_hash=payload.get("initial_mint_tx_hash"),
        )
        self.cache.set(cache_key, metadata, ttl_seconds=self.metadata_ttl_seconds)
        return metadata

    def decode_address(self, address: str) -> AddressDetails:
        """Decode an address into its payment credential."""
        try:
            return self.codec.decode_address(address)
        except ValueError as exc:
            raise AddressUnresolved(f"Cannot decode address {address}") from exc

    def script_policy_id(self, key_hash: str) -> str:
        """Return the canonical policy id for a single-signature script."""
        return self.codec.policy_id(key_hash)

    async def build_and_submit(
        self, spec: TransactionSpec, signer: WalletCapability
    ) -> str:
        """Build, sign with the connected wallet and submit a transaction."""
        try:
            unsigned = await asyncio.to_thread(self.codec.build_transaction, spec)
        except TicketingError:
            raise
        except Exception as exc:
            if _is_transient(exc):
                raise LedgerUnavailable(f"Transaction build failed: {exc}") from exc
            raise LedgerRejected(f"Transaction build failed: {exc}") from exc

        try:
            witness_set = await signer.sign_tx(unsigned, partial=True)
        except TicketingError:
            raise
        except Exception as exc:
            raise GrantDeclined(f"Wallet did not sign: {exc}") from exc

        signed = self.codec.attach_witnesses(unsigned, witness_set)
        tx_hash = await self._call_with_retry(
            lambda: self.client.submit_transaction(signed), action="submit"
        )
        _logger.info("Submitted transaction %s for %s", tx_hash, spec.asset_unit)
        return tx_hash

    async def await_confirmation(self, tx_hash: str) -> None:
        """Poll until the transaction is on-chain or the timeout elapses."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirmation_timeout_seconds
        while True:
            found = await self._call_with_retry(
                lambda: self.client.get_transaction(tx_hash), action="tx"
            )
            if found is not None:
                return
            if loop.time() + self.confirmation_poll_seconds > deadline:
                raise ConfirmationTimeout(f"Transaction {tx_hash} not confirmed")
            await asyncio.sleep(self.confirmation_poll_seconds)

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[Any]]", *, action: str
    ) -> Any:
        """Call the ledger, retrying transient failures with backoff."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                status_code = _status_code_from_exception(exc)
                if action == "submit" and status_code == 400:  # noqa: PLR2004
                    raise LedgerRejected(_rejection_reason(exc)) from exc
                if not _is_transient(exc):
                    raise LedgerRequestFailed(
                        f"Ledger {action} failed (status={status_code}): {exc}"
                    ) from exc
                _logger.warning(
                    "Ledger %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    status_code,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise LedgerUnavailable(
                        f"Ledger {action} failed after {attempt} attempts"
                    ) from exc
                await asyncio.sleep(self.retry_delay_seconds * 2 ** (attempt - 1))


def _status_code_from_exception(exc: Exception) -> int | None:
    """Extract an HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if status_code is None:
        status_code = getattr(exc, "status_code", None)
    return status_code if isinstance(status_code, int) else None


def _is_transient(exc: Exception) -> bool:
    """Timeouts, connection errors, rate limits and server errors are retried."""
    status_code = _status_code_from_exception(exc)
    if status_code is None:
        return isinstance(exc, httpx.TransportError | OSError | TimeoutError)
    return status_code == 429 or status_code >= 500  # noqa: PLR2004


def _rejection_reason(exc: Exception) -> str:
    response = getattr(exc, "response", None)
    try:
        body = response.json() if response is not None else {}
    except ValueError:
        body = {}
    if isinstance(body, dict) and body.get("message"):
        return f"Ledger rejected transaction: {body['message']}"
    return f"Ledger rejected transaction: {exc}"
