"""Blockfrost REST API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class BlockfrostClient(Protocol):
    """Interface for the Blockfrost ledger API."""

    async def get_address_utxos(self, address: str) -> list[dict[str, object]]:
        """Return raw UTxOs at an address; empty if the address is unused."""

    async def get_asset_addresses(self, unit: str) -> list[dict[str, object]]:
        """Return addresses currently holding an asset; empty if unknown."""

    async def get_asset(self, unit: str) -> dict[str, object] | None:
        """Return raw asset details, if the asset exists."""

    async def get_transaction(self, tx_hash: str) -> dict[str, object] | None:
        """Return a confirmed transaction, if present on-chain."""

    async def submit_transaction(self, tx_cbor: str) -> str:
        """Submit a signed transaction and return its hash."""


@dataclass
class HttpxBlockfrostClient(BlockfrostClient):
    """HTTPX-backed Blockfrost client."""

    project_id: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(
        cls, project_id: str, base_url: str, timeout: float = 15
    ) -> "HttpxBlockfrostClient":
        """Create a Blockfrost client with a managed httpx session."""
        return cls(
            project_id=project_id,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def get_address_utxos(self, address: str) -> list[dict[str, object]]:
        """Fetch every page of UTxOs at an address."""
        utxos: list[dict[str, object]] = []
        page = 1
        while True:
            batch = await self._get_optional(
                f"/addresses/{address}/utxos", params={"page": page}
            )
            if not batch:
                return utxos
            utxos.extend(batch)
            if len(batch) < 100:
                return utxos
            page += 1

    async def get_asset_addresses(self, unit: str) -> list[dict[str, object]]:
        """Fetch the addresses holding an asset."""
        return await self._get_optional(f"/assets/{unit}/addresses") or []

    async def get_asset(self, unit: str) -> dict[str, object] | None:
        """Fetch asset details including on-chain metadata."""
        return await self._get_optional(f"/assets/{unit}")

    async def get_transaction(self, tx_hash: str) -> dict[str, object] | None:
        """Fetch a transaction by hash."""
        return await self._get_optional(f"/txs/{tx_hash}")

    async def submit_transaction(self, tx_cbor: str) -> str:
        """Submit CBOR bytes using Blockfrost's tx/submit endpoint."""
        response = await self.http_client.post(
            f"{self.base_url}/tx/submit",
            headers={
                "project_id": self.project_id,
                "Content-Type": "application/cbor",
            },
            content=bytes.fromhex(tx_cbor),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get_optional(self, path: str, params: dict | None = None):  # type: ignore[no-untyped-def]
        """GET a resource, returning None when Blockfrost reports 404."""
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            headers={"project_id": self.project_id},
            params=params,
            timeout=self.timeout,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return response.json()
