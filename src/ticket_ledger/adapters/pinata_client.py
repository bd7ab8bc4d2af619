"""Pinata IPFS pinning client."""

from dataclasses import dataclass

import httpx

from ticket_ledger.services.minting import MetadataStore


@dataclass
class HttpxPinataClient(MetadataStore):
    """Metadata store that pins files to IPFS through Pinata."""

    api_key: str
    api_secret: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str, api_secret: str, base_url: str = "https://api.pinata.cloud"
    ) -> "HttpxPinataClient":
        """Create a Pinata client with a managed httpx session."""
        return cls(
            api_key=api_key,
            api_secret=api_secret,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    async def upload(self, content: bytes, content_type: str) -> str:
        """Pin content and return its ipfs:// URI."""
        filename = "metadata.json" if content_type == "application/json" else "file"
        response = await self.http_client.post(
            f"{self.base_url}/pinning/pinFileToIPFS",
            headers={
                "pinata_api_key": self.api_key,
                "pinata_secret_api_key": self.api_secret,
            },
            files={"file": (filename, content, content_type)},
            timeout=30,
        )
        response.raise_for_status()
        ipfs_hash = response.json().get("IpfsHash")
        if not ipfs_hash:
            raise RuntimeError("Pinata returned no IpfsHash")
        return f"ipfs://{ipfs_hash}"

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
