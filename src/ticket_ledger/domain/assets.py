"""Asset identifiers and minting policies."""

from dataclasses import dataclass

POLICY_ID_HEX_LENGTH = 56
MAX_ASSET_NAME_BYTES = 32


@dataclass(frozen=True)
class AssetIdentifier:
    """Policy id and hex asset name; their concatenation is the ledger unit."""

    policy_id: str
    asset_name_hex: str

    @property
    def unit(self) -> str:
        return f"{self.policy_id}{self.asset_name_hex}"

    @property
    def asset_name(self) -> str:
        """Decode the asset name for display, replacing invalid UTF-8."""
        return bytes.fromhex(self.asset_name_hex).decode("utf-8", errors="replace")

    @classmethod
    def from_unit(cls, unit: str) -> "AssetIdentifier":
        """Split a ledger unit into policy id and asset name."""
        return cls(
            policy_id=unit[:POLICY_ID_HEX_LENGTH],
            asset_name_hex=unit[POLICY_ID_HEX_LENGTH:],
        )


@dataclass(frozen=True)
class MintingPolicy:
    """Single-signature native minting policy bound to one key hash."""

    key_hash: str
    script_descriptor: dict[str, str]
    policy_id: str


@dataclass(frozen=True)
class AddressDetails:
    """Decoded address credentials."""

    address: str
    key_hash: str | None


@dataclass(frozen=True)
class AssetMetadata:
    """Ledger view of an asset's mint metadata."""

    unit: str
    onchain_metadata: dict[str, object]
    mint_tx_hash: str | None
