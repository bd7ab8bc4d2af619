"""Minting policy derivation from the connected identity."""

from dataclasses import dataclass

from ticket_ledger.domain.assets import MintingPolicy
from ticket_ledger.domain.wallet import WalletSession
from ticket_ledger.errors import AddressUnresolved, KeyHashMissing
from ticket_ledger.services.ledger import LedgerGateway


@dataclass
class PolicyDeriver:
    """Derives single-signature minting policies."""

    ledger: LedgerGateway

    def derive(self, session: WalletSession) -> MintingPolicy:
        """Derive the minting policy bound to the session's payment key."""
        return self.from_key_hash(self._key_hash(session.address))

    async def signer_key_hash(self, session: WalletSession) -> str:
        """Ask the live capability which key will sign right now."""
        addresses = await session.capability.get_used_addresses()  # type: ignore[attr-defined]
        return self._key_hash(addresses[0] if addresses else None)

    def _key_hash(self, address: str | None) -> str:
        if not address:
            raise AddressUnresolved("Wallet session has no address")
        details = self.ledger.decode_address(address)
        if not details.key_hash:
            raise KeyHashMissing(f"Address {address} has no payment key hash")
        return details.key_hash.lower()

    def from_key_hash(self, key_hash: str) -> MintingPolicy:
        """Rebuild the policy for a key hash; same key hash, same policy id."""
        normalized = key_hash.lower()
        return MintingPolicy(
            key_hash=normalized,
            script_descriptor={"type": "sig", "keyHash": normalized},
            policy_id=self.ledger.script_policy_id(normalized),
        )
