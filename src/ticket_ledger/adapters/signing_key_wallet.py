"""Wallet provider backed by a Cardano payment signing key file."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from pycardano import (
    Address,
    Network,
    PaymentSigningKey,
    PaymentVerificationKey,
    Transaction,
    TransactionWitnessSet,
    VerificationKeyWitness,
)

from ticket_ledger.adapters.blockfrost_client import BlockfrostClient
from ticket_ledger.errors import GrantDeclined

_logger = logging.getLogger(__name__)

_NETWORK_IDS = {Network.TESTNET: 0, Network.MAINNET: 1}


def network_for(name: str) -> Network:
    """Map a configured network name to the pycardano network."""
    return Network.MAINNET if name.lower() == "mainnet" else Network.TESTNET


@dataclass
class SigningKeyWallet:
    """Wallet capability that signs with a single payment key."""

    signing_key: PaymentSigningKey
    address: Address
    network: Network
    blockfrost: BlockfrostClient

    async def get_network_id(self) -> int:
        return _NETWORK_IDS[self.network]

    async def get_utxos(self) -> list[dict[str, object]]:
        return await self.blockfrost.get_address_utxos(str(self.address))

    async def get_balance(self) -> int:
        utxos = await self.get_utxos()
        total = 0
        for utxo in utxos:
            for amount in utxo.get("amount", []):  # type: ignore[union-attr]
                if amount.get("unit") == "lovelace":
                    total += int(amount.get("quantity", 0))
        return total

    async def get_used_addresses(self) -> list[str]:
        return [str(self.address)]

    async def sign_tx(self, tx_cbor: str, partial: bool = False) -> str:
        """Sign the transaction body and return a witness set with our vkey witness."""
        transaction = Transaction.from_cbor(tx_cbor)
        verification_key = PaymentVerificationKey.from_signing_key(self.signing_key)
        required = transaction.transaction_body.required_signers or []
        if not partial and required and verification_key.hash() not in required:
            raise GrantDeclined("Transaction requires signers this wallet does not hold")
        signature = self.signing_key.sign(transaction.transaction_body.hash())
        witness = VerificationKeyWitness(verification_key, signature)
        return TransactionWitnessSet(vkey_witnesses=[witness]).to_cbor_hex()

    async def submit_tx(self, tx_cbor: str) -> str:
        return await self.blockfrost.submit_transaction(tx_cbor)


@dataclass
class SigningKeyWalletProvider:
    """Provider that grants a capability once the key file can be read."""

    provider_id: str
    skey_path: Path
    blockfrost: BlockfrostClient
    network: Network = Network.TESTNET
    _wallet: SigningKeyWallet | None = field(default=None, repr=False)

    async def is_enabled(self) -> bool:
        """Return whether the key is available without further prompting."""
        return self.skey_path.is_file()

    async def enable(self) -> SigningKeyWallet:
        """Load the signing key and return the wallet capability."""
        if self._wallet is None:
            try:
                signing_key = await asyncio.to_thread(
                    PaymentSigningKey.load, str(self.skey_path)
                )
            except (OSError, ValueError) as exc:
                raise GrantDeclined(
                    f"Cannot load signing key for {self.provider_id}"
                ) from exc
            verification_key = PaymentVerificationKey.from_signing_key(signing_key)
            self._wallet = SigningKeyWallet(
                signing_key=signing_key,
                address=Address(payment_part=verification_key.hash(), network=self.network),
                network=self.network,
                blockfrost=self.blockfrost,
            )
            _logger.info("Loaded signing key wallet %s", self.provider_id)
        return self._wallet
