"""Cardano serialization backed by pycardano."""

from collections.abc import Callable
from dataclasses import dataclass

from pycardano import (
    Address,
    AlonzoMetadata,
    AuxiliaryData,
    BlockFrostChainContext,
    ChainContext,
    Metadata,
    MultiAsset,
    ScriptPubkey,
    Transaction,
    TransactionBuilder,
    TransactionOutput,
    TransactionWitnessSet,
    Value,
    VerificationKeyHash,
)

from ticket_ledger.domain.assets import AddressDetails, AssetIdentifier
from ticket_ledger.domain.minting import TransactionSpec
from ticket_ledger.services.ledger import LedgerCodec

NFT_METADATA_LABEL = 721


@dataclass
class PycardanoCodec(LedgerCodec):
    """Ledger codec that balances transactions against a chain context."""

    context_factory: Callable[[], ChainContext]
    _context: ChainContext | None = None

    @classmethod
    def create(cls, project_id: str, base_url: str) -> "PycardanoCodec":
        """Create a codec whose Blockfrost chain context is opened on first build."""
        api_root = base_url.rstrip("/").removesuffix("/v0")
        return cls(
            context_factory=lambda: BlockFrostChainContext(
                project_id=project_id, base_url=api_root
            )
        )

    def decode_address(self, address: str) -> AddressDetails:
        """Decode a bech32 address and extract its payment key hash."""
        try:
            decoded = Address.from_primitive(address)
        except Exception as exc:
            raise ValueError(f"Invalid address: {address}") from exc
        payment = decoded.payment_part
        key_hash = (
            payment.payload.hex() if isinstance(payment, VerificationKeyHash) else None
        )
        return AddressDetails(address=address, key_hash=key_hash)

    def policy_id(self, key_hash: str) -> str:
        """Hash a single-signature native script bound to the key hash."""
        return _signature_script(key_hash).hash().payload.hex()

    def build_transaction(self, spec: TransactionSpec) -> str:
        """Build and balance an unsigned mint or burn transaction."""
        asset = AssetIdentifier.from_unit(spec.asset_unit)
        script = _signature_script(spec.policy.key_hash)
        change_address = Address.from_primitive(spec.change_address)

        builder = TransactionBuilder(self._chain_context())
        builder.add_input_address(change_address)
        builder.mint = _multi_asset(asset, spec.quantity)
        builder.native_scripts = [script]
        builder.required_signers = [
            VerificationKeyHash(bytes.fromhex(spec.required_signer))
        ]
        if spec.metadata:
            builder.auxiliary_data = AuxiliaryData(
                AlonzoMetadata(metadata=Metadata({NFT_METADATA_LABEL: spec.metadata}))
            )
        if spec.quantity > 0 and spec.recipient:
            builder.add_output(
                TransactionOutput(
                    Address.from_primitive(spec.recipient),
                    Value(spec.output_lovelace, _multi_asset(asset, spec.quantity)),
                )
            )

        body = builder.build(change_address=change_address)
        transaction = Transaction(
            body,
            TransactionWitnessSet(native_scripts=[script]),
            auxiliary_data=builder.auxiliary_data,
        )
        return transaction.to_cbor_hex()

    def attach_witnesses(self, tx_cbor: str, witness_set_cbor: str) -> str:
        """Add the signer's vkey witnesses to the transaction."""
        transaction = Transaction.from_cbor(tx_cbor)
        signatures = TransactionWitnessSet.from_cbor(witness_set_cbor)
        existing = list(transaction.transaction_witness_set.vkey_witnesses or [])
        existing.extend(signatures.vkey_witnesses or [])
        transaction.transaction_witness_set.vkey_witnesses = existing
        return transaction.to_cbor_hex()

    def _chain_context(self) -> ChainContext:
        if self._context is None:
            self._context = self.context_factory()
        return self._context


def _signature_script(key_hash: str) -> ScriptPubkey:
    return ScriptPubkey(VerificationKeyHash(bytes.fromhex(key_hash)))


def _multi_asset(asset: AssetIdentifier, quantity: int) -> MultiAsset:
    return MultiAsset.from_primitive(
        {
            bytes.fromhex(asset.policy_id): {
                bytes.fromhex(asset.asset_name_hex): quantity,
            }
        }
    )
