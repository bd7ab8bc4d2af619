"""Domain models for the mint and burn pipeline."""

from dataclasses import dataclass, field

from ticket_ledger.domain.assets import MintingPolicy


@dataclass(frozen=True)
class MintRequest:
    """Purchase details for one seat."""

    event_name: str
    seat_id: str
    price: float
    event_description: str = ""
    image_url: str = ""
    payment_confirmed: bool = False


@dataclass(frozen=True)
class MintResult:
    """Outcome of a successful mint."""

    tx_hash: str
    asset_unit: str
    metadata_uri: str


@dataclass(frozen=True)
class TransactionSpec:
    """Ledger-agnostic description of a mint or burn transaction.

    A positive ``quantity`` mints and pays the unit to ``recipient``; a
    negative one burns it from the signer's own outputs.
    """

    policy: MintingPolicy
    asset_unit: str
    quantity: int
    change_address: str
    required_signer: str
    recipient: str | None = None
    output_lovelace: int = 0
    metadata: dict[str, object] = field(default_factory=dict)
