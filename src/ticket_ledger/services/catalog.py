"""Listing of ticket tokens held by a wallet."""

import logging
from dataclasses import dataclass

from ticket_ledger.domain.assets import AssetIdentifier
from ticket_ledger.domain.tickets import OwnedTicket
from ticket_ledger.errors import LedgerRequestFailed, LedgerUnavailable
from ticket_ledger.services.ledger import LedgerGateway

_logger = logging.getLogger(__name__)


@dataclass
class TicketCatalog:
    """Resolves a wallet's holdings into tickets with on-chain metadata."""

    ledger: LedgerGateway

    async def list_owned(self, address: str) -> list[OwnedTicket]:
        """Return held tokens; assets whose metadata cannot be read are skipped."""
        tickets: list[OwnedTicket] = []
        balances = await self.ledger.query_balances(address)
        for unit, quantity in balances.items():
            asset = AssetIdentifier.from_unit(unit)
            try:
                metadata = await self.ledger.query_asset_metadata(unit)
            except (LedgerUnavailable, LedgerRequestFailed) as exc:
                _logger.warning("Could not fetch metadata for %s: %s", unit, exc)
                continue
            onchain = metadata.onchain_metadata if metadata else {}
            tickets.append(
                OwnedTicket(
                    unit=unit,
                    policy_id=asset.policy_id,
                    asset_name=asset.asset_name,
                    quantity=quantity,
                    onchain_metadata={"name": asset.asset_name, **onchain},
                    mint_tx_hash=metadata.mint_tx_hash if metadata else None,
                )
            )
        return tickets
