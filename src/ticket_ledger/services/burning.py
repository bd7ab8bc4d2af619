"""Ticket cancellation by burning the token."""

import logging
from dataclasses import dataclass

from ticket_ledger.domain.assets import AssetIdentifier
from ticket_ledger.domain.minting import TransactionSpec
from ticket_ledger.domain.tickets import TicketRecord
from ticket_ledger.errors import PolicyIdentityMismatch
from ticket_ledger.services.ledger import LedgerGateway
from ticket_ledger.services.policies import PolicyDeriver
from ticket_ledger.services.wallet_sessions import WalletSessionManager

_logger = logging.getLogger(__name__)


@dataclass
class BurnCoordinator:
    """Destroys a ticket token under the policy that minted it."""

    sessions: WalletSessionManager
    policy_deriver: PolicyDeriver
    ledger: LedgerGateway

    async def burn(self, ticket: TicketRecord) -> str:
        """Submit a burn for the ticket and wait for ledger confirmation.

        Registry cancellation is left to the caller so that a transient
        registry failure can be retried without re-burning.
        """
        session = self.sessions.current()
        policy = self.policy_deriver.derive(session)
        asset = AssetIdentifier.from_unit(ticket.asset_unit)
        if asset.policy_id != policy.policy_id:
            raise PolicyIdentityMismatch(
                f"Ticket {ticket.asset_unit} was not minted by policy {policy.policy_id}"
            )
        spec = TransactionSpec(
            policy=policy,
            asset_unit=ticket.asset_unit,
            quantity=-1,
            change_address=session.address or "",
            required_signer=policy.key_hash,
        )
        tx_hash = await self.ledger.build_and_submit(spec, session.capability)
        await self.ledger.await_confirmation(tx_hash)
        _logger.info("Burned ticket %s in %s", ticket.asset_unit, tx_hash)
        return tx_hash
