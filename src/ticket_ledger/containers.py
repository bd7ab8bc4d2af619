"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from ticket_ledger.adapters.blockfrost_client import HttpxBlockfrostClient
from ticket_ledger.adapters.json_hint_store import JsonFileHintStore
from ticket_ledger.adapters.pinata_client import HttpxPinataClient
from ticket_ledger.adapters.pycardano_codec import PycardanoCodec
from ticket_ledger.adapters.signing_key_wallet import (
    SigningKeyWalletProvider,
    network_for,
)
from ticket_ledger.adapters.supabase_audit_repository import SupabaseAuditRepository
from ticket_ledger.adapters.supabase_ticket_repository import (
    SupabaseTicketRepository,
)
from ticket_ledger.config import (
    Settings,
    parse_provider_preference,
    parse_signing_keys,
)
from ticket_ledger.services.asset_names import AssetNameAllocator
from ticket_ledger.services.audit import AuditService
from ticket_ledger.services.burning import BurnCoordinator
from ticket_ledger.services.cache import InMemoryCache
from ticket_ledger.services.catalog import TicketCatalog
from ticket_ledger.services.ledger import LedgerGateway
from ticket_ledger.services.minting import MintCoordinator
from ticket_ledger.services.policies import PolicyDeriver
from ticket_ledger.services.registry import TicketRegistry
from ticket_ledger.services.verification import AuthenticityVerifier
from ticket_ledger.services.wallet_sessions import (
    StaticProviderSource,
    WalletSessionManager,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    wallet_sessions: WalletSessionManager
    ledger: LedgerGateway
    audit_service: AuditService
    registry: TicketRegistry
    mint_coordinator: MintCoordinator
    verifier: AuthenticityVerifier
    burn_coordinator: BurnCoordinator
    catalog: TicketCatalog
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    audit_service = AuditService(SupabaseAuditRepository(supabase_client))
    registry = TicketRegistry(
        repository=SupabaseTicketRepository(supabase_client),
        audit_service=audit_service,
    )

    blockfrost_client = HttpxBlockfrostClient.create(
        project_id=resolved_settings.blockfrost_project_id,
        base_url=resolved_settings.blockfrost_base_url,
        timeout=resolved_settings.ledger_timeout_seconds,
    )
    pinata_client = HttpxPinataClient.create(
        api_key=resolved_settings.pinata_api_key,
        api_secret=resolved_settings.pinata_api_secret,
        base_url=resolved_settings.pinata_base_url,
    )
    ledger = LedgerGateway(
        client=blockfrost_client,
        codec=PycardanoCodec.create(
            project_id=resolved_settings.blockfrost_project_id,
            base_url=resolved_settings.blockfrost_base_url,
        ),
        cache=InMemoryCache(),
        retry_attempts=resolved_settings.ledger_retry_attempts,
        retry_delay_seconds=resolved_settings.ledger_retry_delay_seconds,
        confirmation_timeout_seconds=resolved_settings.confirmation_timeout_seconds,
        confirmation_poll_seconds=resolved_settings.confirmation_poll_seconds,
    )

    network = network_for(resolved_settings.cardano_network)
    providers = [
        SigningKeyWalletProvider(
            provider_id=provider_id,
            skey_path=Path(path),
            blockfrost=blockfrost_client,
            network=network,
        )
        for provider_id, path in parse_signing_keys(
            resolved_settings.wallet_signing_keys
        ).items()
    ]
    wallet_sessions = WalletSessionManager(
        provider_source=StaticProviderSource(providers),
        hint_store=JsonFileHintStore(Path(resolved_settings.session_hint_path)),
        preference=parse_provider_preference(
            resolved_settings.wallet_provider_preference
        ),
    )
    policy_deriver = PolicyDeriver(ledger)
    mint_coordinator = MintCoordinator(
        sessions=wallet_sessions,
        policy_deriver=policy_deriver,
        name_allocator=AssetNameAllocator(prefix=resolved_settings.ticket_name_prefix),
        ledger=ledger,
        registry=registry,
        metadata_store=pinata_client,
        audit_service=audit_service,
        resale_ceiling_ratio=resolved_settings.resale_ceiling_ratio,
        output_lovelace=resolved_settings.min_output_lovelace,
        registry_retry_attempts=resolved_settings.registry_retry_attempts,
    )

    async def close_resources() -> None:
        await blockfrost_client.close()
        await pinata_client.close()

    return AppContainer(
        settings=resolved_settings,
        wallet_sessions=wallet_sessions,
        ledger=ledger,
        audit_service=audit_service,
        registry=registry,
        mint_coordinator=mint_coordinator,
        verifier=AuthenticityVerifier(registry=registry, ledger=ledger),
        burn_coordinator=BurnCoordinator(
            sessions=wallet_sessions, policy_deriver=policy_deriver, ledger=ledger
        ),
        catalog=TicketCatalog(ledger),
        close_resources=close_resources,
    )
