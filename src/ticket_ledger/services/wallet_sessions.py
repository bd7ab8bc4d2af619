"""Wallet session state machine."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from ticket_ledger.domain.wallet import (
    REQUIRED_CAPABILITIES,
    SessionHint,
    SessionState,
    WalletSession,
)
from ticket_ledger.errors import (
    CapabilityMismatch,
    ConnectionCancelled,
    ConnectionInProgress,
    GrantDeclined,
    NoWalletProvider,
    TicketingError,
    WalletNotConnected,
)

_logger = logging.getLogger(__name__)


class WalletCapability(Protocol):
    """Signing capability granted by a wallet provider."""

    async def get_network_id(self) -> int:
        """Return the network id the wallet is connected to."""

    async def get_utxos(self) -> list[dict[str, object]]:
        """Return the wallet's unspent outputs."""

    async def get_balance(self) -> int:
        """Return the wallet balance in lovelace."""

    async def get_used_addresses(self) -> list[str]:
        """Return the wallet's used addresses."""

    async def sign_tx(self, tx_cbor: str, partial: bool = False) -> str:
        """Sign a transaction and return the witness set CBOR hex."""

    async def submit_tx(self, tx_cbor: str) -> str:
        """Submit a signed transaction and return its hash."""


class WalletProvider(Protocol):
    """Wallet extension that can grant a signing capability."""

    provider_id: str

    async def enable(self) -> object:
        """Request a capability grant, prompting the user if needed."""


class ProviderSource(Protocol):
    """Enumerates the wallet providers currently available."""

    def available(self) -> dict[str, WalletProvider]:
        """Return providers keyed by id, in discovery order."""


class SessionHintStore(Protocol):
    """Persistence for the reconnect hint."""

    def load(self) -> SessionHint:
        """Return the stored hint, or a default one."""

    def save(self, hint: SessionHint) -> None:
        """Persist the hint."""


@dataclass
class StaticProviderSource(ProviderSource):
    """Provider source backed by a fixed list of providers."""

    providers: list[WalletProvider] = field(default_factory=list)

    def available(self) -> dict[str, WalletProvider]:
        """Return the configured providers keyed by id."""
        return {provider.provider_id: provider for provider in self.providers}


def has_required_capabilities(candidate: object) -> bool:
    """Return whether an object exposes every required wallet function."""
    if candidate is None:
        return False
    return all(callable(getattr(candidate, name, None)) for name in REQUIRED_CAPABILITIES)


@dataclass
class WalletSessionManager:
    """Negotiates and holds the single active wallet session."""

    provider_source: ProviderSource
    hint_store: SessionHintStore
    preference: list[str] = field(default_factory=list)
    state: SessionState = SessionState.DISCONNECTED
    _session: WalletSession | None = None
    _attempt_in_flight: bool = False
    _generation: int = 0
    _auto_reconnect_done: bool = False

    @property
    def session(self) -> WalletSession | None:
        return self._session

    def current(self) -> WalletSession:
        """Return the active session or raise if none is connected."""
        if self._session is None:
            raise WalletNotConnected("No active wallet session")
        return self._session

    async def connect(self) -> WalletSession:
        """Connect to the preferred available provider."""
        generation = self._begin_attempt(SessionState.CONNECTING)
        try:
            providers = self.provider_source.available()
            provider_id = self._select_provider(providers)
            if provider_id is None:
                raise NoWalletProvider("No wallet providers available")
            provider = providers[provider_id]
            try:
                capability = await provider.enable()
            except TicketingError:
                raise
            except Exception as exc:
                raise GrantDeclined(f"Provider {provider_id} refused: {exc}") from exc
            if not has_required_capabilities(capability):
                raise CapabilityMismatch(
                    f"Provider {provider_id} returned an incomplete wallet API"
                )
            session = await self._accept(provider_id, capability, generation)
        except Exception:
            self.state = (
                SessionState.CONNECTED if self._session else SessionState.DISCONNECTED
            )
            raise
        finally:
            self._attempt_in_flight = False
        _logger.info("Wallet connected: provider=%s", provider_id)
        return session

    def disconnect(self) -> None:
        """Drop the live session and disable auto-reconnect.

        A connect or reconnect attempt still pending is superseded and its grant
        is discarded when it completes.
        """
        self._generation += 1
        previous = self.hint_store.load()
        self._session = None
        self.state = SessionState.DISCONNECTED
        self.hint_store.save(
            SessionHint(provider_id=previous.provider_id, auto_reconnect_allowed=False)
        )

    async def auto_reconnect(self) -> WalletSession | None:
        """Silently restore the previous session at startup, if allowed."""
        if self._auto_reconnect_done:
            return self._session
        hint = self.hint_store.load()
        if not hint.auto_reconnect_allowed:
            self._auto_reconnect_done = True
            _logger.info("Auto-reconnect disabled by stored preference")
            return None

        generation = self._begin_attempt(SessionState.AUTO_RECONNECTING)
        try:
            providers = self.provider_source.available()
            for provider_id in self._reconnect_order(providers, hint.provider_id):
                try:
                    capability = await self._silent_capability(providers[provider_id])
                    if capability is None:
                        continue
                    session = await self._accept(provider_id, capability, generation)
                except ConnectionCancelled:
                    _logger.info("Auto-reconnect superseded by disconnect")
                    return None
                except Exception as exc:
                    _logger.warning(
                        "Auto-reconnect attempt failed for %s: %s", provider_id, exc
                    )
                    continue
                _logger.info("Auto-reconnected wallet: provider=%s", provider_id)
                return session
            _logger.info("Auto-reconnect: no provider reconnected")
            return None
        finally:
            self._auto_reconnect_done = True
            self._attempt_in_flight = False
            if self._session is None:
                self.state = SessionState.DISCONNECTED

    def _begin_attempt(self, state: SessionState) -> int:
        if self._attempt_in_flight:
            raise ConnectionInProgress("A wallet connection attempt is pending")
        self._attempt_in_flight = True
        self.state = state
        return self._generation

    def _select_provider(self, providers: dict[str, WalletProvider]) -> str | None:
        for provider_id in self.preference:
            if provider_id in providers:
                return provider_id
        return next(iter(providers), None)

    def _reconnect_order(
        self, providers: dict[str, WalletProvider], previous: str | None
    ) -> list[str]:
        first = previous if previous in providers else self._select_provider(providers)
        order = [first] if first else []
        order.extend(provider_id for provider_id in providers if provider_id != first)
        return order

    async def _silent_capability(self, provider: WalletProvider) -> object | None:
        is_enabled = getattr(provider, "is_enabled", None)
        if not callable(is_enabled):
            return None
        if not await is_enabled():
            return None
        try:
            granted = await provider.enable()
        except Exception:
            if has_required_capabilities(provider):
                return provider
            raise
        if has_required_capabilities(granted):
            return granted
        if has_required_capabilities(provider):
            return provider
        raise CapabilityMismatch(
            f"Provider {provider.provider_id} returned an incomplete wallet API"
        )

    async def _accept(
        self, provider_id: str, capability: object, generation: int
    ) -> WalletSession:
        addresses = await capability.get_used_addresses()  # type: ignore[attr-defined]
        if generation != self._generation:
            raise ConnectionCancelled(
                f"Connection to {provider_id} was superseded by a disconnect"
            )
        session = WalletSession(
            provider_id=provider_id,
            capability=capability,
            address=addresses[0] if addresses else None,
            connected_at=datetime.now(tz=UTC),
        )
        self._session = session
        self.state = SessionState.CONNECTED
        self.hint_store.save(
            SessionHint(provider_id=provider_id, auto_reconnect_allowed=True)
        )
        return session
