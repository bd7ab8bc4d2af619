"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ticket_ledger.api.admin import router as admin_router
from ticket_ledger.api.schemas import (
    CancelOut,
    MintIn,
    MintOut,
    OwnedTicketOut,
    TicketIn,
    TicketOut,
    VerifyIn,
    VerifyOut,
    WalletOut,
)
from ticket_ledger.app_logging import configure_logging
from ticket_ledger.containers import AppContainer
from ticket_ledger.domain.minting import MintRequest
from ticket_ledger.domain.tickets import TicketRecord
from ticket_ledger.errors import (
    AddressUnresolved,
    DuplicateKeyError,
    ErrorKind,
    InvalidTicketRecord,
    TicketingError,
)

_STATUS_BY_KIND = {
    ErrorKind.USER_ACTION_REQUIRED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_REGISTRATION: status.HTTP_409_CONFLICT,
    ErrorKind.IDENTITY_MISMATCH: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.LEDGER_REJECTED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.RECONCILIATION: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.TRANSIENT_NETWORK: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.wallet_sessions.auto_reconnect()
        except Exception:
            logger.exception("Wallet auto-reconnect failed")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(TicketingError)
    async def ticketing_error_handler(
        request: Request, exc: TicketingError
    ) -> JSONResponse:
        status_code = _STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.kind.value, "message": exc.user_message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": ErrorKind.USER_ACTION_REQUIRED.value,
                "message": InvalidTicketRecord.user_message,
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/tickets", status_code=status.HTTP_201_CREATED)
    async def register_ticket(payload: TicketIn, request: Request) -> TicketOut:
        """Register a minted ticket."""
        state_container: AppContainer = request.app.state.container
        outcome = state_container.registry.register(
            TicketRecord(
                asset_unit=payload.asset_unit,
                mint_tx_hash=payload.mint_tx_hash,
                original_owner_wallet=payload.original_owner_wallet,
                status=payload.status,
            )
        )
        if not outcome.created:
            raise DuplicateKeyError(f"Ticket {payload.asset_unit} already exists")
        return TicketOut.from_record(outcome.record)

    @app.post("/verify")
    async def verify_ticket(payload: VerifyIn, request: Request) -> VerifyOut:
        """Check a ticket against the registry and current ledger holders."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.verifier.verify(
            payload.asset_unit, payload.mint_tx_hash
        )
        return VerifyOut(valid=result.valid, reason=result.reason)

    @app.get("/wallet")
    async def wallet_state(request: Request) -> WalletOut:
        """Return the current wallet session."""
        state_container: AppContainer = request.app.state.container
        return _wallet_out(state_container)

    @app.post("/wallet/connect")
    async def wallet_connect(request: Request) -> WalletOut:
        """Connect to the preferred available wallet provider."""
        state_container: AppContainer = request.app.state.container
        await state_container.wallet_sessions.connect()
        return _wallet_out(state_container)

    @app.post("/wallet/disconnect")
    async def wallet_disconnect(request: Request) -> WalletOut:
        """Disconnect the wallet and disable auto-reconnect."""
        state_container: AppContainer = request.app.state.container
        state_container.wallet_sessions.disconnect()
        return _wallet_out(state_container)

    @app.get("/wallet/tickets")
    async def wallet_tickets(request: Request) -> dict[str, list[OwnedTicketOut]]:
        """List ticket tokens held by the connected wallet."""
        state_container: AppContainer = request.app.state.container
        session = state_container.wallet_sessions.current()
        if not session.address:
            raise AddressUnresolved("Connected wallet reported no address")
        owned = await state_container.catalog.list_owned(session.address)
        return {"tickets": [OwnedTicketOut.from_owned(ticket) for ticket in owned]}

    @app.post("/mint")
    async def mint_ticket(payload: MintIn, request: Request) -> MintOut:
        """Mint a ticket for a paid seat to the connected wallet."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.mint_coordinator.mint(
            MintRequest(
                event_name=payload.event_name,
                seat_id=payload.seat_id,
                price=payload.price,
                event_description=payload.event_description,
                image_url=payload.image_url,
                payment_confirmed=payload.payment_confirmed,
            )
        )
        logger.info("Minted %s in %s", result.asset_unit, result.tx_hash)
        return MintOut(
            tx_hash=result.tx_hash,
            asset_unit=result.asset_unit,
            metadata_uri=result.metadata_uri,
        )

    @app.post("/tickets/{asset_unit}/cancel")
    async def cancel_ticket(asset_unit: str, request: Request) -> CancelOut:
        """Burn a ticket and mark it cancelled in the registry."""
        state_container: AppContainer = request.app.state.container
        record = state_container.registry.find(asset_unit)
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found"
            )
        tx_hash = await state_container.burn_coordinator.burn(record)
        registry_updated = True
        try:
            state_container.registry.mark_cancelled(record)
        except Exception:
            logger.exception(
                "Burned %s in %s but could not mark it cancelled", asset_unit, tx_hash
            )
            registry_updated = False
        return CancelOut(tx_hash=tx_hash, registry_updated=registry_updated)

    return app


def _wallet_out(container: AppContainer) -> WalletOut:
    manager = container.wallet_sessions
    session = manager.session
    if session is None:
        return WalletOut(state=manager.state.value)
    return WalletOut(
        state=manager.state.value,
        provider_id=session.provider_id,
        address=session.address,
        connected_at=session.connected_at,
    )
