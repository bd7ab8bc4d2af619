"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from ticket_ledger.api.schemas import TicketOut

if TYPE_CHECKING:
    from ticket_ledger.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/tickets", dependencies=[Depends(require_admin)])
async def list_tickets(request: Request, limit: int = 100) -> dict[str, object]:
    """Return the most recently registered tickets."""
    container: AppContainer = request.app.state.container
    records = container.registry.list_tickets(limit)
    return {
        "tickets": [
            TicketOut.from_record(record).model_dump(mode="json", by_alias=True)
            for record in records
        ]
    }


@router.get("/reconciliation", dependencies=[Depends(require_admin)])
async def reconciliation_alerts(
    request: Request, limit: int = 50
) -> dict[str, object]:
    """Return mints that reached the ledger but not the registry."""
    container: AppContainer = request.app.state.container
    return {"alerts": container.audit_service.reconciliation_alerts(limit)}
