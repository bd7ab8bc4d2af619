"""Tests for ticket authenticity verification."""

import asyncio

import httpx
import pytest

from ticket_ledger.domain.minting import MintRequest
from ticket_ledger.domain.tickets import TicketRecord, TicketStatus
from ticket_ledger.errors import LedgerUnavailable
from ticket_ledger.services.verification import (
    MINT_TX_MISMATCH,
    NOT_HELD_ON_LEDGER,
    TICKET_CANCELLED,
    TRANSFERRED_OFF_PLATFORM,
    UNKNOWN_TICKET,
    AuthenticityVerifier,
)
from tests.conftest import ALICE_ADDRESS, BOB_ADDRESS

UNIT = "ef" * 28 + "5469636b6574"


def _verifier(registry, ledger) -> AuthenticityVerifier:  # type: ignore[no-untyped-def]
    return AuthenticityVerifier(registry=registry, ledger=ledger)


def _register(registry, owner: str = ALICE_ADDRESS) -> TicketRecord:  # type: ignore[no-untyped-def]
    return registry.register(
        TicketRecord(asset_unit=UNIT, mint_tx_hash="tx-1", original_owner_wallet=owner)
    ).record


def test_unknown_ticket_is_invalid(registry, ledger) -> None:
    result = asyncio.run(_verifier(registry, ledger).verify("00" * 30))

    assert result.valid is False
    assert result.reason == UNKNOWN_TICKET


def test_ticket_with_original_owner_is_valid(registry, ledger, blockfrost) -> None:
    _register(registry)
    blockfrost.holdings = {UNIT: {ALICE_ADDRESS: 1}}

    result = asyncio.run(_verifier(registry, ledger).verify(UNIT, "tx-1"))

    assert result.valid is True
    assert result.reason is None


def test_drift_is_detected_without_prior_status_change(
    registry, ledger, blockfrost, ticket_repository
) -> None:
    _register(registry)
    blockfrost.holdings = {UNIT: {BOB_ADDRESS: 1}}

    result = asyncio.run(_verifier(registry, ledger).verify(UNIT))

    assert result.valid is False
    assert result.reason == TRANSFERRED_OFF_PLATFORM
    assert ticket_repository.records[UNIT].status == TicketStatus.TRANSFERRED


def test_transferred_status_is_only_a_cache(registry, ledger, blockfrost) -> None:
    record = _register(registry)
    registry.mark_transferred(record)
    blockfrost.holdings = {UNIT: {ALICE_ADDRESS: 1}}

    result = asyncio.run(_verifier(registry, ledger).verify(UNIT))

    assert result.valid is True


def test_qr_mint_hash_must_match(registry, ledger, blockfrost) -> None:
    _register(registry)
    blockfrost.holdings = {UNIT: {ALICE_ADDRESS: 1}}

    result = asyncio.run(_verifier(registry, ledger).verify(UNIT, "tx-forged"))

    assert result.reason == MINT_TX_MISMATCH
    assert blockfrost.holder_reads == 0


def test_cancelled_ticket_is_invalid(registry, ledger, blockfrost) -> None:
    registry.mark_cancelled(_register(registry))
    blockfrost.holdings = {UNIT: {ALICE_ADDRESS: 1}}

    result = asyncio.run(_verifier(registry, ledger).verify(UNIT))

    assert result.reason == TICKET_CANCELLED


def test_ticket_without_holders_is_not_held(registry, ledger) -> None:
    _register(registry)

    result = asyncio.run(_verifier(registry, ledger).verify(UNIT))

    assert result.reason == NOT_HELD_ON_LEDGER


def test_ledger_outage_returns_no_verdict(registry, ledger, blockfrost) -> None:
    _register(registry)
    request = httpx.Request("GET", "https://ledger.test/assets")
    outage = httpx.HTTPStatusError(
        "down", request=request, response=httpx.Response(503, request=request)
    )
    blockfrost.read_errors = [outage] * 3

    with pytest.raises(LedgerUnavailable):
        asyncio.run(_verifier(registry, ledger).verify(UNIT))


def test_drift_verdict_survives_registry_outage(
    registry, ledger, blockfrost, ticket_repository
) -> None:
    _register(registry)
    blockfrost.holdings = {UNIT: {BOB_ADDRESS: 1}}

    def broken_update(asset_unit, status) -> None:  # type: ignore[no-untyped-def]
        raise RuntimeError("registry down")

    ticket_repository.update_status = broken_update

    result = asyncio.run(_verifier(registry, ledger).verify(UNIT))

    assert result.valid is False
    assert result.reason == TRANSFERRED_OFF_PLATFORM
    assert ticket_repository.records[UNIT].status == TicketStatus.VALID


def test_mint_then_verify_is_valid(mint_coordinator, sessions, registry, ledger) -> None:
    asyncio.run(sessions.connect())
    minted = asyncio.run(
        mint_coordinator.mint(
            MintRequest(
                event_name="Summer Fest",
                seat_id="A-12-5",
                price=1000,
                payment_confirmed=True,
            )
        )
    )

    result = asyncio.run(
        _verifier(registry, ledger).verify(minted.asset_unit, minted.tx_hash)
    )

    assert result.valid is True
