"""Tests for the ticket registry."""

import pytest

from ticket_ledger.domain.tickets import TicketRecord, TicketStatus
from ticket_ledger.errors import InvalidTicketRecord
from tests.conftest import ALICE_ADDRESS, BOB_ADDRESS

UNIT = "ab" * 28 + "5469636b6574"


def _record(owner: str = ALICE_ADDRESS) -> TicketRecord:
    return TicketRecord(asset_unit=UNIT, mint_tx_hash="tx-1", original_owner_wallet=owner)


def test_register_creates_record_and_audit_event(registry, audit_repository) -> None:
    outcome = registry.register(_record())

    assert outcome.created is True
    assert registry.find(UNIT) == _record()
    assert audit_repository.events[0]["event_type"] == "registered"


def test_duplicate_register_keeps_original_owner(registry) -> None:
    registry.register(_record())

    outcome = registry.register(_record(owner=BOB_ADDRESS))

    assert outcome.created is False
    assert outcome.record.original_owner_wallet == ALICE_ADDRESS
    assert registry.find(UNIT).original_owner_wallet == ALICE_ADDRESS


def test_register_rejects_missing_fields(registry) -> None:
    with pytest.raises(InvalidTicketRecord) as exc_info:
        registry.register(
            TicketRecord(asset_unit=UNIT, mint_tx_hash="", original_owner_wallet="")
        )

    assert exc_info.value.user_message == "Missing required fields"
    assert registry.find(UNIT) is None


def test_status_changes_are_audited_once(registry, audit_repository) -> None:
    record = registry.register(_record()).record

    transferred = registry.mark_transferred(record)
    registry.mark_transferred(transferred)
    cancelled = registry.mark_cancelled(transferred)

    assert cancelled.status == TicketStatus.CANCELLED
    assert registry.find(UNIT).status == TicketStatus.CANCELLED
    assert [event["event_type"] for event in audit_repository.events] == [
        "registered",
        "transferred",
        "cancelled",
    ]


def test_list_tickets_returns_newest_first(registry) -> None:
    registry.register(_record())
    registry.register(
        TicketRecord(
            asset_unit=UNIT + "32",
            mint_tx_hash="tx-2",
            original_owner_wallet=ALICE_ADDRESS,
        )
    )

    units = [record.asset_unit for record in registry.list_tickets(limit=10)]

    assert units == [UNIT + "32", UNIT]
