"""Unit tests for LedgerApplicationService and cursor helpers."""

from datetime import UTC, datetime

import pytest

from src.pm_ledger.application.schemas import UserMystResponse, cursor_decode, cursor_encode
from src.pm_ledger.application.service import LedgerApplicationService


class TestCursor:
    def test_round_trip(self) -> None:
        assert cursor_decode(cursor_encode(12345)) == 12345

    def test_none(self) -> None:
        assert cursor_decode(None) is None

    def test_garbage_is_ignored(self) -> None:
        assert cursor_decode("not-base64!!") is None


@pytest.fixture
async def funded(ledger_repo):
    await ledger_repo.insert_transaction(None, "alice", "admin_grant", 1_000_000, {})
    await ledger_repo.insert_transaction(None, "alice", "spend_bet", -400_000, {"bet_id": "b1"})
    await ledger_repo.insert_transaction(
        None, "alice", "prediction_win", 970_000, {"prediction_id": "pred-1"}
    )
    await ledger_repo.insert_transaction(None, "bob", "admin_grant", 5, {})
    for tx in ledger_repo.transactions:
        tx.created_at = datetime(2026, 1, 1, tzinfo=UTC)
    return ledger_repo


class TestGetUserMyst:
    @pytest.mark.asyncio
    async def test_balance_is_ledger_sum(self, funded, db) -> None:
        svc = LedgerApplicationService(repo=funded)
        resp = await svc.get_user_myst(db, "alice", None, 20, None)

        assert isinstance(resp, UserMystResponse)
        assert resp.balance_micros == 1_570_000
        assert resp.balance_display == "1.57 MYST"
        assert [i.type for i in resp.items] == ["prediction_win", "spend_bet", "admin_grant"]
        assert resp.has_more is False
        assert resp.next_cursor is None

    @pytest.mark.asyncio
    async def test_pagination(self, funded, db) -> None:
        svc = LedgerApplicationService(repo=funded)
        first = await svc.get_user_myst(db, "alice", None, 2, None)
        assert len(first.items) == 2
        assert first.has_more is True
        assert first.next_cursor is not None

        second = await svc.get_user_myst(db, "alice", first.next_cursor, 2, None)
        assert [i.type for i in second.items] == ["admin_grant"]
        assert second.has_more is False

    @pytest.mark.asyncio
    async def test_type_filter(self, funded, db) -> None:
        svc = LedgerApplicationService(repo=funded)
        resp = await svc.get_user_myst(db, "alice", None, 20, "spend_bet")
        assert len(resp.items) == 1
        assert resp.items[0].amount_micros == -400_000
        assert resp.items[0].meta == {"bet_id": "b1"}
        assert resp.items[0].created_at.startswith("2026-01-01")

    @pytest.mark.asyncio
    async def test_unknown_user_has_zero_balance(self, funded, db) -> None:
        svc = LedgerApplicationService(repo=funded)
        resp = await svc.get_user_myst(db, "nobody", None, 20, None)
        assert resp.balance_micros == 0
        assert resp.items == []
