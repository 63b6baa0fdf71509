"""In-memory repositories conforming to the domain Protocols, exposed as fixtures.

They mirror the SQL semantics the engine relies on: the claim is a single
compare-and-set, debits never go negative, WHEEL changes are mirrored into
the legacy alias and every pool change is journaled.
"""

import copy
from collections.abc import Iterable
from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.pm_common.enums import POOL_ALIASES, PoolEntryType, PoolKey, PredictionStatus
from src.pm_common.errors import InsufficientPoolBalanceError, InternalError, UnknownPoolError
from src.pm_ledger.domain.models import MystTransaction
from src.pm_prediction.domain.models import Bet, Prediction
from src.pm_treasury.domain.models import PoolBalance, PoolLedgerEntry


class InMemoryPredictionRepository:
    def __init__(self) -> None:
        self.predictions: dict[str, Prediction] = {}
        self.bets: dict[str, Bet] = {}

    def add(self, prediction: Prediction, bets: Iterable[Bet] = ()) -> None:
        self.predictions[prediction.id] = prediction
        for bet in bets:
            self.bets[bet.id] = bet

    async def get_prediction(self, db: Any, prediction_id: str) -> Prediction | None:
        p = self.predictions.get(prediction_id)
        return copy.deepcopy(p) if p else None

    async def claim_for_resolution(
        self, db: Any, prediction_id: str, option_index: int, resolved_at: datetime
    ) -> Prediction | None:
        p = self.predictions.get(prediction_id)
        if p is None or p.status != PredictionStatus.ACTIVE:
            return None
        if not p.has_option_index(option_index):
            return None
        p.status = PredictionStatus.RESOLVED.value
        p.winning_option = p.options[option_index]
        p.resolved_at = resolved_at
        return copy.deepcopy(p)

    async def list_bets(self, db: Any, prediction_id: str) -> list[Bet]:
        return [copy.copy(b) for b in self.bets.values() if b.prediction_id == prediction_id]

    async def set_bet_payout(self, db: Any, bet_id: str, payout: int) -> None:
        bet = self.bets.get(bet_id)
        if bet is None or bet.myst_payout is not None:
            raise InternalError(f"Bet {bet_id} missing or already settled")
        bet.myst_payout = payout

    async def zero_unpaid_bets(self, db: Any, prediction_id: str) -> int:
        count = 0
        for bet in self.bets.values():
            if bet.prediction_id == prediction_id and bet.myst_payout is None:
                bet.myst_payout = 0
                count += 1
        return count


class InMemoryLedgerRepository:
    def __init__(self) -> None:
        self.transactions: list[MystTransaction] = []

    async def insert_transaction(
        self, db: Any, user_id: str, tx_type: Any, amount: int, meta: dict[str, Any]
    ) -> MystTransaction:
        tx = MystTransaction(
            id=len(self.transactions) + 1,
            user_id=user_id,
            type=getattr(tx_type, "value", tx_type),
            amount=amount,
            meta=dict(meta),
        )
        self.transactions.append(tx)
        return tx

    async def get_user_balance(self, db: Any, user_id: str) -> int:
        return sum(t.amount for t in self.transactions if t.user_id == user_id)

    async def list_transactions(
        self, db: Any, user_id: str, cursor_id: int | None, limit: int, tx_type: str | None
    ) -> list[MystTransaction]:
        rows = [
            t
            for t in reversed(self.transactions)
            if t.user_id == user_id
            and (cursor_id is None or t.id < cursor_id)
            and (tx_type is None or t.type == tx_type)
        ]
        return rows[:limit]

    async def prediction_payout_total(self, db: Any, prediction_id: str) -> int:
        return sum(
            t.amount
            for t in self.transactions
            if t.type in ("prediction_win", "prediction_refund")
            and t.meta.get("prediction_id") == prediction_id
        )


class InMemoryPoolRepository:
    def __init__(self) -> None:
        self.balances: dict[str, int] = {k.value: 0 for k in PoolKey}
        self.journal: list[PoolLedgerEntry] = []
        self.lock_calls: list[list[str]] = []

    def seed(self, pool_key: PoolKey, balance: int) -> None:
        """Set an opening balance as if journaled by an earlier transfer."""
        self._apply(pool_key, balance, PoolEntryType.TRANSFER_IN, "TRANSFER", "seed")
        alias = POOL_ALIASES.get(pool_key)
        if alias is not None:
            self._apply(alias, balance, PoolEntryType.TRANSFER_IN, "TRANSFER", "seed")

    async def get_balance(self, db: Any, pool_key: PoolKey) -> int:
        return self.balances.get(pool_key.value, 0)

    async def list_balances(self, db: Any) -> list[PoolBalance]:
        return [PoolBalance(pool_key=k, balance=v) for k, v in sorted(self.balances.items())]

    async def lock_pools(self, db: Any, pool_keys: Iterable[PoolKey]) -> dict[str, int]:
        keys = set()
        for key in pool_keys:
            keys.add(key.value)
            alias = POOL_ALIASES.get(key)
            if alias is not None:
                keys.add(alias.value)
        ordered = sorted(keys)
        self.lock_calls.append(ordered)
        return {k: self.balances.get(k, 0) for k in ordered}

    async def adjust_balance(
        self,
        db: Any,
        pool_key: PoolKey,
        delta: int,
        entry_type: PoolEntryType,
        reference_type: str,
        reference_id: str,
        description: str | None = None,
    ) -> int:
        if pool_key in POOL_ALIASES.values():
            raise UnknownPoolError(pool_key.value)
        new_balance = self._apply(pool_key, delta, entry_type, reference_type, reference_id)
        alias = POOL_ALIASES.get(pool_key)
        if alias is not None:
            self._apply(alias, delta, entry_type, reference_type, reference_id)
        return new_balance

    async def journal_totals(self, db: Any) -> dict[str, int]:
        totals: dict[str, int] = {}
        for entry in self.journal:
            totals[entry.pool_key] = totals.get(entry.pool_key, 0) + entry.amount
        return totals

    async def totals_for_reference(
        self, db: Any, reference_type: str, reference_id: str
    ) -> dict[str, int]:
        totals: dict[str, int] = {}
        for entry in self.journal:
            if entry.reference_type == reference_type and entry.reference_id == reference_id:
                totals[entry.pool_key] = totals.get(entry.pool_key, 0) + entry.amount
        return totals

    def _apply(
        self,
        pool_key: PoolKey,
        delta: int,
        entry_type: PoolEntryType,
        reference_type: str,
        reference_id: str,
    ) -> int:
        current = self.balances.get(pool_key.value, 0)
        if delta == 0:
            return current
        if current + delta < 0:
            raise InsufficientPoolBalanceError(pool_key.value, -delta, current)
        self.balances[pool_key.value] = current + delta
        self.journal.append(
            PoolLedgerEntry(
                id=len(self.journal) + 1,
                pool_key=pool_key.value,
                entry_type=entry_type.value,
                amount=delta,
                balance_after=current + delta,
                reference_type=reference_type,
                reference_id=reference_id,
            )
        )
        return current + delta


def _make_prediction(
    prediction_id: str = "pred-1",
    options: list[str] | None = None,
    pools: list[int] | None = None,
    status: str = "ACTIVE",
) -> Prediction:
    return Prediction(
        id=prediction_id,
        title="Will it happen?",
        options=options or ["YES", "NO"],
        option_pools=pools if pools is not None else [0, 0],
        status=status,
    )


def _make_bet(
    bet_id: str, user_id: str, option: str, stake: int, prediction_id: str = "pred-1"
) -> Bet:
    return Bet(
        id=bet_id, prediction_id=prediction_id, user_id=user_id, option=option, myst_bet=stake
    )


@pytest.fixture
def db() -> AsyncMock:
    """Session stand-in: unit_of_work only awaits commit/rollback."""
    return AsyncMock()


@pytest.fixture
def prediction_repo() -> InMemoryPredictionRepository:
    return InMemoryPredictionRepository()


@pytest.fixture
def ledger_repo() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository()


@pytest.fixture
def pool_repo() -> InMemoryPoolRepository:
    return InMemoryPoolRepository()


@pytest.fixture
def make_prediction():
    return _make_prediction


@pytest.fixture
def make_bet():
    return _make_bet
