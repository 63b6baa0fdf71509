"""LedgerRepository: append-only access to myst_transactions.

A user's MYST balance is defined as SUM(amount) over their rows; there is no
balance column anywhere. Rows are never updated or deleted (a DB trigger
rejects both).

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MystTransactionType
from src.pm_common.errors import InternalError
from src.pm_ledger.domain.models import MystTransaction

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO myst_transactions (user_id, type, amount, meta)
    VALUES (:user_id, :type, :amount, CAST(:meta AS JSONB))
    RETURNING id, user_id, type, amount, meta, created_at
""")

_USER_BALANCE_SQL = text("""
    SELECT COALESCE(SUM(amount), 0)
    FROM myst_transactions
    WHERE user_id = :user_id
""")

_LIST_TRANSACTIONS_SQL = text("""
    SELECT id, user_id, type, amount, meta, created_at
    FROM myst_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:type AS TEXT) IS NULL OR type = CAST(:type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_PREDICTION_PAYOUT_TOTAL_SQL = text("""
    SELECT COALESCE(SUM(amount), 0)
    FROM myst_transactions
    WHERE type IN ('prediction_win', 'prediction_refund')
      AND meta->>'prediction_id' = :prediction_id
""")


def _row_to_transaction(row: object) -> MystTransaction:
    meta = row.meta  # type: ignore[attr-defined]
    if isinstance(meta, str):
        meta = json.loads(meta)
    return MystTransaction(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        type=row.type,  # type: ignore[attr-defined]
        amount=int(row.amount),  # type: ignore[attr-defined]
        meta=meta or {},
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    async def insert_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        tx_type: MystTransactionType | str,
        amount: int,
        meta: dict[str, Any],
    ) -> MystTransaction:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "user_id": user_id,
                "type": getattr(tx_type, "value", tx_type),
                "amount": amount,
                "meta": json.dumps(meta, default=str),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_transaction(row)

    async def get_user_balance(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_USER_BALANCE_SQL, {"user_id": user_id})
        return int(result.scalar_one())

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        tx_type: str | None,
    ) -> list[MystTransaction]:
        result = await db.execute(
            _LIST_TRANSACTIONS_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "type": tx_type,
                "limit": limit,
            },
        )
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def prediction_payout_total(self, db: AsyncSession, prediction_id: str) -> int:
        result = await db.execute(
            _PREDICTION_PAYOUT_TOTAL_SQL, {"prediction_id": prediction_id}
        )
        return int(result.scalar_one())
