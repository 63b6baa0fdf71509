"""PoolRepository: concrete implementation of PoolRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A debit that matches 0 rows means the balance would have gone negative.
Every counter change inserts a pool_ledger_entries row in the same
transaction, so SUM(amount) per pool always equals pool_balances.balance.

WHEEL changes are mirrored into the LEGACY_WHEEL alias row; the alias itself
is never addressed directly.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import POOL_ALIASES, PoolEntryType, PoolKey
from src.pm_common.errors import InsufficientPoolBalanceError, InternalError, UnknownPoolError
from src.pm_treasury.domain.models import PoolBalance

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_POOL_SQL = text("""
    SELECT pool_key, balance, updated_at
    FROM pool_balances
    WHERE pool_key = :pool_key
""")

_LIST_POOLS_SQL = text("""
    SELECT pool_key, balance, updated_at
    FROM pool_balances
    ORDER BY pool_key
""")

# Rows are always locked in pool_key order: concurrent settlements and
# transfers touching overlapping pools then queue instead of deadlocking.
_LOCK_POOLS_SQL = text("""
    SELECT pool_key, balance
    FROM pool_balances
    WHERE pool_key = ANY(CAST(:pool_keys AS VARCHAR[]))
    ORDER BY pool_key
    FOR UPDATE
""")

_CREDIT_POOL_SQL = text("""
    INSERT INTO pool_balances (pool_key, balance)
    VALUES (:pool_key, :amount)
    ON CONFLICT (pool_key) DO UPDATE
        SET balance = pool_balances.balance + EXCLUDED.balance,
            updated_at = NOW()
    RETURNING pool_key, balance, updated_at
""")

_DEBIT_POOL_SQL = text("""
    UPDATE pool_balances
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE pool_key = :pool_key AND balance >= :amount
    RETURNING pool_key, balance, updated_at
""")

_INSERT_POOL_LEDGER_SQL = text("""
    INSERT INTO pool_ledger_entries
        (pool_key, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:pool_key, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
""")

_JOURNAL_TOTALS_SQL = text("""
    SELECT pool_key, COALESCE(SUM(amount), 0) AS total
    FROM pool_ledger_entries
    GROUP BY pool_key
""")

_REFERENCE_TOTALS_SQL = text("""
    SELECT pool_key, COALESCE(SUM(amount), 0) AS total
    FROM pool_ledger_entries
    WHERE reference_type = :reference_type AND reference_id = :reference_id
    GROUP BY pool_key
""")


def _row_to_pool(row: object) -> PoolBalance:
    return PoolBalance(
        pool_key=row.pool_key,  # type: ignore[attr-defined]
        balance=int(row.balance),  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def with_aliases(pool_keys: Iterable[PoolKey]) -> list[PoolKey]:
    """Expand keys with their mirrored aliases, deduplicated, in lock order."""
    expanded: set[PoolKey] = set()
    for key in pool_keys:
        expanded.add(key)
        alias = POOL_ALIASES.get(key)
        if alias is not None:
            expanded.add(alias)
    return sorted(expanded, key=lambda k: k.value)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PoolRepository:
    async def get_balance(self, db: AsyncSession, pool_key: PoolKey) -> int:
        result = await db.execute(_GET_POOL_SQL, {"pool_key": pool_key.value})
        row = result.fetchone()
        return int(row.balance) if row else 0

    async def list_balances(self, db: AsyncSession) -> list[PoolBalance]:
        result = await db.execute(_LIST_POOLS_SQL)
        return [_row_to_pool(row) for row in result.fetchall()]

    async def lock_pools(
        self, db: AsyncSession, pool_keys: Iterable[PoolKey]
    ) -> dict[str, int]:
        keys = [k.value for k in with_aliases(pool_keys)]
        result = await db.execute(_LOCK_POOLS_SQL, {"pool_keys": keys})
        return {row.pool_key: int(row.balance) for row in result.fetchall()}

    async def adjust_balance(
        self,
        db: AsyncSession,
        pool_key: PoolKey,
        delta: int,
        entry_type: PoolEntryType,
        reference_type: str,
        reference_id: str,
        description: str | None = None,
    ) -> int:
        """Apply delta to one pool (plus its alias) and journal it. Returns new balance."""
        if pool_key in POOL_ALIASES.values():
            raise UnknownPoolError(pool_key.value)
        new_balance = await self._apply(
            db, pool_key, delta, entry_type, reference_type, reference_id, description
        )
        alias = POOL_ALIASES.get(pool_key)
        if alias is not None:
            await self._apply(
                db,
                alias,
                delta,
                entry_type,
                reference_type,
                reference_id,
                f"mirror of {pool_key.value}",
            )
        return new_balance

    async def journal_totals(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(_JOURNAL_TOTALS_SQL)
        return {row.pool_key: int(row.total) for row in result.fetchall()}

    async def totals_for_reference(
        self, db: AsyncSession, reference_type: str, reference_id: str
    ) -> dict[str, int]:
        result = await db.execute(
            _REFERENCE_TOTALS_SQL,
            {"reference_type": reference_type, "reference_id": reference_id},
        )
        return {row.pool_key: int(row.total) for row in result.fetchall()}

    async def _apply(
        self,
        db: AsyncSession,
        pool_key: PoolKey,
        delta: int,
        entry_type: PoolEntryType,
        reference_type: str,
        reference_id: str,
        description: str | None,
    ) -> int:
        if delta == 0:
            return await self.get_balance(db, pool_key)

        if delta > 0:
            result = await db.execute(
                _CREDIT_POOL_SQL, {"pool_key": pool_key.value, "amount": delta}
            )
            row = result.fetchone()
            if row is None:
                raise InternalError(f"Pool credit returned no rows for {pool_key.value}")
        else:
            result = await db.execute(
                _DEBIT_POOL_SQL, {"pool_key": pool_key.value, "amount": -delta}
            )
            row = result.fetchone()
            if row is None:
                available = await self.get_balance(db, pool_key)
                logger.warning(
                    "Pool debit rejected: pool=%s required=%d available=%d",
                    pool_key.value,
                    -delta,
                    available,
                )
                raise InsufficientPoolBalanceError(pool_key.value, -delta, available)

        balance_after = int(row.balance)
        await db.execute(
            _INSERT_POOL_LEDGER_SQL,
            {
                "pool_key": pool_key.value,
                "entry_type": entry_type.value,
                "amount": delta,
                "balance_after": balance_after,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )
        return balance_after
