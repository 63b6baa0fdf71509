"""Integration-test fixtures.

Run against a migrated PostgreSQL (alembic upgrade head) with:
    RUN_INTEGRATION=1 pytest tests/integration

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool stays valid across the whole session.
"""

import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import async_session_factory
from src.pm_prediction.infrastructure.db_models import BetORM, PredictionORM

_RESET_SQL = [
    # TRUNCATE does not fire the row-level append-only triggers
    "TRUNCATE pool_ledger_entries, myst_transactions, bets, predictions",
    "UPDATE pool_balances SET balance = 0",
]


@pytest_asyncio.fixture(loop_scope="session")
async def session() -> AsyncSession:
    async with async_session_factory() as s:
        for stmt in _RESET_SQL:
            await s.execute(text(stmt))
        await s.commit()
        yield s


@pytest_asyncio.fixture(loop_scope="session")
async def seed_market(session: AsyncSession):
    """Insert a prediction and its bets through the ORM models."""

    async def _seed(prediction_id: str, options: list[str], bets: list[tuple[str, str, int]]):
        pools = [sum(stake for _, option, stake in bets if option == o) for o in options]
        session.add(
            PredictionORM(
                id=prediction_id,
                title=f"Integration market {prediction_id}",
                options=options,
                option_pools=pools,
                status="ACTIVE",
            )
        )
        await session.flush()
        for i, (user_id, option, stake) in enumerate(bets):
            session.add(
                BetORM(
                    id=f"{prediction_id}-bet-{i}",
                    prediction_id=prediction_id,
                    user_id=user_id,
                    option=option,
                    myst_bet=stake,
                )
            )
        await session.commit()

    return _seed
