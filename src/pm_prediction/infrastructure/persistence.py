"""PredictionRepository: concrete implementation of PredictionRepositoryProtocol.

All queries use raw text() SQL. The resolution flip is a single conditional
UPDATE ... RETURNING: the row lock it takes serialises concurrent resolvers,
and the loser re-evaluates the WHERE clause against the committed row and
matches nothing.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.errors import InternalError
from src.pm_prediction.domain.models import Bet, Prediction

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_PREDICTION_COLUMNS = """
    id, title, options, option_pools, status,
    winning_option, resolved_at, created_at, updated_at
"""

_GET_PREDICTION_SQL = text(f"""
    SELECT {_PREDICTION_COLUMNS}
    FROM predictions
    WHERE id = :prediction_id
""")

# Postgres arrays are 1-based, option_index is 0-based
_CLAIM_FOR_RESOLUTION_SQL = text(f"""
    UPDATE predictions
    SET status = 'RESOLVED',
        winning_option = options[CAST(:option_index AS INTEGER) + 1],
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE id = :prediction_id
      AND status = 'ACTIVE'
      AND CAST(:option_index AS INTEGER) >= 0
      AND CAST(:option_index AS INTEGER) < cardinality(options)
    RETURNING {_PREDICTION_COLUMNS}
""")

_LIST_BETS_SQL = text("""
    SELECT id, prediction_id, user_id, option, myst_bet, myst_payout, created_at
    FROM bets
    WHERE prediction_id = :prediction_id
    ORDER BY created_at, id
""")

_SET_BET_PAYOUT_SQL = text("""
    UPDATE bets
    SET myst_payout = :payout
    WHERE id = :bet_id AND myst_payout IS NULL
    RETURNING id
""")

_ZERO_UNPAID_BETS_SQL = text("""
    UPDATE bets
    SET myst_payout = 0
    WHERE prediction_id = :prediction_id AND myst_payout IS NULL
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_prediction(row: object) -> Prediction:
    return Prediction(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        options=list(row.options),  # type: ignore[attr-defined]
        option_pools=[int(v) for v in row.option_pools],  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        winning_option=row.winning_option,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_bet(row: object) -> Bet:
    return Bet(
        id=row.id,  # type: ignore[attr-defined]
        prediction_id=row.prediction_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        option=row.option,  # type: ignore[attr-defined]
        myst_bet=int(row.myst_bet),  # type: ignore[attr-defined]
        myst_payout=row.myst_payout,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PredictionRepository:
    async def get_prediction(
        self, db: AsyncSession, prediction_id: str
    ) -> Prediction | None:
        result = await db.execute(_GET_PREDICTION_SQL, {"prediction_id": prediction_id})
        row = result.fetchone()
        return _row_to_prediction(row) if row else None

    async def claim_for_resolution(
        self,
        db: AsyncSession,
        prediction_id: str,
        option_index: int,
        resolved_at: datetime,
    ) -> Prediction | None:
        result = await db.execute(
            _CLAIM_FOR_RESOLUTION_SQL,
            {
                "prediction_id": prediction_id,
                "option_index": option_index,
                "resolved_at": resolved_at,
            },
        )
        row = result.fetchone()
        return _row_to_prediction(row) if row else None

    async def list_bets(self, db: AsyncSession, prediction_id: str) -> list[Bet]:
        result = await db.execute(_LIST_BETS_SQL, {"prediction_id": prediction_id})
        return [_row_to_bet(row) for row in result.fetchall()]

    async def set_bet_payout(self, db: AsyncSession, bet_id: str, payout: int) -> None:
        result = await db.execute(_SET_BET_PAYOUT_SQL, {"bet_id": bet_id, "payout": payout})
        if result.fetchone() is None:
            raise InternalError(f"Bet {bet_id} missing or already settled")

    async def zero_unpaid_bets(self, db: AsyncSession, prediction_id: str) -> int:
        result = await db.execute(_ZERO_UNPAID_BETS_SQL, {"prediction_id": prediction_id})
        return int(result.rowcount or 0)
