"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_prediction.domain.models import Bet, Prediction


class PredictionRepositoryProtocol(Protocol):
    async def get_prediction(
        self, db: AsyncSession, prediction_id: str
    ) -> Prediction | None: ...

    async def claim_for_resolution(
        self,
        db: AsyncSession,
        prediction_id: str,
        option_index: int,
        resolved_at: datetime,
    ) -> Prediction | None:
        """Atomically flip ACTIVE -> RESOLVED; None when the guard did not match."""
        ...

    async def list_bets(self, db: AsyncSession, prediction_id: str) -> list[Bet]: ...

    async def set_bet_payout(self, db: AsyncSession, bet_id: str, payout: int) -> None: ...

    async def zero_unpaid_bets(self, db: AsyncSession, prediction_id: str) -> int: ...
