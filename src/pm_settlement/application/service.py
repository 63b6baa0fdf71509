"""ResolutionApplicationService: transaction boundary around SettlementEngine.

resolve() runs the whole settlement inside one unit_of_work: the status flip,
every ledger entry, every bet payout and every pool credit commit together or
not at all.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import unit_of_work
from src.pm_common.errors import (
    InvalidWinningOptionError,
    PredictionAlreadyResolvedError,
    PredictionNotFoundError,
)
from src.pm_ledger.domain.repository import LedgerRepositoryProtocol
from src.pm_ledger.infrastructure.persistence import LedgerRepository
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_settlement.application.schemas import AuditResponse, ResolutionResponse
from src.pm_settlement.domain.config import SettlementConfig
from src.pm_settlement.domain.engine import SettlementEngine
from src.pm_settlement.domain.invariants import audit_resolution
from src.pm_treasury.domain.repository import PoolRepositoryProtocol
from src.pm_treasury.infrastructure.persistence import PoolRepository

logger = logging.getLogger(__name__)


class ResolutionApplicationService:
    def __init__(
        self,
        config: SettlementConfig,
        prediction_repo: PredictionRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        pool_repo: PoolRepositoryProtocol | None = None,
    ) -> None:
        self._predictions: PredictionRepositoryProtocol = (
            prediction_repo or PredictionRepository()
        )
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._pools: PoolRepositoryProtocol = pool_repo or PoolRepository()
        self._engine = SettlementEngine(config, self._predictions, self._ledger, self._pools)

    async def resolve(
        self,
        db: AsyncSession,
        prediction_id: str,
        winning_option_index: int | None = None,
        winning_option: str | None = None,
    ) -> ResolutionResponse:
        async with unit_of_work(db):
            if winning_option_index is None:
                winning_option_index = await self._index_for_label(
                    db, prediction_id, winning_option
                )
            result = await self._engine.resolve(db, prediction_id, winning_option_index)

        logger.info(
            "Resolution committed: prediction=%s option=%s payout=%d",
            prediction_id,
            result.plan.winning_option,
            result.total_payout,
        )
        return ResolutionResponse.from_result(result)

    async def audit(self, db: AsyncSession, prediction_id: str) -> AuditResponse:
        audit = await audit_resolution(
            db, prediction_id, self._predictions, self._ledger, self._pools
        )
        return AuditResponse.from_audit(audit)

    async def _index_for_label(
        self, db: AsyncSession, prediction_id: str, label: str | None
    ) -> int:
        prediction = await self._predictions.get_prediction(db, prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)
        if label not in prediction.options:
            if prediction.is_resolved:
                raise PredictionAlreadyResolvedError(prediction_id)
            raise InvalidWinningOptionError(
                f"'{label}' is not one of {', '.join(prediction.options)}"
            )
        return prediction.options.index(label)
