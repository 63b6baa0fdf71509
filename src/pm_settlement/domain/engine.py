"""SettlementEngine: resolve a prediction and distribute its pool.

The caller owns the transaction (see ResolutionApplicationService). Order of
writes inside it:

  1. claim: conditional UPDATE ACTIVE -> RESOLVED (compare-and-set)
  2. user ledger credits + bets.myst_payout for every payout
  3. remaining bets' myst_payout set to 0
  4. pool credits (fee shares, then rounding residue), rows locked in key order

When the claim matches no row nothing has been written yet; a diagnostic read
decides which error to raise.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import PoolEntryType, PoolReferenceType, PredictionStatus
from src.pm_common.errors import (
    InvalidWinningOptionError,
    PredictionAlreadyResolvedError,
    PredictionNotFoundError,
)
from src.pm_ledger.domain.repository import LedgerRepositoryProtocol
from src.pm_prediction.domain.models import Prediction
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_settlement.domain.calculator import SettlementPlan, plan_settlement
from src.pm_settlement.domain.config import SettlementConfig
from src.pm_treasury.domain.repository import PoolRepositoryProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionResult:
    prediction: Prediction
    plan: SettlementPlan
    winners_count: int
    refunded_count: int
    total_payout: int


class SettlementEngine:
    def __init__(
        self,
        config: SettlementConfig,
        prediction_repo: PredictionRepositoryProtocol,
        ledger_repo: LedgerRepositoryProtocol,
        pool_repo: PoolRepositoryProtocol,
    ) -> None:
        self._config = config
        self._predictions = prediction_repo
        self._ledger = ledger_repo
        self._pools = pool_repo

    async def resolve(
        self, db: AsyncSession, prediction_id: str, winning_option_index: int
    ) -> ResolutionResult:
        # The claim rejects out-of-range indexes, negative ones included
        prediction = await self._predictions.claim_for_resolution(
            db, prediction_id, winning_option_index, utc_now()
        )
        if prediction is None:
            await self._raise_claim_failure(db, prediction_id, winning_option_index)

        bets = await self._predictions.list_bets(db, prediction_id)
        plan = plan_settlement(self._config, prediction, bets, winning_option_index)

        winners_count = 0
        refunded_count = 0
        total_payout = 0
        for payout in plan.payouts:
            if payout.amount > 0:
                await self._ledger.insert_transaction(
                    db,
                    payout.user_id,
                    payout.tx_type,
                    payout.amount,
                    self._ledger_meta(plan, payout.bet_id, payout.stake),
                )
                total_payout += payout.amount
                if plan.refund_mode:
                    refunded_count += 1
                else:
                    winners_count += 1
            await self._predictions.set_bet_payout(db, payout.bet_id, payout.amount)
        await self._predictions.zero_unpaid_bets(db, prediction_id)

        await self._credit_pools(db, plan)

        logger.info(
            "Prediction %s resolved to '%s': pool=%d fee=%d paid=%d residue=%d "
            "winners=%d refunded=%d",
            prediction_id,
            plan.winning_option,
            plan.total_pool,
            plan.platform_fee,
            total_payout,
            plan.rounding_residue,
            winners_count,
            refunded_count,
        )
        return ResolutionResult(
            prediction=prediction,
            plan=plan,
            winners_count=winners_count,
            refunded_count=refunded_count,
            total_payout=total_payout,
        )

    async def _raise_claim_failure(
        self, db: AsyncSession, prediction_id: str, winning_option_index: int
    ) -> None:
        current = await self._predictions.get_prediction(db, prediction_id)
        if current is None:
            raise PredictionNotFoundError(prediction_id)
        if current.status == PredictionStatus.RESOLVED:
            raise PredictionAlreadyResolvedError(prediction_id)
        raise InvalidWinningOptionError(
            f"winning_option_index {winning_option_index} out of range "
            f"for {len(current.options)} options"
        )

    @staticmethod
    def _ledger_meta(plan: SettlementPlan, bet_id: str, stake: int) -> dict:
        meta = {
            "prediction_id": plan.prediction_id,
            "bet_id": bet_id,
            "user_stake": stake,
            "winning_option": plan.winning_option,
        }
        if plan.refund_mode:
            meta["reason"] = "no_winners"
            meta["refund_ratio"] = str(plan.payout_per_unit)
        else:
            meta["payout_per_unit"] = str(plan.payout_per_unit)
            meta["win_pool"] = plan.win_pool
            meta["winning_total"] = plan.winning_total
        return meta

    async def _credit_pools(self, db: AsyncSession, plan: SettlementPlan) -> None:
        credits = plan.pool_credits()
        if not credits:
            return
        await self._pools.lock_pools(db, credits.keys())

        for pool_key in sorted(plan.fee_allocations, key=lambda k: k.value):
            amount = plan.fee_allocations[pool_key]
            if amount <= 0:
                continue
            await self._pools.adjust_balance(
                db,
                pool_key,
                amount,
                PoolEntryType.SETTLEMENT_FEE,
                PoolReferenceType.PREDICTION.value,
                plan.prediction_id,
                f"fee share of prediction {plan.prediction_id}",
            )
        if plan.rounding_residue > 0:
            await self._pools.adjust_balance(
                db,
                plan.residue_pool,
                plan.rounding_residue,
                PoolEntryType.SETTLEMENT_RESIDUE,
                PoolReferenceType.PREDICTION.value,
                plan.prediction_id,
                f"payout rounding residue of prediction {plan.prediction_id}",
            )
