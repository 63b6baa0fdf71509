"""Conservation audit of a resolved prediction.

  sum(bets.myst_payout) + pool credits referencing the prediction == total pool
  user ledger credits tagged with the prediction == sum(bets.myst_payout)
  every bet carries a payout

Pool credits exclude the legacy alias rows, which only mirror WHEEL.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import POOL_ALIASES, PoolReferenceType
from src.pm_common.errors import PredictionNotFoundError, PredictionNotResolvedError
from src.pm_ledger.domain.repository import LedgerRepositoryProtocol
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_treasury.domain.repository import PoolRepositoryProtocol

logger = logging.getLogger(__name__)

_ALIAS_KEYS = {alias.value for alias in POOL_ALIASES.values()}


@dataclass
class ConservationAudit:
    prediction_id: str
    winning_option: str | None
    total_pool: int
    total_paid: int
    ledger_paid: int
    pool_credits: dict[str, int]
    violations: list[str] = field(default_factory=list)

    @property
    def total_pool_credits(self) -> int:
        return sum(self.pool_credits.values())

    @property
    def ok(self) -> bool:
        return not self.violations


async def audit_resolution(
    db: AsyncSession,
    prediction_id: str,
    prediction_repo: PredictionRepositoryProtocol,
    ledger_repo: LedgerRepositoryProtocol,
    pool_repo: PoolRepositoryProtocol,
) -> ConservationAudit:
    prediction = await prediction_repo.get_prediction(db, prediction_id)
    if prediction is None:
        raise PredictionNotFoundError(prediction_id)
    if not prediction.is_resolved:
        raise PredictionNotResolvedError(prediction_id)

    bets = await prediction_repo.list_bets(db, prediction_id)
    credits = await pool_repo.totals_for_reference(
        db, PoolReferenceType.PREDICTION.value, prediction_id
    )
    credits = {k: v for k, v in credits.items() if k not in _ALIAS_KEYS}

    audit = ConservationAudit(
        prediction_id=prediction_id,
        winning_option=prediction.winning_option,
        total_pool=prediction.total_pool,
        total_paid=sum(b.myst_payout or 0 for b in bets),
        ledger_paid=await ledger_repo.prediction_payout_total(db, prediction_id),
        pool_credits=credits,
    )

    unpaid = [b.id for b in bets if b.myst_payout is None]
    if unpaid:
        audit.violations.append(f"bets without payout: {', '.join(unpaid)}")
    if audit.total_paid + audit.total_pool_credits != audit.total_pool:
        audit.violations.append(
            f"paid({audit.total_paid}) + pool_credits({audit.total_pool_credits}) "
            f"!= total_pool({audit.total_pool})"
        )
    if audit.ledger_paid != audit.total_paid:
        audit.violations.append(
            f"ledger_paid({audit.ledger_paid}) != bet_payouts({audit.total_paid})"
        )

    for msg in audit.violations:
        logger.error("Conservation audit of prediction %s: %s", prediction_id, msg)
    return audit
