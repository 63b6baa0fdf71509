"""Pydantic schemas for prediction resolution and its audit."""

from pydantic import BaseModel, Field, model_validator

from src.pm_common.datetime_utils import to_iso
from src.pm_common.myst import micros_to_display
from src.pm_settlement.domain.engine import ResolutionResult
from src.pm_settlement.domain.invariants import ConservationAudit

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ResolveRequest(BaseModel):
    """Name the winner by index or by label, not both."""

    winning_option_index: int | None = Field(default=None, ge=0)
    winning_option: str | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def exactly_one_selector(self) -> "ResolveRequest":
        if (self.winning_option_index is None) == (self.winning_option is None):
            raise ValueError("provide exactly one of winning_option_index or winning_option")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class FeeAllocation(BaseModel):
    pool_key: str
    amount_micros: int


class EconomicBreakdown(BaseModel):
    total_pool_micros: int
    winning_option: str
    winning_total_micros: int
    losing_options: list[str]
    losing_total_micros: int
    platform_fee_micros: int
    win_pool_micros: int
    payout_per_unit: str
    fee_allocations: list[FeeAllocation]
    rounding_residue_micros: int
    residue_pool: str
    refund_mode: bool
    note: str


class ResolutionResponse(BaseModel):
    prediction_id: str
    status: str
    winning_option: str
    winning_option_index: int
    resolved_at: str | None
    winners_count: int
    refunded_count: int
    total_payout_micros: int
    total_payout_display: str
    breakdown: EconomicBreakdown

    @classmethod
    def from_result(cls, result: ResolutionResult) -> "ResolutionResponse":
        plan = result.plan
        prediction = result.prediction
        if plan.refund_mode:
            note = (
                f"No stake on '{plan.winning_option}': every bet refunded pro rata "
                f"from the win pool of {micros_to_display(plan.win_pool)}"
            )
        else:
            note = (
                f"Winners share {micros_to_display(plan.win_pool)} pro rata; "
                f"platform fee {micros_to_display(plan.platform_fee)} taken from the losing side"
            )
        return cls(
            prediction_id=prediction.id,
            status=prediction.status,
            winning_option=plan.winning_option,
            winning_option_index=plan.winning_index,
            resolved_at=to_iso(prediction.resolved_at),
            winners_count=result.winners_count,
            refunded_count=result.refunded_count,
            total_payout_micros=result.total_payout,
            total_payout_display=micros_to_display(result.total_payout),
            breakdown=EconomicBreakdown(
                total_pool_micros=plan.total_pool,
                winning_option=plan.winning_option,
                winning_total_micros=plan.winning_total,
                losing_options=[
                    o for i, o in enumerate(prediction.options) if i != plan.winning_index
                ],
                losing_total_micros=plan.losing_total,
                platform_fee_micros=plan.platform_fee,
                win_pool_micros=plan.win_pool,
                payout_per_unit=str(plan.payout_per_unit),
                fee_allocations=[
                    FeeAllocation(pool_key=k.value, amount_micros=v)
                    for k, v in sorted(plan.fee_allocations.items(), key=lambda kv: kv[0].value)
                ],
                rounding_residue_micros=plan.rounding_residue,
                residue_pool=plan.residue_pool.value,
                refund_mode=plan.refund_mode,
                note=note,
            ),
        )


class AuditResponse(BaseModel):
    prediction_id: str
    winning_option: str | None
    ok: bool
    total_pool_micros: int
    total_paid_micros: int
    ledger_paid_micros: int
    pool_credits: dict[str, int]
    violations: list[str]

    @classmethod
    def from_audit(cls, audit: ConservationAudit) -> "AuditResponse":
        return cls(
            prediction_id=audit.prediction_id,
            winning_option=audit.winning_option,
            ok=audit.ok,
            total_pool_micros=audit.total_pool,
            total_paid_micros=audit.total_paid,
            ledger_paid_micros=audit.ledger_paid,
            pool_credits=audit.pool_credits,
            violations=audit.violations,
        )
