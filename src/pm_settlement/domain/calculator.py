"""Pari-mutuel settlement arithmetic: pure functions, no I/O.

Given a prediction, its bets and the winning option index, produce a
SettlementPlan describing every payout and every pool credit. The engine
only executes plans; it never does money arithmetic itself.

All amounts are int micro-MYST. Conservation holds exactly:

    sum(payouts) + rounding_residue + platform_fee == total_pool
    sum(fee_allocations) == platform_fee
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from src.pm_common.enums import MystTransactionType, PoolKey
from src.pm_common.errors import SettlementInvariantError
from src.pm_common.myst import apply_bps, calculate_fee, pro_rata
from src.pm_prediction.domain.models import Bet, Prediction
from src.pm_settlement.domain.config import SettlementConfig

_PER_UNIT_QUANTUM = Decimal("0.000000000001")


@dataclass(frozen=True)
class BetPayout:
    bet_id: str
    user_id: str
    stake: int
    amount: int
    tx_type: MystTransactionType     # PREDICTION_WIN or PREDICTION_REFUND


@dataclass(frozen=True)
class SettlementPlan:
    prediction_id: str
    winning_index: int
    winning_option: str
    winning_total: int
    losing_total: int
    total_pool: int
    platform_fee: int
    win_pool: int
    refund_mode: bool
    payouts: tuple[BetPayout, ...]
    fee_allocations: Mapping[PoolKey, int]
    rounding_residue: int
    residue_pool: PoolKey

    @property
    def total_paid(self) -> int:
        return sum(p.amount for p in self.payouts)

    @property
    def distribution_base(self) -> int:
        """Stake total that win_pool is divided over."""
        return self.total_pool if self.refund_mode else self.winning_total

    @property
    def payout_per_unit(self) -> Decimal:
        """win_pool / base, for audit display only; payouts use integer floor."""
        if self.distribution_base == 0:
            return Decimal(0)
        return (Decimal(self.win_pool) / Decimal(self.distribution_base)).quantize(
            _PER_UNIT_QUANTUM
        )

    def pool_credits(self) -> dict[PoolKey, int]:
        """Fee allocations plus residue, merged per pool (what the pools receive)."""
        credits = {k: v for k, v in self.fee_allocations.items() if v > 0}
        if self.rounding_residue > 0:
            credits[self.residue_pool] = credits.get(self.residue_pool, 0) + self.rounding_residue
        return credits


def split_fee(platform_fee: int, config: SettlementConfig) -> dict[PoolKey, int]:
    """Floor each configured share; the remainder goes to the residue pool."""
    allocations = {key: apply_bps(platform_fee, bps) for key, bps in config.fee_splits.items()}
    remainder = platform_fee - sum(allocations.values())
    if remainder:
        allocations[config.residue_pool] = allocations.get(config.residue_pool, 0) + remainder
    return allocations


def verify_pool_consistency(prediction: Prediction, bets: Sequence[Bet]) -> None:
    """Each option accumulator must equal the stakes of the bets on that option.

    A mismatch means settling would create or destroy MYST, so it aborts.
    """
    if len(prediction.options) != len(prediction.option_pools):
        raise SettlementInvariantError(
            f"prediction {prediction.id} has {len(prediction.options)} options "
            f"but {len(prediction.option_pools)} pools"
        )
    staked = dict.fromkeys(prediction.options, 0)
    for bet in bets:
        if bet.option not in staked:
            raise SettlementInvariantError(
                f"bet {bet.id} staked on unknown option '{bet.option}'"
            )
        if bet.myst_bet < 0:
            raise SettlementInvariantError(f"bet {bet.id} has negative stake {bet.myst_bet}")
        staked[bet.option] += bet.myst_bet
    for option, pool in zip(prediction.options, prediction.option_pools):
        if pool < 0:
            raise SettlementInvariantError(f"pool for option '{option}' is negative: {pool}")
        if staked[option] != pool:
            raise SettlementInvariantError(
                f"option '{option}' pool={pool} != sum of bet stakes={staked[option]}"
            )


def plan_settlement(
    config: SettlementConfig,
    prediction: Prediction,
    bets: Sequence[Bet],
    winning_index: int,
) -> SettlementPlan:
    """Compute the complete economic outcome of resolving `prediction`."""
    verify_pool_consistency(prediction, bets)

    winning_option = prediction.options[winning_index]
    winning_total = prediction.option_pools[winning_index]
    total_pool = prediction.total_pool
    losing_total = total_pool - winning_total

    # Fee is levied on the losing side only
    platform_fee = calculate_fee(losing_total, config.fee_rate_bps)
    win_pool = total_pool - platform_fee

    winning_bets = [b for b in bets if b.option == winning_option and b.myst_bet > 0]
    refund_mode = winning_total == 0 or not winning_bets

    payouts: list[BetPayout]
    if not refund_mode:
        payouts = [
            BetPayout(
                bet_id=b.id,
                user_id=b.user_id,
                stake=b.myst_bet,
                amount=pro_rata(b.myst_bet, win_pool, winning_total),
                tx_type=MystTransactionType.PREDICTION_WIN,
            )
            for b in winning_bets
        ]
    elif total_pool > 0:
        # Nobody backed the winner: every stake comes back, less the fee
        payouts = [
            BetPayout(
                bet_id=b.id,
                user_id=b.user_id,
                stake=b.myst_bet,
                amount=pro_rata(b.myst_bet, win_pool, total_pool),
                tx_type=MystTransactionType.PREDICTION_REFUND,
            )
            for b in bets
            if b.myst_bet > 0
        ]
    else:
        payouts = []

    rounding_residue = win_pool - sum(p.amount for p in payouts)
    if rounding_residue < 0 or (payouts and rounding_residue >= len(payouts)):
        raise SettlementInvariantError(
            f"rounding residue {rounding_residue} out of range for {len(payouts)} payouts"
        )

    return SettlementPlan(
        prediction_id=prediction.id,
        winning_index=winning_index,
        winning_option=winning_option,
        winning_total=winning_total,
        losing_total=losing_total,
        total_pool=total_pool,
        platform_fee=platform_fee,
        win_pool=win_pool,
        refund_mode=refund_mode,
        payouts=tuple(payouts),
        fee_allocations=split_fee(platform_fee, config),
        rounding_residue=rounding_residue,
        residue_pool=config.residue_pool,
    )
