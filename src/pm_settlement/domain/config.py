"""Settlement economics: explicit, validated, passed into the engine.

Built once from Settings at import time of the admin router, so a fee split
that does not add up to 100% stops the service from starting.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from src.pm_common.enums import CANONICAL_POOLS, PoolKey
from src.pm_common.myst import BPS_DENOMINATOR

DEFAULT_FEE_RATE_BPS = 1000  # 10% of the losing side

DEFAULT_FEE_SPLITS: Mapping[PoolKey, int] = MappingProxyType(
    {
        PoolKey.LEADERBOARD: 1500,  # 15%
        PoolKey.REFERRAL: 1000,     # 10%
        PoolKey.WHEEL: 500,         # 5%, mirrored into the legacy alias
        PoolKey.TREASURY: 7000,     # 70%
    }
)


@dataclass(frozen=True)
class SettlementConfig:
    fee_rate_bps: int = DEFAULT_FEE_RATE_BPS
    fee_splits: Mapping[PoolKey, int] = field(default_factory=lambda: DEFAULT_FEE_SPLITS)
    # Receives the fee-split remainder and the payout rounding residue
    residue_pool: PoolKey = PoolKey.TREASURY

    def __post_init__(self) -> None:
        if not (0 <= self.fee_rate_bps <= BPS_DENOMINATOR):
            raise ValueError(
                f"fee_rate_bps must be within 0..{BPS_DENOMINATOR}, got {self.fee_rate_bps}"
            )
        if not self.fee_splits:
            raise ValueError("fee_splits must name at least one pool")
        for pool_key, bps in self.fee_splits.items():
            if pool_key not in CANONICAL_POOLS:
                raise ValueError(f"fee split targets non-canonical pool {pool_key!r}")
            if bps < 0:
                raise ValueError(f"fee split for {pool_key.value} is negative: {bps}")
        total = sum(self.fee_splits.values())
        if total != BPS_DENOMINATOR:
            raise ValueError(
                f"fee splits must sum to {BPS_DENOMINATOR} bps (100%), got {total}"
            )
        if self.residue_pool not in CANONICAL_POOLS:
            raise ValueError(f"residue_pool must be a canonical pool, got {self.residue_pool!r}")
        object.__setattr__(self, "fee_splits", MappingProxyType(dict(self.fee_splits)))

    @classmethod
    def from_settings(cls, settings: Any) -> "SettlementConfig":
        return cls(
            fee_rate_bps=settings.PLATFORM_FEE_BPS,
            fee_splits={
                PoolKey.LEADERBOARD: settings.FEE_SPLIT_LEADERBOARD_BPS,
                PoolKey.REFERRAL: settings.FEE_SPLIT_REFERRAL_BPS,
                PoolKey.WHEEL: settings.FEE_SPLIT_WHEEL_BPS,
                PoolKey.TREASURY: settings.FEE_SPLIT_TREASURY_BPS,
            },
        )
