"""Domain models for pm_prediction: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import PredictionStatus


@dataclass
class Prediction:
    id: str
    title: str
    options: list[str]               # index 0 = YES / first side
    option_pools: list[int]          # micros staked per option, aligned with options
    status: str                      # PredictionStatus value
    winning_option: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_resolved(self) -> bool:
        return self.status == PredictionStatus.RESOLVED

    @property
    def yes_pool(self) -> int:
        return self.option_pools[0]

    @property
    def no_pool(self) -> int:
        return self.option_pools[1] if len(self.option_pools) > 1 else 0

    @property
    def total_pool(self) -> int:
        return sum(self.option_pools)

    def has_option_index(self, index: int) -> bool:
        return 0 <= index < len(self.options)


@dataclass
class Bet:
    id: str
    prediction_id: str
    user_id: str
    option: str                      # label the bettor staked on
    myst_bet: int                    # micros, fixed at placement
    myst_payout: int | None = None   # micros, set once at settlement
    created_at: datetime | None = None
