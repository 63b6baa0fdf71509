"""Domain models for pm_treasury: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import PoolKey


@dataclass
class PoolBalance:
    pool_key: str
    balance: int                     # micros, never negative
    updated_at: datetime | None = None


@dataclass
class PoolLedgerEntry:
    id: int                          # BIGSERIAL
    pool_key: str
    entry_type: str                  # PoolEntryType value
    amount: int                      # micros, positive=credit negative=debit
    balance_after: int               # micros, pool balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class PoolMetadata:
    name: str
    description: str


POOL_METADATA: dict[PoolKey, PoolMetadata] = {
    PoolKey.TREASURY: PoolMetadata(
        "Platform Treasury",
        "Main treasury. Receives its share of platform fees and all rounding residue.",
    ),
    PoolKey.LEADERBOARD: PoolMetadata(
        "Leaderboard Pool",
        "Share of platform fees reserved for weekly leaderboard rewards.",
    ),
    PoolKey.REFERRAL: PoolMetadata(
        "Referral Pool",
        "Share of platform fees funding L1 and L2 referral rewards.",
    ),
    PoolKey.WHEEL: PoolMetadata(
        "Wheel of Fortune",
        "Share of platform fees used as the prize pool for daily wheel spins.",
    ),
}


@dataclass(frozen=True)
class TransferResult:
    transfer_id: str
    from_pool: str
    to_pool: str
    amount: int
    new_from_balance: int
    new_to_balance: int
