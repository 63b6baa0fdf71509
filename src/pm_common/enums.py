"""Global enums: must match DB CHECK constraints exactly.

See alembic/versions/002..005 for the corresponding constraints.
"""

from enum import Enum


class PredictionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"


class MystTransactionType(str, Enum):
    """User ledger entry types (myst_transactions.type)."""

    # Credits
    TON_DEPOSIT = "ton_deposit"
    ADMIN_GRANT = "admin_grant"
    ONBOARDING_BONUS = "onboarding_bonus"
    REFERRAL_MILESTONE = "referral_milestone"
    WHEEL_PRIZE = "wheel_prize"
    PREDICTION_WIN = "prediction_win"
    PREDICTION_REFUND = "prediction_refund"
    REFERRAL_REWARD_L1 = "referral_reward_l1"
    REFERRAL_REWARD_L2 = "referral_reward_l2"
    # Debits (spending)
    SPEND_BET = "spend_bet"
    SPEND_BOOST = "spend_boost"
    SPEND_CAMPAIGN = "spend_campaign"
    # Withdrawals
    WITHDRAW_REQUEST = "withdraw_request"
    WITHDRAW_FEE = "withdraw_fee"
    WITHDRAW_BURN = "withdraw_burn"


class PoolKey(str, Enum):
    """Pool registry keys (pool_balances.pool_key).

    LEGACY_WHEEL is the backward-compatible alias of WHEEL: it is never
    addressed directly, every WHEEL change is mirrored into it.
    """

    TREASURY = "treasury"
    LEADERBOARD = "leaderboard"
    REFERRAL = "referral"
    WHEEL = "wheel"
    LEGACY_WHEEL = "main_pool"


CANONICAL_POOLS: tuple[PoolKey, ...] = (
    PoolKey.TREASURY,
    PoolKey.LEADERBOARD,
    PoolKey.REFERRAL,
    PoolKey.WHEEL,
)

POOL_ALIASES: dict[PoolKey, PoolKey] = {PoolKey.WHEEL: PoolKey.LEGACY_WHEEL}


class PoolEntryType(str, Enum):
    """Pool ledger entry types (pool_ledger_entries.entry_type)."""

    SETTLEMENT_FEE = "SETTLEMENT_FEE"
    SETTLEMENT_RESIDUE = "SETTLEMENT_RESIDUE"
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"


class PoolReferenceType(str, Enum):
    PREDICTION = "PREDICTION"
    TRANSFER = "TRANSFER"
