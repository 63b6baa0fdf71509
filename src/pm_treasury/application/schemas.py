"""Pydantic schemas for the treasury admin API."""

from pydantic import BaseModel, Field

from src.pm_common.enums import CANONICAL_POOLS, PoolKey
from src.pm_common.myst import micros_to_display
from src.pm_treasury.domain.models import POOL_METADATA, TransferResult

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TransferRequest(BaseModel):
    from_pool: PoolKey
    to_pool: PoolKey
    amount_micros: int = Field(..., gt=0, description="Amount to move in micro-MYST")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PoolInfo(BaseModel):
    pool_key: str
    name: str
    description: str
    balance_micros: int
    balance_display: str


class LegacyAliasInfo(BaseModel):
    pool_key: str
    mirrors: str
    balance_micros: int
    in_sync: bool


class PoolBalancesResponse(BaseModel):
    pools: list[PoolInfo]
    total_myst_micros: int
    total_myst_display: str
    legacy_alias: LegacyAliasInfo

    @classmethod
    def from_balances(cls, balances: dict[str, int]) -> "PoolBalancesResponse":
        pools = []
        for key in CANONICAL_POOLS:
            meta = POOL_METADATA[key]
            balance = balances.get(key.value, 0)
            pools.append(
                PoolInfo(
                    pool_key=key.value,
                    name=meta.name,
                    description=meta.description,
                    balance_micros=balance,
                    balance_display=micros_to_display(balance),
                )
            )
        # The alias mirrors WHEEL, so it is reported but never added to the total
        total = sum(p.balance_micros for p in pools)
        alias_balance = balances.get(PoolKey.LEGACY_WHEEL.value, 0)
        return cls(
            pools=pools,
            total_myst_micros=total,
            total_myst_display=micros_to_display(total),
            legacy_alias=LegacyAliasInfo(
                pool_key=PoolKey.LEGACY_WHEEL.value,
                mirrors=PoolKey.WHEEL.value,
                balance_micros=alias_balance,
                in_sync=alias_balance == balances.get(PoolKey.WHEEL.value, 0),
            ),
        )


class TransferResponse(BaseModel):
    transfer_id: str
    from_pool: str
    to_pool: str
    amount_micros: int
    amount_display: str
    new_from_balance_micros: int
    new_to_balance_micros: int
    message: str

    @classmethod
    def from_result(cls, result: TransferResult) -> "TransferResponse":
        return cls(
            transfer_id=result.transfer_id,
            from_pool=result.from_pool,
            to_pool=result.to_pool,
            amount_micros=result.amount,
            amount_display=micros_to_display(result.amount),
            new_from_balance_micros=result.new_from_balance,
            new_to_balance_micros=result.new_to_balance,
            message=(
                f"Transferred {micros_to_display(result.amount)} "
                f"from {result.from_pool} to {result.to_pool}"
            ),
        )


class InvariantReport(BaseModel):
    ok: bool
    violations: list[str]
