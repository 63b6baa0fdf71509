"""TreasuryApplicationService: pool balances and administrative transfers.

transfer() owns its transaction through unit_of_work(): both legs commit
together or neither does. Reads run without an explicit transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import unit_of_work
from src.pm_common.enums import POOL_ALIASES, PoolEntryType, PoolKey, PoolReferenceType
from src.pm_common.errors import InsufficientPoolBalanceError, InvalidTransferError
from src.pm_common.id_generator import generate_transfer_id
from src.pm_treasury.application.schemas import InvariantReport, PoolBalancesResponse
from src.pm_treasury.domain.invariants import verify_pool_invariants
from src.pm_treasury.domain.models import TransferResult
from src.pm_treasury.domain.repository import PoolRepositoryProtocol
from src.pm_treasury.infrastructure.persistence import PoolRepository

logger = logging.getLogger(__name__)


def _coerce_pool(value: PoolKey | str, field: str) -> PoolKey:
    try:
        key = PoolKey(value)
    except ValueError:
        raise InvalidTransferError(f"unknown {field} '{value}'") from None
    if key in POOL_ALIASES.values():
        raise InvalidTransferError(f"{field} '{key.value}' is a legacy alias, not addressable")
    return key


class TreasuryApplicationService:
    def __init__(self, repo: PoolRepositoryProtocol | None = None) -> None:
        self._repo: PoolRepositoryProtocol = repo or PoolRepository()

    async def get_pool_balances(self, db: AsyncSession) -> PoolBalancesResponse:
        balances = {p.pool_key: p.balance for p in await self._repo.list_balances(db)}
        return PoolBalancesResponse.from_balances(balances)

    async def transfer(
        self,
        db: AsyncSession,
        from_pool: PoolKey | str,
        to_pool: PoolKey | str,
        amount: int,
    ) -> TransferResult:
        # Local validation first: no lock is taken for a request that can never succeed
        source = _coerce_pool(from_pool, "from_pool")
        target = _coerce_pool(to_pool, "to_pool")
        if amount <= 0:
            raise InvalidTransferError(f"amount must be positive, got {amount}")
        if source == target:
            raise InvalidTransferError("cannot transfer to the same pool")

        transfer_id = generate_transfer_id()
        async with unit_of_work(db):
            locked = await self._repo.lock_pools(db, [source, target])
            available = locked.get(source.value, 0)
            if available < amount:
                raise InsufficientPoolBalanceError(source.value, amount, available)

            new_from = await self._repo.adjust_balance(
                db,
                source,
                -amount,
                PoolEntryType.TRANSFER_OUT,
                PoolReferenceType.TRANSFER.value,
                transfer_id,
                f"transfer to {target.value}",
            )
            new_to = await self._repo.adjust_balance(
                db,
                target,
                amount,
                PoolEntryType.TRANSFER_IN,
                PoolReferenceType.TRANSFER.value,
                transfer_id,
                f"transfer from {source.value}",
            )

        logger.info(
            "Pool transfer %s: %d micros %s -> %s (new balances %d / %d)",
            transfer_id,
            amount,
            source.value,
            target.value,
            new_from,
            new_to,
        )
        return TransferResult(
            transfer_id=transfer_id,
            from_pool=source.value,
            to_pool=target.value,
            amount=amount,
            new_from_balance=new_from,
            new_to_balance=new_to,
        )

    async def verify_invariants(self, db: AsyncSession) -> InvariantReport:
        violations = await verify_pool_invariants(self._repo, db)
        return InvariantReport(ok=not violations, violations=violations)
