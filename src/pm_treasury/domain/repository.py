"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import PoolEntryType, PoolKey
from src.pm_treasury.domain.models import PoolBalance


class PoolRepositoryProtocol(Protocol):
    async def get_balance(self, db: AsyncSession, pool_key: PoolKey) -> int: ...

    async def list_balances(self, db: AsyncSession) -> list[PoolBalance]: ...

    async def lock_pools(
        self, db: AsyncSession, pool_keys: Iterable[PoolKey]
    ) -> dict[str, int]: ...

    async def adjust_balance(
        self,
        db: AsyncSession,
        pool_key: PoolKey,
        delta: int,
        entry_type: PoolEntryType,
        reference_type: str,
        reference_id: str,
        description: str | None = None,
    ) -> int: ...

    async def journal_totals(self, db: AsyncSession) -> dict[str, int]: ...

    async def totals_for_reference(
        self, db: AsyncSession, reference_type: str, reference_id: str
    ) -> dict[str, int]:
        """Net journal amount per pool for one settlement or transfer."""
        ...
