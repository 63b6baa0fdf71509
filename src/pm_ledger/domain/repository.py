"""Repository Protocol for the user MYST ledger."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MystTransactionType
from src.pm_ledger.domain.models import MystTransaction


class LedgerRepositoryProtocol(Protocol):
    async def insert_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        tx_type: MystTransactionType | str,
        amount: int,
        meta: dict[str, Any],
    ) -> MystTransaction: ...

    async def get_user_balance(self, db: AsyncSession, user_id: str) -> int: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        tx_type: str | None,
    ) -> list[MystTransaction]: ...

    async def prediction_payout_total(self, db: AsyncSession, prediction_id: str) -> int:
        """Sum of prediction_win/prediction_refund credits tagged with prediction_id."""
        ...
