"""LedgerApplicationService: read-only view of a user's MYST ledger.

No commit/rollback needed: both queries only read.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.myst import micros_to_display
from src.pm_ledger.application.schemas import (
    MystTransactionItem,
    UserMystResponse,
    cursor_decode,
    cursor_encode,
)
from src.pm_ledger.domain.repository import LedgerRepositoryProtocol
from src.pm_ledger.infrastructure.persistence import LedgerRepository


class LedgerApplicationService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def get_user_myst(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        tx_type: str | None,
    ) -> UserMystResponse:
        balance = await self._repo.get_user_balance(db, user_id)
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        rows = await self._repo.list_transactions(db, user_id, cursor_id, limit + 1, tx_type)
        has_more = len(rows) > limit
        page = rows[:limit]

        items = [
            MystTransactionItem(
                id=tx.id,
                type=tx.type,
                amount_micros=tx.amount,
                amount_display=micros_to_display(tx.amount),
                meta=tx.meta,
                created_at=tx.created_at.isoformat() if tx.created_at else "",
            )
            for tx in page
        ]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return UserMystResponse.build(user_id, balance, items, next_cursor, has_more)
