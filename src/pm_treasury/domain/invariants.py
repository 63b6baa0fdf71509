"""Pool registry invariants.

INV-P1: pool_balances.balance == SUM(pool_ledger_entries.amount) for every pool
INV-P2: LEGACY_WHEEL balance == WHEEL balance (alias mirror is in sync)
INV-P3: no pool balance is negative
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import POOL_ALIASES
from src.pm_treasury.domain.repository import PoolRepositoryProtocol

logger = logging.getLogger(__name__)


async def verify_pool_invariants(
    repo: PoolRepositoryProtocol, db: AsyncSession
) -> list[str]:
    """Returns list of violation strings (empty when the registry is consistent)."""
    violations: list[str] = []
    balances = {p.pool_key: p.balance for p in await repo.list_balances(db)}
    journal = await repo.journal_totals(db)

    for pool_key in sorted(set(balances) | set(journal)):
        counter = balances.get(pool_key, 0)
        journaled = journal.get(pool_key, 0)
        if counter != journaled:
            violations.append(
                f"INV-P1 violated: pool {pool_key} balance={counter} "
                f"!= journal_sum={journaled}"
            )
        if counter < 0:
            violations.append(f"INV-P3 violated: pool {pool_key} balance={counter} < 0")

    for source, alias in POOL_ALIASES.items():
        source_balance = balances.get(source.value, 0)
        alias_balance = balances.get(alias.value, 0)
        if source_balance != alias_balance:
            violations.append(
                f"INV-P2 violated: {alias.value}={alias_balance} "
                f"!= {source.value}={source_balance}"
            )

    for msg in violations:
        logger.error(msg)
    return violations
