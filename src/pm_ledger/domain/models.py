"""Domain models for pm_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class MystTransaction:
    id: int                          # BIGSERIAL
    user_id: str
    type: str                        # MystTransactionType value
    amount: int                      # micros, positive=credit negative=debit
    meta: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
