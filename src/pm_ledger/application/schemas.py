"""Pydantic schemas and cursor utilities for the MYST ledger view."""

import base64
import json
from typing import Any

from pydantic import BaseModel

from src.pm_common.myst import micros_to_display

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class MystTransactionItem(BaseModel):
    id: int
    type: str
    amount_micros: int
    amount_display: str
    meta: dict[str, Any]
    created_at: str  # ISO8601 string


class UserMystResponse(BaseModel):
    user_id: str
    balance_micros: int
    balance_display: str
    items: list[MystTransactionItem]
    next_cursor: str | None
    has_more: bool

    @classmethod
    def build(
        cls,
        user_id: str,
        balance: int,
        items: list[MystTransactionItem],
        next_cursor: str | None,
        has_more: bool,
    ) -> "UserMystResponse":
        return cls(
            user_id=user_id,
            balance_micros=balance,
            balance_display=micros_to_display(balance),
            items=items,
            next_cursor=next_cursor,
            has_more=has_more,
        )
