"""UTC datetime helpers shared by repositories and response schemas."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Timezone-aware UTC now; every persisted timestamp goes through here."""
    return datetime.now(UTC)


def to_iso(value: datetime | None) -> str | None:
    """ISO8601 string for API payloads, None stays None."""
    return value.isoformat() if value is not None else None
