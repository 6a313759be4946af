"""
Timestamp helpers for values stored through raw SQL.

Timestamps are written as ISO 8601 strings so the same statements run on
PostgreSQL and SQLite; PostgreSQL hands back ``datetime`` objects while SQLite
hands back the stored string, so reads go through ``coerce_timestamp``.
"""
from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Normalize a timestamp column value to an aware ``datetime``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
