from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

# All timestamps are stored as naive datetimes in UTC.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string from a client into naive UTC.

    Blank input gives None. Offsets (including a trailing "Z") are applied;
    strings without one are taken to be UTC already. Raises ValueError on
    anything fromisoformat rejects.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as "YYYY-MM-DDTHH:MM:SSZ" (second precision)."""
    if dt is None:
        return None
    return _as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"
