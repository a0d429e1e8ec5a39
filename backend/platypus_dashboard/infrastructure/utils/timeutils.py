"""Time helpers. Everything read from the store is normalised to aware UTC."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes coming from pymongo are UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Accept a datetime, an ISO-8601 string (``Z`` suffix allowed) or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(text))
    raise TypeError(f"Unsupported datetime value: {value!r}")


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def civil_date(value: datetime, tz_name: str) -> date:
    """Calendar date of ``value`` as seen on a wall clock in ``tz_name``."""
    return ensure_utc(value).astimezone(ZoneInfo(tz_name)).date()
