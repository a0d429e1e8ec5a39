"""Text formatting for dashboard numbers and timestamps."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from platypus_dashboard.infrastructure.utils.timeutils import ensure_utc

NOT_AVAILABLE = "n/a"


def format_currency(value: float) -> str:
    if not math.isfinite(value):
        return NOT_AVAILABLE
    sign = "-" if value < 0 and round(abs(value), 2) != 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_signed_currency(value: float) -> str:
    text = format_currency(value)
    if math.isfinite(value) and round(value, 2) > 0:
        return "+" + text
    return text


def format_percent(value: float, signed: bool = True) -> str:
    if not math.isfinite(value):
        return NOT_AVAILABLE
    prefix = "+" if signed and value >= 0 else ""
    return f"{prefix}{value:.2f}%"


def format_timestamp(value: Optional[datetime], tz_name: str = "America/Chicago") -> str:
    """``Oct 19, 02:30 PM`` in the given zone."""
    if value is None:
        return NOT_AVAILABLE
    local = ensure_utc(value).astimezone(ZoneInfo(tz_name))
    return f"{local:%b} {local.day}, {local:%I:%M %p}"
