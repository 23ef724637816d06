"""Human-readable time and duration strings."""

from __future__ import annotations

from datetime import datetime


def format_time(value: datetime) -> str:
    """12-hour clock without a leading zero, e.g. ``9:05 AM``."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def format_duration(minutes: float) -> str:
    """``45 min`` under an hour, otherwise ``1h 15min`` (``2h`` on the hour)."""
    total = round(minutes)
    hours, remainder = divmod(total, 60)
    if hours == 0:
        return f"{remainder} min"
    if remainder == 0:
        return f"{hours}h"
    return f"{hours}h {remainder}min"
