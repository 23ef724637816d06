"""Timezone abbreviation helpers for North American routes."""

from __future__ import annotations

from typing import Optional

UTC_OFFSETS: dict[str, float] = {
    "PST": -8, "PDT": -7,
    "MST": -7, "MDT": -6,
    "CST": -6, "CDT": -5,
    "EST": -5, "EDT": -4,
    "AST": -4, "ADT": -3,
    "NST": -3.5, "NDT": -2.5,
    "AKST": -9, "AKDT": -8,
    "HST": -10, "HDT": -9,
}

TIMEZONE_NAMES: dict[str, str] = {
    "PST": "Pacific Standard Time",
    "PDT": "Pacific Daylight Time",
    "MST": "Mountain Standard Time",
    "MDT": "Mountain Daylight Time",
    "CST": "Central Standard Time",
    "CDT": "Central Daylight Time",
    "EST": "Eastern Standard Time",
    "EDT": "Eastern Daylight Time",
    "AST": "Atlantic Standard Time",
    "ADT": "Atlantic Daylight Time",
    "NST": "Newfoundland Standard Time",
    "NDT": "Newfoundland Daylight Time",
    "AKST": "Alaska Standard Time",
    "AKDT": "Alaska Daylight Time",
    "HST": "Hawaii Standard Time",
    "HDT": "Hawaii Daylight Time",
}


def timezone_shift_hours(from_abbr: Optional[str], to_abbr: Optional[str]) -> float:
    """Wall-clock shift when crossing zones. Positive means clocks jump forward (CDT -> EDT = +1)."""
    if not from_abbr or not to_abbr or from_abbr == to_abbr:
        return 0.0
    from_offset = UTC_OFFSETS.get(from_abbr)
    to_offset = UTC_OFFSETS.get(to_abbr)
    if from_offset is None or to_offset is None:
        return 0.0
    return to_offset - from_offset


def timezone_name(abbr: str) -> str:
    return TIMEZONE_NAMES.get(abbr, f"{abbr} Time Zone")


def crossing_message(from_abbr: str, to_abbr: str) -> str:
    shift = timezone_shift_hours(from_abbr, to_abbr)
    hours = abs(shift)
    amount = f"{hours:g} hour" if hours == 1 else f"{hours:g} hours"
    if shift > 0:
        return f"Enter {timezone_name(to_abbr)} (lose {amount})"
    if shift < 0:
        return f"Enter {timezone_name(to_abbr)} (gain {amount})"
    return f"Enter {timezone_name(to_abbr)}"
