"""Shared flat indexing of the driven sub-segments."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ...models.domain import ProcessedSegment, Segment
from .models import TripDay


def flatten_driving_segments(
    segments: Sequence[Segment],
    days: Optional[Sequence[TripDay]] = None,
) -> tuple[list[ProcessedSegment], dict[int, TripDay]]:
    """Return the sub-segments actually driven plus the flat index where each later driving day starts.

    Stop suggestions, the timeline and driver rotation all index into this
    list, so a split leg contributes one entry per part. Without days the
    input segments are used as-is.
    """
    if not days:
        return [ProcessedSegment.from_segment(segment, index) for index, segment in enumerate(segments)], {}

    flat: list[ProcessedSegment] = []
    day_starts: dict[int, TripDay] = {}
    for day in days:
        if not day.segments:
            continue
        if flat:
            day_starts[len(flat)] = day
        flat.extend(day.segments)
    return flat, day_starts


def resume_after_overnight(
    clock: datetime,
    departure_time: time,
    next_day_date: Optional[date] = None,
    min_rest: timedelta = timedelta(0),
) -> datetime:
    """Clock at which driving resumes after an overnight stop.

    That is the trip's nominal departure time on the next driving day's date,
    or on the following calendar day when no day plan is known. Resuming
    less than ``min_rest`` after ``clock`` pushes it one more day.
    """
    resume_date = next_day_date if next_day_date is not None else clock.date() + timedelta(days=1)
    resumed = datetime.combine(resume_date, departure_time)
    while resumed < clock + min_rest:
        resumed += timedelta(days=1)
    return resumed


def return_leg_start(flat: Sequence[ProcessedSegment], round_trip_midpoint: Optional[int]) -> Optional[int]:
    """Flat index of the first part of input segment ``round_trip_midpoint``."""
    if round_trip_midpoint is None:
        return None
    for index, segment in enumerate(flat):
        if index > 0 and segment.original_index == round_trip_midpoint:
            return index
    return None
