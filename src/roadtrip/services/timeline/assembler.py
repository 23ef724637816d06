"""Assemble segments and suggested stops into one clock-stamped event sequence."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import ProcessedSegment, Segment, TripSettings
from ..scheduling.flatten import flatten_driving_segments, resume_after_overnight, return_leg_start
from ..scheduling.models import TripDay
from ..stops.models import MidDrive, SuggestedStop
from .models import TimedEvent

BEFORE_ORDER = {"fuel": 0}
AFTER_ORDER = {"fuel": 0, "meal": 1, "rest": 2, "overnight": 3}


@dataclass(slots=True)
class _Buckets:
    before: dict[int, list[SuggestedStop]]
    mid: dict[int, list[SuggestedStop]]
    after: dict[int, list[SuggestedStop]]


def _bucket_suggestions(suggestions: Sequence[SuggestedStop], segment_count: int) -> _Buckets:
    """Sort active suggestions into before/mid/after buckets keyed by flat segment index.

    Indices outside the route are clamped: anything before the first segment
    becomes a before-stop of segment 0, anything past the last segment an
    after-stop of the last one.
    """
    last = segment_count - 1
    buckets = _Buckets(before=defaultdict(list), mid=defaultdict(list), after=defaultdict(list))
    seen: set[str] = set()
    for stop in suggestions:
        if stop.dismissed or stop.id in seen:
            continue
        seen.add(stop.id)
        placement = stop.placement
        index = placement.segment_index
        if isinstance(placement, MidDrive):
            buckets.mid[min(max(index, 0), last)].append(stop)
        elif index > last or (placement.side == "after" and index >= 0):
            buckets.after[min(index, last)].append(stop)
        else:
            buckets.before[max(index, 0)].append(stop)

    for index, stops in buckets.before.items():
        stops.sort(key=lambda stop: BEFORE_ORDER.get(stop.type, 1))
    for index, stops in buckets.after.items():
        stops.sort(key=lambda stop: AFTER_ORDER.get(stop.type, len(AFTER_ORDER)))
    return buckets


def _drive_fractions(stops: Sequence[SuggestedStop], segment: Segment, drive_start: datetime) -> list[float]:
    """Position of each mid-drive stop as a fraction of the segment, clamped to [0, 1]."""
    duration = segment.duration_minutes
    raw: list[float] = []
    for stop in stops:
        minutes = stop.placement.minutes_into_drive
        if minutes is None:
            minutes = (stop.estimated_time - drive_start).total_seconds() / 60
        raw.append(minutes / duration if duration > 0 else math.nan)

    collapsed = len(set(raw)) == 1 or all(math.isnan(value) for value in raw)
    out_of_range = any(math.isnan(value) or not 0 < value < 1 for value in raw)
    if collapsed and out_of_range:
        count = len(stops)
        logging.debug(f"Spreading {count} mid-drive stops evenly across '{segment.destination.name}' leg")
        return [(k + 1) / (count + 1) for k in range(count)]
    return [min(1.0, max(0.0, value)) for value in raw]


def _stop_event(stop: SuggestedStop, clock: datetime, km: float, hint: str, segment_index: int) -> TimedEvent:
    return TimedEvent(
        id=stop.id,
        type=stop.type,
        arrival_time=clock,
        departure_time=clock + timedelta(minutes=stop.duration),
        duration_minutes=stop.duration,
        distance_from_origin_km=km,
        location_hint=hint,
        segment_index=segment_index,
        stops=[stop],
    )


class _TimelineBuilder:
    def __init__(
        self,
        flat: Sequence[ProcessedSegment],
        day_starts: dict[int, TripDay],
        trip: TripSettings,
        return_start: Optional[int],
    ) -> None:
        self.flat = flat
        self.day_starts = day_starts
        self.trip = trip
        self.return_start = return_start
        self.clock = trip.departure
        self.km = 0.0
        self.events: list[TimedEvent] = []
        self.rested: set[int] = set()

    def emit_stop(self, stop: SuggestedStop, hint: str, segment_index: int) -> None:
        event = _stop_event(stop, self.clock, self.km, hint, segment_index)
        if stop.type == "overnight":
            event.departure_time = self.resume_time(event.arrival_time, segment_index + 1)
            event.duration_minutes = (event.departure_time - event.arrival_time).total_seconds() / 60
            self.rested.add(segment_index + 1)
        self.clock = event.departure_time
        self.events.append(event)

    def resume_time(self, arrival: datetime, next_index: int) -> datetime:
        next_day = self.day_starts.get(next_index)
        return resume_after_overnight(
            arrival,
            self.trip.departure_time,
            next_day.date if next_day else None,
            min_rest=timedelta(hours=settings.min_rest_hours),
        )

    def emit_drive(self, index: int, segment: Segment, start_fraction: float, end_fraction: float, part: int) -> None:
        share = end_fraction - start_fraction
        if share <= 0 or (segment.distance_km <= 0 and segment.duration_minutes <= 0):
            return
        minutes = segment.duration_minutes * share
        distance = segment.distance_km * share
        arrival = self.clock
        self.clock += timedelta(minutes=minutes)
        self.km += distance
        self.events.append(
            TimedEvent(
                id=f"drive-{index}" if part == 0 else f"drive-{index}-{part}",
                type="drive",
                arrival_time=arrival,
                departure_time=self.clock,
                duration_minutes=minutes,
                distance_from_origin_km=self.km,
                location_hint=f"{segment.origin.name} → {segment.destination.name}",
                segment_index=index,
                segment_distance_km=distance,
                segment_duration_minutes=minutes,
            )
        )

    def emit_marker(self, event_id: str, event_type: str, hint: str, segment_index: Optional[int]) -> None:
        self.events.append(
            TimedEvent(
                id=event_id,
                type=event_type,
                arrival_time=self.clock,
                departure_time=self.clock,
                duration_minutes=0.0,
                distance_from_origin_km=self.km,
                location_hint=hint,
                segment_index=segment_index,
            )
        )

    def emit_dwell(self, index: int) -> None:
        minutes = self.trip.destination_dwell_minutes
        arrival = self.clock
        self.clock += timedelta(minutes=minutes)
        self.events.append(
            TimedEvent(
                id="destination-dwell",
                type="destination",
                arrival_time=arrival,
                departure_time=self.clock,
                duration_minutes=minutes,
                distance_from_origin_km=self.km,
                location_hint=self.flat[index - 1].destination.name,
                segment_index=index - 1,
            )
        )

    def build(self, buckets: _Buckets) -> list[TimedEvent]:
        last = len(self.flat) - 1
        self.emit_marker("departure", "departure", self.flat[0].origin.name, None)

        for index, segment in enumerate(self.flat):
            # A day boundary without an emitted overnight still starts the next day.
            if index in self.day_starts and index not in self.rested:
                self.clock = self.resume_time(self.clock, index)
            if index == self.return_start and self.trip.destination_dwell_minutes > 0:
                self.emit_dwell(index)

            for stop in buckets.before.get(index, []):
                self.emit_stop(stop, segment.origin.name, index)

            drive_start = self.clock
            mid_stops = sorted(buckets.mid.get(index, []), key=lambda stop: stop.estimated_time)
            fractions = _drive_fractions(mid_stops, segment, drive_start)
            ordered = sorted(zip(fractions, mid_stops), key=lambda pair: pair[0])

            done = 0.0
            part = 0
            for fraction, stop in ordered:
                self.emit_drive(index, segment, done, fraction, part)
                part += 1
                done = max(done, fraction)
                hint = f"~{segment.distance_km * done:.0f} km past {segment.origin.name}"
                self.emit_stop(stop, hint, index)
            self.emit_drive(index, segment, done, 1.0, part)

            if index == last:
                self.emit_marker("arrival", "arrival", segment.destination.name, index)
            elif self.flat[index + 1].origin.name != segment.destination.name:
                self.emit_marker(f"waypoint-{index}", "waypoint", segment.destination.name, index)

            for stop in buckets.after.get(index, []):
                self.emit_stop(stop, segment.destination.name, index)

        return self.events


def build_timed_timeline(
    segments: Sequence[Segment],
    suggestions: Sequence[SuggestedStop],
    trip: TripSettings,
    days: Optional[Sequence[TripDay]] = None,
    round_trip_midpoint: Optional[int] = None,
) -> list[TimedEvent]:
    """Interleave drives and stops into a strictly ordered itinerary.

    Stops placed before a segment are emitted ahead of its drive (fuel
    first), mid-drive stops split the drive at their position along the
    segment, and stops after a segment follow it in fuel, meal, rest,
    overnight order. An overnight moves the clock to the trip's departure
    time on the next driving day, and so does every day start from the day
    plan even when its overnight was dismissed. Dismissed suggestions are
    skipped and each stop id is emitted at most once.
    """
    flat, day_starts = flatten_driving_segments(segments, days)
    if not flat:
        return []

    if round_trip_midpoint is None and trip.is_round_trip:
        round_trip_midpoint = trip.round_trip_midpoint
    builder = _TimelineBuilder(flat, day_starts, trip, return_leg_start(flat, round_trip_midpoint))
    events = builder.build(_bucket_suggestions(suggestions, len(flat)))
    logging.info(f"Assembled {len(events)} timeline events from {len(flat)} segments")
    return events
