"""Group drive legs into calendar days."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Location, ProcessedSegment, Segment, TripSettings
from ..segments.splitter import segment_km_starts, split_long_segments
from .budget import (
    RunningBudget,
    driving_day_budget,
    free_day_budget,
    initial_remaining,
    overnight_at,
)
from .flatten import return_leg_start
from .models import DayTotals, TimezoneChange, TripDay
from .timezone import crossing_message, timezone_shift_hours


@dataclass(slots=True)
class SchedulerConstraints:
    tolerance_minutes: float = settings.daily_tolerance_hours * 60
    min_rest_hours: float = settings.min_rest_hours
    earliest_departure_hour: int = settings.earliest_departure_hour
    latest_full_day_departure_hour: int = settings.latest_full_day_departure_hour
    latest_departure_hour: int = settings.latest_departure_hour
    full_day_threshold: float = settings.full_day_threshold


def format_date_label(value: date) -> str:
    """Format a date as "Mon, Jun 1"."""
    return f"{value:%a}, {value:%b} {value.day}"


def _new_day(day_number: int, departure: datetime) -> TripDay:
    return TripDay(
        day_number=day_number,
        date=departure.date(),
        date_label=format_date_label(departure.date()),
        totals=DayTotals(departure_time=departure, arrival_time=departure),
    )


class _DayBuilder:
    """Mutable state of a single scheduling pass."""

    def __init__(
        self,
        segments: Sequence[Segment],
        processed: Sequence[ProcessedSegment],
        trip: TripSettings,
        constraints: SchedulerConstraints,
        midpoint_start: Optional[int],
    ) -> None:
        self.segments = segments
        self.processed = processed
        self.trip = trip
        self.constraints = constraints
        self.midpoint_start = midpoint_start
        self.max_minutes = trip.max_drive_minutes
        self.limit_minutes = (
            math.inf if trip.ignore_daily_cap else self.max_minutes + constraints.tolerance_minutes
        )
        self.days: list[TripDay] = []
        self.running: RunningBudget = initial_remaining(trip.budget)
        self.current: Optional[TripDay] = None
        self.day_minutes = 0.0
        self.last_timezone: Optional[str] = None

    # ------------------------------------------------------------------
    # Departure planning

    def next_day_drive_minutes(self, start: int) -> float:
        """Greedy estimate of how long the day starting at ``start`` will drive."""
        total = 0.0
        for index in range(start, len(self.processed)):
            if index == self.midpoint_start and total > 0:
                break
            segment = self.processed[index]
            if total > 0 and total + segment.duration_minutes > self.limit_minutes:
                break
            total += segment.duration_minutes
            if segment.stop_type == "overnight":
                break
        return total

    def departure_hour(self, next_day_minutes: float) -> int:
        c = self.constraints
        is_full_day = next_day_minutes >= c.full_day_threshold * self.max_minutes
        upper = c.latest_full_day_departure_hour if is_full_day else c.latest_departure_hour
        raw = self.trip.target_arrival_hour - next_day_minutes / 60
        return max(c.earliest_departure_hour, min(upper, math.floor(raw + 0.5)))

    def next_departure(self, arrival: datetime, candidate_date: date, start: int) -> datetime:
        hour = self.departure_hour(self.next_day_drive_minutes(start))
        candidate = datetime.combine(candidate_date, time(hour))
        earliest = arrival + timedelta(hours=self.constraints.min_rest_hours)
        if candidate < earliest:
            candidate = datetime.combine(candidate.date() + timedelta(days=1), time(hour))
        return candidate

    # ------------------------------------------------------------------
    # Day lifecycle

    def open_day(self, departure: datetime) -> None:
        self.current = _new_day(len(self.days) + 1, departure)
        self.day_minutes = 0.0

    def close_day(self, with_overnight: bool) -> TripDay:
        day = self.current
        if with_overnight and day.overnight is None:
            day.overnight = overnight_at(day.segments[-1].destination, self.trip)
        self.finalize(day)
        self.days.append(day)
        self.current = None
        logging.debug(
            f"Day {day.day_number} ({day.date_label}): {len(day.segments)} segments, "
            f"{day.totals.drive_minutes:.0f} min driving, overnight={day.overnight is not None}"
        )
        return day

    def finalize(self, day: TripDay) -> None:
        first, last = day.segments[0], day.segments[-1]
        day.route = f"{first.origin.name} → {last.destination.name}"

        departure = day.totals.departure_time
        clock = departure
        restamped: list[ProcessedSegment] = []
        for segment in day.segments:
            leaves = clock
            clock += timedelta(minutes=segment.duration_minutes)
            restamped.append(replace(segment, departure_time=leaves, arrival_time=clock))
            clock += timedelta(minutes=segment.stop_duration)
        day.segments = restamped

        drive_minutes = sum(segment.duration_minutes for segment in restamped)
        stop_minutes = sum(segment.stop_duration for segment in restamped)
        day.totals = DayTotals(
            departure_time=departure,
            arrival_time=departure + timedelta(minutes=drive_minutes + stop_minutes),
            distance_km=round(sum(segment.distance_km for segment in restamped), 1),
            drive_minutes=drive_minutes,
            stop_minutes=stop_minutes,
        )
        day.budget = driving_day_budget(restamped, drive_minutes, day.overnight, self.trip, self.running)

        part = last.transit_part
        if part is not None and part.index < part.total - 1:
            destination = self.segments[last.original_index].destination
            day.title = f"In Transit to {destination.city} (Day {part.index + 1}/{part.total})"

    def add_free_days(self, count: int, destination: Optional[Location]) -> None:
        destination_name = destination.name if destination else "Destination"
        for offset in range(count):
            free_date = self.days[-1].date + timedelta(days=1)
            departure = datetime.combine(free_date, self.trip.departure_time)
            day = _new_day(len(self.days) + 1, departure)
            day.day_type = "free"
            day.route = destination_name
            day.title = "Explore!" if offset == 0 else f"Day {offset + 1} at {destination_name}"
            day.budget = free_day_budget(self.trip, self.running)
            if destination is not None:
                day.overnight = overnight_at(destination, self.trip)
            self.days.append(day)
        if count:
            logging.debug(f"Inserted {count} free day(s) at {destination_name}")

    # ------------------------------------------------------------------
    # Segment handling

    def record_timezone(self, segment: ProcessedSegment) -> None:
        abbr = segment.timezone_abbr
        if not abbr:
            return
        previous = self.last_timezone
        self.last_timezone = abbr
        if previous is None or previous == abbr:
            return
        self.current.timezone_changes.append(
            TimezoneChange(
                after_segment_index=len(self.current.segments) - 1,
                from_timezone=previous,
                to_timezone=abbr,
                offset_hours=timezone_shift_hours(previous, abbr),
                message=crossing_message(previous, abbr),
            )
        )

    def insert_destination_days(self, index: int) -> None:
        """Close the outbound leg, add free days at the destination and open the return leg."""
        if self.current is not None and self.current.segments:
            self.close_day(with_overnight=True)
        self.current = None
        if not self.days:
            return

        total_days = max(1, (self.trip.return_date - self.trip.departure_date).days + 1)
        outbound_days = len(self.days)
        # Return driving is assumed to take as many days as the outbound leg.
        free_days = max(0, total_days - outbound_days - outbound_days)

        last_driving_day = self.days[-1]
        destination = last_driving_day.segments[-1].destination
        self.add_free_days(free_days, destination)

        arrival = last_driving_day.totals.arrival_time
        self.open_day(self.next_departure(arrival, self.days[-1].date + timedelta(days=1), index))

    def run(self) -> list[TripDay]:
        for index, segment in enumerate(self.processed):
            if index == self.midpoint_start:
                self.insert_destination_days(index)

            if self.current is None:
                self.open_day(self.trip.departure)

            if self.current.segments and self.day_minutes + segment.duration_minutes > self.limit_minutes:
                closed = self.close_day(with_overnight=True)
                arrival = closed.totals.arrival_time
                self.open_day(self.next_departure(arrival, arrival.date(), index))

            self.current.segments.append(segment)
            if segment.original_index not in self.current.segment_indices:
                self.current.segment_indices.append(segment.original_index)
            self.day_minutes += segment.duration_minutes
            self.record_timezone(segment)

            if segment.stop_type == "overnight":
                closed = self.close_day(with_overnight=True)
                arrival = closed.totals.arrival_time
                if index < len(self.processed) - 1:
                    self.open_day(self.next_departure(arrival, arrival.date() + timedelta(days=1), index + 1))

        self.finish()
        return self.days

    def finish(self) -> None:
        return_date = self.trip.return_date
        staying_on = self.midpoint_start is None and return_date is not None

        if self.current is not None and self.current.segments:
            gap_days = (return_date - self.current.date).days if staying_on else 0
            # The first night at the destination is billed to the last driving day.
            self.close_day(with_overnight=gap_days > 1)
        self.current = None

        if not staying_on or not self.days:
            return
        last_day = self.days[-1]
        gap_days = (return_date - last_day.date).days
        if gap_days > 1:
            self.add_free_days(gap_days - 1, last_day.segments[-1].destination)


def split_trip_by_days(
    segments: Sequence[Segment],
    trip: TripSettings,
    route_geometry: Optional[Sequence[Sequence[float]]] = None,
    round_trip_midpoint: Optional[int] = None,
    constraints: Optional[SchedulerConstraints] = None,
) -> list[TripDay]:
    """Split a trip into calendar days.

    Long legs are first split into even parts so each fits one day. Parts are
    then accumulated until the next one would push the day past the drive
    limit plus tolerance, or a leg flagged ``overnight`` ends the day. Each
    following day departs at an hour chosen to land by the target arrival
    hour, never sooner than the minimum rest after the previous arrival.

    For round trips with a return date, free days are inserted at the
    destination before the return leg (segment ``round_trip_midpoint``).
    One-way trips with a later return date get their free days at the end.
    """
    if not segments:
        return []

    constraints = constraints or SchedulerConstraints()
    km_starts = segment_km_starts(segments)
    if round_trip_midpoint is not None:
        outbound_total_km = sum(segment.distance_km for segment in segments[:round_trip_midpoint])
    else:
        outbound_total_km = km_starts[-1] + segments[-1].distance_km

    if trip.ignore_daily_cap:
        processed = [ProcessedSegment.from_segment(segment, index) for index, segment in enumerate(segments)]
    else:
        processed = split_long_segments(
            segments,
            trip.max_drive_minutes,
            route_geometry=route_geometry,
            km_starts=km_starts,
            outbound_total_km=outbound_total_km,
        )

    builder = _DayBuilder(
        segments,
        processed,
        trip,
        constraints,
        return_leg_start(processed, round_trip_midpoint) if trip.return_date else None,
    )
    days = builder.run()
    logging.info(
        f"Scheduled {len(segments)} segments ({len(processed)} parts) into {len(days)} days "
        f"({sum(1 for day in days if day.day_type == 'free')} free)"
    )
    return days
