"""Serializers for trip plan outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict
from typing import Sequence

from ...models.domain import ProcessedSegment
from ..drivers.rotation import DriverRotationResult, format_drive_time
from ..scheduling.models import CostBreakdown, TripDay
from ..stops.models import Boundary, SuggestedStop
from ..timeline.formatting import format_duration, format_time
from ..timeline.models import TimedEvent


def _segment_to_json(segment: ProcessedSegment) -> dict:
    return {
        "origin": segment.origin.name,
        "destination": segment.destination.name,
        "distance_km": segment.distance_km,
        "duration_minutes": segment.duration_minutes,
        "fuel_cost": segment.fuel_cost,
        "original_index": segment.original_index,
        "part": asdict(segment.transit_part) if segment.transit_part else None,
        "departure_time": segment.departure_time,
        "arrival_time": segment.arrival_time,
        "timezone_abbr": segment.timezone_abbr,
    }


def trip_day_to_json(day: TripDay) -> dict:
    return {
        "day_number": day.day_number,
        "date": day.date,
        "date_label": day.date_label,
        "day_type": day.day_type,
        "route": day.route,
        "title": day.title,
        "totals": asdict(day.totals),
        "segments": [_segment_to_json(segment) for segment in day.segments],
        "segment_indices": list(day.segment_indices),
        "budget": asdict(day.budget),
        "overnight": (
            {
                "location": day.overnight.location.name,
                "cost": day.overnight.cost,
                "rooms_needed": day.overnight.rooms_needed,
            }
            if day.overnight
            else None
        ),
        "timezone_changes": [asdict(change) for change in day.timezone_changes],
    }


def suggestion_to_json(stop: SuggestedStop) -> dict:
    placement = stop.placement
    if isinstance(placement, Boundary):
        placement_json = {"kind": "boundary", "segment_index": placement.segment_index, "side": placement.side}
    else:
        placement_json = {
            "kind": "mid_drive",
            "segment_index": placement.segment_index,
            "minutes_into_drive": placement.minutes_into_drive,
        }
    return {
        "id": stop.id,
        "type": stop.type,
        "reason": stop.reason,
        "placement": placement_json,
        "after_segment_index": stop.after_segment_index,
        "estimated_time": stop.estimated_time,
        "duration": stop.duration,
        "priority": stop.priority,
        "details": asdict(stop.details),
        "day_number": stop.day_number,
        "warning": stop.warning,
        "accepted": stop.accepted,
        "dismissed": stop.dismissed,
    }


def timed_event_to_json(event: TimedEvent) -> dict:
    return {
        "id": event.id,
        "type": event.type,
        "arrival_time": event.arrival_time,
        "departure_time": event.departure_time,
        "duration_minutes": event.duration_minutes,
        "distance_from_origin_km": event.distance_from_origin_km,
        "location_hint": event.location_hint,
        "segment_index": event.segment_index,
        "stop_ids": [stop.id for stop in event.stops],
        "time_saved_minutes": event.time_saved_minutes,
        "combo_label": event.combo_label,
    }


def driver_rotation_to_json(result: DriverRotationResult) -> dict:
    return {
        "assignments": [asdict(assignment) for assignment in result.assignments],
        "stats": [
            {**asdict(stats), "drive_time": format_drive_time(stats.total_minutes)}
            for stats in result.stats
        ],
        "rotation_points": list(result.rotation_points),
    }


def plan_to_json(
    days: Sequence[TripDay],
    suggestions: Sequence[SuggestedStop],
    timeline: Sequence[TimedEvent],
    drivers: DriverRotationResult,
    costs: CostBreakdown,
    metadata: dict,
) -> dict:
    return {
        "metadata": metadata,
        "days": [trip_day_to_json(day) for day in days],
        "suggestions": [suggestion_to_json(stop) for stop in suggestions],
        "timeline": [timed_event_to_json(event) for event in timeline],
        "drivers": driver_rotation_to_json(drivers),
        "costs": asdict(costs),
    }


def timeline_to_csv(events: Sequence[TimedEvent]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "id",
        "type",
        "label",
        "date",
        "arrival",
        "departure",
        "duration",
        "distance_from_origin_km",
        "location_hint",
        "time_saved_minutes",
        "stop_ids",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for sequence, event in enumerate(events, start=1):
        writer.writerow(
            {
                "sequence": sequence,
                "id": event.id,
                "type": event.type,
                "label": event.combo_label or event.type.capitalize(),
                "date": event.arrival_time.date().isoformat(),
                "arrival": format_time(event.arrival_time),
                "departure": format_time(event.departure_time),
                "duration": format_duration(event.duration_minutes),
                "distance_from_origin_km": round(event.distance_from_origin_km, 1),
                "location_hint": event.location_hint,
                "time_saved_minutes": round(event.time_saved_minutes),
                "stop_ids": ";".join(stop.id for stop in event.stops),
            }
        )
    return buffer.getvalue()
