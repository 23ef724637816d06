"""Split drive legs that exceed a single day's driving limit."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ...models.domain import Location, ProcessedSegment, Segment, TransitPart
from ..geospatial import interpolate_route_position, interpolate_straight


def segment_km_starts(segments: Sequence[Segment]) -> list[float]:
    """Cumulative km from the route origin at the start of each segment."""
    starts: list[float] = []
    cumulative = 0.0
    for segment in segments:
        starts.append(cumulative)
        cumulative += segment.distance_km
    return starts


def _split_point(
    segment: Segment,
    original_index: int,
    split_number: int,
    time_fraction: float,
    route_geometry: Optional[Sequence[Sequence[float]]],
    km_start: Optional[float],
    outbound_total_km: Optional[float],
) -> Location:
    split_km = time_fraction * segment.distance_km
    position = None

    if route_geometry and km_start is not None and outbound_total_km is not None:
        if km_start < outbound_total_km:
            km_on_outbound = km_start + split_km
        else:
            # Return leg: the road is the outbound road driven backwards.
            km_from_return_origin = (km_start - outbound_total_km) + split_km
            km_on_outbound = outbound_total_km - km_from_return_origin
        position = interpolate_route_position(route_geometry, max(0.0, km_on_outbound))

    if position is None:
        position = interpolate_straight(
            segment.origin.lat,
            segment.origin.lng,
            segment.destination.lat,
            segment.destination.lng,
            time_fraction,
        )

    return Location(
        id=f"transit-split-{original_index}-{split_number}",
        name=f"{segment.origin.city} → {segment.destination.city} (transit)",
        lat=position[0],
        lng=position[1],
    )


def split_long_segments(
    segments: Sequence[Segment],
    max_drive_minutes: float,
    route_geometry: Optional[Sequence[Sequence[float]]] = None,
    km_starts: Optional[Sequence[float]] = None,
    outbound_total_km: Optional[float] = None,
) -> list[ProcessedSegment]:
    """Break every segment longer than ``max_drive_minutes`` into evenly sized parts.

    Even parts (e.g. 4.5h + 4.5h for a 9h leg with an 8h limit) leave room for
    a short tail to share a day with the next leg, where fill-to-max splitting
    would force a near-empty extra day.

    Args:
        segments: Input drive legs.
        max_drive_minutes: Longest drive a single part may have.
        route_geometry: Optional outbound road polyline as (lat, lon) pairs.
        km_starts: Cumulative km at the start of each segment.
        outbound_total_km: Length of the outbound leg, used to mirror
            return-leg split points onto the outbound geometry.

    Returns:
        Processed segments carrying ``original_index`` and, for split legs,
        ``transit_part``.
    """
    result: list[ProcessedSegment] = []
    can_split = 0 < max_drive_minutes < math.inf

    for original_index, segment in enumerate(segments):
        if not can_split or segment.duration_minutes <= max_drive_minutes:
            result.append(ProcessedSegment.from_segment(segment, original_index))
            continue

        num_parts = math.ceil(segment.duration_minutes / max_drive_minutes)
        even_minutes = round(segment.duration_minutes / num_parts)
        km_start = km_starts[original_index] if km_starts is not None else None

        split_points = [
            _split_point(
                segment,
                original_index,
                split_number,
                even_minutes * (split_number + 1) / segment.duration_minutes,
                route_geometry,
                km_start,
                outbound_total_km,
            )
            for split_number in range(num_parts - 1)
        ]

        for part in range(num_parts):
            is_first = part == 0
            is_last = part == num_parts - 1
            part_minutes = (
                segment.duration_minutes - even_minutes * (num_parts - 1) if is_last else even_minutes
            )
            ratio = part_minutes / segment.duration_minutes
            result.append(
                ProcessedSegment.from_segment(
                    segment,
                    original_index,
                    origin=segment.origin if is_first else split_points[part - 1],
                    destination=segment.destination if is_last else split_points[part],
                    duration_minutes=part_minutes,
                    distance_km=round(segment.distance_km * ratio, 1),
                    fuel_cost=round(segment.fuel_cost * ratio, 2),
                    fuel_needed_litres=round(segment.fuel_needed_litres * ratio, 2),
                    departure_time=segment.departure_time if is_first else None,
                    arrival_time=segment.arrival_time if is_last else None,
                    # Intermediate parts end somewhere between zones; only the last
                    # part really arrives in the destination's timezone.
                    timezone_abbr=segment.timezone_abbr if is_last else None,
                    # An explicit overnight at the leg's destination belongs to the last part.
                    stop_type=segment.stop_type if is_last else None,
                    stop_duration=segment.stop_duration if is_last else 0.0,
                    transit_part=TransitPart(index=part, total=num_parts),
                )
            )

        logging.debug(
            f"Split segment {original_index} ({segment.duration_minutes:.0f} min) into "
            f"{num_parts} parts of ~{even_minutes} min"
        )

    return result
