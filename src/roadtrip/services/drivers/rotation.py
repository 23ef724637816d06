"""Driver rotation overlay.

Assignments are derived from the segment list and never written back to it.
Drivers swap at fuel stops, the natural break on a road trip. When a route
has too few fuel stops for every driver to get a turn, extra swap points are
spread evenly by drive time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from ...models.domain import Segment
from ..stops.models import Boundary, SuggestedStop


@dataclass(slots=True)
class DriverAssignment:
    segment_index: int
    driver: int


@dataclass(slots=True)
class DriverStats:
    driver: int
    total_minutes: float = 0.0
    total_km: float = 0.0
    segment_count: int = 0


@dataclass(slots=True)
class DriverRotationResult:
    assignments: List[DriverAssignment] = field(default_factory=list)
    stats: List[DriverStats] = field(default_factory=list)
    rotation_points: List[int] = field(default_factory=list)


def _balanced_swap_points(segments: Sequence[Segment], num_drivers: int) -> set[int]:
    """Segment indices after which cumulative drive time first reaches each equal share."""
    total = sum(segment.duration_minutes for segment in segments)
    if total <= 0:
        return set()

    points: set[int] = set()
    share = 1
    elapsed = 0.0
    for index, segment in enumerate(segments[:-1]):
        elapsed += segment.duration_minutes
        while share < num_drivers and elapsed >= share * total / num_drivers:
            points.add(index)
            share += 1
    return points


def assign_drivers(
    segments: Sequence[Segment],
    num_drivers: int,
    fuel_stop_indices: Iterable[int] = (),
) -> DriverRotationResult:
    """Assign a 1-based driver number to every segment.

    ``fuel_stop_indices`` are the segments a fuel stop follows; the next
    segment starts with the next driver in round-robin order.
    """
    num_drivers = max(1, num_drivers)
    last = len(segments) - 1
    rotation_set = {index for index in fuel_stop_indices if 0 <= index < last}
    if num_drivers > 1 and len(rotation_set) < num_drivers - 1:
        synthetic = _balanced_swap_points(segments, num_drivers)
        logging.debug(f"Adding {len(synthetic - rotation_set)} balanced driver swap points")
        rotation_set |= synthetic

    result = DriverRotationResult(stats=[DriverStats(driver=d) for d in range(1, num_drivers + 1)])
    driver = 1
    for index, segment in enumerate(segments):
        if index > 0 and num_drivers > 1 and (index - 1) in rotation_set:
            driver = driver % num_drivers + 1
            result.rotation_points.append(index)

        result.assignments.append(DriverAssignment(segment_index=index, driver=driver))
        stats = result.stats[driver - 1]
        stats.total_minutes += segment.duration_minutes
        stats.total_km += segment.distance_km
        stats.segment_count += 1

    return result


def extract_fuel_stop_indices(suggestions: Iterable[SuggestedStop]) -> list[int]:
    """Segment index each active fuel stop follows, sorted and de-duplicated."""
    indices: set[int] = set()
    for stop in suggestions:
        if stop.dismissed or stop.type != "fuel":
            continue
        placement = stop.placement
        if isinstance(placement, Boundary) and placement.side == "before":
            index = placement.segment_index - 1
        else:
            index = placement.segment_index
        if index >= 0:
            indices.add(index)
    return sorted(indices)


def format_drive_time(minutes: float) -> str:
    """``185`` -> ``3h 5m``."""
    hours, remainder = divmod(round(minutes), 60)
    if hours == 0:
        return f"{remainder}m"
    if remainder == 0:
        return f"{hours}h"
    return f"{hours}h {remainder}m"
