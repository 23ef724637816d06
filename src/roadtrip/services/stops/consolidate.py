"""Merge suggestions that share a placement."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Sequence

from .models import PRIORITY_RANK, StopDetails, SuggestedStop

# Higher wins when two stops land on the same spot.
TYPE_PRECEDENCE: dict[str, int] = {"fuel": 3, "overnight": 2, "meal": 1, "rest": 0}


def _merge_details(first: StopDetails, second: StopDetails) -> StopDetails:
    values = {}
    for item in fields(StopDetails):
        later = getattr(second, item.name)
        values[item.name] = later if later is not None else getattr(first, item.name)
    return StopDetails(**values)


def merge_stops(current: SuggestedStop, incoming: SuggestedStop) -> SuggestedStop:
    if TYPE_PRECEDENCE[incoming.type] > TYPE_PRECEDENCE[current.type]:
        winner, loser = incoming, current
    else:
        winner, loser = current, incoming
    priority = max(current.priority, incoming.priority, key=PRIORITY_RANK.__getitem__)
    return replace(
        current,
        id=f"merged-{current.id}-{incoming.id}",
        type=winner.type,
        reason=f"{winner.reason}\nAlso includes {loser.type} stop: {loser.reason}",
        duration=max(current.duration, incoming.duration),
        priority=priority,
        details=_merge_details(current.details, incoming.details),
        warning=current.warning or incoming.warning,
    )


def consolidate_stops(stops: Sequence[SuggestedStop]) -> list[SuggestedStop]:
    """Fold every group of suggestions with an equal placement into one stop, keeping first-seen order."""
    merged: list[SuggestedStop] = []
    position_by_placement: dict = {}
    for stop in stops:
        position = position_by_placement.get(stop.placement)
        if position is None:
            position_by_placement[stop.placement] = len(merged)
            merged.append(stop)
        else:
            merged[position] = merge_stops(merged[position], stop)
    return merged
