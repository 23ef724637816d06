"""Merge nearby fuel, meal and rest events into combo stops."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ...config import settings
from .models import TimedEvent

BARRIER_TYPES = {"overnight", "arrival", "destination"}
BREAKFAST_CUTOFF_MINUTES = 10 * 60 + 30
DINNER_CUTOFF_MINUTES = 17 * 60
LABEL_GRACE_MINUTES = 30

_MEAL_NAME = re.compile(r"\b(breakfast|lunch|dinner)\b", re.IGNORECASE)


def _named_meal(event: TimedEvent) -> Optional[str]:
    for stop in event.stops:
        if stop.type != "meal" and not stop.details.meal:
            continue
        if stop.details.meal:
            return stop.details.meal
        match = _MEAL_NAME.search(stop.reason)
        if match:
            return match.group(1).capitalize()
    return None


def combo_label(moment: datetime, meal_event: Optional[TimedEvent] = None) -> str:
    """``Fuel + Breakfast|Lunch|Dinner`` by time of day.

    Close to a cut-off the meal the stop was suggested for wins over the clock.
    """
    minutes = moment.hour * 60 + moment.minute
    if minutes < BREAKFAST_CUTOFF_MINUTES:
        meal = "Breakfast"
    elif minutes >= DINNER_CUTOFF_MINUTES:
        meal = "Dinner"
    else:
        meal = "Lunch"

    near_cutoff = (
        abs(minutes - BREAKFAST_CUTOFF_MINUTES) <= LABEL_GRACE_MINUTES
        or abs(minutes - DINNER_CUTOFF_MINUTES) <= LABEL_GRACE_MINUTES
    )
    if near_cutoff and meal_event is not None:
        meal = _named_meal(meal_event) or meal
    return f"Fuel + {meal}"


def _minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60


def _find_partner(events: Sequence[TimedEvent], anchor_index: int, targets: set[str], window: float) -> Optional[int]:
    anchor = events[anchor_index]
    for index in range(anchor_index + 1, len(events)):
        candidate = events[index]
        if candidate.type in BARRIER_TYPES:
            return None
        if _minutes(candidate.arrival_time - anchor.departure_time) > window:
            return None
        if candidate.type in targets:
            return index
    return None


def _merge(events: list[TimedEvent], anchor_index: int, absorbed_index: int, combo_minutes: float, label: str) -> float:
    """Replace the anchor with a combo, drop the absorbed event and retime the rest. Returns minutes saved."""
    anchor = events[anchor_index]
    absorbed = events[absorbed_index]
    combo = TimedEvent(
        id=f"combo-{anchor.id}-{absorbed.id}",
        type="combo",
        arrival_time=anchor.arrival_time,
        departure_time=anchor.arrival_time + timedelta(minutes=combo_minutes),
        duration_minutes=combo_minutes,
        distance_from_origin_km=anchor.distance_from_origin_km,
        location_hint=anchor.location_hint,
        segment_index=anchor.segment_index,
        stops=anchor.stops + absorbed.stops,
        combo_label=label,
    )
    combo.time_saved_minutes = max(0.0, anchor.duration_minutes + absorbed.duration_minutes - combo_minutes)

    between_shift = combo.departure_time - anchor.departure_time
    after_shift = between_shift - (absorbed.departure_time - absorbed.arrival_time)

    for index in range(anchor_index + 1, absorbed_index):
        event = events[index]
        event.arrival_time += between_shift
        event.departure_time += between_shift

    # Later events move until the next overnight or idle gap, whose fixed morning departure absorbs the change.
    previous_departure = absorbed.departure_time
    for index in range(absorbed_index + 1, len(events)):
        event = events[index]
        if event.type == "overnight":
            event.arrival_time = min(event.arrival_time + after_shift, event.departure_time)
            event.duration_minutes = _minutes(event.departure_time - event.arrival_time)
            break
        if event.arrival_time > previous_departure:
            break
        previous_departure = event.departure_time
        event.arrival_time += after_shift
        event.departure_time += after_shift

    events[anchor_index] = combo
    del events[absorbed_index]
    return combo.time_saved_minutes


def apply_combo_optimization(
    events: Sequence[TimedEvent],
    meal_window_minutes: Optional[float] = None,
    fuel_window_minutes: Optional[float] = None,
) -> list[TimedEvent]:
    """Return a copy of the timeline with nearby stops folded into combo events.

    First every meal pulls in the next fuel stop within ``meal_window_minutes``
    of its departure and keeps its own duration. Then every remaining fuel
    stop pulls in the next meal or rest within ``fuel_window_minutes``.
    Merges never cross an overnight, a destination dwell or the arrival.
    """
    meal_window = settings.meal_absorb_window_minutes if meal_window_minutes is None else meal_window_minutes
    fuel_window = settings.fuel_absorb_window_minutes if fuel_window_minutes is None else fuel_window_minutes
    result = [replace(event, stops=list(event.stops)) for event in events]

    merged = 0
    saved = 0.0
    index = 0
    while index < len(result):
        anchor = result[index]
        if anchor.type == "meal":
            partner = _find_partner(result, index, {"fuel"}, meal_window)
            if partner is not None:
                label = combo_label(anchor.arrival_time, anchor)
                saved += _merge(result, index, partner, anchor.duration_minutes, label)
                merged += 1
        index += 1

    index = 0
    while index < len(result):
        anchor = result[index]
        if anchor.type == "fuel":
            partner = _find_partner(result, index, {"meal", "rest"}, fuel_window)
            if partner is not None:
                absorbed = result[partner]
                if absorbed.type == "meal":
                    minutes = settings.combo_meal_minutes
                    label = combo_label(anchor.arrival_time, absorbed)
                else:
                    minutes = settings.combo_rest_minutes
                    label = "Fuel + Break"
                saved += _merge(result, index, partner, minutes, label)
                merged += 1
        index += 1

    if merged:
        logging.info(f"Combined {merged} stop pairs, saving {saved:.0f} minutes")
    return result
