"""Trip planning orchestration service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ...models.domain import (
    BudgetSettings,
    BudgetWeights,
    Location,
    Segment,
    TripSettings,
    Vehicle,
)
from ...schemas.planning import LocationModel, TripPlanRequest, TripPlanResponse
from ..drivers.rotation import DriverRotationResult, assign_drivers, extract_fuel_stop_indices
from ..outputs.formatter import plan_to_json, timeline_to_csv
from ..scheduling.budget import calculate_cost_breakdown
from ..scheduling.flatten import flatten_driving_segments
from ..scheduling.models import CostBreakdown, TripDay
from ..scheduling.scheduler import split_trip_by_days
from ..stops.generator import generate_smart_stops
from ..stops.models import SuggestedStop
from ..stops.overrides import StopOverride, apply_overrides
from ..timeline.assembler import build_timed_timeline
from ..timeline.consolidator import apply_combo_optimization
from ..timeline.models import TimedEvent


@dataclass(slots=True)
class TripPlan:
    trip: TripSettings
    days: list[TripDay]
    suggestions: list[SuggestedStop]
    timeline: list[TimedEvent]
    drivers: DriverRotationResult
    costs: CostBreakdown


def _location(model: LocationModel) -> Location:
    return Location(name=model.name, lat=model.lat, lng=model.lng, id=model.id)


def _build_segments(payload: TripPlanRequest) -> list[Segment]:
    return [
        Segment(
            origin=_location(item.origin),
            destination=_location(item.destination),
            distance_km=item.distance_km,
            duration_minutes=item.duration_minutes,
            fuel_needed_litres=item.fuel_needed_litres,
            fuel_cost=item.fuel_cost,
            stop_type=item.stop_type,
            stop_duration=item.stop_duration,
            timezone_abbr=item.timezone_abbr,
        )
        for item in payload.segments
    ]


def _resolve_midpoint(payload: TripPlanRequest) -> Optional[int]:
    options = payload.trip
    segment_count = len(payload.segments)
    if not options.is_round_trip:
        if options.round_trip_midpoint is not None:
            logging.warning(f"Ignoring round trip midpoint {options.round_trip_midpoint} on a one-way trip")
        return None

    midpoint = options.round_trip_midpoint
    if midpoint is None:
        midpoint = segment_count // 2
    if not 1 <= midpoint <= segment_count - 1:
        raise ValueError(
            f"Round trip midpoint {midpoint} is out of range; expected 1..{segment_count - 1} "
            f"for {segment_count} segments."
        )
    return midpoint


def _build_trip(payload: TripPlanRequest) -> TripSettings:
    options = payload.trip
    if options.return_date is not None and options.return_date < options.departure_date:
        raise ValueError(
            f"Return date {options.return_date} is before departure date {options.departure_date}."
        )

    budget = options.budget
    return TripSettings(
        departure_date=options.departure_date,
        departure_time=options.departure_time,
        return_date=options.return_date,
        is_round_trip=options.is_round_trip,
        round_trip_midpoint=_resolve_midpoint(payload),
        destination_dwell_minutes=options.destination_dwell_minutes,
        max_drive_hours=options.max_drive_hours,
        num_travelers=options.num_travelers,
        num_drivers=options.num_drivers,
        stop_frequency=options.stop_frequency,
        gas_price=options.gas_price,
        hotel_price_per_night=options.hotel_price_per_night,
        meal_price_per_day=options.meal_price_per_day,
        target_arrival_hour=options.target_arrival_hour,
        ignore_daily_cap=options.ignore_daily_cap,
        budget=BudgetSettings(
            mode=budget.mode,
            allocation=budget.allocation,
            weights=BudgetWeights(**budget.weights.model_dump()),
            gas=budget.gas,
            hotel=budget.hotel,
            food=budget.food,
            misc=budget.misc,
            total=budget.total,
        ),
    )


def build_trip_plan(payload: TripPlanRequest) -> TripPlan:
    """Run the whole planning pipeline for one request."""
    segments = _build_segments(payload)
    trip = _build_trip(payload)
    vehicle = Vehicle(**payload.vehicle.model_dump())
    overrides = {
        stop_id: StopOverride(**override.model_dump()) for stop_id, override in payload.overrides.items()
    }

    days = split_trip_by_days(
        segments,
        trip,
        route_geometry=payload.route_geometry,
        round_trip_midpoint=trip.round_trip_midpoint,
    )
    suggestions = apply_overrides(generate_smart_stops(segments, vehicle, trip, days), overrides)
    timeline = build_timed_timeline(segments, suggestions, trip, days)
    if payload.combine_stops:
        timeline = apply_combo_optimization(timeline)

    flat, _ = flatten_driving_segments(segments, days)
    drivers = assign_drivers(flat, trip.num_drivers, extract_fuel_stop_indices(suggestions))
    costs = calculate_cost_breakdown(days, trip.num_travelers, trip.budget)

    logging.info(
        f"Planned trip: {len(segments)} segments, {len(days)} days, {len(suggestions)} suggestions, "
        f"{len(timeline)} timeline events, total ${costs.total:.0f}"
    )
    return TripPlan(
        trip=trip,
        days=days,
        suggestions=suggestions,
        timeline=timeline,
        drivers=drivers,
        costs=costs,
    )


def plan_trip(payload: TripPlanRequest) -> TripPlanResponse:
    plan = build_trip_plan(payload)
    metadata = {
        "status": "complete",
        "segment_count": len(payload.segments),
        "day_count": len(plan.days),
        "driving_days": sum(1 for day in plan.days if day.is_driving_day),
        "round_trip_midpoint": plan.trip.round_trip_midpoint,
        "time_saved_minutes": sum(event.time_saved_minutes for event in plan.timeline),
    }
    return TripPlanResponse.model_validate(
        plan_to_json(plan.days, plan.suggestions, plan.timeline, plan.drivers, plan.costs, metadata)
    )


def plan_timeline_csv(payload: TripPlanRequest) -> str:
    return timeline_to_csv(build_trip_plan(payload).timeline)
