"""Simulate fuel, fatigue and the clock along the route to suggest stops."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Segment, TripSettings, Vehicle
from ..scheduling.flatten import flatten_driving_segments, resume_after_overnight, return_leg_start
from ..scheduling.models import TripDay
from ..scheduling.timezone import timezone_shift_hours
from ..timeline.formatting import format_time
from .consolidate import consolidate_stops
from .models import Boundary, MidDrive, StopDetails, SuggestedStop
from .presets import StopPreset, preset_for

MEAL_BOUNDARIES = (("Lunch", 12), ("Dinner", 18))
MIN_REST_SEGMENT_MINUTES = 30
COMBO_MEAL_WINDOWS = (("Lunch", (11, 13)), ("Dinner", (17, 19)))


@dataclass(slots=True)
class StopConstraints:
    critical_fuel_fraction: float = settings.critical_fuel_fraction
    low_tank_fraction: float = settings.low_tank_fraction
    full_tank_fraction: float = settings.full_tank_fraction
    fuel_stop_minutes: float = settings.fuel_stop_minutes
    rest_stop_minutes: float = settings.rest_stop_minutes
    meal_stop_minutes: float = settings.meal_stop_minutes
    combo_meal_minutes: float = settings.combo_meal_minutes
    overnight_stop_minutes: float = settings.overnight_stop_minutes
    destination_grace_km: float = settings.destination_grace_km
    sparse_stretch_km: float = settings.sparse_stretch_km


@dataclass(slots=True)
class SimulationState:
    fuel_litres: float
    clock: datetime
    km_since_fill: float = 0.0
    hours_since_fill: float = 0.0
    hours_since_break: float = 0.0
    drive_minutes_today: float = 0.0
    timezone: Optional[str] = None
    day_number: int = 1

    def refill(self, tank_size_litres: float) -> None:
        self.fuel_litres = tank_size_litres
        self.km_since_fill = 0.0
        self.hours_since_fill = 0.0


@dataclass(frozen=True, slots=True)
class _Context:
    vehicle: Vehicle
    trip: TripSettings
    constraints: StopConstraints
    preset: StopPreset
    safe_range_km: float


def _fuel_needed(segment: Segment, vehicle: Vehicle) -> float:
    return segment.fuel_needed_litres or segment.distance_km / 100 * vehicle.fuel_economy_l100km


def _combo_meal(moment: datetime) -> Optional[str]:
    """Meal that fits into a fuel stop made at ``moment``, if any."""
    for label, (start_hour, end_hour) in COMBO_MEAL_WINDOWS:
        if start_hour <= moment.hour < end_hour:
            return label
    return None


def _check_boundary_fuel(
    state: SimulationState,
    ctx: _Context,
    segment: Segment,
    index: int,
    km_remaining_after: float,
) -> Optional[SuggestedStop]:
    tank = ctx.vehicle.tank_size_litres
    c = ctx.constraints
    if state.fuel_litres >= tank * c.full_tank_fraction:
        return None

    critical = state.fuel_litres - _fuel_needed(segment, ctx.vehicle) < tank * c.critical_fuel_fraction
    beyond_safe_range = state.km_since_fill >= ctx.safe_range_km
    comfort_due = index > 0 and state.hours_since_fill >= ctx.preset.comfort_refuel_hours
    tank_low = index > 0 and state.fuel_litres <= tank * c.low_tank_fraction
    if not critical:
        if km_remaining_after < c.destination_grace_km:
            return None
        if not (beyond_safe_range or comfort_due or tank_low):
            return None

    refill = tank - state.fuel_litres
    cost = refill * ctx.trip.gas_price
    tank_percent = round(state.fuel_litres / tank * 100)
    tank_state = f"Tank at {tank_percent}% ({state.fuel_litres:.1f}L remaining)"
    if critical:
        reason = f"{tank_state}. ~${cost:.2f} to refill. Critical: refuel before continuing to {segment.destination.name}."
    elif tank_low and not beyond_safe_range and not comfort_due:
        reason = f"{tank_state}, getting low. ~${cost:.2f} to top up now before options get sparse."
    elif comfort_due and not beyond_safe_range:
        reason = (
            f"{state.hours_since_fill:.1f} hours since last fill, good time to top up. "
            f"{tank_state}. ~${cost:.2f} to refill."
        )
    else:
        reason = f"{tank_state}. ~${cost:.2f} to refill. You've driven {state.km_since_fill:.0f} km since last fill."

    meal = _combo_meal(state.clock)
    duration = c.fuel_stop_minutes
    if meal:
        duration = c.combo_meal_minutes
        reason += f" Good time to grab {meal.lower()} too, you're already stopped."

    warning = None
    if segment.distance_km > c.sparse_stretch_km:
        warning = (
            f"Limited services for the next {segment.distance_km:.0f} km "
            f"({segment.duration_minutes / 60:.1f} hours). Fuel up before continuing."
        )

    stop = SuggestedStop(
        id=f"fuel-{index}",
        type="fuel",
        reason=reason,
        placement=Boundary(index, "before"),
        estimated_time=state.clock,
        duration=duration,
        priority="required" if critical else "recommended",
        details=StopDetails(
            fuel_needed_litres=round(refill, 1),
            fuel_cost=round(cost, 2),
            fill_type="full" if critical or beyond_safe_range else "topup",
            tank_percent=tank_percent,
            combo_meal=bool(meal),
        ),
        day_number=state.day_number,
        warning=warning,
    )
    state.refill(tank)
    state.clock += timedelta(minutes=duration)
    return stop


def _check_rest(
    state: SimulationState,
    ctx: _Context,
    segment: Segment,
    index: int,
    boundary_time: datetime,
) -> Optional[SuggestedStop]:
    if (
        state.hours_since_break < ctx.preset.rest_interval_hours
        or segment.duration_minutes <= MIN_REST_SEGMENT_MINUTES
    ):
        return None

    rest_minutes = ctx.constraints.rest_stop_minutes
    drivers = f"{ctx.trip.num_drivers} drivers" if ctx.trip.num_drivers > 1 else "solo driver"
    stop = SuggestedStop(
        id=f"rest-{index}",
        type="rest",
        reason=(
            f"{state.hours_since_break:.1f} hours behind the wheel ({drivers}). Take a "
            f"{rest_minutes:.0f}-minute break to stretch and stay alert."
        ),
        placement=Boundary(index, "before"),
        estimated_time=boundary_time,
        duration=rest_minutes,
        priority="recommended",
        details=StopDetails(hours_on_road=round(state.drive_minutes_today / 60, 2)),
        day_number=state.day_number,
    )
    # A fuel stop at the same boundary already covers part of the break.
    already_stopped = (state.clock - boundary_time).total_seconds() / 60
    state.clock += timedelta(minutes=max(0.0, rest_minutes - already_stopped))
    state.hours_since_break = 0.0
    return stop


def _check_meals(
    state: SimulationState,
    ctx: _Context,
    segment: Segment,
    index: int,
    start: datetime,
) -> list[SuggestedStop]:
    end = start + timedelta(minutes=segment.duration_minutes)
    stops: list[SuggestedStop] = []
    for label, hour in MEAL_BOUNDARIES:
        meal_time = datetime.combine(start.date(), time(hour))
        if meal_time <= start:
            meal_time += timedelta(days=1)
        if meal_time > end:
            continue

        minutes_into_drive = (meal_time - start).total_seconds() / 60
        if meal_time < end:
            placement = MidDrive(index, meal_time, minutes_into_drive)
        else:
            placement = Boundary(index, "after")
        hours_on_road = (state.drive_minutes_today + minutes_into_drive) / 60
        stops.append(
            SuggestedStop(
                id=f"meal-{label.lower()}-{index}",
                type="meal",
                reason=(
                    f"{label} break around {format_time(meal_time)}. "
                    f"You'll have driven {hours_on_road:.1f} hours today."
                ),
                placement=placement,
                estimated_time=meal_time,
                duration=ctx.constraints.meal_stop_minutes,
                priority="optional",
                details=StopDetails(hours_on_road=round(hours_on_road, 2), meal=label),
                day_number=state.day_number,
            )
        )
    return stops


def _en_route_fuel(
    state: SimulationState,
    ctx: _Context,
    segment: Segment,
    index: int,
    start: datetime,
) -> tuple[list[SuggestedStop], Optional[float]]:
    """Fuel stops inside a leg. Returns the stops and the km mark of the last fill."""
    distance = segment.distance_km
    duration = segment.duration_minutes
    if distance <= 0 or duration <= 0:
        return [], None

    tank = ctx.vehicle.tank_size_litres
    litres_per_km = _fuel_needed(segment, ctx.vehicle) / distance
    fuel_minutes = ctx.constraints.fuel_stop_minutes
    km_until_first = max(0.0, ctx.safe_range_km - state.km_since_fill)

    def _stop(
        stop_id: str, km_mark: float, fuel_left: float, reason: str, priority: str, fill_type: str
    ) -> SuggestedStop:
        minutes_into_drive = km_mark / distance * duration
        stop_time = start + timedelta(minutes=minutes_into_drive)
        refill = max(0.0, tank - fuel_left)
        return SuggestedStop(
            id=stop_id,
            type="fuel",
            reason=reason,
            placement=MidDrive(index, stop_time, minutes_into_drive),
            estimated_time=stop_time,
            duration=fuel_minutes,
            priority=priority,
            details=StopDetails(
                fuel_needed_litres=round(refill, 1),
                fuel_cost=round(refill * ctx.trip.gas_price, 2),
                fill_type=fill_type,
                tank_percent=round(fuel_left / tank * 100),
            ),
            day_number=state.day_number,
        )

    if km_until_first >= distance:
        comfort_minutes = ctx.preset.comfort_refuel_hours * 60
        if duration <= comfort_minutes:
            return [], None
        km_mark = distance * comfort_minutes / duration
        stop = _stop(
            f"fuel-comfort-{index}",
            km_mark,
            state.fuel_litres - km_mark * litres_per_km,
            reason=(
                f"Long drive ({duration / 60:.1f}h). Good time to top up and stretch "
                f"around km {km_mark:.0f}."
            ),
            priority="recommended",
            fill_type="topup",
        )
        meal = _combo_meal(stop.estimated_time)
        if meal:
            stop.duration = ctx.constraints.combo_meal_minutes
            stop.reason += f" Good time to grab {meal.lower()} too."
            stop.details.combo_meal = True
        return [stop], km_mark

    stops: list[SuggestedStop] = []
    fuel_left = state.fuel_litres - km_until_first * litres_per_km
    km_mark = km_until_first
    last_fill_km: Optional[float] = None
    number = 1
    while km_mark < distance:
        minutes_mark = km_mark / distance * duration
        stops.append(
            _stop(
                f"fuel-enroute-{index}-{number}",
                km_mark,
                fuel_left,
                reason=(
                    f"En-route refuel needed around km {km_mark:.0f} into this {distance:.0f} km leg "
                    f"(~{minutes_mark / 60:.1f}h after departing). Your tank cannot cover the full "
                    "distance without stopping."
                ),
                priority="required",
                fill_type="full",
            )
        )
        last_fill_km = km_mark
        fuel_left = tank - ctx.safe_range_km * litres_per_km
        km_mark += ctx.safe_range_km
        number += 1
    return stops, last_fill_km


def _drive(
    state: SimulationState,
    ctx: _Context,
    segment: Segment,
    start: datetime,
    mid_drive: Sequence[SuggestedStop],
    last_fill_km: Optional[float],
) -> None:
    hours = segment.duration_minutes / 60
    state.fuel_litres -= _fuel_needed(segment, ctx.vehicle)
    state.km_since_fill += segment.distance_km
    state.hours_since_fill += hours
    state.hours_since_break += hours
    state.drive_minutes_today += segment.duration_minutes
    stopped = sum(stop.duration for stop in mid_drive)
    state.clock = start + timedelta(minutes=segment.duration_minutes + stopped)

    if last_fill_km is not None:
        remaining_km = segment.distance_km - last_fill_km
        litres_per_km = _fuel_needed(segment, ctx.vehicle) / segment.distance_km
        state.fuel_litres = ctx.vehicle.tank_size_litres - remaining_km * litres_per_km
        state.km_since_fill = remaining_km
        state.hours_since_fill = remaining_km / segment.distance_km * hours


def _overnight(
    state: SimulationState,
    ctx: _Context,
    segment: Segment,
    index: int,
) -> SuggestedStop:
    max_hours = ctx.trip.max_drive_hours
    driven = state.drive_minutes_today / 60
    return SuggestedStop(
        id=f"overnight-{index}",
        type="overnight",
        reason=(
            f"End of the driving day at {segment.destination.name} ({driven:.1f} hours driven, "
            f"max {max_hours:g} hours/day). Find a hotel and recharge for tomorrow."
        ),
        placement=Boundary(index, "after"),
        estimated_time=state.clock,
        duration=ctx.constraints.overnight_stop_minutes,
        priority="required",
        details=StopDetails(hours_on_road=round(driven, 2)),
        day_number=state.day_number,
    )


def generate_smart_stops(
    segments: Sequence[Segment],
    vehicle: Vehicle,
    trip: TripSettings,
    days: Optional[Sequence[TripDay]] = None,
    constraints: Optional[StopConstraints] = None,
) -> list[SuggestedStop]:
    """Suggest fuel, rest, meal and overnight stops for a route.

    Segment indices in the returned placements refer to the flat driven
    sub-segment list (see ``flatten_driving_segments``). Suggestions that
    land on the same placement are merged.
    """
    flat, day_starts = flatten_driving_segments(segments, days)
    if not flat:
        return []

    constraints = constraints or StopConstraints()
    preset = preset_for(trip.stop_frequency)
    ctx = _Context(
        vehicle=vehicle,
        trip=trip,
        constraints=constraints,
        preset=preset,
        safe_range_km=vehicle.range_km * (1 - preset.fuel_buffer),
    )
    state = SimulationState(fuel_litres=vehicle.tank_size_litres, clock=trip.departure)
    if days:
        state.day_number = next((day.day_number for day in days if day.segments), 1)

    total_km = sum(segment.distance_km for segment in flat)
    round_trip = trip.is_round_trip or flat[0].origin.name == flat[-1].destination.name
    return_start = return_leg_start(flat, trip.round_trip_midpoint) if trip.is_round_trip else None
    max_minutes = trip.max_drive_minutes

    suggestions: list[SuggestedStop] = []
    driven_km = 0.0
    for index, segment in enumerate(flat):
        is_final = index == len(flat) - 1

        if index in day_starts:
            state.day_number = day_starts[index].day_number
        if index == return_start and trip.destination_dwell_minutes > 0:
            state.clock += timedelta(minutes=trip.destination_dwell_minutes)

        if segment.timezone_abbr and segment.timezone_abbr != state.timezone:
            shift = timezone_shift_hours(state.timezone, segment.timezone_abbr)
            state.clock += timedelta(hours=shift)
            state.timezone = segment.timezone_abbr

        driven_km += segment.distance_km
        boundary_time = state.clock
        fuel_stop = _check_boundary_fuel(state, ctx, segment, index, total_km - driven_km)
        if fuel_stop is not None:
            suggestions.append(fuel_stop)
        rest_stop = _check_rest(state, ctx, segment, index, boundary_time)
        if rest_stop is not None:
            suggestions.append(rest_stop)

        start = state.clock
        meals = [] if is_final and round_trip else _check_meals(state, ctx, segment, index, start)
        en_route, last_fill_km = _en_route_fuel(state, ctx, segment, index, start)
        suggestions.extend(meals)
        suggestions.extend(en_route)

        mid_drive = [stop for stop in meals + en_route if stop.is_mid_drive]
        _drive(state, ctx, segment, start, mid_drive, last_fill_km)
        state.clock += timedelta(minutes=sum(stop.duration for stop in meals if not stop.is_mid_drive))

        if days:
            overnight_due = (index + 1) in day_starts
        else:
            limit_reached = not trip.ignore_daily_cap and state.drive_minutes_today >= max_minutes
            overnight_due = not is_final and (limit_reached or segment.stop_type == "overnight")
        if not overnight_due:
            continue

        suggestions.append(_overnight(state, ctx, segment, index))
        next_day = day_starts.get(index + 1)
        state.clock = resume_after_overnight(
            state.clock,
            trip.departure_time,
            next_day.date if next_day else None,
            min_rest=timedelta(hours=settings.min_rest_hours),
        )
        state.drive_minutes_today = 0.0
        state.hours_since_break = 0.0
        state.day_number = next_day.day_number if next_day else state.day_number + 1

    consolidated = consolidate_stops(suggestions)
    logging.info(
        f"Generated {len(suggestions)} stop suggestions over {len(flat)} segments "
        f"({len(consolidated)} after merging)"
    )
    return consolidated
