from datetime import date, datetime, time

import pytest

from roadtrip.models.domain import Location, Segment, TripSettings, Vehicle
from roadtrip.services.scheduling.scheduler import split_trip_by_days
from roadtrip.services.stops.consolidate import consolidate_stops, merge_stops
from roadtrip.services.stops.generator import (
    SimulationState,
    StopConstraints,
    _check_boundary_fuel,
    _Context,
    generate_smart_stops,
)
from roadtrip.services.stops.models import Boundary, MidDrive, StopDetails, SuggestedStop
from roadtrip.services.stops.presets import preset_for


def _segment(origin: str, destination: str, km: float, minutes: float, **kwargs) -> Segment:
    return Segment(
        origin=Location(name=origin, lat=45.0, lng=-100.0),
        destination=Location(name=destination, lat=45.0, lng=-95.0),
        distance_km=km,
        duration_minutes=minutes,
        **kwargs,
    )


def _trip(**kwargs) -> TripSettings:
    values = {"departure_date": date(2025, 6, 1), "departure_time": time(9, 0), "max_drive_hours": 10}
    values.update(kwargs)
    return TripSettings(**values)


def _stop(stop_id: str, stop_type: str, placement, priority: str = "recommended", **kwargs) -> SuggestedStop:
    return SuggestedStop(
        id=stop_id,
        type=stop_type,
        reason=f"{stop_type} reason",
        placement=placement,
        estimated_time=datetime(2025, 6, 1, 12, 0),
        duration=15,
        priority=priority,
        **kwargs,
    )


SMALL_TANK = Vehicle(tank_size_litres=55, fuel_economy_l100km=10)
BIG_TANK = Vehicle(tank_size_litres=1000, fuel_economy_l100km=1)


def test_empty_route_has_no_suggestions():
    assert generate_smart_stops([], SMALL_TANK, _trip()) == []


def test_required_fuel_before_segment_that_would_run_dry():
    segments = [_segment("A", "B", 200, 120), _segment("B", "C", 200, 120), _segment("C", "D", 200, 120)]
    stops = generate_smart_stops(segments, SMALL_TANK, _trip())

    required_fuel = [stop for stop in stops if stop.type == "fuel" and stop.priority == "required"]
    assert required_fuel
    assert any(stop.placement == Boundary(2, "before") for stop in required_fuel)
    assert all(stop.placement.segment_index <= 2 for stop in required_fuel)


def test_rest_after_two_hours_and_lunch_mid_drive():
    segments = [_segment("A", "B", 200, 120), _segment("B", "C", 200, 120), _segment("C", "D", 200, 120)]
    stops = {stop.id: stop for stop in generate_smart_stops(segments, SMALL_TANK, _trip())}

    rest = stops["rest-1"]
    assert rest.placement == Boundary(1, "before")
    assert rest.estimated_time == datetime(2025, 6, 1, 11, 0)

    lunch = stops["meal-lunch-1"]
    assert lunch.placement == MidDrive(1, datetime(2025, 6, 1, 12, 0), 45.0)
    assert lunch.details.meal == "Lunch"
    assert lunch.after_segment_index == 0


def test_fuel_stop_refills_the_tank():
    segment = _segment("B", "C", 200, 120)
    preset = preset_for("balanced")
    ctx = _Context(
        vehicle=SMALL_TANK,
        trip=_trip(),
        constraints=StopConstraints(),
        preset=preset,
        safe_range_km=SMALL_TANK.range_km * (1 - preset.fuel_buffer),
    )
    state = SimulationState(fuel_litres=15, clock=datetime(2025, 6, 1, 13, 0), km_since_fill=400)

    stop = _check_boundary_fuel(state, ctx, segment, 2, 200)

    assert stop is not None
    assert stop.priority == "required"
    assert stop.details.fuel_needed_litres == 40
    assert state.fuel_litres == SMALL_TANK.tank_size_litres
    assert state.km_since_fill == 0
    assert state.clock == datetime(2025, 6, 1, 13, 15)


def test_long_leg_gets_en_route_fuel_stops():
    stops = generate_smart_stops([_segment("A", "B", 1000, 600)], SMALL_TANK, _trip())

    en_route = [stop for stop in stops if stop.id.startswith("fuel-enroute-0-")]
    assert [stop.id for stop in en_route] == ["fuel-enroute-0-1", "fuel-enroute-0-2"]
    assert all(isinstance(stop.placement, MidDrive) for stop in en_route)
    assert en_route[0].placement.minutes_into_drive == pytest.approx(412.5 / 1000 * 600)


def test_comfort_top_up_on_long_leg_within_range():
    stops = generate_smart_stops([_segment("A", "B", 500, 300)], BIG_TANK, _trip())

    (comfort,) = [stop for stop in stops if stop.id == "fuel-comfort-0"]
    assert comfort.details.fill_type == "topup"
    assert comfort.placement.minutes_into_drive == pytest.approx(210)


def test_overnight_when_daily_limit_reached_without_day_plan():
    segments = [_segment("A", "B", 400, 360), _segment("B", "C", 400, 360), _segment("C", "D", 400, 360)]
    stops = generate_smart_stops(segments, BIG_TANK, _trip())

    overnights = [stop for stop in stops if stop.type == "overnight"]
    assert [stop.placement for stop in overnights] == [Boundary(1, "after")]
    assert overnights[0].priority == "required"
    assert overnights[0].duration == 480


def test_overnights_follow_the_day_plan():
    segments = [_segment("Fargo, ND", "Bismarck, ND", 1500, 1100)]
    trip = _trip()
    days = split_trip_by_days(segments, trip)

    stops = generate_smart_stops(segments, BIG_TANK, trip, days)

    overnights = [stop for stop in stops if stop.type == "overnight"]
    assert [stop.id for stop in overnights] == ["overnight-0"]
    assert all(stop.day_number == 2 for stop in stops if stop.placement.segment_index == 1)


def test_no_meals_on_the_final_leg_home():
    segments = [_segment("Home", "Lake", 300, 240), _segment("Lake", "Home", 300, 240)]
    stops = generate_smart_stops(segments, BIG_TANK, _trip(departure_time=time(10, 0)))

    assert not [stop for stop in stops if stop.type == "meal" and stop.placement.segment_index == 1]


def test_merge_prefers_fuel_and_highest_priority():
    fuel = _stop("fuel-2", "fuel", Boundary(2, "before"), priority="recommended", details=StopDetails(fuel_cost=40))
    rest = _stop("rest-2", "rest", Boundary(2, "before"), priority="required", details=StopDetails(hours_on_road=2))

    merged = merge_stops(rest, fuel)

    assert merged.id == "merged-rest-2-fuel-2"
    assert merged.type == "fuel"
    assert merged.priority == "required"
    assert merged.reason == "fuel reason\nAlso includes rest stop: rest reason"
    assert merged.details.fuel_cost == 40
    assert merged.details.hours_on_road == 2


def test_consolidate_groups_equal_placements_only():
    stops = [
        _stop("fuel-1", "fuel", Boundary(1, "before")),
        _stop("meal-lunch-1", "meal", MidDrive(1, datetime(2025, 6, 1, 12, 0), 30.0)),
        _stop("rest-1", "rest", Boundary(1, "before")),
        _stop("overnight-1", "overnight", Boundary(1, "after")),
    ]

    result = consolidate_stops(stops)

    assert [stop.id for stop in result] == ["merged-fuel-1-rest-1", "meal-lunch-1", "overnight-1"]


def _context(vehicle: Vehicle, **trip) -> _Context:
    preset = preset_for("balanced")
    return _Context(
        vehicle=vehicle,
        trip=_trip(**trip),
        constraints=StopConstraints(),
        preset=preset,
        safe_range_km=vehicle.range_km * (1 - preset.fuel_buffer),
    )


def test_no_boundary_fuel_before_safe_range_is_driven():
    segments = [_segment("A", "B", 300, 180), _segment("B", "C", 300, 180), _segment("C", "D", 300, 180)]
    vehicle = Vehicle(tank_size_litres=60, fuel_economy_l100km=8)

    stops = generate_smart_stops(segments, vehicle, _trip())

    fuel = [stop for stop in stops if stop.type == "fuel"]
    assert [stop.id for stop in fuel] == ["fuel-enroute-1-1"]
    assert fuel[0].placement.minutes_into_drive == pytest.approx(157.5)
    assert fuel[0].priority == "required"


def test_low_tank_triggers_a_top_up():
    segments = [_segment("A", "B", 400, 200), _segment("B", "C", 50, 30), _segment("C", "D", 200, 120)]
    vehicle = Vehicle(tank_size_litres=60, fuel_economy_l100km=10)

    stops = {stop.id: stop for stop in generate_smart_stops(segments, vehicle, _trip(departure_time=time(6, 0)))}

    top_up = stops["fuel-1"]
    assert top_up.priority == "recommended"
    assert top_up.details.fill_type == "topup"
    assert top_up.details.tank_percent == 33
    assert "getting low" in top_up.reason
    assert top_up.duration == 15


def test_hours_since_fill_trigger_a_comfort_refuel():
    segments = [_segment(name, name + "'", 150, 120) for name in "ABCD"]
    vehicle = Vehicle(tank_size_litres=80, fuel_economy_l100km=8)

    stops = generate_smart_stops(segments, vehicle, _trip(departure_time=time(6, 0)))

    (fuel,) = [stop for stop in stops if stop.type == "fuel"]
    assert fuel.placement == Boundary(2, "before")
    assert fuel.details.fill_type == "topup"
    assert "4.0 hours since last fill" in fuel.reason


def test_first_boundary_never_gets_a_comfort_or_low_tank_stop():
    ctx = _context(SMALL_TANK)
    state = SimulationState(fuel_litres=15, clock=datetime(2025, 6, 1, 9, 0), hours_since_fill=5)

    assert _check_boundary_fuel(state, ctx, _segment("A", "B", 50, 30), 0, 500) is None


def test_fuel_stop_in_lunch_window_becomes_a_meal_stop():
    ctx = _context(SMALL_TANK)
    state = SimulationState(fuel_litres=20, clock=datetime(2025, 6, 1, 12, 10), km_since_fill=420)

    stop = _check_boundary_fuel(state, ctx, _segment("B", "C", 100, 60), 2, 300)

    assert stop.priority == "recommended"
    assert stop.details.fill_type == "full"
    assert stop.details.combo_meal is True
    assert stop.duration == 45
    assert "grab lunch" in stop.reason
    assert state.clock == datetime(2025, 6, 1, 12, 55)


def test_non_critical_fuel_is_suppressed_near_the_destination():
    ctx = _context(SMALL_TANK)
    state = SimulationState(fuel_litres=20, clock=datetime(2025, 6, 1, 9, 0), km_since_fill=420)

    assert _check_boundary_fuel(state, ctx, _segment("B", "C", 40, 30), 2, 10) is None
