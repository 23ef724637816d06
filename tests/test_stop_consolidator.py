from datetime import datetime, timedelta

from roadtrip.services.stops.models import Boundary, StopDetails, SuggestedStop
from roadtrip.services.timeline.consolidator import apply_combo_optimization, combo_label
from roadtrip.services.timeline.models import TimedEvent


def _at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    return datetime(2025, 6, day, hour, minute)


def _event(event_id: str, event_type: str, start: datetime, minutes: float, km: float = 0.0, **kwargs) -> TimedEvent:
    stops = []
    if event_type in ("fuel", "meal", "rest", "overnight"):
        stops = [
            SuggestedStop(
                id=event_id,
                type=event_type,
                reason=kwargs.pop("reason", f"{event_type} stop"),
                placement=Boundary(0, "after"),
                estimated_time=start,
                duration=minutes,
                priority="recommended",
                details=kwargs.pop("details", StopDetails()),
            )
        ]
    return TimedEvent(
        id=event_id,
        type=event_type,
        arrival_time=start,
        departure_time=start + timedelta(minutes=minutes),
        duration_minutes=minutes,
        distance_from_origin_km=km,
        location_hint=event_id,
        stops=stops,
        **kwargs,
    )


def _lunch(start: datetime, **kwargs) -> TimedEvent:
    return _event("meal-lunch-0", "meal", start, 45, details=StopDetails(meal="Lunch"), **kwargs)


def _stop_ids(events):
    return sorted(stop.id for event in events for stop in event.stops)


def test_fuel_absorbs_nearby_lunch():
    events = [
        _event("departure", "departure", _at(12), 0),
        _event("drive-0", "drive", _at(12), 60, 100),
        _event("fuel-1", "fuel", _at(13), 15, 100),
        _event("drive-1", "drive", _at(13, 15), 15, 125),
        _lunch(_at(13, 30), km=125),
        _event("drive-1-1", "drive", _at(14, 15), 60, 225),
        _event("arrival", "arrival", _at(15, 15), 0, 225),
    ]

    result = apply_combo_optimization(events)

    assert [event.type for event in result] == ["departure", "drive", "combo", "drive", "drive", "arrival"]
    combo = result[2]
    assert combo.id == "combo-fuel-1-meal-lunch-0"
    assert combo.combo_label == "Fuel + Lunch"
    assert combo.arrival_time == _at(13)
    assert combo.departure_time == _at(13, 45)
    assert combo.time_saved_minutes == 15
    assert [stop.id for stop in combo.stops] == ["fuel-1", "meal-lunch-0"]
    assert result[3].arrival_time == _at(13, 45)
    assert result[4].arrival_time == _at(14, 0)
    assert result[4].departure_time == _at(15, 0)
    assert result[5].arrival_time == events[-1].arrival_time - timedelta(minutes=15)


def test_meal_absorbs_later_fuel_and_keeps_its_duration():
    events = [
        _event("departure", "departure", _at(12), 0),
        _lunch(_at(12)),
        _event("drive-0", "drive", _at(12, 45), 120, 200),
        _event("fuel-0", "fuel", _at(14, 45), 15, 200),
        _event("drive-0-1", "drive", _at(15), 60, 300),
        _event("arrival", "arrival", _at(16), 0, 300),
    ]

    result = apply_combo_optimization(events)

    assert [event.type for event in result] == ["departure", "combo", "drive", "drive", "arrival"]
    combo = result[1]
    assert combo.duration_minutes == 45
    assert combo.time_saved_minutes == 15
    assert combo.combo_label == "Fuel + Lunch"
    assert result[2].arrival_time == _at(12, 45)
    assert result[3].arrival_time == _at(14, 45)
    assert result[-1].arrival_time == _at(15, 45)


def test_fuel_and_rest_become_a_break_combo():
    events = [
        _event("fuel-1", "fuel", _at(13), 15),
        _event("drive-1", "drive", _at(13, 15), 45, 80),
        _event("rest-2", "rest", _at(14), 15, 80),
        _event("drive-2", "drive", _at(14, 15), 60, 180),
    ]

    result = apply_combo_optimization(events)

    combo, between, after = result
    assert combo.combo_label == "Fuel + Break"
    assert combo.duration_minutes == 20
    assert combo.time_saved_minutes == 10
    assert between.arrival_time == _at(13, 20)
    assert after.arrival_time == _at(14, 5)


def test_no_merge_outside_window_or_across_overnight():
    far_apart = [
        _event("fuel-0", "fuel", _at(9), 15),
        _event("drive-0", "drive", _at(9, 15), 120, 200),
        _event("rest-1", "rest", _at(11, 15), 15, 200),
    ]
    across_night = [
        _event("fuel-0", "fuel", _at(17), 15),
        _event("drive-0", "drive", _at(17, 15), 45, 80),
        _event("overnight-0", "overnight", _at(18), 15 * 60, 80),
        _event("drive-1", "drive", _at(9, day=2), 30, 120),
        _lunch(_at(9, 30, day=2), km=120),
    ]

    assert [event.type for event in apply_combo_optimization(far_apart)] == ["fuel", "drive", "rest"]
    assert [event.type for event in apply_combo_optimization(across_night)] == [
        "fuel",
        "drive",
        "overnight",
        "drive",
        "meal",
    ]


def test_time_saved_stops_at_next_overnight():
    events = [
        _event("fuel-1", "fuel", _at(13), 15),
        _event("drive-1", "drive", _at(13, 15), 15, 20),
        _lunch(_at(13, 30), km=20),
        _event("drive-2", "drive", _at(14, 15), 225, 300),
        _event("overnight-2", "overnight", _at(18), 15 * 60, 300),
        _event("drive-3", "drive", _at(9, day=2), 60, 400),
    ]

    result = apply_combo_optimization(events)

    overnight = next(event for event in result if event.type == "overnight")
    assert overnight.arrival_time == _at(17, 45)
    assert overnight.departure_time == _at(9, day=2)
    assert overnight.duration_minutes == 15 * 60 + 15
    assert result[-1].arrival_time == _at(9, day=2)


def test_every_stop_survives_exactly_once_and_input_is_untouched():
    events = [
        _event("fuel-1", "fuel", _at(11), 15),
        _event("drive-1", "drive", _at(11, 15), 45, 60),
        _lunch(_at(12), km=60),
        _event("drive-2", "drive", _at(12, 45), 60, 160),
        _event("fuel-2", "fuel", _at(13, 45), 15, 160),
        _event("drive-3", "drive", _at(14), 60, 260),
        _event("rest-3", "rest", _at(15), 15, 260),
        _event("arrival", "arrival", _at(15, 15), 0, 260),
    ]

    result = apply_combo_optimization(events)

    assert _stop_ids(result) == _stop_ids(events)
    assert all(event.time_saved_minutes >= 0 for event in result)
    assert [event.type for event in events].count("combo") == 0
    assert events[4].arrival_time == _at(13, 45)
    for previous, current in zip(result, result[1:]):
        assert current.arrival_time >= previous.departure_time


def test_combo_label_by_time_of_day():
    assert combo_label(_at(8)) == "Fuel + Breakfast"
    assert combo_label(_at(12)) == "Fuel + Lunch"
    assert combo_label(_at(18)) == "Fuel + Dinner"


def test_combo_label_prefers_named_meal_near_cutoff():
    lunch = _lunch(_at(10, 15))
    dinner = _event("meal-x", "meal", _at(16, 45), 45, reason="Dinner break around 4:45 PM.")

    assert combo_label(_at(10, 15), lunch) == "Fuel + Lunch"
    assert combo_label(_at(10, 15)) == "Fuel + Breakfast"
    assert combo_label(_at(16, 45), dinner) == "Fuel + Dinner"
    assert combo_label(_at(13), dinner) == "Fuel + Lunch"


def test_time_saved_stops_at_a_fixed_day_start():
    events = [
        _event("fuel-1", "fuel", _at(13), 15),
        _event("drive-1", "drive", _at(13, 15), 15, 20),
        _lunch(_at(13, 30), km=20),
        _event("drive-2", "drive", _at(14, 15), 120, 220),
        _event("drive-3", "drive", _at(9, day=2), 60, 320),
        _event("arrival", "arrival", _at(10, day=2), 0, 320),
    ]

    result = apply_combo_optimization(events)

    assert [event.id for event in result][-2:] == ["drive-3", "arrival"]
    assert result[2].arrival_time == _at(14, 0)
    assert result[-2].arrival_time == _at(9, day=2)
    assert result[-1].arrival_time == _at(10, day=2)
