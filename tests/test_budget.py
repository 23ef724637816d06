from datetime import date, datetime

import pytest

from roadtrip.models.domain import BudgetSettings, BudgetWeights, Location, Segment, TripSettings
from roadtrip.services.scheduling.budget import (
    RunningBudget,
    apply_budget_weights,
    budget_status,
    calculate_cost_breakdown,
    ceil_to_nearest,
    driving_day_budget,
    estimate_meals_for_day,
    free_day_budget,
    initial_remaining,
    overnight_at,
    planned_total,
    rooms_needed,
)
from roadtrip.services.scheduling.models import DayBudget, DayTotals, TripDay


def _segment(minutes: float, fuel_cost: float = 0.0, **kwargs) -> Segment:
    return Segment(
        origin=Location(name="A", lat=0.0, lng=0.0),
        destination=Location(name="B", lat=0.0, lng=1.0),
        distance_km=minutes,
        duration_minutes=minutes,
        fuel_cost=fuel_cost,
        **kwargs,
    )


def _day(number: int, budget: DayBudget) -> TripDay:
    moment = datetime(2025, 6, number, 9, 0)
    return TripDay(
        day_number=number,
        date=moment.date(),
        date_label="",
        totals=DayTotals(departure_time=moment, arrival_time=moment),
        budget=budget,
    )


@pytest.mark.parametrize(
    "value,increment,expected",
    [(65.14, 5, 70), (70, 5, 70), (0, 5, 0), (281, 10, 290), (0.01, 10, 10)],
)
def test_ceil_to_nearest(value, increment, expected):
    assert ceil_to_nearest(value, increment) == expected


def test_apply_budget_weights_gives_remainder_to_misc():
    assert apply_budget_weights(1000, BudgetWeights()) == {"gas": 250, "hotel": 350, "food": 300, "misc": 100}
    split = apply_budget_weights(999, BudgetWeights(gas=33, hotel=33, food=33, misc=1))
    assert split["gas"] + split["hotel"] + split["food"] + split["misc"] == 999


def test_initial_remaining_by_allocation():
    flexible = initial_remaining(BudgetSettings(allocation="flexible", total=1000))
    manual = initial_remaining(BudgetSettings(allocation="manual", gas=400, hotel=600, food=200, total=1000))

    assert (flexible.gas, flexible.hotel, flexible.food) == (250, 350, 300)
    assert (manual.gas, manual.hotel, manual.food) == (400, 600, 200)


def test_rooms_and_overnight_cost():
    trip = TripSettings(departure_date=date(2025, 6, 1), num_travelers=5, hotel_price_per_night=100)

    assert rooms_needed(1) == 1
    assert rooms_needed(2) == 1
    assert rooms_needed(5) == 3
    stay = overnight_at(Location(name="Moab, UT", lat=38.5, lng=-109.5), trip)
    assert stay.rooms_needed == 3
    assert stay.cost == 300


def test_meal_estimate_uses_drive_time_and_meal_stops():
    assert estimate_meals_for_day([], 500, 2) == 6
    assert estimate_meals_for_day([_segment(60, stop_type="meal")] * 3, 60, 1) == 3


def test_driving_day_budget_charges_running_totals():
    trip = TripSettings(
        departure_date=date(2025, 6, 1),
        num_travelers=2,
        hotel_price_per_night=150,
        meal_price_per_day=50,
        budget=BudgetSettings(total=1000),
    )
    running = initial_remaining(trip.budget)
    segments = [_segment(300, fuel_cost=40.1), _segment(180, fuel_cost=22.2)]
    stay = overnight_at(segments[-1].destination, trip)

    budget = driving_day_budget(segments, 480, stay, trip, running)

    assert budget.gas_used == 65
    assert budget.hotel_cost == 150
    assert budget.food_estimate == 70
    assert budget.day_total == 290
    assert (budget.gas_remaining, budget.hotel_remaining, budget.food_remaining) == (185, 200, 230)
    assert (running.gas, running.hotel, running.food) == (185, 200, 230)


def test_free_day_budget_has_no_fuel():
    trip = TripSettings(departure_date=date(2025, 6, 1), num_travelers=3, hotel_price_per_night=99, meal_price_per_day=41)
    running = RunningBudget(gas=100, hotel=500, food=300)

    budget = free_day_budget(trip, running)

    assert budget.gas_used == 0
    assert budget.hotel_cost == 200
    assert budget.food_estimate == 125
    assert budget.day_total == 330
    assert running.gas == 100
    assert running.hotel == 300


def test_cost_breakdown_per_person():
    days = [
        _day(1, DayBudget(gas_used=65, hotel_cost=150, food_estimate=70)),
        _day(2, DayBudget(gas_used=40, hotel_cost=0, food_estimate=35)),
    ]
    breakdown = calculate_cost_breakdown(days, 3)

    assert breakdown.fuel == 105
    assert breakdown.accommodation == 150
    assert breakdown.meals == 105
    assert breakdown.total == 360
    assert breakdown.per_person == 120


def test_cost_breakdown_without_travelers_skips_per_person_math():
    breakdown = calculate_cost_breakdown([_day(1, DayBudget(gas_used=20))], 0)

    assert breakdown.per_person == breakdown.total == 20


def test_planned_total_counts_manual_misc():
    assert planned_total(BudgetSettings(total=1200)) == 1200
    assert planned_total(BudgetSettings(allocation="manual", gas=300, hotel=500, food=250, misc=150)) == 1200


@pytest.mark.parametrize(
    "mode,cost_total,expected",
    [("open", 5000, "under"), ("fixed", 900, "under"), ("fixed", 1150, "at"), ("fixed", 1210, "over")],
)
def test_budget_status(mode, cost_total, expected):
    budget = BudgetSettings(mode=mode, allocation="manual", gas=300, hotel=500, food=250, misc=150)

    assert budget_status(budget, cost_total) == expected


def test_cost_breakdown_reports_status_against_fixed_budget():
    days = [_day(1, DayBudget(gas_used=65, hotel_cost=150, food_estimate=70))]

    breakdown = calculate_cost_breakdown(days, 2, BudgetSettings(mode="fixed", total=250))

    assert breakdown.total == 290
    assert breakdown.budget_total == 250
    assert breakdown.budget_status == "over"
    assert calculate_cost_breakdown(days, 2).budget_status == "under"
