"""Budget bookkeeping for scheduled trip days."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import BudgetSettings, BudgetWeights, Location, Segment, TripSettings
from .models import BudgetStatus, CostBreakdown, DayBudget, OvernightStay, TripDay

MINUTES_PER_MEAL = 240


def ceil_to_nearest(value: float, increment: float) -> float:
    """Round ``value`` up to the nearest ``increment`` ($65.14 -> $70 with 5). Zero stays zero."""
    if value == 0:
        return 0.0
    return math.ceil(value / increment) * increment


def apply_budget_weights(total: float, weights: BudgetWeights) -> dict[str, float]:
    """Split ``total`` into category amounts; misc absorbs the rounding remainder."""
    gas = round(total * weights.gas / 100)
    hotel = round(total * weights.hotel / 100)
    food = round(total * weights.food / 100)
    return {"gas": gas, "hotel": hotel, "food": food, "misc": total - gas - hotel - food}


@dataclass(slots=True)
class RunningBudget:
    """Remaining per-category money carried from one day to the next."""

    gas: float = 0.0
    hotel: float = 0.0
    food: float = 0.0

    def charge(self, gas: float, hotel: float, food: float) -> None:
        self.gas = round(self.gas - gas, 2)
        self.hotel = round(self.hotel - hotel, 2)
        self.food = round(self.food - food, 2)


def initial_remaining(budget: BudgetSettings) -> RunningBudget:
    if budget.allocation == "flexible" and budget.total > 0:
        amounts = apply_budget_weights(budget.total, budget.weights)
        return RunningBudget(gas=amounts["gas"], hotel=amounts["hotel"], food=amounts["food"])
    return RunningBudget(gas=budget.gas, hotel=budget.hotel, food=budget.food)


def rooms_needed(num_travelers: int) -> int:
    return math.ceil(num_travelers / 2)


def overnight_at(location: Location, trip: TripSettings) -> OvernightStay:
    rooms = rooms_needed(trip.num_travelers)
    return OvernightStay(location=location, cost=rooms * trip.hotel_price_per_night, rooms_needed=rooms)


def estimate_meals_for_day(segments: Sequence[Segment], drive_minutes: float, num_travelers: int) -> int:
    """Meals eaten on a driving day: one per four hours on the road, at least one per meal stop."""
    meal_stops = sum(1 for segment in segments if segment.stop_type in ("meal", "quickMeal"))
    by_duration = math.ceil(drive_minutes / MINUTES_PER_MEAL)
    return max(meal_stops, by_duration) * num_travelers


def driving_day_budget(
    segments: Sequence[Segment],
    drive_minutes: float,
    overnight: Optional[OvernightStay],
    trip: TripSettings,
    running: RunningBudget,
) -> DayBudget:
    """Cost a driving day and charge it against ``running``.

    Fuel uses the per-segment ``fuel_cost`` of the route calculation. Refill
    amounts shown on fuel stop suggestions are informational and never feed
    the budget.
    """
    gas = ceil_to_nearest(sum(segment.fuel_cost for segment in segments), 5)
    hotel = ceil_to_nearest(overnight.cost if overnight else 0.0, 5)
    meals = estimate_meals_for_day(segments, drive_minutes, trip.num_travelers)
    food = ceil_to_nearest(meals * trip.meal_price_per_day / 3, 5)

    running.charge(gas, hotel, food)
    return DayBudget(
        gas_used=gas,
        hotel_cost=hotel,
        food_estimate=food,
        misc_cost=0.0,
        day_total=ceil_to_nearest(gas + hotel + food, 10),
        gas_remaining=running.gas,
        hotel_remaining=running.hotel,
        food_remaining=running.food,
    )


def free_day_budget(trip: TripSettings, running: RunningBudget) -> DayBudget:
    """Hotel and a full day of meals at the destination; no fuel."""
    hotel = ceil_to_nearest(rooms_needed(trip.num_travelers) * trip.hotel_price_per_night, 5)
    food = ceil_to_nearest(trip.meal_price_per_day * trip.num_travelers, 5)

    running.charge(0.0, hotel, food)
    return DayBudget(
        gas_used=0.0,
        hotel_cost=hotel,
        food_estimate=food,
        misc_cost=0.0,
        day_total=ceil_to_nearest(hotel + food, 10),
        gas_remaining=running.gas,
        hotel_remaining=running.hotel,
        food_remaining=running.food,
    )


def planned_total(budget: BudgetSettings) -> float:
    """Money set aside for the trip: the stated total, or the sum of the manual categories."""
    if budget.total > 0:
        return budget.total
    return budget.gas + budget.hotel + budget.food + budget.misc


def budget_status(budget: BudgetSettings, cost_total: float) -> BudgetStatus:
    """``under`` for open budgets or more than 10% to spare, ``over`` past the planned total, else ``at``."""
    planned = planned_total(budget)
    if budget.mode == "open" or planned == 0:
        return "under"
    spare = planned - cost_total
    if spare > planned * 0.1:
        return "under"
    if spare < 0:
        return "over"
    return "at"


def calculate_cost_breakdown(
    days: Sequence[TripDay],
    num_travelers: int,
    budget: Optional[BudgetSettings] = None,
) -> CostBreakdown:
    budget = budget or BudgetSettings()
    fuel = ceil_to_nearest(sum(day.budget.gas_used for day in days), 5)
    accommodation = ceil_to_nearest(sum(day.budget.hotel_cost for day in days), 5)
    meals = ceil_to_nearest(sum(day.budget.food_estimate for day in days), 5)
    misc = ceil_to_nearest(sum(day.budget.misc_cost for day in days), 5)
    total = ceil_to_nearest(fuel + accommodation + meals + misc, 10)
    per_person = ceil_to_nearest(total / num_travelers, 5) if num_travelers > 0 else total
    return CostBreakdown(
        fuel=fuel,
        accommodation=accommodation,
        meals=meals,
        misc=misc,
        total=total,
        per_person=per_person,
        budget_total=planned_total(budget),
        budget_status=budget_status(budget, total),
    )
