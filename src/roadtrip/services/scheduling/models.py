"""Day scheduling models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Literal, Optional

from ...models.domain import Location, ProcessedSegment

DayType = Literal["planned", "free"]
BudgetStatus = Literal["under", "at", "over"]


@dataclass(slots=True)
class DayBudget:
    gas_used: float = 0.0
    hotel_cost: float = 0.0
    food_estimate: float = 0.0
    misc_cost: float = 0.0
    day_total: float = 0.0
    gas_remaining: float = 0.0
    hotel_remaining: float = 0.0
    food_remaining: float = 0.0


@dataclass(slots=True)
class DayTotals:
    departure_time: datetime
    arrival_time: datetime
    distance_km: float = 0.0
    drive_minutes: float = 0.0
    stop_minutes: float = 0.0


@dataclass(slots=True)
class OvernightStay:
    location: Location
    cost: float
    rooms_needed: int


@dataclass(slots=True)
class TimezoneChange:
    after_segment_index: int
    from_timezone: str
    to_timezone: str
    offset_hours: float
    message: str


@dataclass(slots=True)
class TripDay:
    day_number: int
    date: date
    date_label: str
    totals: DayTotals
    route: str = ""
    title: Optional[str] = None
    segments: List[ProcessedSegment] = field(default_factory=list)
    segment_indices: List[int] = field(default_factory=list)
    budget: DayBudget = field(default_factory=DayBudget)
    overnight: Optional[OvernightStay] = None
    timezone_changes: List[TimezoneChange] = field(default_factory=list)
    day_type: DayType = "planned"

    @property
    def is_driving_day(self) -> bool:
        return bool(self.segments)


@dataclass(slots=True)
class CostBreakdown:
    fuel: float
    accommodation: float
    meals: float
    misc: float
    total: float
    per_person: float
    budget_total: float = 0.0
    budget_status: BudgetStatus = "under"
