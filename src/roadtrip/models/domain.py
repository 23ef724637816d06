"""Domain models for route legs, vehicles and trip settings."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime, time
from typing import Literal, Optional

StopFrequency = Literal["conservative", "balanced", "aggressive"]
BudgetMode = Literal["open", "fixed"]
BudgetAllocation = Literal["flexible", "manual"]


@dataclass(slots=True)
class Location:
    """A named point on the route."""

    name: str
    lat: float
    lng: float
    id: str = ""

    @property
    def city(self) -> str:
        """First comma-separated part of the name ("Fargo, ND" -> "Fargo")."""
        return self.name.split(",")[0].strip()


@dataclass(slots=True)
class Segment:
    """An atomic drive leg produced by the route calculation."""

    origin: Location
    destination: Location
    distance_km: float
    duration_minutes: float
    fuel_needed_litres: float = 0.0
    fuel_cost: float = 0.0
    stop_type: Optional[str] = None
    stop_duration: float = 0.0
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    timezone_abbr: Optional[str] = None


@dataclass(slots=True)
class TransitPart:
    index: int
    total: int


@dataclass(slots=True)
class ProcessedSegment(Segment):
    """A segment annotated with the input leg it derives from."""

    original_index: int = 0
    transit_part: Optional[TransitPart] = None

    @classmethod
    def from_segment(cls, segment: Segment, original_index: int, **changes) -> "ProcessedSegment":
        values = {item.name: getattr(segment, item.name) for item in fields(Segment)}
        values.update(changes)
        return cls(original_index=original_index, **values)


@dataclass(slots=True)
class Vehicle:
    tank_size_litres: float
    fuel_economy_l100km: float
    name: str = ""

    @property
    def range_km(self) -> float:
        if self.fuel_economy_l100km <= 0:
            return float("inf")
        return self.tank_size_litres / self.fuel_economy_l100km * 100


@dataclass(slots=True)
class BudgetWeights:
    """Percentage split of a flexible budget across categories."""

    gas: float = 25
    hotel: float = 35
    food: float = 30
    misc: float = 10


@dataclass(slots=True)
class BudgetSettings:
    mode: BudgetMode = "open"
    allocation: BudgetAllocation = "flexible"
    weights: BudgetWeights = field(default_factory=BudgetWeights)
    gas: float = 0.0
    hotel: float = 0.0
    food: float = 0.0
    misc: float = 0.0
    total: float = 0.0


@dataclass(slots=True)
class TripSettings:
    """Pace, budget and calendar settings for a single plan."""

    departure_date: date
    departure_time: time = time(9, 0)
    return_date: Optional[date] = None
    is_round_trip: bool = False
    round_trip_midpoint: Optional[int] = None
    destination_dwell_minutes: float = 0.0
    max_drive_hours: float = 10.0
    num_travelers: int = 2
    num_drivers: int = 1
    stop_frequency: StopFrequency = "balanced"
    gas_price: float = 1.5
    hotel_price_per_night: float = 150.0
    meal_price_per_day: float = 50.0
    target_arrival_hour: float = 21.0
    ignore_daily_cap: bool = False
    budget: BudgetSettings = field(default_factory=BudgetSettings)

    @property
    def departure(self) -> datetime:
        return datetime.combine(self.departure_date, self.departure_time)

    @property
    def max_drive_minutes(self) -> float:
        return self.max_drive_hours * 60
