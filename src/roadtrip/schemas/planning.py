"""Trip planning request/response schemas."""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime, time
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field


class LocationModel(BaseModel):
    name: str
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    id: str = ""


class SegmentModel(BaseModel):
    origin: LocationModel
    destination: LocationModel
    distance_km: float = Field(..., ge=0)
    duration_minutes: float = Field(..., ge=0)
    fuel_needed_litres: float = Field(0.0, ge=0)
    fuel_cost: float = Field(0.0, ge=0)
    stop_type: Optional[str] = Field(default=None, description="Set to 'overnight' to force the day to end here.")
    stop_duration: float = Field(0.0, ge=0)
    timezone_abbr: Optional[str] = Field(default=None, description="Timezone at the segment start, e.g. 'CST'.")


class VehicleModel(BaseModel):
    tank_size_litres: float = Field(..., gt=0)
    fuel_economy_l100km: float = Field(..., gt=0)
    name: str = ""


class BudgetWeightsModel(BaseModel):
    gas: float = Field(25, ge=0, le=100)
    hotel: float = Field(35, ge=0, le=100)
    food: float = Field(30, ge=0, le=100)
    misc: float = Field(10, ge=0, le=100)


class BudgetModel(BaseModel):
    mode: Literal["open", "fixed"] = "open"
    allocation: Literal["flexible", "manual"] = "flexible"
    weights: BudgetWeightsModel = Field(default_factory=BudgetWeightsModel)
    gas: float = Field(0.0, ge=0)
    hotel: float = Field(0.0, ge=0)
    food: float = Field(0.0, ge=0)
    misc: float = Field(0.0, ge=0)
    total: float = Field(0.0, ge=0)


class TripSettingsModel(BaseModel):
    departure_date: date
    departure_time: time = time(9, 0)
    return_date: Optional[date] = None
    is_round_trip: bool = False
    round_trip_midpoint: Optional[int] = Field(
        default=None,
        ge=0,
        description="Index of the first return-leg segment. Defaults to half the segment count for round trips.",
    )
    destination_dwell_minutes: float = Field(0.0, ge=0)
    max_drive_hours: float = Field(10.0, gt=0, le=24)
    num_travelers: int = Field(2, ge=1)
    num_drivers: int = Field(1, ge=1)
    stop_frequency: Literal["conservative", "balanced", "aggressive"] = "balanced"
    gas_price: float = Field(1.5, ge=0)
    hotel_price_per_night: float = Field(150.0, ge=0)
    meal_price_per_day: float = Field(50.0, ge=0)
    target_arrival_hour: float = Field(21.0, ge=0, le=24)
    ignore_daily_cap: bool = False
    budget: BudgetModel = Field(default_factory=BudgetModel)


class StopOverrideModel(BaseModel):
    accepted: Optional[bool] = None
    dismissed: Optional[bool] = None
    duration: Optional[float] = Field(default=None, ge=0)


class TripPlanRequest(BaseModel):
    segments: List[SegmentModel] = Field(..., min_length=1)
    vehicle: VehicleModel
    trip: TripSettingsModel
    overrides: Dict[str, StopOverrideModel] = Field(
        default_factory=dict,
        description="User accept/dismiss/duration decisions keyed by suggested stop id.",
    )
    route_geometry: Optional[List[Tuple[float, float]]] = Field(
        default=None,
        description="Full route polyline as (lat, lng) pairs, used to place split points on the road.",
    )
    combine_stops: bool = Field(default=True, description="Merge nearby fuel/meal/rest stops into combos.")


class TransitPartModel(BaseModel):
    index: int
    total: int


class PlannedSegmentModel(BaseModel):
    origin: str
    destination: str
    distance_km: float
    duration_minutes: float
    fuel_cost: float
    original_index: int
    part: Optional[TransitPartModel] = None
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    timezone_abbr: Optional[str] = None


class DayTotalsModel(BaseModel):
    departure_time: datetime
    arrival_time: datetime
    distance_km: float
    drive_minutes: float
    stop_minutes: float


class DayBudgetModel(BaseModel):
    gas_used: float
    hotel_cost: float
    food_estimate: float
    misc_cost: float
    day_total: float
    gas_remaining: float
    hotel_remaining: float
    food_remaining: float


class OvernightModel(BaseModel):
    location: str
    cost: float
    rooms_needed: int


class TimezoneChangeModel(BaseModel):
    after_segment_index: int
    from_timezone: str
    to_timezone: str
    offset_hours: float
    message: str


class TripDayModel(BaseModel):
    day_number: int
    date: dt.date
    date_label: str
    day_type: Literal["planned", "free"]
    route: str
    title: Optional[str] = None
    totals: DayTotalsModel
    segments: List[PlannedSegmentModel]
    segment_indices: List[int]
    budget: DayBudgetModel
    overnight: Optional[OvernightModel] = None
    timezone_changes: List[TimezoneChangeModel]


class PlacementModel(BaseModel):
    kind: Literal["boundary", "mid_drive"]
    segment_index: int
    side: Optional[Literal["before", "after"]] = None
    minutes_into_drive: Optional[float] = None


class StopDetailsModel(BaseModel):
    fuel_needed_litres: Optional[float] = None
    fuel_cost: Optional[float] = None
    fill_type: Optional[str] = None
    tank_percent: Optional[int] = None
    hours_on_road: Optional[float] = None
    meal: Optional[str] = None
    combo_meal: Optional[bool] = None


class SuggestedStopModel(BaseModel):
    id: str
    type: str
    reason: str
    placement: PlacementModel
    after_segment_index: int
    estimated_time: datetime
    duration: float
    priority: str
    details: StopDetailsModel
    day_number: int
    warning: Optional[str] = None
    accepted: Optional[bool] = None
    dismissed: bool = False


class TimedEventModel(BaseModel):
    id: str
    type: str
    arrival_time: datetime
    departure_time: datetime
    duration_minutes: float
    distance_from_origin_km: float
    location_hint: str
    segment_index: Optional[int] = None
    stop_ids: List[str]
    time_saved_minutes: float = 0.0
    combo_label: Optional[str] = None


class DriverAssignmentModel(BaseModel):
    segment_index: int
    driver: int


class DriverStatsModel(BaseModel):
    driver: int
    total_minutes: float
    total_km: float
    segment_count: int
    drive_time: str


class DriverRotationModel(BaseModel):
    assignments: List[DriverAssignmentModel]
    stats: List[DriverStatsModel]
    rotation_points: List[int]


class CostBreakdownModel(BaseModel):
    fuel: float
    accommodation: float
    meals: float
    misc: float
    total: float
    per_person: float
    budget_total: float = 0.0
    budget_status: str = "under"


class TripPlanResponse(BaseModel):
    metadata: dict
    days: List[TripDayModel]
    suggestions: List[SuggestedStopModel]
    timeline: List[TimedEventModel]
    drivers: DriverRotationModel
    costs: CostBreakdownModel
