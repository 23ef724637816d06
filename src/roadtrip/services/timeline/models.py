"""Timeline event models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

from ..stops.models import SuggestedStop

EventType = Literal[
    "departure",
    "drive",
    "fuel",
    "meal",
    "rest",
    "overnight",
    "waypoint",
    "arrival",
    "combo",
    "destination",
]


@dataclass(slots=True)
class TimedEvent:
    id: str
    type: EventType
    arrival_time: datetime
    departure_time: datetime
    duration_minutes: float
    distance_from_origin_km: float
    location_hint: str
    segment_index: Optional[int] = None
    segment_distance_km: Optional[float] = None
    segment_duration_minutes: Optional[float] = None
    stops: List[SuggestedStop] = field(default_factory=list)
    time_saved_minutes: float = 0.0
    combo_label: Optional[str] = None

    @property
    def is_stop(self) -> bool:
        return bool(self.stops)
