"""Stop suggestion models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Union

StopType = Literal["fuel", "rest", "meal", "overnight"]
StopPriority = Literal["required", "recommended", "optional"]
BoundarySide = Literal["before", "after"]
FillType = Literal["full", "topup"]

PRIORITY_RANK: dict[str, int] = {"optional": 0, "recommended": 1, "required": 2}


@dataclass(frozen=True, slots=True)
class Boundary:
    """A stop at the transition before or after segment ``segment_index``."""

    segment_index: int
    side: BoundarySide


@dataclass(frozen=True, slots=True)
class MidDrive:
    """A stop partway through segment ``segment_index``."""

    segment_index: int
    estimated_time: datetime
    minutes_into_drive: Optional[float] = None


Placement = Union[Boundary, MidDrive]


@dataclass(slots=True)
class StopDetails:
    fuel_needed_litres: Optional[float] = None
    fuel_cost: Optional[float] = None
    fill_type: Optional[FillType] = None
    tank_percent: Optional[int] = None
    hours_on_road: Optional[float] = None
    meal: Optional[str] = None
    combo_meal: Optional[bool] = None


@dataclass(slots=True)
class SuggestedStop:
    id: str
    type: StopType
    reason: str
    placement: Placement
    estimated_time: datetime
    duration: float
    priority: StopPriority
    details: StopDetails = field(default_factory=StopDetails)
    day_number: int = 1
    warning: Optional[str] = None
    accepted: Optional[bool] = None
    dismissed: bool = False

    @property
    def after_segment_index(self) -> int:
        """Index of the segment this stop follows; -1 means before the first segment."""
        placement = self.placement
        if isinstance(placement, Boundary) and placement.side == "after":
            return placement.segment_index
        return placement.segment_index - 1

    @property
    def is_mid_drive(self) -> bool:
        return isinstance(self.placement, MidDrive)
