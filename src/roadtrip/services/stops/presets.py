"""Stop-frequency presets."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StopPreset:
    fuel_buffer: float
    rest_interval_hours: float
    comfort_refuel_hours: float


STOP_PRESETS: dict[str, StopPreset] = {
    "conservative": StopPreset(fuel_buffer=0.30, rest_interval_hours=1.5, comfort_refuel_hours=2.5),
    "balanced": StopPreset(fuel_buffer=0.25, rest_interval_hours=2.0, comfort_refuel_hours=3.5),
    "aggressive": StopPreset(fuel_buffer=0.20, rest_interval_hours=2.5, comfort_refuel_hours=4.5),
}


def preset_for(stop_frequency: str) -> StopPreset:
    return STOP_PRESETS.get(stop_frequency, STOP_PRESETS["balanced"])
