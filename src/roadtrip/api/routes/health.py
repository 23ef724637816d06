"""Health endpoints."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, status

from ...models.domain import Location, Segment, TripSettings, Vehicle
from ...services.scheduling.scheduler import split_trip_by_days
from ...services.stops.generator import generate_smart_stops
from ...services.timeline import apply_combo_optimization, build_timed_timeline

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _sample_trip() -> tuple[list[Segment], Vehicle, TripSettings]:
    start = Location(name="Sample Start", lat=45.0, lng=-100.0)
    end = Location(name="Sample End", lat=45.0, lng=-90.0)
    segments = [Segment(origin=start, destination=end, distance_km=790.0, duration_minutes=780.0, fuel_cost=95.0)]
    return segments, Vehicle(tank_size_litres=60, fuel_economy_l100km=9), TripSettings(departure_date=date(2025, 1, 1))


@router.get("/health/engine", status_code=status.HTTP_200_OK)
def health_engine() -> dict:
    """Run the planning pipeline on a fixed two-day trip."""
    try:
        segments, vehicle, trip = _sample_trip()
        days = split_trip_by_days(segments, trip)
        suggestions = generate_smart_stops(segments, vehicle, trip, days)
        timeline = apply_combo_optimization(build_timed_timeline(segments, suggestions, trip, days))
        return {
            "service": "engine",
            "healthy": bool(timeline) and timeline[0].type == "departure",
            "days": len(days),
            "events": len(timeline),
        }
    except Exception as e:
        logging.exception("Engine health check failed")
        return {"service": "engine", "healthy": False, "error": str(e)}
