"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Optional, Sequence

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def interpolate_straight(
    lat1: float, lon1: float, lat2: float, lon2: float, fraction: float
) -> tuple[float, float]:
    """Return the point ``fraction`` of the way along the straight line between two coordinates."""

    return (lat1 + fraction * (lat2 - lat1), lon1 + fraction * (lon2 - lon1))


def interpolate_route_position(
    geometry: Sequence[Sequence[float]],
    target_km: float,
) -> Optional[tuple[float, float]]:
    """Walk a (lat, lon) polyline and return the point ``target_km`` from its start.

    Returns ``None`` when the polyline is too short to walk or the target lies
    beyond its end. Callers fall back to straight-line interpolation rather
    than snapping to the last vertex.
    """

    if len(geometry) < 2 or target_km <= 0:
        return None

    accumulated = 0.0
    for index in range(len(geometry) - 1):
        lat1, lon1 = geometry[index][0], geometry[index][1]
        lat2, lon2 = geometry[index + 1][0], geometry[index + 1][1]
        leg_km = haversine_km(lat1, lon1, lat2, lon2)
        if accumulated + leg_km >= target_km:
            progress = (target_km - accumulated) / leg_km if leg_km > 0 else 0.0
            return interpolate_straight(lat1, lon1, lat2, lon2, progress)
        accumulated += leg_km

    return None
