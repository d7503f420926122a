"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..config import settings
from ..models.domain import Address

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Address, b: Address) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def estimate_travel_minutes(
    a: Address,
    b: Address,
    *,
    speed_kmh: float | None = None,
    min_minutes: int | None = None,
) -> int:
    """Estimate driving minutes between two addresses at a constant straight-line speed.

    The result is rounded half-up and never drops below the configured floor,
    so two stops at the same site still cost a few minutes.
    """

    speed = speed_kmh if speed_kmh is not None else settings.average_speed_kmh
    floor = min_minutes if min_minutes is not None else settings.min_travel_minutes
    minutes = distance_km(a, b) / speed * 60.0
    return max(floor, int(math.floor(minutes + 0.5)))


def has_valid_coordinates(address: Address) -> bool:
    """Return True if the address has finite, in-range latitude and longitude."""

    lat, lon = address.latitude, address.longitude
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
