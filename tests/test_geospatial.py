import math

import pytest

from inbound_planner.models.domain import Address
from inbound_planner.services.geospatial import (
    EARTH_RADIUS_KM,
    estimate_travel_minutes,
    has_valid_coordinates,
    haversine_km,
)

KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180


def _at_minutes(minutes: float, label: str = "farm") -> Address:
    # 40 km/h -> 2/3 km per minute along the equator
    return Address(longitude=minutes * (2 / 3) / KM_PER_DEGREE, latitude=0.0, label=label)


def test_haversine_zero_for_same_point():
    assert haversine_km(31.5, 34.8, 31.5, 34.8) == 0.0


def test_haversine_one_degree_on_equator():
    assert haversine_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(KM_PER_DEGREE, rel=1e-9)


def test_same_address_costs_minimum_minutes():
    point = Address(longitude=35.0, latitude=32.0, label="x")
    assert estimate_travel_minutes(point, point) == 5


@pytest.mark.parametrize("minutes", [10, 37, 95, 180])
def test_minutes_match_distance_at_forty_kmh(minutes: int):
    base = Address(longitude=0.0, latitude=0.0, label="base")
    assert estimate_travel_minutes(base, _at_minutes(minutes)) == minutes


def test_short_hops_are_floored():
    base = Address(longitude=0.0, latitude=0.0, label="base")
    assert estimate_travel_minutes(base, _at_minutes(2)) == 5


def test_rounds_to_nearest_minute():
    base = Address(longitude=0.0, latitude=0.0, label="base")
    assert estimate_travel_minutes(base, _at_minutes(12.6)) == 13
    assert estimate_travel_minutes(base, _at_minutes(12.4)) == 12


def test_estimate_is_symmetric():
    a = Address(longitude=34.78, latitude=32.08, label="a")
    b = Address(longitude=35.21, latitude=31.77, label="b")
    assert estimate_travel_minutes(a, b) == estimate_travel_minutes(b, a)


def test_speed_and_floor_overrides():
    base = Address(longitude=0.0, latitude=0.0, label="base")
    assert estimate_travel_minutes(base, _at_minutes(20), speed_kmh=80) == 10
    assert estimate_travel_minutes(base, base, min_minutes=0) == 0


@pytest.mark.parametrize(
    "lon,lat,expected",
    [
        (34.8, 31.5, True),
        (-70.0, -33.4, True),
        (181.0, 0.0, False),
        (0.0, -91.0, False),
        (float("nan"), 10.0, False),
        (10.0, float("inf"), False),
    ],
)
def test_has_valid_coordinates(lon: float, lat: float, expected: bool):
    assert has_valid_coordinates(Address(longitude=lon, latitude=lat, label="p")) is expected
