"""Great-circle distance and bearing helpers."""

from __future__ import annotations

import math

from tripexec.domain.constants import EARTH_RADIUS_METERS
from tripexec.domain.models import Coordinates

WALKING_SPEED_MPS = 1.4


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    return haversine(a.lat, a.lng, b.lat, b.lng)


def bearing_degrees(a: Coordinates, b: Coordinates) -> float:
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlon = math.radians(b.lng - a.lng)
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def angle_difference(a: float, b: float) -> float:
    diff = abs(a - b) % 360.0
    return 360.0 - diff if diff > 180.0 else diff


__all__ = [
    "WALKING_SPEED_MPS",
    "angle_difference",
    "bearing_degrees",
    "distance_meters",
    "haversine",
]
