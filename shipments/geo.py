"""
Geospatial helpers.

Great-circle distances on a spherical Earth, which is all the pricing and
dispatch code needs; no GIS dependency is pulled in for it.
"""

import math
from typing import NamedTuple

from .exceptions import InvalidCoordinate

EARTH_RADIUS_KM = 6371.0


class Coordinate(NamedTuple):
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    @classmethod
    def of(cls, latitude, longitude):
        """Build a validated coordinate from raw (possibly string) values."""
        return validate_coordinate(cls(_as_degrees(latitude, 'latitude'), _as_degrees(longitude, 'longitude')))

    @classmethod
    def optional(cls, latitude, longitude):
        """Like ``of`` but returns None when both parts are missing."""
        if latitude is None and longitude is None:
            return None
        return cls.of(latitude, longitude)


def _as_degrees(value, name):
    if value is None:
        raise InvalidCoordinate(f"{name} is required")
    try:
        degrees = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"{name} must be a number, got {value!r}")
    if not math.isfinite(degrees):
        raise InvalidCoordinate(f"{name} must be finite")
    return degrees


def validate_coordinate(point):
    if not -90.0 <= point.latitude <= 90.0:
        raise InvalidCoordinate(f"latitude {point.latitude} is outside [-90, 90]")
    if not -180.0 <= point.longitude <= 180.0:
        raise InvalidCoordinate(f"longitude {point.longitude} is outside [-180, 180]")
    return point


def distance_km(a, b):
    """Haversine distance in kilometres between two coordinates."""
    validate_coordinate(a)
    validate_coordinate(b)

    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push h a hair over 1 for antipodal points.
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))
