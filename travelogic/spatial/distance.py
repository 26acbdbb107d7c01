"""Great-circle distance and coordinate validation."""

from __future__ import annotations

import math
from typing import Tuple

EARTH_RADIUS_M = 6_371_000.0

LatLngTuple = Tuple[float, float]


def validate_lat_lng(lat: float, lng: float) -> Tuple[float, float]:
    """
    Check that a latitude/longitude pair is finite and in range.

    Args:
        lat: Latitude in degrees, must lie in [-90, 90]
        lng: Longitude in degrees, must lie in [-180, 180]

    Returns:
        The pair as floats

    Raises:
        ValueError: If either value is not finite or out of range
    """
    lat = float(lat)
    lng = float(lng)
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError(f"Coordinate must be finite, got ({lat}, {lng})")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude {lat} out of range [-90, 90]")
    if not -180.0 <= lng <= 180.0:
        raise ValueError(f"Longitude {lng} out of range [-180, 180]")
    return lat, lng


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in metres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_between(a, b) -> float:
    """
    Distance in metres between two objects exposing ``lat`` and ``lng``.

    Works with ``Coordinate`` as well as any other lat/lng container.
    """
    return haversine_m(a.lat, a.lng, b.lat, b.lng)
