"""
travelogic.spatial: geographic helpers shared by routing and search.
"""

from .distance import (
    EARTH_RADIUS_M,
    distance_between,
    haversine_m,
    validate_lat_lng,
)

__all__ = [
    "EARTH_RADIUS_M",
    "distance_between",
    "haversine_m",
    "validate_lat_lng",
]
