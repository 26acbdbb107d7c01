"""Point-of-interest search near a location."""

from .gateway import (
    DEFAULT_RADIUS_M,
    PRESET_CATEGORIES,
    GooglePlacesSearchGateway,
    SearchGateway,
    format_address,
    poi_from_payload,
)

__all__ = [
    "DEFAULT_RADIUS_M",
    "PRESET_CATEGORIES",
    "GooglePlacesSearchGateway",
    "SearchGateway",
    "format_address",
    "poi_from_payload",
]
