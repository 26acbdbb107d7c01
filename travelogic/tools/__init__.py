"""Google Maps Platform tools and configuration utilities."""

from .fields import (
    get_fieldmask_header,
    get_places_search_mask,
    get_routes_segment_mask,
    PLACES_TEXT_SEARCH_FIELDS,
    ROUTES_SEGMENT_FIELDS,
)
from .config_loader import ConfigLoader, get_config, require_google_api_key

__all__ = [
    "get_fieldmask_header",
    "get_places_search_mask",
    "get_routes_segment_mask",
    "PLACES_TEXT_SEARCH_FIELDS",
    "ROUTES_SEGMENT_FIELDS",
    "ConfigLoader",
    "get_config",
    "require_google_api_key",
]
