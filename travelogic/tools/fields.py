"""
Centralized FieldMask constants for Google Maps Platform APIs.

Every provider call goes through these masks so responses only carry the
fields the planner reads, which keeps request cost down.

Reference:
- Places API (New): https://developers.google.com/maps/documentation/places/web-service/text-search
- Routes API: https://developers.google.com/maps/documentation/routes/compute_route_directions
"""

from typing import Dict, List

# -----------------------------
# Places API FieldMasks
# -----------------------------

# Basic place identification and location
PLACES_BASIC_FIELDS = [
    "places.id",
    "places.displayName",
    "places.location",
]

# Type classification (used as the POI category)
PLACES_TYPE_FIELDS = [
    "places.primaryType",
    "places.primaryTypeDisplayName",
]

PLACES_RATING_FIELDS = [
    "places.rating",
]

# Address parts used to build the short street/locality/region label
PLACES_ADDRESS_FIELDS = [
    "places.formattedAddress",
    "places.addressComponents",
]

PLACES_DESCRIPTION_FIELDS = [
    "places.editorialSummary",
]

# Text Search: POI discovery for the selection list
PLACES_TEXT_SEARCH_FIELDS = (
    PLACES_BASIC_FIELDS
    + PLACES_TYPE_FIELDS
    + PLACES_RATING_FIELDS
    + PLACES_ADDRESS_FIELDS
    + PLACES_DESCRIPTION_FIELDS
)

# -----------------------------
# Routes API FieldMasks
# -----------------------------

# computeRoutes: one leg between two waypoints
ROUTES_SEGMENT_FIELDS = [
    "routes.duration",
    "routes.distanceMeters",
    "routes.polyline.encodedPolyline",
]

# -----------------------------
# Helper Functions
# -----------------------------

def get_fieldmask_header(fields: List[str]) -> Dict[str, str]:
    """
    Generate X-Goog-FieldMask header from field list.

    Example:
        >>> get_fieldmask_header(["places.id", "places.displayName"])
        {'X-Goog-FieldMask': 'places.id,places.displayName'}
    """
    return {"X-Goog-FieldMask": ",".join(fields)}


def get_places_search_mask() -> Dict[str, str]:
    """Get FieldMask header for Places Text Search."""
    return get_fieldmask_header(PLACES_TEXT_SEARCH_FIELDS)


def get_routes_segment_mask() -> Dict[str, str]:
    """Get FieldMask header for Routes computeRoutes."""
    return get_fieldmask_header(ROUTES_SEGMENT_FIELDS)
