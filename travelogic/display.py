"""
Formatting helpers for route lists and map markers.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from .routing.models import SavedRoute

DEFAULT_MARKER = ("📍", "red")

# Lower-cased category -> (glyph, marker colour)
CATEGORY_STYLES: Dict[str, Tuple[str, str]] = {
    "restaurant": ("🍽️", "orange"),
    "food": ("🍽️", "orange"),
    "hotel": ("🏨", "blue"),
    "lodging": ("🏨", "blue"),
    "gas_station": ("⛽", "green"),
    "gas station": ("⛽", "green"),
    "tourist_attraction": ("🎯", "purple"),
    "tourist attraction": ("🎯", "purple"),
    "shopping": ("🛍️", "pink"),
    "store": ("🛍️", "pink"),
}


def format_duration(seconds: float) -> str:
    """``3900`` -> ``"1h 5m"``; under an hour only minutes are shown."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_distance_km(meters: float) -> str:
    return f"{meters / 1000:.1f} km"


def category_style(category: str) -> Tuple[str, str]:
    """Marker glyph and colour for a free-form category string."""
    return CATEGORY_STYLES.get((category or "").strip().lower(), DEFAULT_MARKER)


def route_row(route: SavedRoute) -> Dict[str, Any]:
    """One line of the saved-routes list."""
    return {
        "id": route.id,
        "name": route.name,
        "stops": len(route.waypoints),
        "distance": format_distance_km(route.total_distance),
        "duration": format_duration(route.estimated_duration),
        "transportMode": route.transport_mode.value,
        "lastModified": route.last_modified.isoformat(),
    }
