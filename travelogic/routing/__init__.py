"""Route planning engine: sequencing, leg resolution, aggregation."""

from .models import (
    # Value types
    Coordinate,
    TransportMode,
    Segment,
    RouteSummary,

    # Records
    PointOfInterest,
    RouteWaypoint,
    SavedRoute,

    # Constants
    DEFAULT_ROUTE_NAME,
    ROUTE_SCHEMA_VERSION,
    SAVED_CATEGORY,
)

from .sequence import (
    nearest_neighbor_order,
    nearest_neighbor_indices,
    path_length_m,
)

from .directions import (
    DirectionsClient,
    GoogleRoutesDirectionsClient,
    HaversineDirectionsClient,
    SegmentCache,
    decode_polyline,
    parse_duration,
)

from .builder import (
    PlannerSettings,
    RouteBuilder,
    RoutePlanningSession,
    directions_client_from_profile,
    selected_places_from_route,
)

__all__ = [
    # Value types
    "Coordinate",
    "TransportMode",
    "Segment",
    "RouteSummary",

    # Records
    "PointOfInterest",
    "RouteWaypoint",
    "SavedRoute",

    # Constants
    "DEFAULT_ROUTE_NAME",
    "ROUTE_SCHEMA_VERSION",
    "SAVED_CATEGORY",

    # Sequencing
    "nearest_neighbor_order",
    "nearest_neighbor_indices",
    "path_length_m",

    # Directions
    "DirectionsClient",
    "GoogleRoutesDirectionsClient",
    "HaversineDirectionsClient",
    "SegmentCache",
    "decode_polyline",
    "parse_duration",

    # Building
    "PlannerSettings",
    "RouteBuilder",
    "RoutePlanningSession",
    "directions_client_from_profile",
    "selected_places_from_route",
]
