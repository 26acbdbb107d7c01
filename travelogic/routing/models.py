"""
Data models for the route planning engine.

Covers the value types passed between the sequence optimizer, the
directions client and the route builder, plus the persisted records
(``SavedRoute`` and its ``RouteWaypoint`` children). Records serialise to
a stable camelCase dict schema via ``to_record`` / ``from_record`` so
saved routes round-trip across sessions.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import StaleAggregateError
from ..spatial.distance import validate_lat_lng

# Bump when the on-disk record layout changes.
ROUTE_SCHEMA_VERSION = 1

DEFAULT_ROUTE_NAME = "Untitled Route"
SAVED_CATEGORY = "Saved"


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return _utcnow()
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# -----------------------------
# Value types
# -----------------------------

@dataclass(frozen=True)
class Coordinate:
    """Geographic coordinate in decimal degrees, validated on creation."""

    lat: float
    lng: float

    def __post_init__(self):
        lat, lng = validate_lat_lng(self.lat, self.lng)
        object.__setattr__(self, "lat", lat)
        object.__setattr__(self, "lng", lng)

    def as_tuple(self):
        return (self.lat, self.lng)


class TransportMode(Enum):
    """Travel modality; the value is the persisted string tag."""
    DRIVING = "driving"
    WALKING = "walking"
    TRANSIT = "transit"

    @classmethod
    def parse(cls, value: "TransportMode | str") -> "TransportMode":
        """Accept an enum member or its tag (case-insensitive)."""
        if isinstance(value, cls):
            return value
        tag = str(value).strip().lower()
        for member in cls:
            if member.value == tag:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown transport mode '{value}'. Expected one of: {allowed}")

    @property
    def provider_mode(self) -> str:
        """Travel mode name used by the Routes API."""
        return _PROVIDER_MODES[self]


_PROVIDER_MODES = {
    TransportMode.DRIVING: "DRIVE",
    TransportMode.WALKING: "WALK",
    TransportMode.TRANSIT: "TRANSIT",
}


@dataclass
class Segment:
    """Travel leg between two consecutive waypoints."""

    distance_m: float
    duration_sec: float
    path: List[Coordinate] = field(default_factory=list)


@dataclass
class RouteSummary:
    """Aggregated totals over a waypoint sequence."""

    total_distance: float
    estimated_duration: float
    stop_count: int


# -----------------------------
# Records
# -----------------------------

@dataclass
class PointOfInterest:
    """A searchable place that can be selected as a stop."""

    name: str
    category: str
    coordinate: Coordinate
    address: str = ""
    rating: float = 0.0
    description: str = ""
    visited: bool = False
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "latitude": self.coordinate.lat,
            "longitude": self.coordinate.lng,
            "address": self.address,
            "rating": self.rating,
            "description": self.description,
            "isVisited": self.visited,
            "timestamp": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "PointOfInterest":
        return cls(
            id=record["id"],
            name=record["name"],
            category=record.get("category", ""),
            coordinate=Coordinate(record["latitude"], record["longitude"]),
            address=record.get("address", ""),
            rating=float(record.get("rating", 0.0)),
            description=record.get("description", ""),
            visited=bool(record.get("isVisited", False)),
            created_at=_parse_ts(record.get("timestamp")),
        )


@dataclass
class RouteWaypoint:
    """
    A stop at a fixed position in a route.

    ``estimated_travel_time`` and ``distance_to_next`` describe the leg to
    the following waypoint and stay at zero for the last one or when the
    leg could not be resolved. ``path_to_next`` is the leg geometry for
    display; it is not part of the record.
    """

    coordinate: Coordinate
    name: str
    order: int
    estimated_travel_time: float = 0.0
    distance_to_next: float = 0.0
    id: str = field(default_factory=_new_id)
    path_to_next: List[Coordinate] = field(default_factory=list, compare=False)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "latitude": self.coordinate.lat,
            "longitude": self.coordinate.lng,
            "name": self.name,
            "order": self.order,
            "estimatedTravelTime": self.estimated_travel_time,
            "distanceToNext": self.distance_to_next,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RouteWaypoint":
        return cls(
            id=record["id"],
            coordinate=Coordinate(record["latitude"], record["longitude"]),
            name=record.get("name", ""),
            order=int(record["order"]),
            estimated_travel_time=float(record.get("estimatedTravelTime", 0.0)),
            distance_to_next=float(record.get("distanceToNext", 0.0)),
        )


@dataclass
class SavedRoute:
    """A named, persisted route that owns its waypoints."""

    name: str
    transport_mode: TransportMode = TransportMode.DRIVING
    waypoints: List[RouteWaypoint] = field(default_factory=list)
    total_distance: float = 0.0
    estimated_duration: float = 0.0
    is_optimized: bool = False
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)
    last_modified: datetime = field(default_factory=_utcnow)

    def sorted_waypoints(self) -> List[RouteWaypoint]:
        return sorted(self.waypoints, key=lambda w: w.order)

    def coordinates(self) -> List[Coordinate]:
        """Visiting sequence reconstructed from waypoint order."""
        return [w.coordinate for w in self.sorted_waypoints()]

    def check_totals(self) -> None:
        """
        Verify the aggregate fields against the waypoints.

        Raises:
            StaleAggregateError: If order values are not contiguous from 0,
                or the totals differ from the sums over the waypoints
        """
        orders = [w.order for w in self.sorted_waypoints()]
        if orders != list(range(len(orders))):
            raise StaleAggregateError(
                f"Route '{self.name}' has non-contiguous waypoint order {orders}"
            )
        distance = sum(w.distance_to_next for w in self.waypoints)
        duration = sum(w.estimated_travel_time for w in self.waypoints)
        if not math.isclose(distance, self.total_distance, abs_tol=1e-6):
            raise StaleAggregateError(
                f"Route '{self.name}' total distance {self.total_distance} != {distance}"
            )
        if not math.isclose(duration, self.estimated_duration, abs_tol=1e-6):
            raise StaleAggregateError(
                f"Route '{self.name}' estimated duration {self.estimated_duration} != {duration}"
            )

    def to_record(self) -> Dict[str, Any]:
        return {
            "schemaVersion": ROUTE_SCHEMA_VERSION,
            "id": self.id,
            "name": self.name,
            "totalDistance": self.total_distance,
            "estimatedDuration": self.estimated_duration,
            "transportMode": self.transport_mode.value,
            "waypoints": [w.to_record() for w in self.sorted_waypoints()],
            "createdAt": self.created_at.isoformat(),
            "lastModified": self.last_modified.isoformat(),
            "isOptimized": self.is_optimized,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "SavedRoute":
        version = record.get("schemaVersion", ROUTE_SCHEMA_VERSION)
        if version > ROUTE_SCHEMA_VERSION:
            raise ValueError(
                f"Route record schema version {version} is newer than supported ({ROUTE_SCHEMA_VERSION})"
            )
        return cls(
            id=record["id"],
            name=record["name"],
            total_distance=float(record.get("totalDistance", 0.0)),
            estimated_duration=float(record.get("estimatedDuration", 0.0)),
            transport_mode=TransportMode.parse(record.get("transportMode", "driving")),
            waypoints=[RouteWaypoint.from_record(w) for w in record.get("waypoints", [])],
            created_at=_parse_ts(record.get("createdAt")),
            last_modified=_parse_ts(record.get("lastModified")),
            is_optimized=bool(record.get("isOptimized", False)),
        )
