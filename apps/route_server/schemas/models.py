"""Pydantic models for the Travelogic route server actions."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from travelogic.display import category_style, format_distance_km, format_duration, route_row
from travelogic.routing import (
    Coordinate,
    PointOfInterest,
    RouteSummary,
    RouteWaypoint,
    SavedRoute,
)

TransportModeTag = Literal["driving", "walking", "transit"]


class LatLng(BaseModel):
    """Simple latitude/longitude container."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


class Place(BaseModel):
    """Point of interest as shown in search results and selections."""

    id: str
    name: str
    category: str
    lat: float
    lng: float
    address: str = ""
    rating: float = 0.0
    description: str = ""
    visited: bool = False
    glyph: Optional[str] = None
    marker_color: Optional[str] = Field(default=None, alias="markerColor")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_poi(cls, poi: PointOfInterest) -> "Place":
        glyph, color = category_style(poi.category)
        return cls(
            id=poi.id,
            name=poi.name,
            category=poi.category,
            lat=poi.coordinate.lat,
            lng=poi.coordinate.lng,
            address=poi.address,
            rating=poi.rating,
            description=poi.description,
            visited=poi.visited,
            glyph=glyph,
            marker_color=color,
        )

    def to_poi(self) -> PointOfInterest:
        return PointOfInterest(
            id=self.id,
            name=self.name,
            category=self.category,
            coordinate=Coordinate(self.lat, self.lng),
            address=self.address,
            rating=self.rating,
            description=self.description,
            visited=self.visited,
        )


class SearchPlacesRequest(BaseModel):
    query: str = Field(..., description="Free-text query for Places search")
    anchor: Optional[LatLng] = Field(
        default=None, description="Current location; the last known fix is used when omitted"
    )
    radius_m: Optional[int] = Field(default=None, alias="radiusM", ge=50, le=50000)

    model_config = {"populate_by_name": True}


class SearchCategoryRequest(BaseModel):
    category: str
    anchor: Optional[LatLng] = None
    radius_m: Optional[int] = Field(default=None, alias="radiusM", ge=50, le=50000)

    model_config = {"populate_by_name": True}


class SearchPlacesResponse(BaseModel):
    places: List[Place]


class Stop(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    name: Optional[str] = None


class OptimizeRouteRequest(BaseModel):
    stops: Optional[List[Stop]] = Field(
        default=None, description="Stops in selection order; the current selection is used when omitted"
    )
    transport_mode: Optional[TransportModeTag] = Field(default=None, alias="transportMode")
    anchor: Optional[LatLng] = None
    start_from_location: bool = Field(default=False, alias="startFromLocation")

    model_config = {"populate_by_name": True}


class Waypoint(BaseModel):
    id: str
    lat: float
    lng: float
    name: str
    order: int
    estimated_travel_time: float = Field(..., alias="estimatedTravelTime")
    distance_to_next: float = Field(..., alias="distanceToNext")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_waypoint(cls, waypoint: RouteWaypoint) -> "Waypoint":
        return cls(
            id=waypoint.id,
            lat=waypoint.coordinate.lat,
            lng=waypoint.coordinate.lng,
            name=waypoint.name,
            order=waypoint.order,
            estimated_travel_time=waypoint.estimated_travel_time,
            distance_to_next=waypoint.distance_to_next,
        )


class Summary(BaseModel):
    total_distance: float = Field(..., alias="totalDistance")
    estimated_duration: float = Field(..., alias="estimatedDuration")
    stop_count: int = Field(..., alias="stopCount")
    distance_label: str = Field(..., alias="distanceLabel")
    duration_label: str = Field(..., alias="durationLabel")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_summary(cls, summary: RouteSummary) -> "Summary":
        return cls(
            total_distance=summary.total_distance,
            estimated_duration=summary.estimated_duration,
            stop_count=summary.stop_count,
            distance_label=format_distance_km(summary.total_distance),
            duration_label=format_duration(summary.estimated_duration),
        )


class WorkingRoute(BaseModel):
    """The working list plus its totals."""

    optimized: bool
    transport_mode: TransportModeTag = Field(..., alias="transportMode")
    waypoints: List[Waypoint]
    summary: Summary

    model_config = {"populate_by_name": True}


class SaveRouteRequest(BaseModel):
    name: Optional[str] = Field(default=None, description="Blank names become 'Untitled Route'")
    transport_mode: Optional[TransportModeTag] = Field(default=None, alias="transportMode")

    model_config = {"populate_by_name": True}


class SavedRouteModel(BaseModel):
    id: str
    name: str
    total_distance: float = Field(..., alias="totalDistance")
    estimated_duration: float = Field(..., alias="estimatedDuration")
    transport_mode: TransportModeTag = Field(..., alias="transportMode")
    waypoints: List[Waypoint]
    created_at: str = Field(..., alias="createdAt")
    last_modified: str = Field(..., alias="lastModified")
    is_optimized: bool = Field(..., alias="isOptimized")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_route(cls, route: SavedRoute) -> "SavedRouteModel":
        return cls(
            id=route.id,
            name=route.name,
            total_distance=route.total_distance,
            estimated_duration=route.estimated_duration,
            transport_mode=route.transport_mode.value,
            waypoints=[Waypoint.from_waypoint(w) for w in route.sorted_waypoints()],
            created_at=route.created_at.isoformat(),
            last_modified=route.last_modified.isoformat(),
            is_optimized=route.is_optimized,
        )


class SavedRouteRow(BaseModel):
    id: str
    name: str
    stops: int
    distance: str
    duration: str
    transport_mode: TransportModeTag = Field(..., alias="transportMode")
    last_modified: str = Field(..., alias="lastModified")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_route(cls, route: SavedRoute) -> "SavedRouteRow":
        return cls.model_validate(route_row(route))


class SelectionResponse(BaseModel):
    selected: bool
    selection: List[Place]
