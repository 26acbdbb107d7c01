"""
Route building: sequence the stops, resolve each leg, aggregate, persist.

``RouteBuilder`` is stateless: every method takes and returns explicit
waypoint lists. ``RoutePlanningSession`` owns the caller-side state (the
working list, the current selection and the cached saved-route list) and
only replaces it once an operation has fully succeeded, so cancelled or
failed calls leave it exactly as it was.

Leg resolution tolerates partial failure: a leg whose directions request
errors or times out keeps zero distance and duration, a warning is
logged, and the remaining legs are still resolved.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..errors import EmptyRouteError, PersistenceError, ProviderError
from ..location import LocationProvider, require_location
from .directions import (
    DirectionsClient,
    GoogleRoutesDirectionsClient,
    HaversineDirectionsClient,
    SegmentCache,
)
from .models import (
    DEFAULT_ROUTE_NAME,
    SAVED_CATEGORY,
    Coordinate,
    PointOfInterest,
    RouteSummary,
    RouteWaypoint,
    SavedRoute,
    Segment,
    TransportMode,
)
from .sequence import nearest_neighbor_indices

logger = logging.getLogger(__name__)

CURRENT_LOCATION_NAME = "Current Location"


@dataclass
class PlannerSettings:
    """Configuration for the route builder."""

    segment_timeout_sec: float = 10.0
    """Upper bound for one directions request; a timeout counts as a failed leg."""

    parallel_segments: bool = False
    """Resolve all legs concurrently instead of one after another."""

    default_mode: TransportMode = TransportMode.DRIVING
    """Transport mode used when the caller does not pass one."""

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> "PlannerSettings":
        routing = profile.get("routing", {}) or {}
        return cls(
            segment_timeout_sec=float(routing.get("segment_timeout_sec", 10.0)),
            parallel_segments=bool(routing.get("parallel_segments", False)),
            default_mode=TransportMode.parse(routing.get("transport_mode", "driving")),
        )


def directions_client_from_profile(profile: Dict[str, Any], http_client=None) -> DirectionsClient:
    """Pick the directions provider named in the profile's ``routing`` section."""
    routing = profile.get("routing", {}) or {}
    provider = routing.get("provider", "google")
    if provider == "haversine":
        return HaversineDirectionsClient()
    if provider != "google":
        raise ValueError(f"Unknown directions provider '{provider}'")
    search = profile.get("search", {}) or {}
    return GoogleRoutesDirectionsClient(
        http_client=http_client,
        cache=SegmentCache(
            maxsize=int(routing.get("cache_maxsize", 2048)),
            ttl=int(routing.get("cache_ttl_sec", 3600)),
        ),
        max_retries=int(routing.get("max_retries", 3)),
        language=search.get("language", "en"),
    )


def _as_coordinate(value: Any) -> Coordinate:
    if isinstance(value, Coordinate):
        return value
    lat, lng = value
    return Coordinate(lat, lng)


class RouteBuilder:
    """
    Turns a selection of coordinates into an annotated, persistable route.

    Args:
        directions: Client used to resolve each leg
        repository: Route store used by ``persist``, ``list_saved`` and ``delete``
        settings: Timeouts and concurrency options
    """

    def __init__(self, directions: DirectionsClient, repository, settings: Optional[PlannerSettings] = None):
        self.directions = directions
        self.repository = repository
        self.settings = settings or PlannerSettings()

    async def _resolve_leg(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportMode,
        index: int,
    ) -> Optional[Segment]:
        started = time.perf_counter()
        try:
            segment = await asyncio.wait_for(
                self.directions.resolve(origin, destination, mode),
                timeout=self.settings.segment_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Route segment %d timed out after %.1fs; leaving it at zero cost",
                index + 1, self.settings.segment_timeout_sec,
            )
            return None
        except ProviderError as e:
            logger.warning("Route segment %d calculation failed: %s", index + 1, e)
            return None
        logger.debug(
            "Resolved segment %d in %.3fs: %.0fm, %.0fs",
            index + 1, time.perf_counter() - started, segment.distance_m, segment.duration_sec,
        )
        return segment

    async def optimize(
        self,
        coordinates: Sequence[Coordinate],
        mode: TransportMode | str = TransportMode.DRIVING,
        names: Optional[Sequence[Optional[str]]] = None,
    ) -> Optional[List[RouteWaypoint]]:
        """
        Sequence the coordinates and resolve every consecutive leg.

        Args:
            coordinates: Stops in selection order; first and last are the
                fixed start and destination
            mode: Transport mode for every leg
            names: Optional display names aligned with ``coordinates``;
                missing names fall back to ``"Waypoint N"``

        Returns:
            Waypoints with ``order`` 0..n-1 and per-leg distance/duration,
            or ``None`` when fewer than two coordinates were given
        """
        coords = [_as_coordinate(c) for c in coordinates]
        if len(coords) < 2:
            logger.debug("Skipping optimize: %d waypoint(s), need at least 2", len(coords))
            return None
        if names is not None and len(names) != len(coords):
            raise ValueError(f"Got {len(names)} names for {len(coords)} coordinates")
        mode = TransportMode.parse(mode)

        waypoints: List[RouteWaypoint] = []
        for position, idx in enumerate(nearest_neighbor_indices(coords)):
            name = names[idx] if names is not None and names[idx] else f"Waypoint {position + 1}"
            waypoints.append(RouteWaypoint(coordinate=coords[idx], name=name, order=position))

        legs = range(len(waypoints) - 1)
        if self.settings.parallel_segments:
            segments = await asyncio.gather(*(
                self._resolve_leg(waypoints[i].coordinate, waypoints[i + 1].coordinate, mode, i)
                for i in legs
            ))
        else:
            segments = []
            for i in legs:
                segments.append(await self._resolve_leg(
                    waypoints[i].coordinate, waypoints[i + 1].coordinate, mode, i
                ))

        failed = 0
        for i, segment in zip(legs, segments):
            if segment is None:
                failed += 1
                continue
            waypoints[i].distance_to_next = segment.distance_m
            waypoints[i].estimated_travel_time = segment.duration_sec
            waypoints[i].path_to_next = list(segment.path)

        if failed:
            logger.warning("Route built with %d of %d segments unresolved", failed, len(legs))
        return waypoints

    @staticmethod
    def build_summary(waypoints: Sequence[RouteWaypoint]) -> RouteSummary:
        """Totals over a waypoint list."""
        return RouteSummary(
            total_distance=sum(w.distance_to_next for w in waypoints),
            estimated_duration=sum(w.estimated_travel_time for w in waypoints),
            stop_count=len(waypoints),
        )

    @staticmethod
    def route_path(waypoints: Sequence[RouteWaypoint]) -> List[Coordinate]:
        """
        Display polyline for a waypoint list.

        Resolved legs contribute their decoded geometry; legs without one
        (unresolved, or loaded from storage) fall back to a straight line.
        Shared joints between consecutive legs appear once.
        """
        ordered = sorted(waypoints, key=lambda w: w.order)
        path: List[Coordinate] = []
        for current, following in zip(ordered, ordered[1:]):
            leg = current.path_to_next or [current.coordinate, following.coordinate]
            if path and path[-1] == leg[0]:
                leg = leg[1:]
            path.extend(leg)
        if not path and ordered:
            path.append(ordered[0].coordinate)
        return path

    def persist(
        self,
        waypoints: Sequence[RouteWaypoint],
        name: Optional[str],
        mode: TransportMode | str = TransportMode.DRIVING,
    ) -> SavedRoute:
        """
        Save a waypoint list as a named, optimized route.

        Raises:
            EmptyRouteError: If ``waypoints`` is empty (nothing is written)
            PersistenceError: If the repository write fails
        """
        if not waypoints:
            raise EmptyRouteError("Cannot save a route without waypoints")

        owned = [copy.deepcopy(w) for w in sorted(waypoints, key=lambda w: w.order)]
        summary = self.build_summary(owned)
        route = SavedRoute(
            name=(name or "").strip() or DEFAULT_ROUTE_NAME,
            transport_mode=TransportMode.parse(mode),
            waypoints=owned,
            total_distance=summary.total_distance,
            estimated_duration=summary.estimated_duration,
            is_optimized=True,
        )
        try:
            self.repository.insert(route)
        except PersistenceError as e:
            logger.error("Saving route '%s' failed: %s", route.name, e)
            raise
        logger.info("Saved route '%s' with %d stops", route.name, summary.stop_count)
        return route

    @staticmethod
    def load(saved_route: SavedRoute) -> List[RouteWaypoint]:
        """Waypoints of a saved route in visiting order, ready for editing."""
        return [copy.deepcopy(w) for w in saved_route.sorted_waypoints()]

    def list_saved(self) -> List[SavedRoute]:
        return self.repository.list()

    def delete(self, route: SavedRoute) -> None:
        self.repository.delete(route)
        logger.info("Deleted route '%s'", route.name)


def selected_places_from_route(route: SavedRoute) -> List[PointOfInterest]:
    """Rebuild a stop selection from a saved route, in visiting order."""
    return [
        PointOfInterest(name=w.name, category=SAVED_CATEGORY, coordinate=w.coordinate)
        for w in route.sorted_waypoints()
    ]


class RoutePlanningSession:
    """
    Per-user planning state around a ``RouteBuilder``.

    Holds the selection, the search results, the working list and the
    cached saved routes. The cache is always refreshed from the repository
    after a mutation rather than patched in place.
    """

    def __init__(
        self,
        builder: RouteBuilder,
        *,
        search_gateway=None,
        location_provider: Optional[LocationProvider] = None,
        search_radius_m: Optional[int] = None,
    ):
        self.builder = builder
        self.search_gateway = search_gateway
        self.location_provider = location_provider
        self.search_radius_m = search_radius_m
        self.transport_mode = builder.settings.default_mode
        self.selection: List[PointOfInterest] = []
        self.search_results: List[PointOfInterest] = []
        self.working_list: List[RouteWaypoint] = []
        self.saved_routes: List[SavedRoute] = []
        self.refresh_saved_routes()

    def refresh_saved_routes(self) -> List[SavedRoute]:
        self.saved_routes = self.builder.list_saved()
        return self.saved_routes

    # Search

    async def search(self, query: str, radius_m: Optional[int] = None) -> List[PointOfInterest]:
        """
        Search near the current location and keep the results.

        Raises:
            NoLocationError: If there is no location fix
        """
        near = require_location(self.location_provider)
        if not query or not query.strip() or self.search_gateway is None:
            return self.search_results
        radius_m = radius_m if radius_m is not None else self.search_radius_m
        kwargs = {"radius_m": radius_m} if radius_m is not None else {}
        self.search_results = await self.search_gateway.search(query, near, **kwargs)
        return self.search_results

    async def search_by_category(self, category: str, radius_m: Optional[int] = None) -> List[PointOfInterest]:
        near = require_location(self.location_provider)
        if self.search_gateway is None:
            return self.search_results
        radius_m = radius_m if radius_m is not None else self.search_radius_m
        kwargs = {"radius_m": radius_m} if radius_m is not None else {}
        self.search_results = await self.search_gateway.search_by_category(category, near, **kwargs)
        return self.search_results

    # Selection

    def toggle_selection(self, poi: PointOfInterest) -> bool:
        """Add or remove a place by id. Returns True when it is now selected."""
        for idx, selected in enumerate(self.selection):
            if selected.id == poi.id:
                del self.selection[idx]
                return False
        self.selection.append(poi)
        return True

    def clear(self) -> None:
        self.selection = []
        self.search_results = []
        self.working_list = []

    # Planning

    async def optimize(
        self,
        coordinates: Sequence[Coordinate],
        mode: TransportMode | str | None = None,
        names: Optional[Sequence[Optional[str]]] = None,
    ) -> Optional[List[RouteWaypoint]]:
        """
        Optimize and replace the working list once every leg has been handled.

        Returns ``None`` and leaves the working list untouched when fewer
        than two coordinates are given.
        """
        mode = TransportMode.parse(mode) if mode is not None else self.transport_mode
        waypoints = await self.builder.optimize(coordinates, mode, names=names)
        if waypoints is None:
            return None
        self.working_list = waypoints
        self.transport_mode = mode
        return waypoints

    async def optimize_selection(
        self,
        mode: TransportMode | str | None = None,
        start_from_location: bool = False,
    ) -> Optional[List[RouteWaypoint]]:
        """
        Optimize the current selection.

        With ``start_from_location`` the current location is used as the
        start anchor ahead of the selected places.

        Raises:
            NoLocationError: If ``start_from_location`` is set and there is no fix
        """
        coordinates = [p.coordinate for p in self.selection]
        names: List[Optional[str]] = [p.name for p in self.selection]
        if start_from_location:
            coordinates.insert(0, require_location(self.location_provider))
            names.insert(0, CURRENT_LOCATION_NAME)
        return await self.optimize(coordinates, mode, names=names)

    def summary(self) -> RouteSummary:
        return self.builder.build_summary(self.working_list)

    # Persistence

    def persist(self, name: Optional[str], mode: TransportMode | str | None = None) -> SavedRoute:
        """
        Save the working list and refresh the saved-route cache.

        Raises:
            EmptyRouteError: If the working list is empty
            PersistenceError: If the write fails; the cache is left as it was

        Once the write has succeeded the route is returned even if the
        cache refresh fails; the cache then keeps its previous contents.
        """
        mode = TransportMode.parse(mode) if mode is not None else self.transport_mode
        route = self.builder.persist(self.working_list, name, mode)
        self._refresh_after_write(f"saving route '{route.name}'")
        return route

    def delete(self, route: SavedRoute) -> None:
        self.builder.delete(route)
        self._refresh_after_write(f"deleting route '{route.name}'")

    def _refresh_after_write(self, action: str) -> None:
        try:
            self.refresh_saved_routes()
        except PersistenceError as e:
            logger.error("Saved-route list not refreshed after %s: %s", action, e)

    def load(self, route: SavedRoute) -> List[RouteWaypoint]:
        """Make a saved route the working list and the current selection."""
        self.working_list = self.builder.load(route)
        self.selection = selected_places_from_route(route)
        self.transport_mode = route.transport_mode
        return self.working_list

    def save_place(self, poi: PointOfInterest) -> None:
        self.builder.repository.save_place(poi)

    def saved_places(self) -> List[PointOfInterest]:
        return self.builder.repository.list_places()
