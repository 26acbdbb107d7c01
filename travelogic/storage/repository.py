"""
Route repositories: keyed storage for saved routes and points of interest.

The planner only needs ``list`` (most recently modified first), ``insert``,
``delete`` and ``get``. Two adapters are provided:

- ``InMemoryRouteRepository``: process-local, used by tests and the
  offline profile
- ``JsonRouteRepository``: a single JSON document on disk using the
  record schema from ``travelogic.routing.models``
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from ..errors import PersistenceError, RouteNotFoundError
from ..routing.models import PointOfInterest, SavedRoute

logger = logging.getLogger(__name__)


class RouteRepository(Protocol):
    """Storage contract used by the route builder."""

    def list(self) -> List[SavedRoute]:
        """All saved routes, sorted by ``last_modified`` descending."""
        ...

    def get(self, route_id: str) -> SavedRoute:
        """
        Fetch one route for loading.

        Raises:
            RouteNotFoundError: If no route has this id
            StaleAggregateError: If the stored totals do not match the waypoints
        """
        ...

    def insert(self, route: SavedRoute) -> None:
        ...

    def delete(self, route: SavedRoute) -> None:
        """Remove a route together with its waypoints."""
        ...

    def save_place(self, poi: PointOfInterest) -> None:
        ...

    def list_places(self) -> List[PointOfInterest]:
        ...


def _by_recency(routes: List[SavedRoute]) -> List[SavedRoute]:
    return sorted(routes, key=lambda r: r.last_modified, reverse=True)


class InMemoryRouteRepository:
    """Dictionary-backed repository. Returns copies so callers can't mutate stored state."""

    def __init__(self):
        self._routes: Dict[str, SavedRoute] = {}
        self._places: Dict[str, PointOfInterest] = {}

    def list(self) -> List[SavedRoute]:
        return _by_recency([copy.deepcopy(r) for r in self._routes.values()])

    def get(self, route_id: str) -> SavedRoute:
        try:
            route = copy.deepcopy(self._routes[route_id])
        except KeyError:
            raise RouteNotFoundError(f"Route '{route_id}' not found") from None
        route.check_totals()
        return route

    def insert(self, route: SavedRoute) -> None:
        route.check_totals()
        self._routes[route.id] = copy.deepcopy(route)

    def delete(self, route: SavedRoute) -> None:
        if route.id not in self._routes:
            raise RouteNotFoundError(f"Route '{route.id}' not found")
        del self._routes[route.id]

    def save_place(self, poi: PointOfInterest) -> None:
        self._places[poi.id] = copy.deepcopy(poi)

    def list_places(self) -> List[PointOfInterest]:
        return [copy.deepcopy(p) for p in self._places.values()]


class JsonRouteRepository:
    """
    Repository persisted as one JSON document.

    Every mutation rewrites the whole file through a temporary file and
    ``os.replace`` so a crash never leaves a half-written document. OS and
    decoding errors surface as ``PersistenceError``.

    Document layout::

        {"routes": [<SavedRoute record>, ...], "places": [<POI record>, ...]}
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _read(self) -> Dict[str, list]:
        if not self.path.exists():
            return {"routes": [], "places": []}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read route store {self.path}: {e}") from e
        data.setdefault("routes", [])
        data.setdefault("places", [])
        return data

    def _write(self, data: Dict[str, list]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".routes-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Could not write route store {self.path}: {e}") from e

    def _load_routes(self, data: Dict[str, list]) -> List[SavedRoute]:
        try:
            return [SavedRoute.from_record(r) for r in data["routes"]]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt route record in {self.path}: {e}") from e

    def list(self) -> List[SavedRoute]:
        return _by_recency(self._load_routes(self._read()))

    def get(self, route_id: str) -> SavedRoute:
        for route in self._load_routes(self._read()):
            if route.id == route_id:
                route.check_totals()
                return route
        raise RouteNotFoundError(f"Route '{route_id}' not found")

    def insert(self, route: SavedRoute) -> None:
        route.check_totals()
        data = self._read()
        data["routes"] = [r for r in data["routes"] if r.get("id") != route.id]
        data["routes"].append(route.to_record())
        self._write(data)
        logger.info("Stored route '%s' (%d waypoints) in %s", route.name, len(route.waypoints), self.path)

    def delete(self, route: SavedRoute) -> None:
        data = self._read()
        remaining = [r for r in data["routes"] if r.get("id") != route.id]
        if len(remaining) == len(data["routes"]):
            raise RouteNotFoundError(f"Route '{route.id}' not found")
        data["routes"] = remaining
        self._write(data)
        logger.info("Deleted route '%s' from %s", route.name, self.path)

    def save_place(self, poi: PointOfInterest) -> None:
        data = self._read()
        data["places"] = [p for p in data["places"] if p.get("id") != poi.id]
        data["places"].append(poi.to_record())
        self._write(data)

    def list_places(self) -> List[PointOfInterest]:
        data = self._read()
        try:
            return [PointOfInterest.from_record(p) for p in data["places"]]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt place record in {self.path}: {e}") from e


def repository_from_profile(profile: Dict[str, Any], base_dir: Optional[Path] = None):
    """Build the repository named in the profile's ``storage`` section."""
    storage = profile.get("storage", {}) or {}
    backend = storage.get("backend", "memory")
    if backend == "memory":
        return InMemoryRouteRepository()
    if backend == "json":
        path = Path(storage.get("path", "data/routes.json"))
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return JsonRouteRepository(path)
    raise ValueError(f"Unknown storage backend '{backend}'")
