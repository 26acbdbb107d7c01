"""FastAPI server exposing Travelogic search and route planning as actions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas.models import (
    LatLng,
    OptimizeRouteRequest,
    Place,
    SaveRouteRequest,
    SavedRouteModel,
    SavedRouteRow,
    SearchCategoryRequest,
    SearchPlacesRequest,
    SearchPlacesResponse,
    SelectionResponse,
    Summary,
    Waypoint,
    WorkingRoute,
)
from travelogic.errors import (
    PersistenceError,
    PreconditionError,
    RouteNotFoundError,
    StaleAggregateError,
)
from travelogic.location import StaticLocationProvider, require_location
from travelogic.routing import (
    PlannerSettings,
    RouteBuilder,
    RoutePlanningSession,
    directions_client_from_profile,
)
from travelogic.routing.builder import CURRENT_LOCATION_NAME
from travelogic.search import PRESET_CATEGORIES, GooglePlacesSearchGateway
from travelogic.storage import repository_from_profile
from travelogic.tools.config_loader import ConfigLoader

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]

app = FastAPI(title="Travelogic Route Server", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Session wiring
# -----------------------------

def build_session(profile: Dict[str, Any]) -> RoutePlanningSession:
    """Assemble a planning session from a loaded profile."""
    log_level = (profile.get("logging", {}) or {}).get("level", "INFO")
    logging.basicConfig(level=getattr(logging, str(log_level).upper(), logging.INFO))

    search_cfg = profile.get("search", {}) or {}
    builder = RouteBuilder(
        directions=directions_client_from_profile(profile),
        repository=repository_from_profile(profile, base_dir=PROJECT_ROOT),
        settings=PlannerSettings.from_profile(profile),
    )
    gateway = GooglePlacesSearchGateway(
        language=search_cfg.get("language", "en"),
        max_results=int(search_cfg.get("max_results", 20)),
    )
    return RoutePlanningSession(
        builder,
        search_gateway=gateway,
        location_provider=StaticLocationProvider(),
        search_radius_m=int(search_cfg.get("radius_m", 10_000)),
    )


_session: Optional[RoutePlanningSession] = None


def get_session() -> RoutePlanningSession:
    global _session
    if _session is None:
        _session = build_session(ConfigLoader.load_default_or_env_profile())
    return _session


def _remember_anchor(session: RoutePlanningSession, anchor: Optional[LatLng]) -> None:
    if anchor is not None:
        session.location_provider.update(anchor.to_coordinate())


def _working_route(session: RoutePlanningSession, optimized: bool) -> Dict[str, Any]:
    working = WorkingRoute(
        optimized=optimized,
        transport_mode=session.transport_mode.value,
        waypoints=[Waypoint.from_waypoint(w) for w in session.working_list],
        summary=Summary.from_summary(session.summary()),
    )
    return working.model_dump(by_alias=True)


# -----------------------------
# Error mapping
# -----------------------------

@app.exception_handler(PreconditionError)
async def _precondition_handler(_request: Request, exc: PreconditionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RouteNotFoundError)
async def _not_found_handler(_request: Request, exc: RouteNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def _persistence_handler(_request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence failure: %s", exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(StaleAggregateError)
async def _stale_handler(_request: Request, exc: StaleAggregateError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# -----------------------------
# Actions
# -----------------------------

@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/categories")
async def categories() -> Dict[str, List[str]]:
    return {"categories": list(PRESET_CATEGORIES)}


def _search_payload(request_anchor: Optional[LatLng], places: List[Place], session: RoutePlanningSession) -> Dict[str, Any]:
    if request_anchor is not None:
        center = request_anchor
    else:
        fix = require_location(session.location_provider)
        center = LatLng(lat=fix.lat, lng=fix.lng)
    widget_payload = {
        "widget": "geo.poiMarkers",
        "props": {
            "center": center.model_dump(),
            "pois": [place.model_dump(by_alias=True) for place in places],
        },
    }
    response = SearchPlacesResponse(places=places)
    payload = response.model_dump(by_alias=True)
    payload["_meta"] = {"outputTemplate": widget_payload}
    return payload


@app.post("/actions/search_places")
async def search_places_action(
    request: SearchPlacesRequest,
    session: RoutePlanningSession = Depends(get_session),
) -> Dict[str, Any]:
    _remember_anchor(session, request.anchor)
    results = await session.search(request.query, radius_m=request.radius_m)
    places = [Place.from_poi(poi) for poi in results]
    return _search_payload(request.anchor, places, session)


@app.post("/actions/search_category")
async def search_category_action(
    request: SearchCategoryRequest,
    session: RoutePlanningSession = Depends(get_session),
) -> Dict[str, Any]:
    _remember_anchor(session, request.anchor)
    results = await session.search_by_category(request.category, radius_m=request.radius_m)
    places = [Place.from_poi(poi) for poi in results]
    return _search_payload(request.anchor, places, session)


@app.post("/actions/select_place")
async def select_place_action(
    place: Place,
    session: RoutePlanningSession = Depends(get_session),
) -> Dict[str, Any]:
    selected = session.toggle_selection(place.to_poi())
    response = SelectionResponse(
        selected=selected,
        selection=[Place.from_poi(poi) for poi in session.selection],
    )
    return response.model_dump(by_alias=True)


@app.post("/actions/clear")
async def clear_action(session: RoutePlanningSession = Depends(get_session)) -> Dict[str, Any]:
    session.clear()
    return _working_route(session, optimized=False)


@app.post("/actions/optimize_route")
async def optimize_route_action(
    request: OptimizeRouteRequest,
    session: RoutePlanningSession = Depends(get_session),
) -> Dict[str, Any]:
    _remember_anchor(session, request.anchor)
    if request.stops is None:
        waypoints = await session.optimize_selection(
            request.transport_mode,
            start_from_location=request.start_from_location,
        )
    else:
        coordinates = [LatLng(lat=s.lat, lng=s.lng).to_coordinate() for s in request.stops]
        names = [s.name for s in request.stops]
        if request.start_from_location:
            coordinates.insert(0, require_location(session.location_provider))
            names.insert(0, CURRENT_LOCATION_NAME)
        waypoints = await session.optimize(coordinates, request.transport_mode, names=names)

    payload = _working_route(session, optimized=waypoints is not None)
    payload["_meta"] = {
        "outputTemplate": {
            "widget": "geo.routePlayback",
            "props": {
                "stops": payload["waypoints"],
                "summary": payload["summary"],
                "path": [
                    LatLng(lat=c.lat, lng=c.lng).model_dump()
                    for c in session.builder.route_path(session.working_list)
                ],
            },
        }
    }
    return payload


@app.get("/actions/working_route")
async def working_route_action(session: RoutePlanningSession = Depends(get_session)) -> Dict[str, Any]:
    return _working_route(session, optimized=bool(session.working_list))


@app.post("/actions/save_route")
async def save_route_action(
    request: SaveRouteRequest,
    session: RoutePlanningSession = Depends(get_session),
) -> Dict[str, Any]:
    route = session.persist(request.name, request.transport_mode)
    return SavedRouteModel.from_route(route).model_dump(by_alias=True)


@app.get("/routes")
async def list_routes(session: RoutePlanningSession = Depends(get_session)) -> Dict[str, Any]:
    rows = [SavedRouteRow.from_route(route) for route in session.refresh_saved_routes()]
    return {"routes": [row.model_dump(by_alias=True) for row in rows]}


@app.get("/routes/{route_id}")
async def load_route(route_id: str, session: RoutePlanningSession = Depends(get_session)) -> Dict[str, Any]:
    route = session.builder.repository.get(route_id)
    session.load(route)
    payload = SavedRouteModel.from_route(route).model_dump(by_alias=True)
    payload["selection"] = [Place.from_poi(poi).model_dump(by_alias=True) for poi in session.selection]
    return payload


@app.delete("/routes/{route_id}")
async def delete_route(route_id: str, session: RoutePlanningSession = Depends(get_session)) -> Dict[str, Any]:
    # list() skips the totals check that get() applies
    route = next((r for r in session.refresh_saved_routes() if r.id == route_id), None)
    if route is None:
        raise RouteNotFoundError(f"Route '{route_id}' not found")
    session.delete(route)
    return {"deleted": route_id, "remaining": len(session.saved_routes)}


@app.post("/places")
async def save_place(place: Place, session: RoutePlanningSession = Depends(get_session)) -> Dict[str, Any]:
    session.save_place(place.to_poi())
    return {"saved": place.id}


@app.get("/places")
async def saved_places(session: RoutePlanningSession = Depends(get_session)) -> Dict[str, Any]:
    return {"places": [Place.from_poi(poi).model_dump(by_alias=True) for poi in session.saved_places()]}


__all__ = ["app", "build_session", "get_session"]
