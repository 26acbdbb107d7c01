"""Tests for deferred Google Maps API key lookup in the Google providers."""

from __future__ import annotations

import asyncio
import importlib
import sys

import pytest

from travelogic.routing import Coordinate, RouteBuilder, TransportMode
from travelogic.storage import InMemoryRouteRepository


def _reload_module(module_name: str):
    """Reload a module, ensuring import-time side effects are rerun."""

    if module_name in sys.modules:
        del sys.modules[module_name]
    return importlib.import_module(module_name)


def test_search_module_imports_without_api_key(monkeypatch):
    """The Places gateway module should import even when the key is missing."""

    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    module = _reload_module("travelogic.search.gateway")

    assert module.PLACES_BASE == "https://places.googleapis.com/v1"


def test_directions_module_imports_without_api_key(monkeypatch):
    """The Routes client module should import even when the key is missing."""

    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    module = _reload_module("travelogic.routing.directions")

    assert module.TTL_SEGMENT == 3600


def test_server_session_builds_without_api_key(monkeypatch):
    """Wiring the server session must not touch the key."""

    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    from apps.route_server.main import build_session

    session = build_session({"routing": {"provider": "google"}, "storage": {"backend": "memory"}})

    assert session.saved_routes == []


def test_search_logs_missing_api_key(monkeypatch, caplog):
    """Place search degrades to no results and logs why."""

    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    gateway_module = importlib.import_module("travelogic.search.gateway")
    gateway = gateway_module.GooglePlacesSearchGateway()

    with caplog.at_level("ERROR"):
        results = asyncio.run(gateway.search("cafe", Coordinate(0.0, 0.0)))

    assert results == []
    assert "Missing GOOGLE_MAPS_API_KEY" in caplog.text


def test_directions_raise_without_api_key(monkeypatch):
    """Resolving a leg should fail only at call time."""

    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    directions = importlib.import_module("travelogic.routing.directions")
    client = directions.GoogleRoutesDirectionsClient()

    with pytest.raises(RuntimeError, match="Missing GOOGLE_MAPS_API_KEY"):
        asyncio.run(client.resolve(Coordinate(0.0, 0.0), Coordinate(1.0, 1.0), TransportMode.DRIVING))


def test_optimize_surfaces_missing_api_key(monkeypatch):
    """A missing key is a configuration error, not a degraded segment."""

    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    directions = importlib.import_module("travelogic.routing.directions")
    builder = RouteBuilder(directions.GoogleRoutesDirectionsClient(), InMemoryRouteRepository())

    with pytest.raises(RuntimeError, match="Missing GOOGLE_MAPS_API_KEY"):
        asyncio.run(builder.optimize([Coordinate(0.0, 0.0), Coordinate(1.0, 1.0)]))
