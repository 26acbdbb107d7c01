"""Tests for route list and marker formatting helpers."""

from datetime import datetime, timezone

import pytest

from travelogic.display import (
    DEFAULT_MARKER,
    category_style,
    format_distance_km,
    format_duration,
    route_row,
)
from travelogic.routing import Coordinate, RouteWaypoint, SavedRoute, TransportMode


@pytest.mark.parametrize("seconds,expected", [
    (0, "0m"),
    (59, "0m"),
    (720, "12m"),
    (3600, "1h 0m"),
    (3900, "1h 5m"),
    (7325.8, "2h 2m"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize("meters,expected", [(0, "0.0 km"), (3420, "3.4 km"), (125_000, "125.0 km")])
def test_format_distance_km(meters, expected):
    assert format_distance_km(meters) == expected


def test_category_style_case_insensitive():
    assert category_style("Restaurant") == category_style("restaurant") == ("🍽️", "orange")
    assert category_style("Gas Station") == category_style("gas_station")


def test_category_style_default():
    assert category_style("Bank") == DEFAULT_MARKER
    assert category_style("") == DEFAULT_MARKER


def test_route_row():
    route = SavedRoute(
        id="route-1",
        name="Harbour loop",
        transport_mode=TransportMode.WALKING,
        waypoints=[
            RouteWaypoint(coordinate=Coordinate(0, 0), name="A", order=0, distance_to_next=3420, estimated_travel_time=3900),
            RouteWaypoint(coordinate=Coordinate(0, 1), name="B", order=1),
        ],
        total_distance=3420,
        estimated_duration=3900,
        last_modified=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )

    assert route_row(route) == {
        "id": "route-1",
        "name": "Harbour loop",
        "stops": 2,
        "distance": "3.4 km",
        "duration": "1h 5m",
        "transportMode": "walking",
        "lastModified": "2024-06-01T00:00:00+00:00",
    }
