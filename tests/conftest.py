"""
Pytest configuration and shared fixtures for travelogic tests.

This file provides:
- Fake directions and search providers
- Sample coordinates, places and Routes/Places API payloads
- Repository, builder and session fixtures
"""

import asyncio
import os
from typing import Dict, Any, List, Optional, Set

import pytest

from travelogic.errors import DirectionsError
from travelogic.location import StaticLocationProvider
from travelogic.routing import (
    Coordinate,
    PlannerSettings,
    PointOfInterest,
    RouteBuilder,
    RoutePlanningSession,
    Segment,
)
from travelogic.spatial import distance_between
from travelogic.storage import InMemoryRouteRepository


# ==============================================================================
# Sample Coordinates
# ==============================================================================

@pytest.fixture
def line_coordinates() -> List[Coordinate]:
    """Four stops one degree apart along the equator; already in visiting order."""
    return [Coordinate(0, 0), Coordinate(0, 1), Coordinate(0, 2), Coordinate(0, 3)]


@pytest.fixture
def shuffled_coordinates() -> List[Coordinate]:
    """Start at 0, destination at 5, interior stops selected out of order."""
    return [
        Coordinate(0, 0),
        Coordinate(0, 3),
        Coordinate(0, 1),
        Coordinate(0, 4),
        Coordinate(0, 2),
        Coordinate(0, 5),
    ]


@pytest.fixture
def tokyo_places() -> List[PointOfInterest]:
    """Sample places around central Tokyo."""
    return [
        PointOfInterest(id="poi-1", name="Tokyo Station", category="train_station",
                        coordinate=Coordinate(35.6812, 139.7671)),
        PointOfInterest(id="poi-2", name="Senso-ji Temple", category="tourist_attraction",
                        coordinate=Coordinate(35.7148, 139.7967)),
        PointOfInterest(id="poi-3", name="Shibuya Crossing", category="tourist_attraction",
                        coordinate=Coordinate(35.6595, 139.7004)),
        PointOfInterest(id="poi-4", name="Meiji Shrine", category="place_of_worship",
                        coordinate=Coordinate(35.6764, 139.6993)),
    ]


# ==============================================================================
# Provider payloads
# ==============================================================================

@pytest.fixture
def routes_response() -> Dict[str, Any]:
    """computeRoutes response with Google's documented sample polyline."""
    return {
        "routes": [{
            "distanceMeters": 5120,
            "duration": "905s",
            "polyline": {"encodedPolyline": "_p~iF~ps|U_ulLnnqC_mqNvxq`@"},
        }]
    }


@pytest.fixture
def places_response() -> Dict[str, Any]:
    """Places Text Search (New) response."""
    return {
        "places": [
            {
                "id": "ChIJ-cafe",
                "displayName": {"text": "Station Cafe"},
                "location": {"latitude": 35.681236, "longitude": 139.767125},
                "primaryType": "cafe",
                "primaryTypeDisplayName": {"text": "Coffee"},
                "formattedAddress": "1 Chome-9-1 Marunouchi, Chiyoda City, Tokyo 100-0005, Japan",
                "addressComponents": [
                    {"longText": "Marunouchi", "types": ["route"]},
                    {"longText": "Chiyoda City", "types": ["locality", "political"]},
                    {"longText": "Tokyo", "types": ["administrative_area_level_1", "political"]},
                ],
                "editorialSummary": {"text": "Busy cafe by the station."},
            },
            {
                "id": "ChIJ-bar",
                "displayName": {"text": "Evening Bar"},
                "location": {"latitude": 35.689487, "longitude": 139.691711},
                "formattedAddress": "Shinjuku, Tokyo",
            },
            {
                # No display name: dropped
                "id": "ChIJ-nameless",
                "location": {"latitude": 35.0, "longitude": 139.0},
            },
        ]
    }


# ==============================================================================
# Fake providers
# ==============================================================================

class FakeDirectionsClient:
    """
    Directions client that derives segments from straight-line distance.

    Calls listed in ``fail_calls`` (by call index) or legs starting at a
    coordinate in ``fail_from`` raise ``DirectionsError``; calls listed in
    ``hang_calls`` never finish on their own.
    """

    def __init__(
        self,
        fail_calls: Optional[Set[int]] = None,
        fail_from: Optional[Set[Coordinate]] = None,
        hang_calls: Optional[Set[int]] = None,
    ):
        self.fail_calls = fail_calls or set()
        self.fail_from = fail_from or set()
        self.hang_calls = hang_calls or set()
        self.calls: List[tuple] = []

    async def resolve(self, origin, destination, mode):
        index = len(self.calls)
        self.calls.append((origin, destination, mode))
        if index in self.hang_calls:
            await asyncio.sleep(3600)
        if index in self.fail_calls or origin in self.fail_from:
            raise DirectionsError(f"simulated failure on call {index}")
        distance = round(distance_between(origin, destination))
        return Segment(distance_m=float(distance), duration_sec=distance / 10.0, path=[origin, destination])


class FakeSearchGateway:
    """Search gateway returning canned places and recording queries."""

    def __init__(self, places: List[PointOfInterest]):
        self.places = places
        self.queries: List[tuple] = []

    async def search(self, query, near, radius_m=10_000):
        self.queries.append((query, near, radius_m))
        return list(self.places)

    async def search_by_category(self, category, near, radius_m=10_000):
        return await self.search(category, near, radius_m)


@pytest.fixture
def fake_directions() -> FakeDirectionsClient:
    return FakeDirectionsClient()


@pytest.fixture
def repository() -> InMemoryRouteRepository:
    return InMemoryRouteRepository()


@pytest.fixture
def builder(fake_directions, repository) -> RouteBuilder:
    return RouteBuilder(fake_directions, repository, PlannerSettings(segment_timeout_sec=1.0))


@pytest.fixture
def location_provider() -> StaticLocationProvider:
    return StaticLocationProvider(Coordinate(35.6812, 139.7671))


@pytest.fixture
def session(builder, tokyo_places, location_provider) -> RoutePlanningSession:
    return RoutePlanningSession(
        builder,
        search_gateway=FakeSearchGateway(tokyo_places),
        location_provider=location_provider,
    )


# ==============================================================================
# Environment Setup
# ==============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Setup test environment variables."""
    # Dummy API key for tests (not a real key)
    os.environ["GOOGLE_MAPS_API_KEY"] = "TEST_API_KEY_NOT_REAL"
    yield


# ==============================================================================
# Utilities
# ==============================================================================

def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


def assert_approx_equal(a: float, b: float, tolerance: float = 0.01):
    """Assert two floats are approximately equal."""
    assert abs(a - b) < tolerance, f"{a} != {b} (tolerance={tolerance})"


