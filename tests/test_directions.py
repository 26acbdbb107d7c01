"""
Unit Tests for directions clients (travelogic.routing.directions).

The Routes API is mocked with ``httpx.MockTransport``; no network access.
"""

import asyncio
import json

import httpx
import pytest

from travelogic.errors import DirectionsError, NoRouteFoundError
from travelogic.routing import (
    Coordinate,
    GoogleRoutesDirectionsClient,
    HaversineDirectionsClient,
    SegmentCache,
    TransportMode,
    decode_polyline,
    parse_duration,
)
from travelogic.routing import directions as directions_module

from tests.conftest import assert_approx_equal, run

ORIGIN = Coordinate(35.6812, 139.7671)
DESTINATION = Coordinate(35.7148, 139.7967)


class RecordingHandler:
    """MockTransport handler replaying canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, payload = self.responses[min(len(self.requests), len(self.responses)) - 1]
        return httpx.Response(status, json=payload)


def _resolve(handler, mode=TransportMode.DRIVING, times=1, **kwargs):
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GoogleRoutesDirectionsClient(api_key="test-key", http_client=http, **kwargs)
            results = []
            for _ in range(times):
                results.append(await client.resolve(ORIGIN, DESTINATION, mode))
            return results[-1]
    return run(_go())


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(directions_module, "exponential_backoff_with_jitter", lambda attempt: 0)


# ==============================================================================
# Parsing
# ==============================================================================

class TestParsing:

    def test_decode_documented_polyline(self):
        points = decode_polyline("_p~iF~ps|U_ulLnnqC_mqNvxq`@")

        assert [(p.lat, p.lng) for p in points] == [
            pytest.approx((38.5, -120.2)),
            pytest.approx((40.7, -120.95)),
            pytest.approx((43.252, -126.453)),
        ]

    def test_decode_empty(self):
        assert decode_polyline("") == []

    @pytest.mark.parametrize("value,expected", [("905s", 905.0), ("0s", 0.0), ("12.5s", 12.5), (None, 0.0), (30, 30.0)])
    def test_parse_duration(self, value, expected):
        assert parse_duration(value) == expected

    def test_parse_duration_garbage(self):
        with pytest.raises(DirectionsError):
            parse_duration("soon")


# ==============================================================================
# Google Routes client
# ==============================================================================

class TestGoogleRoutesClient:

    def test_resolves_segment(self, routes_response):
        handler = RecordingHandler((200, routes_response))

        segment = _resolve(handler)

        assert segment.distance_m == 5120.0
        assert segment.duration_sec == 905.0
        assert len(segment.path) == 3

    def test_request_headers_and_body(self, routes_response):
        handler = RecordingHandler((200, routes_response))

        _resolve(handler)

        request = handler.requests[0]
        assert str(request.url) == directions_module.ROUTES_URL
        assert request.headers["X-Goog-Api-Key"] == "test-key"
        assert "routes.distanceMeters" in request.headers["X-Goog-FieldMask"]
        body = json.loads(request.content)
        assert body["travelMode"] == "DRIVE"
        assert body["routingPreference"] == "TRAFFIC_UNAWARE"
        assert body["origin"]["location"]["latLng"] == {"latitude": 35.6812, "longitude": 139.7671}

    def test_walking_has_no_routing_preference(self, routes_response):
        handler = RecordingHandler((200, routes_response))

        _resolve(handler, mode=TransportMode.WALKING)

        body = json.loads(handler.requests[0].content)
        assert body["travelMode"] == "WALK"
        assert "routingPreference" not in body

    def test_empty_routes_raise_no_route(self):
        handler = RecordingHandler((200, {}))

        with pytest.raises(NoRouteFoundError):
            _resolve(handler)

    def test_client_error_not_retried(self):
        handler = RecordingHandler((403, {"error": {"message": "denied"}}))

        with pytest.raises(DirectionsError, match="403"):
            _resolve(handler, max_retries=3)

        assert len(handler.requests) == 1

    def test_server_error_retried_then_succeeds(self, routes_response):
        handler = RecordingHandler((503, {}), (500, {}), (200, routes_response))

        segment = _resolve(handler, max_retries=3)

        assert segment.distance_m == 5120.0
        assert len(handler.requests) == 3

    def test_server_error_exhausts_retries(self):
        handler = RecordingHandler((500, {}))

        with pytest.raises(DirectionsError, match="after 3 attempts"):
            _resolve(handler, max_retries=2)

        assert len(handler.requests) == 3

    def test_malformed_polyline_gives_empty_path(self):
        handler = RecordingHandler((200, {
            "routes": [{"distanceMeters": 10, "duration": "3s", "polyline": {"encodedPolyline": "_p~"}}]
        }))

        segment = _resolve(handler)

        assert segment.path == []
        assert segment.distance_m == 10.0

    @pytest.mark.parametrize("body", [
        [],
        {"routes": "abc"},
        {"routes": [{"distanceMeters": "n/a"}]},
        {"routes": [{"distanceMeters": 10, "duration": "later"}]},
    ])
    def test_malformed_body_raises_directions_error(self, body):
        handler = RecordingHandler((200, body))

        with pytest.raises(DirectionsError):
            _resolve(handler, max_retries=3)

        assert len(handler.requests) == 1

    def test_cache_hit_skips_request(self, routes_response):
        handler = RecordingHandler((200, routes_response))
        cache = SegmentCache(maxsize=8, ttl=60)

        _resolve(handler, times=2, cache=cache)

        assert len(handler.requests) == 1
        assert cache.stats()["size"] == 1

    def test_cache_keyed_by_mode(self, routes_response):
        cache = SegmentCache()
        segment = directions_module.segment_from_response(routes_response)
        cache.set(ORIGIN, DESTINATION, TransportMode.DRIVING, segment)

        assert cache.get(ORIGIN, DESTINATION, TransportMode.DRIVING) is segment
        assert cache.get(ORIGIN, DESTINATION, TransportMode.WALKING) is None

    def test_missing_key_raises_at_call_time(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
        client = GoogleRoutesDirectionsClient()

        with pytest.raises(RuntimeError, match="Missing GOOGLE_MAPS_API_KEY"):
            asyncio.run(client.resolve(ORIGIN, DESTINATION, TransportMode.DRIVING))


# ==============================================================================
# Offline client
# ==============================================================================

class TestHaversineClient:

    def test_walking_speed(self):
        client = HaversineDirectionsClient()

        segment = run(client.resolve(Coordinate(0, 0), Coordinate(0, 1), TransportMode.WALKING))

        assert_approx_equal(segment.distance_m, 111_194.93, tolerance=1.0)
        # 5 km/h
        assert_approx_equal(segment.duration_sec, segment.distance_m / (5000 / 3600), tolerance=1e-6)
        assert segment.path == [Coordinate(0, 0), Coordinate(0, 1)]

    def test_speed_override(self):
        client = HaversineDirectionsClient(speeds_kmh={TransportMode.DRIVING: 36.0})

        segment = run(client.resolve(Coordinate(0, 0), Coordinate(0, 1), TransportMode.DRIVING))

        assert_approx_equal(segment.duration_sec, segment.distance_m / 10.0, tolerance=1e-6)
