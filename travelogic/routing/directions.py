"""
Directions clients that resolve one origin/destination pair into a segment.

The route builder only depends on the ``DirectionsClient`` protocol. Two
implementations ship here:

- ``GoogleRoutesDirectionsClient``: Routes API ``computeRoutes`` with
  FieldMask enforcement, TTL caching, and exponential backoff with jitter
  on server errors
- ``HaversineDirectionsClient``: offline estimate from great-circle
  distance and a per-mode average speed
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx
from cachetools import TTLCache

from ..errors import DirectionsError, NoRouteFoundError
from ..spatial.distance import distance_between
from ..tools.config_loader import require_google_api_key
from ..tools.fields import get_routes_segment_mask
from .models import Coordinate, Segment, TransportMode

logger = logging.getLogger(__name__)


# -----------------------------
# Constants
# -----------------------------

ROUTES_URL = "https://routes.googleapis.com/directions/v2:computeRoutes"

# Segment TTL: routing is traffic-unaware so results stay valid for a while
TTL_SEGMENT = 60 * 60

# Retry configuration
MAX_RETRIES = 3
BACKOFF_BASE = 2
BACKOFF_MAX = 8

# Average speeds (km/h) for offline estimates
ESTIMATE_SPEEDS_KMH = {
    TransportMode.DRIVING: 40.0,
    TransportMode.WALKING: 5.0,
    TransportMode.TRANSIT: 25.0,
}


class DirectionsClient(Protocol):
    """Anything that can turn two coordinates into a travel segment."""

    async def resolve(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportMode,
    ) -> Segment:
        """
        Resolve a single leg.

        Raises:
            DirectionsError: If the provider fails or finds no route
        """
        ...


# -----------------------------
# Cache Management
# -----------------------------

class SegmentCache:
    """TTL cache for resolved segments."""

    def __init__(self, maxsize: int = 2048, ttl: int = TTL_SEGMENT):
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)

    def _cache_key(self, origin: Coordinate, destination: Coordinate, mode: TransportMode) -> Tuple:
        """
        Generate cache key from a leg.

        Locations are rounded to 5 decimal places (~1m precision) to allow
        cache hits for nearby requests.
        """
        return (
            (round(origin.lat, 5), round(origin.lng, 5)),
            (round(destination.lat, 5), round(destination.lng, 5)),
            mode.value,
        )

    def get(self, origin: Coordinate, destination: Coordinate, mode: TransportMode) -> Optional[Segment]:
        return self._cache.get(self._cache_key(origin, destination, mode))

    def set(self, origin: Coordinate, destination: Coordinate, mode: TransportMode, segment: Segment) -> None:
        self._cache[self._cache_key(origin, destination, mode)] = segment

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._cache),
            "maxsize": self._cache.maxsize,
            "ttl": self._cache.ttl,
        }


# -----------------------------
# Response parsing
# -----------------------------

def exponential_backoff_with_jitter(attempt: int) -> float:
    """
    Calculate backoff time with exponential growth and jitter.

    Formula: min(BACKOFF_BASE^attempt + random(0,1), BACKOFF_MAX)
    """
    base_delay = BACKOFF_BASE ** attempt
    jitter = random.random()
    return min(base_delay + jitter, BACKOFF_MAX)


def parse_duration(value: Any) -> float:
    """Parse a Routes API duration such as ``"905s"`` into seconds."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.endswith("s"):
        text = text[:-1]
    try:
        return float(text)
    except ValueError as exc:
        raise DirectionsError(f"Unparseable duration '{value}'") from exc


def decode_polyline(encoded: str) -> List[Coordinate]:
    """Decode a Google encoded polyline into coordinates."""
    if not encoded:
        return []

    coordinates: List[Coordinate] = []
    index = 0
    lat = 0
    lng = 0

    def _next_value() -> int:
        nonlocal index
        shift = 0
        result = 0
        while True:
            b = ord(encoded[index]) - 63
            index += 1
            result |= (b & 0x1F) << shift
            shift += 5
            if b < 0x20:
                break
        return ~(result >> 1) if (result & 1) else (result >> 1)

    while index < len(encoded):
        lat += _next_value()
        lng += _next_value()
        coordinates.append(Coordinate(lat / 1e5, lng / 1e5))
    return coordinates


def segment_from_response(data: Dict[str, Any]) -> Segment:
    """
    Build a segment from the first route of a computeRoutes response.

    Raises:
        NoRouteFoundError: If the response holds no route
        DirectionsError: If the response is not shaped like a computeRoutes body
    """
    if not isinstance(data, dict):
        raise DirectionsError(f"Routes API returned {type(data).__name__}, expected an object")
    routes = data.get("routes") or []
    if not routes:
        raise NoRouteFoundError("Routes API returned no route")
    try:
        route = routes[0]
        distance_m = float(route.get("distanceMeters", 0))
        duration_sec = parse_duration(route.get("duration"))
        encoded = (route.get("polyline") or {}).get("encodedPolyline", "")
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise DirectionsError(f"Malformed route in Routes API response: {exc}") from exc
    try:
        path = decode_polyline(encoded)
    except (IndexError, TypeError, ValueError):
        logger.debug("Ignoring malformed polyline in Routes API response")
        path = []
    return Segment(distance_m=distance_m, duration_sec=duration_sec, path=path)


# -----------------------------
# API Client
# -----------------------------

class GoogleRoutesDirectionsClient:
    """
    Directions client backed by the Google Routes API.

    Args:
        api_key: Google Maps API key; read from the environment at call
            time when omitted
        http_client: Shared ``httpx.AsyncClient``; a short-lived client is
            opened per request when omitted
        cache: Segment cache; pass ``None`` to disable caching
        max_retries: Retries on 5xx and transport errors
        language: Response language code
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        cache: Optional[SegmentCache] = None,
        max_retries: int = MAX_RETRIES,
        language: str = "en",
        timeout: float = 30.0,
    ):
        self._api_key = api_key
        self._http_client = http_client
        self.cache = cache
        self.max_retries = max_retries
        self.language = language
        self.timeout = timeout

    def _build_body(self, origin: Coordinate, destination: Coordinate, mode: TransportMode) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "origin": {"location": {"latLng": {"latitude": origin.lat, "longitude": origin.lng}}},
            "destination": {"location": {"latLng": {"latitude": destination.lat, "longitude": destination.lng}}},
            "travelMode": mode.provider_mode,
            "languageCode": self.language,
        }
        # routingPreference is only accepted for DRIVE; traffic is ignored
        if mode == TransportMode.DRIVING:
            body["routingPreference"] = "TRAFFIC_UNAWARE"
        return body

    async def _post(self, body: Dict[str, Any], headers: Dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(ROUTES_URL, json=body, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(ROUTES_URL, json=body, headers=headers)

    async def resolve(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportMode,
    ) -> Segment:
        """
        Resolve a leg with caching and retries.

        Raises:
            RuntimeError: If no API key is configured
            NoRouteFoundError: If the API finds no route
            DirectionsError: If the request fails after retries
        """
        if self.cache is not None:
            cached = self.cache.get(origin, destination, mode)
            if cached is not None:
                logger.debug("Segment cache hit for %s -> %s (%s)", origin, destination, mode.value)
                return cached

        api_key = self._api_key or require_google_api_key()
        headers = {
            "X-Goog-Api-Key": api_key,
            **get_routes_segment_mask(),
        }
        body = self._build_body(origin, destination, mode)

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                response = await self._post(body, headers)
            except httpx.TransportError as e:
                last_error = e
                logger.debug("Routes API transport error (attempt %d): %s", attempt + 1, e)
            else:
                if response.status_code < 500:
                    if response.is_error:
                        raise DirectionsError(
                            f"Routes API rejected request: {response.status_code} {response.text[:200]}"
                        )
                    try:
                        payload = response.json()
                    except ValueError as exc:
                        raise DirectionsError("Routes API returned invalid JSON") from exc
                    segment = segment_from_response(payload)
                    if self.cache is not None:
                        self.cache.set(origin, destination, mode, segment)
                    return segment
                last_error = DirectionsError(f"Server error: {response.status_code}")
                logger.debug("Routes API server error %d (attempt %d)", response.status_code, attempt + 1)

            if attempt < self.max_retries:
                await asyncio.sleep(exponential_backoff_with_jitter(attempt))

        raise DirectionsError(
            f"Routes API request failed after {self.max_retries + 1} attempts: {last_error}"
        ) from last_error


class HaversineDirectionsClient:
    """Offline directions: straight-line distance at a per-mode average speed."""

    def __init__(self, speeds_kmh: Optional[Dict[TransportMode, float]] = None):
        self.speeds_kmh = {**ESTIMATE_SPEEDS_KMH, **(speeds_kmh or {})}

    async def resolve(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportMode,
    ) -> Segment:
        distance = distance_between(origin, destination)
        speed_ms = self.speeds_kmh[mode] * 1000.0 / 3600.0
        return Segment(
            distance_m=distance,
            duration_sec=distance / speed_ms,
            path=[origin, destination],
        )
