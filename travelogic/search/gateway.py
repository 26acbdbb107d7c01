"""Google Places (New) text search for nearby points of interest."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from ..routing.models import Coordinate, PointOfInterest
from ..tools.config_loader import require_google_api_key
from ..tools.fields import get_places_search_mask

logger = logging.getLogger(__name__)

PLACES_BASE = "https://places.googleapis.com/v1"

DEFAULT_RADIUS_M = 10_000
# Places API caps the location bias circle and page size
MAX_RADIUS_M = 50_000
MAX_RESULTS = 20

UNKNOWN_CATEGORY = "Unknown"

# Quick-search categories offered next to the search box
PRESET_CATEGORIES = [
    "Restaurant",
    "Hotel",
    "Gas Station",
    "Tourist Attraction",
    "Shopping",
    "Hospital",
    "Bank",
    "Coffee",
]

# Street, city, region: in this order
_ADDRESS_COMPONENT_TYPES = ("route", "locality", "administrative_area_level_1")


class SearchGateway(Protocol):
    async def search(
        self, query: str, near: Coordinate, radius_m: int = DEFAULT_RADIUS_M
    ) -> List[PointOfInterest]:
        ...

    async def search_by_category(
        self, category: str, near: Coordinate, radius_m: int = DEFAULT_RADIUS_M
    ) -> List[PointOfInterest]:
        ...


def format_address(payload: Dict[str, Any]) -> str:
    """Short 'street, city, region' label, falling back to the formatted address."""
    components = payload.get("addressComponents") or []
    parts: List[str] = []
    for wanted in _ADDRESS_COMPONENT_TYPES:
        for component in components:
            if wanted in (component.get("types") or []):
                text = component.get("longText") or component.get("shortText")
                if text:
                    parts.append(text)
                break
    if parts:
        return ", ".join(parts)
    return payload.get("formattedAddress") or ""


def poi_from_payload(payload: Dict[str, Any]) -> Optional[PointOfInterest]:
    """Convert one Places result; results without a name or location are dropped."""
    name = (payload.get("displayName") or {}).get("text")
    location = payload.get("location") or {}
    lat, lng = location.get("latitude"), location.get("longitude")
    if not name or lat is None or lng is None:
        return None

    category = (
        (payload.get("primaryTypeDisplayName") or {}).get("text")
        or payload.get("primaryType")
        or UNKNOWN_CATEGORY
    )
    kwargs: Dict[str, Any] = {}
    if payload.get("id"):
        kwargs["id"] = payload["id"]
    return PointOfInterest(
        name=name,
        category=category,
        coordinate=Coordinate(lat, lng),
        address=format_address(payload),
        rating=0.0,
        description=(payload.get("editorialSummary") or {}).get("text", ""),
        **kwargs,
    )


class GooglePlacesSearchGateway:
    """
    Text search near a location.

    Provider failures never propagate: they are logged and an empty list is
    returned, so callers treat "no results" and "provider down" alike.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        language: str = "en",
        max_results: int = MAX_RESULTS,
        timeout: float = 30.0,
    ):
        self._api_key = api_key
        self._http_client = http_client
        self.language = language
        self.max_results = max_results
        self.timeout = timeout

    async def _http_post_json(self, url: str, payload: dict, headers: dict) -> dict:
        if self._http_client is not None:
            response = await self._http_client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()

    def _build_body(self, query: str, near: Coordinate, radius_m: int) -> dict:
        return {
            "textQuery": query,
            "languageCode": self.language,
            "maxResultCount": min(self.max_results, MAX_RESULTS),
            "locationBias": {
                "circle": {
                    "center": {"latitude": near.lat, "longitude": near.lng},
                    "radius": float(min(max(radius_m, 1), MAX_RADIUS_M)),
                }
            },
        }

    async def search(
        self, query: str, near: Coordinate, radius_m: int = DEFAULT_RADIUS_M
    ) -> List[PointOfInterest]:
        """Execute Places Text Search (New) with FieldMask enforcement."""
        if not query or not query.strip():
            return []

        try:
            google_key = self._api_key or require_google_api_key()
        except RuntimeError as e:
            logger.error("Place search for %r skipped: %s", query, e)
            return []

        headers = {"X-Goog-Api-Key": google_key}
        headers.update(get_places_search_mask())
        body = self._build_body(query.strip(), near, radius_m)

        try:
            data = await self._http_post_json(f"{PLACES_BASE}/places:searchText", body, headers)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Place search for %r failed: %s", query, e)
            return []

        # An empty result set comes back as {}
        results = data.get("places", []) if isinstance(data, dict) else None
        if not isinstance(results, list):
            logger.warning("Place search for %r returned an unexpected body: %.200r", query, data)
            return []

        places: List[PointOfInterest] = []
        for payload in results:
            if not isinstance(payload, dict):
                logger.debug("Skipping non-object place payload: %r", payload)
                continue
            try:
                poi = poi_from_payload(payload)
            except (AttributeError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed place payload: %s", e)
                continue
            if poi is not None:
                places.append(poi)
        logger.debug("Place search for %r returned %d results", query, len(places))
        return places

    async def search_by_category(
        self, category: str, near: Coordinate, radius_m: int = DEFAULT_RADIUS_M
    ) -> List[PointOfInterest]:
        """Category search is a text search on the category name."""
        return await self.search(category, near, radius_m)
