"""
Place search collaborator.

GooglePlacesSearch wraps the Places Nearby Search API. Every failure mode
(missing key, timeout, transport error, HTTP error, non-OK status) surfaces as
UpstreamUnavailableError so the aggregator can fall back to FALLBACK_CATALOG.
"""
from typing import List, Optional, Protocol, Sequence
import logging

import httpx

from app.core.config import settings
from app.core.exceptions import UpstreamUnavailableError
from app.modules.recommendations.schemas.recommendation import GeoPoint, Place

logger = logging.getLogger(__name__)

# Nearby Search rejects larger radii
MAX_RADIUS_METERS = 50000
# Keep the free-text keyword short; the API matches it against names and reviews
MAX_KEYWORD_LENGTH = 100

class PlaceSearch(Protocol):
    def search(
        self,
        center: GeoPoint,
        radius_meters: float,
        category_hints: Sequence[str],
        keyword: Optional[str] = None,
    ) -> List[Place]:
        ...

class GooglePlacesSearch:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api",
        timeout: float = 5.0,
        default_category: str = "point_of_interest",
        client: Optional[httpx.Client] = None,
    ):
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/place/nearbysearch/json"
        self._timeout = timeout
        self._default_category = default_category
        self._client = client

    def search(
        self,
        center: GeoPoint,
        radius_meters: float,
        category_hints: Sequence[str],
        keyword: Optional[str] = None,
    ) -> List[Place]:
        if not self._api_key:
            raise UpstreamUnavailableError("Place search is not configured")

        radius = int(min(max(radius_meters, 1), MAX_RADIUS_METERS))
        categories = list(category_hints) or [self._default_category]

        places = {}
        for category in categories:
            for place in self._nearby(center, radius, category, keyword):
                # Same place can match several categories
                places.setdefault(place.place_id or place.name, place)

        logger.info(f"Place search found {len(places)} places within {radius}m of ({center.lat}, {center.lng})")
        return list(places.values())

    def _nearby(self, center: GeoPoint, radius: int, category: str, keyword: Optional[str]) -> List[Place]:
        params = {
            "location": f"{center.lat},{center.lng}",
            "radius": radius,
            "type": category,
            "key": self._api_key,
        }
        if keyword:
            params["keyword"] = keyword[:MAX_KEYWORD_LENGTH]

        try:
            if self._client is not None:
                response = self._client.get(self._url, params=params, timeout=self._timeout)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.get(self._url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.error(f"Place search request failed for category '{category}': {exc}")
            raise UpstreamUnavailableError("Place search request failed") from exc
        except ValueError as exc:
            raise UpstreamUnavailableError("Place search returned invalid JSON") from exc

        if not isinstance(data, dict):
            logger.error(f"Place search returned a {type(data).__name__} instead of an object")
            raise UpstreamUnavailableError("Place search returned an unexpected payload")

        api_status = data.get("status")
        if api_status == "ZERO_RESULTS":
            return []
        if api_status != "OK":
            logger.error(f"Place search returned status {api_status}: {data.get('error_message')}")
            raise UpstreamUnavailableError(f"Place search returned status {api_status}")

        return [
            place
            for place in (_parse_place(result, category) for result in data.get("results", []))
            if place is not None
        ]

def _parse_place(result: dict, category: str) -> Optional[Place]:
    try:
        location = result["geometry"]["location"]
        return Place(
            name=result["name"],
            category=category,
            location=GeoPoint(lat=location["lat"], lng=location["lng"]),
            price_tier=result.get("price_level"),
            rating=result.get("rating"),
            description=result.get("vicinity", ""),
            place_id=result.get("place_id"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(f"Skipping malformed place result: {exc}")
        return None

# Small fixed set used when the search provider is unavailable
FALLBACK_CATALOG = [
    {
        "name": "Central Park Coffee",
        "category": "cafe",
        "price_tier": 1,
        "rating": 4.8,
        "description": "Cozy café with outdoor seating and specialty coffee.",
    },
    {
        "name": "Central Park Picnic",
        "category": "park",
        "price_tier": 0,
        "rating": 4.8,
        "description": "Enjoy a relaxing picnic in the park.",
    },
    {
        "name": "Art Gallery Tour",
        "category": "art_gallery",
        "price_tier": 1,
        "rating": 4.6,
        "description": "Explore the latest contemporary art exhibitions at local galleries.",
    },
    {
        "name": "Community Center",
        "category": "point_of_interest",
        "price_tier": 0,
        "rating": 4.5,
        "description": "Various activities and events for all interests.",
    },
    {
        "name": "Rooftop Brunch",
        "category": "restaurant",
        "price_tier": 3,
        "rating": 4.7,
        "description": "Brunch with city views from a rooftop restaurant.",
    },
]

def fallback_places(center: GeoPoint) -> List[Place]:
    """Fallback catalog anchored at the search center"""
    return [Place(location=center, **entry) for entry in FALLBACK_CATALOG]

def get_place_search() -> PlaceSearch:
    """FastAPI dependency for the configured place-search provider"""
    return GooglePlacesSearch(
        api_key=settings.PLACES_API_KEY,
        base_url=settings.PLACES_BASE_URL,
        timeout=settings.PLACE_SEARCH_TIMEOUT,
        default_category=settings.DEFAULT_SEARCH_CATEGORY,
    )
