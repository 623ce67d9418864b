"""
Recommendation aggregation.

Turns the members' locations and submitted limits into a ranked candidate
list: centroid of the locations, conservative group-wide limits (minimum
price and distance, median time of day), a place search around the
centroid, then filtering and ranking. Nothing here touches the database.
"""
from typing import Iterable, List, Optional, Sequence
import logging
import math
import re
import statistics

from app.core.config import settings
from app.core.exceptions import InvalidArgumentError, UpstreamUnavailableError
from app.modules.recommendations.schemas.recommendation import (
    AggregationResult,
    Candidate,
    EffectiveConstraints,
    GeoPoint,
    MemberConstraints,
    Place,
)
from app.modules.recommendations.services.place_search import PlaceSearch, fallback_places

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371e3
METERS_PER_MILE = 1609.344

# Typical spend per person (dollars) at each price tier
PRICE_TIER_COST = {0: 0, 1: 15, 2: 30, 3: 60, 4: 100}

# Interest keywords mapped to place categories
CATEGORY_KEYWORDS = {
    "coffee": "cafe",
    "cafe": "cafe",
    "café": "cafe",
    "read": "library",
    "reading": "library",
    "library": "library",
    "book": "book_store",
    "gaming": "amusement_center",
    "game": "amusement_center",
    "arcade": "amusement_center",
    "tech": "electronics_store",
    "technology": "electronics_store",
    "sport": "stadium",
    "sports": "stadium",
    "art": "art_gallery",
    "museum": "museum",
    "music": "night_club",
    "concert": "night_club",
    "food": "restaurant",
    "dinner": "restaurant",
    "lunch": "restaurant",
    "brunch": "restaurant",
    "restaurant": "restaurant",
    "outdoor": "park",
    "hiking": "park",
    "park": "park",
    "picnic": "park",
    "nature": "park",
    "movie": "movie_theater",
    "film": "movie_theater",
    "cinema": "movie_theater",
    "fitness": "gym",
    "yoga": "gym",
    "gym": "gym",
    "shopping": "shopping_mall",
    "drinks": "bar",
    "bar": "bar",
    "bowling": "bowling_alley",
}
MAX_CATEGORY_HINTS = 3

def compute_centroid(locations: Sequence[GeoPoint]) -> GeoPoint:
    """Arithmetic mean of latitudes and longitudes (fine at city scale)"""
    if not locations:
        raise InvalidArgumentError("At least one member location is required")
    lat = sum(point.lat for point in locations) / len(locations)
    lng = sum(point.lng for point in locations) / len(locations)
    return GeoPoint(lat=lat, lng=lng)

def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE

def max_affordable_tier(price_ceiling: float) -> int:
    """Highest price tier whose typical spend fits under the ceiling"""
    return max(tier for tier, cost in PRICE_TIER_COST.items() if cost <= price_ceiling)

def format_time_of_day(value: float) -> str:
    """13.5 -> '1:30 PM'"""
    hour = int(math.floor(value))
    minutes = int(round((value - hour) * 60))
    if minutes == 60:
        hour, minutes = hour + 1, 0
    hour %= 24
    suffix = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour % 12 == 0 else hour % 12
    return f"{display_hour}:{minutes:02d} {suffix}"

def _mentions(word: str, keyword: str) -> bool:
    """Whole-word match, allowing a plural ending"""
    return word in (keyword, keyword + "s", keyword + "es")

def derive_category_hints(text: str, limit: int = MAX_CATEGORY_HINTS) -> List[str]:
    """Place categories mentioned in free-text preferences, in order of appearance"""
    hints = []
    for word in re.findall(r"\w+", (text or "").lower()):
        for keyword, category in CATEGORY_KEYWORDS.items():
            if _mentions(word, keyword) and category not in hints:
                hints.append(category)
        if len(hints) >= limit:
            break
    return hints[:limit]

def reduce_constraints(responses: Iterable) -> EffectiveConstraints:
    """Combine members' limits: strictest price and distance, median time of day"""
    members = [
        r if isinstance(r, MemberConstraints) else MemberConstraints.model_validate(r)
        for r in responses
    ]
    if not members:
        raise InvalidArgumentError("At least one response is required")

    price_ceiling = min(m.price_limit for m in members)
    time_of_day = statistics.median(m.time_of_day for m in members)
    preferences = "; ".join(m.preferences.strip() for m in members if m.preferences and m.preferences.strip())

    return EffectiveConstraints(
        price_ceiling=price_ceiling,
        max_price_tier=max_affordable_tier(price_ceiling),
        distance_ceiling=min(m.distance_limit for m in members),
        time_of_day=time_of_day,
        time_of_day_label=format_time_of_day(time_of_day),
        preferences=preferences,
        category_hints=derive_category_hints(preferences),
    )

def rank_candidates(
    places: Iterable[Place],
    centroid: GeoPoint,
    constraints: EffectiveConstraints,
    limit: int,
) -> List[Candidate]:
    """Drop unaffordable or too-distant places, then order by distance, rating, insertion"""
    max_distance = miles_to_meters(constraints.distance_ceiling)
    candidates = []
    for place in places:
        if place.price_tier is not None and place.price_tier > constraints.max_price_tier:
            continue
        distance = haversine_meters(centroid, place.location)
        if distance > max_distance:
            continue
        candidates.append(Candidate(
            name=place.name,
            category=place.category,
            price_tier=place.price_tier,
            distance_from_centroid=distance,
            description=place.description,
            location=place.location,
            rating=place.rating,
        ))

    # sort is stable, so equal keys keep search order
    candidates.sort(key=lambda c: (
        c.distance_from_centroid,
        c.rating is None,
        -(c.rating or 0.0),
    ))
    return candidates[:limit]

def aggregate(
    member_locations: Sequence[GeoPoint],
    responses: Iterable,
    place_search: PlaceSearch,
    limit: Optional[int] = None,
) -> AggregationResult:
    """Ranked candidates for a group, degrading to the fallback catalog if search fails"""
    centroid = compute_centroid(member_locations)
    constraints = reduce_constraints(responses)
    limit = limit or settings.RECOMMENDATION_LIMIT

    used_fallback = False
    try:
        places = place_search.search(
            centroid,
            miles_to_meters(constraints.distance_ceiling),
            constraints.category_hints,
            keyword=constraints.preferences or None,
        )
    except UpstreamUnavailableError as exc:
        logger.warning(f"Place search unavailable, using fallback candidates: {exc}")
        places = fallback_places(centroid)
        used_fallback = True

    candidates = rank_candidates(places, centroid, constraints, limit)
    logger.info(
        f"Aggregated {len(candidates)} candidates around ({centroid.lat:.5f}, {centroid.lng:.5f}) "
        f"price<={constraints.price_ceiling} distance<={constraints.distance_ceiling}mi"
    )
    return AggregationResult(
        centroid=centroid,
        constraints=constraints,
        candidates=candidates,
        used_fallback=used_fallback,
    )
