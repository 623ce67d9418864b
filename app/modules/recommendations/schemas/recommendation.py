from typing import Optional, List
from pydantic import BaseModel, Field

class GeoPoint(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

class MemberConstraints(BaseModel):
    """One member's submitted limits, as consumed by the aggregator"""
    price_limit: float = Field(..., ge=0)
    distance_limit: float = Field(..., gt=0)
    time_of_day: float = Field(..., ge=0, lt=24)
    preferences: str = ""

    class Config:
        from_attributes = True

class Place(BaseModel):
    """A point of interest as returned by the place-search collaborator"""
    name: str
    category: str
    location: GeoPoint
    price_tier: Optional[int] = Field(default=None, ge=0, le=4)
    rating: Optional[float] = None
    description: str = ""
    place_id: Optional[str] = None

class Candidate(BaseModel):
    """A ranked recommendation; computed per aggregation, never stored"""
    name: str
    category: str
    price_tier: Optional[int] = None
    distance_from_centroid: float  # Meters
    description: str = ""
    location: GeoPoint
    rating: Optional[float] = None

class EffectiveConstraints(BaseModel):
    price_ceiling: float
    max_price_tier: int
    distance_ceiling: float  # Miles
    time_of_day: float
    time_of_day_label: str
    preferences: str = ""
    category_hints: List[str] = []

class AggregationResult(BaseModel):
    centroid: GeoPoint
    constraints: EffectiveConstraints
    candidates: List[Candidate]
    used_fallback: bool = False
