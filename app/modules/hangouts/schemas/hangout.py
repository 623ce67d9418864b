from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from app.modules.hangouts.models.hangout import HangoutStatus
from app.modules.recommendations.schemas.recommendation import Candidate, EffectiveConstraints

class HangoutResponseCreate(BaseModel):
    """A member's constraints for the current round (the preference sliders)"""
    price_limit: float = Field(..., ge=0)
    distance_limit: float = Field(..., gt=0)
    time_of_day: float = Field(..., ge=0, lt=24)
    preferences: str = ""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def check_location_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self

class HangoutResponse(HangoutResponseCreate):
    id: str
    request_id: str
    user_id: str
    created_at: datetime

    class Config:
        from_attributes = True

class HangoutRequest(BaseModel):
    id: str
    group_id: str
    creator_id: str
    status: HangoutStatus
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Readiness(BaseModel):
    request_id: str
    responses_received: int
    total_members: int
    can_close: bool
    responded_user_ids: List[str] = []

class RoundResult(BaseModel):
    request: HangoutRequest
    constraints: EffectiveConstraints
    candidates: List[Candidate]
    used_fallback: bool = False
