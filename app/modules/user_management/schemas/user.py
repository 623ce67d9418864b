from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

def _normalize_interests(v):
    """Accept either a list of tags or a comma-separated string"""
    if v is None:
        return None
    if isinstance(v, str):
        v = v.split(",")
    tags = []
    for tag in v:
        tag = tag.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags

class UserBase(BaseModel):
    email: Optional[EmailStr] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    interests: Optional[List[str]] = None
    preferences: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    normalize_interests = field_validator("interests", mode="before")(_normalize_interests)

class UserOnboarding(UserBase):
    """Profile submitted when a new identity completes onboarding"""
    username: str = Field(..., min_length=3, max_length=32)
    display_name: str = Field(..., min_length=1)

class UserUpdate(UserBase):
    pass

class User(BaseModel):
    """User model returned to client"""
    id: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    interests: List[str] = []
    preferences: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("interests", mode="before")
    @classmethod
    def split_interests(cls, v):
        return _normalize_interests(v) or []

    class Config:
        from_attributes = True

class UserMe(User):
    """The caller's own profile, including private fields"""
    email: Optional[EmailStr] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
