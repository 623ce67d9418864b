from typing import Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel

from app.modules.friendships.models.friendship import FriendRequestStatus

class FriendshipRequestCreate(BaseModel):
    receiver_id: str

class FriendshipRequest(BaseModel):
    """Friend request model returned to client"""
    id: str
    sender_id: str
    receiver_id: str
    status: FriendRequestStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class FriendshipState(str, Enum):
    SELF = "self"
    FRIENDS = "friends"
    REQUEST_SENT = "request_sent"
    REQUEST_RECEIVED = "request_received"
    NOT_FRIENDS = "not_friends"

class FriendshipStatus(BaseModel):
    status: FriendshipState
    request_id: Optional[str] = None
