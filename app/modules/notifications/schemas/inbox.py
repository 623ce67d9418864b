from typing import List
from pydantic import BaseModel

from app.modules.friendships.schemas.friendship import FriendshipRequest
from app.modules.groups.schemas.group import Group, GroupInvitation
from app.modules.hangouts.schemas.hangout import HangoutRequest
from app.modules.user_management.schemas.user import User

class FriendRequestItem(BaseModel):
    request: FriendshipRequest
    sender: User

class GroupInvitationItem(BaseModel):
    invitation: GroupInvitation
    group: Group
    sender: User

class HangoutRoundItem(BaseModel):
    """An active round in one of the user's groups still waiting for their response"""
    request: HangoutRequest
    group: Group

class Inbox(BaseModel):
    friend_requests: List[FriendRequestItem] = []
    group_invitations: List[GroupInvitationItem] = []
    hangout_rounds: List[HangoutRoundItem] = []
    total: int = 0
