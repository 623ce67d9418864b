from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from app.modules.groups.models.group import GroupRole, InvitationStatus
from app.modules.user_management.schemas.user import User as UserSchema

class GroupCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = None
    invitee_ids: List[str] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Group name cannot be empty")
        return v.strip()

class Group(BaseModel):
    """Group model returned to client"""
    id: str
    name: str
    description: Optional[str] = None
    creator_id: str
    created_at: datetime

    class Config:
        from_attributes = True

class GroupDetail(Group):
    member_count: int
    my_role: Optional[GroupRole] = None

class GroupMember(BaseModel):
    user: UserSchema
    role: GroupRole
    joined_at: datetime

class InvitationCreate(BaseModel):
    recipient_ids: List[str] = Field(..., min_length=1)

class GroupInvitation(BaseModel):
    id: str
    group_id: str
    sender_id: str
    recipient_id: str
    status: InvitationStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class InvitationResponse(BaseModel):
    accept: bool

class GroupCreated(BaseModel):
    group: Group
    invitations: List[GroupInvitation] = []
