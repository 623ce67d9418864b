from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.exceptions import ForbiddenError
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.groups.schemas.group import (
    Group as GroupSchema,
    GroupCreate,
    GroupCreated,
    GroupDetail,
    GroupInvitation as GroupInvitationSchema,
    GroupMember,
    InvitationCreate,
    InvitationResponse,
)
from app.modules.groups.services.group import (
    create_group,
    get_group_or_404,
    get_membership,
    groups_for_user,
    invite_members,
    member_count,
    members_of,
    pending_invitations_for,
    respond_to_invitation,
)
from app.modules.user_management.models.user import User

router = APIRouter()

def _require_membership(db: Session, group_id: str, user_id: str):
    """Validate the user belongs to the group, raise Forbidden if not"""
    membership = get_membership(db, group_id, user_id)
    if not membership:
        raise ForbiddenError("Not a member of this group")
    return membership

@router.post("/", response_model=GroupCreated, status_code=status.HTTP_201_CREATED)
def create_new_group(
    *,
    db: Session = Depends(get_db),
    group_in: GroupCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    group, invitations = create_group(
        db,
        creator_id=current_user.id,
        name=group_in.name,
        description=group_in.description,
        invitee_ids=group_in.invitee_ids,
    )
    return GroupCreated(
        group=GroupSchema.model_validate(group),
        invitations=[GroupInvitationSchema.model_validate(i) for i in invitations],
    )

@router.get("/", response_model=List[GroupSchema])
def list_my_groups(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return groups_for_user(db, current_user.id)

@router.get("/invitations/pending", response_model=List[GroupInvitationSchema])
def list_my_pending_invitations(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return pending_invitations_for(db, current_user.id)

@router.post("/invitations/{invitation_id}/respond", response_model=GroupInvitationSchema)
def respond_to_group_invitation(
    *,
    db: Session = Depends(get_db),
    invitation_id: str,
    response_in: InvitationResponse,
    current_user: User = Depends(get_current_user),
) -> Any:
    return respond_to_invitation(db, invitation_id, current_user.id, response_in.accept)

@router.get("/{group_id}", response_model=GroupDetail)
def read_group(
    *,
    db: Session = Depends(get_db),
    group_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    group = get_group_or_404(db, group_id)
    membership = _require_membership(db, group_id, current_user.id)
    return GroupDetail(
        **GroupSchema.model_validate(group).model_dump(),
        member_count=member_count(db, group_id),
        my_role=membership.role,
    )

@router.get("/{group_id}/members", response_model=List[GroupMember])
def read_group_members(
    *,
    db: Session = Depends(get_db),
    group_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    get_group_or_404(db, group_id)
    _require_membership(db, group_id, current_user.id)
    return [
        {"user": user, "role": membership.role, "joined_at": membership.joined_at}
        for membership, user in members_of(db, group_id)
    ]

@router.post("/{group_id}/invitations", response_model=List[GroupInvitationSchema], status_code=status.HTTP_201_CREATED)
def invite_to_group(
    *,
    db: Session = Depends(get_db),
    group_id: str,
    invitation_in: InvitationCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    return invite_members(db, group_id, current_user.id, invitation_in.recipient_ids)
