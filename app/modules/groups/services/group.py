from typing import Iterable, List, Optional, Tuple
import uuid
import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AlreadyProcessedError,
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from app.modules.groups.models.group import Group, GroupInvitation, GroupMembership, GroupRole, InvitationStatus
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

# Group queries
def get_group(db: Session, group_id: str) -> Optional[Group]:
    """Get group by ID"""
    return db.query(Group).filter(Group.id == group_id).first()

def get_group_or_404(db: Session, group_id: str) -> Group:
    group = get_group(db, group_id)
    if not group:
        raise NotFoundError("Group not found")
    return group

def get_membership(db: Session, group_id: str, user_id: str) -> Optional[GroupMembership]:
    return db.query(GroupMembership).filter(
        GroupMembership.group_id == group_id,
        GroupMembership.user_id == user_id,
    ).first()

def is_member(db: Session, group_id: str, user_id: str) -> bool:
    return get_membership(db, group_id, user_id) is not None

def members_of(db: Session, group_id: str) -> List[Tuple[GroupMembership, User]]:
    """Current roster of a group with each member's role"""
    return (
        db.query(GroupMembership, User)
        .join(User, User.id == GroupMembership.user_id)
        .filter(GroupMembership.group_id == group_id)
        .order_by(GroupMembership.joined_at, User.display_name)
        .all()
    )

def member_count(db: Session, group_id: str) -> int:
    """Number of members, without loading membership rows"""
    return db.query(func.count(GroupMembership.user_id)).filter(
        GroupMembership.group_id == group_id
    ).scalar() or 0

def groups_for_user(db: Session, user_id: str) -> List[Group]:
    """Groups the user belongs to, newest first"""
    return (
        db.query(Group)
        .join(GroupMembership, GroupMembership.group_id == Group.id)
        .filter(GroupMembership.user_id == user_id)
        .order_by(Group.created_at.desc())
        .all()
    )

# Group and invitation commands
def _build_invitations(db: Session, group_id: str, inviter_id: str, recipient_ids: Iterable[str]) -> List[GroupInvitation]:
    """Validate recipients and build (unsaved) pending invitations"""
    unique_ids = list(dict.fromkeys(recipient_ids))
    if not unique_ids:
        raise InvalidArgumentError("At least one recipient is required")

    found = {user.id for user in get_users_by_ids(db, unique_ids)}
    missing = [user_id for user_id in unique_ids if user_id not in found]
    if missing:
        raise NotFoundError(f"Users not found: {', '.join(missing)}")

    existing_members = {
        row.user_id for row in db.query(GroupMembership.user_id).filter(
            GroupMembership.group_id == group_id,
            GroupMembership.user_id.in_(unique_ids),
        )
    }
    if inviter_id in unique_ids:
        existing_members.add(inviter_id)
    if existing_members:
        raise ConflictError(f"Already members of this group: {', '.join(sorted(existing_members))}")

    already_invited = {
        row.recipient_id for row in db.query(GroupInvitation.recipient_id).filter(
            GroupInvitation.group_id == group_id,
            GroupInvitation.recipient_id.in_(unique_ids),
            GroupInvitation.status == InvitationStatus.PENDING,
        )
    }
    if already_invited:
        raise ConflictError(f"Invitation already pending for: {', '.join(sorted(already_invited))}")

    return [
        GroupInvitation(
            id=str(uuid.uuid4()),
            group_id=group_id,
            sender_id=inviter_id,
            recipient_id=recipient_id,
            status=InvitationStatus.PENDING,
        )
        for recipient_id in unique_ids
    ]

def create_group(
    db: Session,
    creator_id: str,
    name: str,
    description: Optional[str] = None,
    invitee_ids: Optional[Iterable[str]] = None,
) -> Tuple[Group, List[GroupInvitation]]:
    """Create a group with its creator as admin, optionally inviting friends in the same transaction"""
    if not name or not name.strip():
        raise InvalidArgumentError("Group name cannot be empty")

    group = Group(
        id=str(uuid.uuid4()),
        name=name.strip(),
        description=description,
        creator_id=creator_id,
    )
    db.add(group)
    db.flush()
    db.add(GroupMembership(group_id=group.id, user_id=creator_id, role=GroupRole.ADMIN))

    invitations = []
    if invitee_ids:
        try:
            invitations = _build_invitations(db, group.id, creator_id, invitee_ids)
        except Exception:
            db.rollback()
            raise
        db.add_all(invitations)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Could not create group")

    db.refresh(group)
    for invitation in invitations:
        db.refresh(invitation)
    logger.info(f"Group {group.id} created by {creator_id} with {len(invitations)} invitations")
    return group, invitations

def invite_members(db: Session, group_id: str, inviter_id: str, recipient_ids: Iterable[str]) -> List[GroupInvitation]:
    """Invite users to a group; any current member may invite"""
    get_group_or_404(db, group_id)
    if not is_member(db, group_id, inviter_id):
        raise ForbiddenError("Only group members can invite")

    invitations = _build_invitations(db, group_id, inviter_id, recipient_ids)
    db.add_all(invitations)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent invitation for one of the recipients landed first
        db.rollback()
        raise ConflictError("Invitation already pending")

    for invitation in invitations:
        db.refresh(invitation)
    logger.info(f"User {inviter_id} invited {len(invitations)} users to group {group_id}")
    return invitations

def get_invitation(db: Session, invitation_id: str) -> Optional[GroupInvitation]:
    return db.query(GroupInvitation).filter(GroupInvitation.id == invitation_id).first()

def pending_invitations_for(db: Session, user_id: str) -> List[GroupInvitation]:
    """Pending invitations addressed to a user, newest first"""
    return db.query(GroupInvitation).filter(
        GroupInvitation.recipient_id == user_id,
        GroupInvitation.status == InvitationStatus.PENDING,
    ).order_by(GroupInvitation.created_at.desc()).all()

def respond_to_invitation(db: Session, invitation_id: str, acting_user_id: str, accept: bool) -> GroupInvitation:
    """Accept or reject a pending invitation; accepting adds a member-role membership atomically"""
    invitation = get_invitation(db, invitation_id)
    if not invitation:
        raise NotFoundError("Invitation not found")
    if invitation.recipient_id != acting_user_id:
        raise ForbiddenError("Invitation is addressed to another user")
    if invitation.status != InvitationStatus.PENDING:
        raise AlreadyProcessedError(f"Invitation already {invitation.status.value}")

    new_status = InvitationStatus.ACCEPTED if accept else InvitationStatus.REJECTED
    updated = db.query(GroupInvitation).filter(
        GroupInvitation.id == invitation_id,
        GroupInvitation.status == InvitationStatus.PENDING,
    ).update({GroupInvitation.status: new_status}, synchronize_session=False)
    if updated == 0:
        db.rollback()
        raise AlreadyProcessedError("Invitation was already processed")

    group_id = invitation.group_id
    if accept:
        db.add(GroupMembership(group_id=group_id, user_id=acting_user_id, role=GroupRole.MEMBER))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Already a member of this group")

    db.refresh(invitation)
    logger.info(f"User {acting_user_id} {new_status.value} invitation to group {group_id}")
    return invitation
