"""
Inbox service.

Collects everything waiting on a user's action. The API never pushes
notifications; clients poll this view.
"""
from typing import List
import logging
from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.modules.friendships.services.friendship import pending_requests_for
from app.modules.groups.models.group import Group, GroupMembership
from app.modules.groups.services.group import pending_invitations_for
from app.modules.hangouts.models.hangout import HangoutRequest, HangoutResponse, HangoutStatus
from app.modules.notifications.schemas.inbox import (
    FriendRequestItem,
    GroupInvitationItem,
    HangoutRoundItem,
    Inbox,
)
from app.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

def _rounds_awaiting_response(db: Session, user_id: str) -> List[HangoutRoundItem]:
    rows = (
        db.query(HangoutRequest, Group)
        .join(Group, Group.id == HangoutRequest.group_id)
        .join(
            GroupMembership,
            and_(GroupMembership.group_id == Group.id, GroupMembership.user_id == user_id),
        )
        .outerjoin(
            HangoutResponse,
            and_(HangoutResponse.request_id == HangoutRequest.id, HangoutResponse.user_id == user_id),
        )
        .filter(
            HangoutRequest.status == HangoutStatus.ACTIVE,
            HangoutResponse.id.is_(None),
        )
        .order_by(HangoutRequest.created_at.desc())
        .all()
    )
    return [HangoutRoundItem(request=request, group=group) for request, group in rows]

def get_inbox(db: Session, user_id: str) -> Inbox:
    """Pending friend requests, pending group invitations and rounds awaiting a response"""
    friend_requests = pending_requests_for(db, user_id)
    invitations = pending_invitations_for(db, user_id)

    sender_ids = {r.sender_id for r in friend_requests} | {i.sender_id for i in invitations}
    senders = {user.id: user for user in get_users_by_ids(db, sender_ids)}
    groups = {}
    if invitations:
        group_ids = {i.group_id for i in invitations}
        groups = {g.id: g for g in db.query(Group).filter(Group.id.in_(group_ids)).all()}

    friend_items = []
    for request in friend_requests:
        sender = senders.get(request.sender_id)
        if sender is None:
            logger.warning(f"Friend request {request.id} references missing user {request.sender_id}")
            continue
        friend_items.append(FriendRequestItem(request=request, sender=sender))

    invitation_items = []
    for invitation in invitations:
        sender = senders.get(invitation.sender_id)
        group = groups.get(invitation.group_id)
        if sender is None or group is None:
            logger.warning(f"Invitation {invitation.id} references a missing user or group")
            continue
        invitation_items.append(GroupInvitationItem(invitation=invitation, group=group, sender=sender))

    round_items = _rounds_awaiting_response(db, user_id)

    return Inbox(
        friend_requests=friend_items,
        group_invitations=invitation_items,
        hangout_rounds=round_items,
        total=len(friend_items) + len(invitation_items) + len(round_items),
    )
