from typing import List, Optional
import uuid
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import AlreadyProcessedError, ConflictError, ForbiddenError, NotFoundError
from app.modules.friendships.models.friendship import (
    ACTIVE_REQUEST_STATUSES,
    FriendRequestStatus,
    Friendship,
    FriendshipRequest,
    make_pair_key,
)
from app.modules.friendships.schemas.friendship import FriendshipState, FriendshipStatus
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user

logger = logging.getLogger(__name__)

# Request operations
def get_friend_request_by_id(db: Session, request_id: str) -> Optional[FriendshipRequest]:
    """Get friend request by ID"""
    return db.query(FriendshipRequest).filter(FriendshipRequest.id == request_id).first()

def get_active_request_between(db: Session, user_a: str, user_b: str) -> Optional[FriendshipRequest]:
    """Get the pending or accepted request between two users, in either direction"""
    return db.query(FriendshipRequest).filter(
        FriendshipRequest.pair_key == make_pair_key(user_a, user_b),
        FriendshipRequest.status.in_(ACTIVE_REQUEST_STATUSES),
    ).first()

def pending_requests_for(db: Session, user_id: str) -> List[FriendshipRequest]:
    """Pending requests addressed to a user, newest first"""
    return db.query(FriendshipRequest).filter(
        FriendshipRequest.receiver_id == user_id,
        FriendshipRequest.status == FriendRequestStatus.PENDING,
    ).order_by(FriendshipRequest.created_at.desc()).all()

def sent_requests_by(db: Session, user_id: str, status: Optional[FriendRequestStatus] = None) -> List[FriendshipRequest]:
    """Requests sent by a user, optionally filtered by status"""
    query = db.query(FriendshipRequest).filter(FriendshipRequest.sender_id == user_id)
    if status is not None:
        query = query.filter(FriendshipRequest.status == status)
    return query.order_by(FriendshipRequest.created_at.desc()).all()

def send_request(db: Session, sender_id: str, receiver_id: str) -> FriendshipRequest:
    """Create a pending friend request from sender to receiver"""
    if sender_id == receiver_id:
        raise ConflictError("Cannot send friend request to yourself")

    if not get_user(db, receiver_id):
        raise NotFoundError("User not found")

    existing = get_active_request_between(db, sender_id, receiver_id)
    if existing:
        if existing.status == FriendRequestStatus.ACCEPTED:
            raise ConflictError("Already friends with this user")
        if existing.sender_id == sender_id:
            raise ConflictError("Friend request already sent")
        raise ConflictError("This user has already sent you a friend request")

    friend_request = FriendshipRequest(
        id=str(uuid.uuid4()),
        sender_id=sender_id,
        receiver_id=receiver_id,
        pair_key=make_pair_key(sender_id, receiver_id),
        status=FriendRequestStatus.PENDING,
    )
    db.add(friend_request)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request for the same pair won the unique index
        db.rollback()
        raise ConflictError("A friend request between these users already exists")

    db.refresh(friend_request)
    logger.info(f"Friend request {friend_request.id} sent: {sender_id} -> {receiver_id}")
    return friend_request

def _get_request_for_recipient(db: Session, request_id: str, acting_user_id: str) -> FriendshipRequest:
    friend_request = get_friend_request_by_id(db, request_id)
    if not friend_request or friend_request.receiver_id != acting_user_id:
        raise NotFoundError("Friend request not found")
    if friend_request.status != FriendRequestStatus.PENDING:
        raise AlreadyProcessedError(f"Friend request already {friend_request.status.value}")
    return friend_request

def _transition_pending(db: Session, request_id: str, new_status: FriendRequestStatus) -> None:
    """Move a request out of pending; only one concurrent caller can win"""
    updated = db.query(FriendshipRequest).filter(
        FriendshipRequest.id == request_id,
        FriendshipRequest.status == FriendRequestStatus.PENDING,
    ).update({FriendshipRequest.status: new_status}, synchronize_session=False)
    if updated == 0:
        db.rollback()
        raise AlreadyProcessedError("Friend request was already processed")

def accept_request(db: Session, request_id: str, acting_user_id: str) -> FriendshipRequest:
    """Accept a pending request and create both friend edges in one transaction"""
    friend_request = _get_request_for_recipient(db, request_id, acting_user_id)
    sender_id, receiver_id = friend_request.sender_id, friend_request.receiver_id

    _transition_pending(db, request_id, FriendRequestStatus.ACCEPTED)
    db.add(Friendship(user_id=sender_id, friend_id=receiver_id))
    db.add(Friendship(user_id=receiver_id, friend_id=sender_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Friendship already exists")

    db.refresh(friend_request)
    logger.info(f"Successfully created bidirectional friendship: {sender_id} <-> {receiver_id}")
    return friend_request

def reject_request(db: Session, request_id: str, acting_user_id: str) -> FriendshipRequest:
    """Reject a pending request; no edges are created"""
    friend_request = _get_request_for_recipient(db, request_id, acting_user_id)

    _transition_pending(db, request_id, FriendRequestStatus.REJECTED)
    db.commit()

    db.refresh(friend_request)
    logger.info(f"Friend request {request_id} rejected by {acting_user_id}")
    return friend_request

def cancel_request(db: Session, request_id: str, acting_user_id: str) -> None:
    """Withdraw a pending request the acting user sent"""
    friend_request = get_friend_request_by_id(db, request_id)
    if not friend_request:
        raise NotFoundError("Friend request not found")
    if friend_request.sender_id != acting_user_id:
        raise ForbiddenError("Only the sender can cancel a friend request")

    deleted = db.query(FriendshipRequest).filter(
        FriendshipRequest.id == request_id,
        FriendshipRequest.status == FriendRequestStatus.PENDING,
    ).delete(synchronize_session=False)
    if deleted == 0:
        db.rollback()
        raise AlreadyProcessedError("Friend request was already processed")
    db.commit()
    logger.info(f"Friend request {request_id} cancelled by {acting_user_id}")

# Friendship operations
def are_friends(db: Session, user_id: str, friend_id: str) -> bool:
    """Check if two users are friends"""
    return db.query(Friendship).filter(
        Friendship.user_id == user_id,
        Friendship.friend_id == friend_id,
    ).first() is not None

def friends_of(db: Session, user_id: str) -> List[User]:
    """Users reachable from user_id through a friend edge"""
    return (
        db.query(User)
        .join(Friendship, Friendship.friend_id == User.id)
        .filter(Friendship.user_id == user_id)
        .order_by(User.display_name)
        .all()
    )

def friend_ids_of(db: Session, user_id: str) -> set:
    rows = db.query(Friendship.friend_id).filter(Friendship.user_id == user_id).all()
    return {row.friend_id for row in rows}

def friendship_status(db: Session, viewer_id: str, other_id: str) -> FriendshipStatus:
    """Relationship between the viewer and another user, as shown on their profile"""
    if viewer_id == other_id:
        return FriendshipStatus(status=FriendshipState.SELF)

    active = get_active_request_between(db, viewer_id, other_id)
    if are_friends(db, viewer_id, other_id):
        return FriendshipStatus(status=FriendshipState.FRIENDS)
    if active is None:
        return FriendshipStatus(status=FriendshipState.NOT_FRIENDS)
    if active.sender_id == viewer_id:
        return FriendshipStatus(status=FriendshipState.REQUEST_SENT, request_id=active.id)
    return FriendshipStatus(status=FriendshipState.REQUEST_RECEIVED, request_id=active.id)
