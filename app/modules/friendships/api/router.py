from typing import Any, List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.friendships.models.friendship import FriendRequestStatus
from app.modules.friendships.schemas.friendship import (
    FriendshipRequest as FriendshipRequestSchema,
    FriendshipRequestCreate,
    FriendshipStatus,
)
from app.modules.friendships.services.friendship import (
    accept_request,
    cancel_request,
    friends_of,
    friendship_status,
    pending_requests_for,
    reject_request,
    send_request,
    sent_requests_by,
)
from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import User as UserSchema
from app.modules.user_management.services.user import get_user_or_404

router = APIRouter()

@router.post("/requests", response_model=FriendshipRequestSchema, status_code=status.HTTP_201_CREATED)
def send_friend_request(
    *,
    db: Session = Depends(get_db),
    request_in: FriendshipRequestCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    return send_request(db, current_user.id, request_in.receiver_id)

@router.post("/requests/{request_id}/accept", response_model=FriendshipRequestSchema)
def accept_friend_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    return accept_request(db, request_id, current_user.id)

@router.post("/requests/{request_id}/reject", response_model=FriendshipRequestSchema)
def reject_friend_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    return reject_request(db, request_id, current_user.id)

@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_friend_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
) -> None:
    cancel_request(db, request_id, current_user.id)

@router.get("/requests/received", response_model=List[FriendshipRequestSchema])
def get_my_received_friend_requests(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return pending_requests_for(db, current_user.id)

@router.get("/requests/sent", response_model=List[FriendshipRequestSchema])
def get_my_sent_friend_requests(
    *,
    db: Session = Depends(get_db),
    status: Optional[FriendRequestStatus] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    return sent_requests_by(db, current_user.id, status)

@router.get("/", response_model=List[UserSchema])
def get_my_friends(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return friends_of(db, current_user.id)

@router.get("/status/{user_id}", response_model=FriendshipStatus)
def check_friendship_status(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    get_user_or_404(db, user_id)
    return friendship_status(db, current_user.id, user_id)
