import enum

from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Index, UniqueConstraint, CheckConstraint, text
from sqlalchemy.sql import func

from app.db.session import Base

class FriendRequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

# Requests in these states block a new request between the same pair
ACTIVE_REQUEST_STATUSES = (FriendRequestStatus.PENDING, FriendRequestStatus.ACCEPTED)

def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of users"""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"

# Directed friend edge; every edge (A, B) has a mirror edge (B, A)
class Friendship(Base):
    __tablename__ = "friendships"

    user_id = Column(String, ForeignKey('users.id'), primary_key=True)
    friend_id = Column(String, ForeignKey('users.id'), primary_key=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'friend_id', name='unique_friendship'),
        CheckConstraint('user_id != friend_id', name='no_self_friendship'),
    )

# Friend request model
class FriendshipRequest(Base):
    __tablename__ = "friendship_requests"

    id = Column(String, primary_key=True, index=True)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(String, ForeignKey("users.id"), nullable=False)
    pair_key = Column(String, nullable=False)
    status = Column(
        Enum(FriendRequestStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=FriendRequestStatus.PENDING,
    )
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('sender_id != receiver_id', name='no_self_request'),
        # At most one pending or accepted request per unordered pair
        Index(
            'uq_active_friend_request_pair',
            'pair_key',
            unique=True,
            postgresql_where=text("status IN ('pending', 'accepted')"),
            sqlite_where=text("status IN ('pending', 'accepted')"),
        ),
    )
