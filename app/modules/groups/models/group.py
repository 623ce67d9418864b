import enum

from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Index, Text, UniqueConstraint, CheckConstraint, text
from sqlalchemy.sql import func

from app.db.session import Base

class GroupRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"

class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

class Group(Base):
    __tablename__ = "groups"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    creator_id = Column(String, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=func.now())

class GroupMembership(Base):
    __tablename__ = "group_members"

    group_id = Column(String, ForeignKey("groups.id"), primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), primary_key=True)
    role = Column(
        Enum(GroupRole, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
        default=GroupRole.MEMBER,
    )
    joined_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('group_id', 'user_id', name='unique_group_member'),
    )

class GroupInvitation(Base):
    __tablename__ = "group_invitations"

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id"), nullable=False, index=True)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    recipient_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        Enum(InvitationStatus, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
        default=InvitationStatus.PENDING,
    )
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('sender_id != recipient_id', name='no_self_invitation'),
        # At most one pending invitation per (group, recipient)
        Index(
            'uq_pending_group_invitation',
            'group_id',
            'recipient_id',
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )
