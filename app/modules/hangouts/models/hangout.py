import enum

from sqlalchemy import Column, String, DateTime, Enum, Float, ForeignKey, Index, Text, UniqueConstraint, text
from sqlalchemy.sql import func

from app.db.session import Base

class HangoutStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"

class HangoutRequest(Base):
    __tablename__ = "hangout_requests"

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id"), nullable=False, index=True)
    creator_id = Column(String, ForeignKey("users.id"), nullable=False)
    status = Column(
        Enum(HangoutStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=HangoutStatus.ACTIVE,
    )
    created_at = Column(DateTime, default=func.now())
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        # At most one active round per group
        Index(
            'uq_active_hangout_request',
            'group_id',
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

class HangoutResponse(Base):
    __tablename__ = "hangout_responses"

    id = Column(String, primary_key=True, index=True)
    request_id = Column(String, ForeignKey("hangout_requests.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    price_limit = Column(Float, nullable=False)  # Dollars per person
    distance_limit = Column(Float, nullable=False)  # Miles
    time_of_day = Column(Float, nullable=False)  # Hours in [0, 24), fraction encodes minutes
    preferences = Column(Text, nullable=False, default="")
    latitude = Column(Float, nullable=True)  # Where the member is coming from
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('request_id', 'user_id', name='unique_response_per_member'),
    )
