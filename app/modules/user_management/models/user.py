from sqlalchemy import Column, String, DateTime, Text, Float
from sqlalchemy.sql import func

from app.db.session import Base

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)  # Subject of the identity provider's token
    email = Column(String, unique=True, index=True, nullable=True)
    username = Column(String, unique=True, index=True)
    display_name = Column(String)
    avatar_url = Column(String, nullable=True)
    interests = Column(Text, nullable=True)  # Comma-separated interest tags
    preferences = Column(Text, nullable=True)  # Free-text hangout preferences
    latitude = Column(Float, nullable=True)  # Last known location
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    @property
    def interest_tags(self) -> list:
        if not self.interests:
            return []
        return [tag.strip() for tag in self.interests.split(",") if tag.strip()]

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)
