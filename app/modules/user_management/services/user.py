from typing import List, Optional
import logging
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import UserOnboarding, UserUpdate

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def get_user_or_404(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Get user by username"""
    return db.query(User).filter(User.username == username).first()

def get_users_by_ids(db: Session, user_ids) -> List[User]:
    if not user_ids:
        return []
    return db.query(User).filter(User.id.in_(list(user_ids))).all()

def _escape_like(term: str) -> str:
    """Treat % and _ typed by the user literally"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def search_users(db: Session, q: str, exclude_id: Optional[str] = None) -> List[User]:
    """Search for users by display name or username"""
    query = db.query(User)
    for term in q.lower().split():
        search_pattern = f"%{_escape_like(term)}%"
        query = query.filter(
            or_(
                User.display_name.ilike(search_pattern, escape="\\"),
                User.username.ilike(search_pattern, escape="\\"),
            )
        )
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    return query.order_by(User.username).limit(SEARCH_LIMIT).all()


def _apply_profile_fields(user: User, data: dict) -> None:
    if "interests" in data:
        interests = data.pop("interests")
        user.interests = ",".join(interests) if interests else None
    if "display_name" in data:
        display_name = (data.pop("display_name") or "").strip()
        if not display_name:
            raise InvalidArgumentError("Display name cannot be empty")
        user.display_name = display_name
    for field, value in data.items():
        setattr(user, field, value)

def complete_onboarding(db: Session, user_id: str, profile_in: UserOnboarding) -> User:
    """Create the profile for an identity finishing signup"""
    if get_user(db, user_id):
        raise ConflictError("Profile already exists")
    if get_user_by_username(db, profile_in.username):
        raise ConflictError("Username is already taken")

    user = User(id=user_id, username=profile_in.username)
    _apply_profile_fields(user, profile_in.model_dump(exclude={"username"}, exclude_unset=True))

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Profile already exists or username is taken")
    db.refresh(user)
    logger.info(f"Completed onboarding for user {user_id}")
    return user

def update_user(db: Session, user: User, user_in: UserUpdate) -> User:
    """Update user profile"""
    db_user = db.query(User).filter(User.id == user.id).first()
    if not db_user:
        raise NotFoundError("User not found")

    _apply_profile_fields(db_user, user_in.model_dump(exclude_unset=True))

    db.commit()
    db.refresh(db_user)
    return db_user
