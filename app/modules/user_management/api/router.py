from typing import Any, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user, get_token_subject
from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import User as UserSchema, UserMe, UserOnboarding, UserUpdate
from app.modules.user_management.services.user import (
    complete_onboarding,
    get_user_or_404,
    search_users,
    update_user,
)

router = APIRouter()

@router.post("/onboarding", response_model=UserMe, status_code=status.HTTP_201_CREATED)
def onboard_user(
    *,
    db: Session = Depends(get_db),
    profile_in: UserOnboarding,
    user_id: str = Depends(get_token_subject),
) -> Any:
    """Create the caller's profile after signup"""
    return complete_onboarding(db, user_id, profile_in)

@router.get("/me", response_model=UserMe)
def read_user_me(
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get current user"""
    return current_user

@router.put("/me", response_model=UserMe)
def update_user_me(
    *,
    db: Session = Depends(get_db),
    user_in: UserUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Update current user"""
    return update_user(db, current_user, user_in)

@router.get("/search", response_model=List[UserSchema])
def search(
    *,
    db: Session = Depends(get_db),
    q: str = Query(..., min_length=2, description="Search query for name or username"),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Search for users by name or username"""
    return search_users(db, q, exclude_id=current_user.id)

@router.get("/{user_id}", response_model=UserSchema)
def read_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return get_user_or_404(db, user_id)
