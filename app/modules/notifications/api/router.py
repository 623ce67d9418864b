from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user
from app.modules.notifications.schemas.inbox import Inbox
from app.modules.notifications.services.inbox import get_inbox
from app.modules.user_management.models.user import User

router = APIRouter()

@router.get("/", response_model=Inbox)
def read_inbox(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Everything currently waiting on the user's action"""
    return get_inbox(db, current_user.id)
