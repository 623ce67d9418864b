from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.exceptions import ForbiddenError
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.groups.services.group import get_group_or_404, is_member
from app.modules.hangouts.schemas.hangout import (
    HangoutRequest as HangoutRequestSchema,
    HangoutResponse as HangoutResponseSchema,
    HangoutResponseCreate,
    Readiness,
    RoundResult,
)
from app.modules.hangouts.services.coordinator import (
    active_round,
    close_round,
    get_request_or_404,
    open_round,
    readiness,
    round_recommendations,
    submit_response,
)
from app.modules.recommendations.services.place_search import PlaceSearch, get_place_search
from app.modules.user_management.models.user import User

router = APIRouter()

def _check_member(db: Session, group_id: str, user_id: str) -> None:
    if not is_member(db, group_id, user_id):
        raise ForbiddenError("Not a member of this group")

@router.post("/groups/{group_id}/rounds", response_model=HangoutRequestSchema, status_code=status.HTTP_201_CREATED)
def start_round(
    *,
    db: Session = Depends(get_db),
    group_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    return open_round(db, group_id, current_user.id)

@router.get("/groups/{group_id}/rounds/active", response_model=Optional[HangoutRequestSchema])
def read_active_round(
    *,
    db: Session = Depends(get_db),
    group_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """The group's active round, or null when none is open"""
    get_group_or_404(db, group_id)
    _check_member(db, group_id, current_user.id)
    return active_round(db, group_id)

@router.post("/rounds/{request_id}/responses", response_model=HangoutResponseSchema, status_code=status.HTTP_201_CREATED)
def respond_to_round(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    response_in: HangoutResponseCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    return submit_response(db, request_id, current_user.id, response_in)

@router.get("/rounds/{request_id}/readiness", response_model=Readiness)
def read_readiness(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    request = get_request_or_404(db, request_id)
    _check_member(db, request.group_id, current_user.id)
    return readiness(db, request_id)

@router.post("/rounds/{request_id}/close", response_model=RoundResult)
def finish_round(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
    place_search: PlaceSearch = Depends(get_place_search),
) -> Any:
    return close_round(db, request_id, current_user.id, place_search)

@router.get("/rounds/{request_id}/recommendations", response_model=RoundResult)
def read_round_recommendations(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
    place_search: PlaceSearch = Depends(get_place_search),
) -> Any:
    return round_recommendations(db, request_id, current_user.id, place_search)
