"""
Hangout round coordination.

A group has at most one active round. Members submit one response each while
the round is active; the group's creator closes it once at least one response
exists, which completes the round and runs the recommendation aggregator.
"""
from typing import List, Optional, Union
import uuid
import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AlreadyProcessedError,
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from app.modules.groups.services.group import get_group_or_404, is_member, member_count
from app.modules.hangouts.models.hangout import HangoutRequest, HangoutResponse, HangoutStatus
from app.modules.hangouts.schemas.hangout import (
    HangoutRequest as HangoutRequestSchema,
    HangoutResponseCreate,
    Readiness,
    RoundResult,
)
from app.modules.recommendations.schemas.recommendation import GeoPoint
from app.modules.recommendations.services.aggregator import aggregate
from app.modules.recommendations.services.place_search import PlaceSearch
from app.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

# Round queries
def get_request(db: Session, request_id: str) -> Optional[HangoutRequest]:
    return db.query(HangoutRequest).filter(HangoutRequest.id == request_id).first()

def get_request_or_404(db: Session, request_id: str) -> HangoutRequest:
    request = get_request(db, request_id)
    if not request:
        raise NotFoundError("Hangout request not found")
    return request

def active_round(db: Session, group_id: str) -> Optional[HangoutRequest]:
    return db.query(HangoutRequest).filter(
        HangoutRequest.group_id == group_id,
        HangoutRequest.status == HangoutStatus.ACTIVE,
    ).first()

def latest_round(db: Session, group_id: str) -> Optional[HangoutRequest]:
    return db.query(HangoutRequest).filter(
        HangoutRequest.group_id == group_id,
    ).order_by(HangoutRequest.created_at.desc()).first()

def responses_for(db: Session, request_id: str) -> List[HangoutResponse]:
    return db.query(HangoutResponse).filter(
        HangoutResponse.request_id == request_id,
    ).order_by(HangoutResponse.created_at).all()

def get_response(db: Session, request_id: str, user_id: str) -> Optional[HangoutResponse]:
    return db.query(HangoutResponse).filter(
        HangoutResponse.request_id == request_id,
        HangoutResponse.user_id == user_id,
    ).first()

def response_count(db: Session, request_id: str) -> int:
    return db.query(func.count(HangoutResponse.id)).filter(
        HangoutResponse.request_id == request_id,
    ).scalar() or 0

# Round commands
def open_round(db: Session, group_id: str, creator_id: str) -> HangoutRequest:
    """Start collecting responses for a group; fails if a round is already active"""
    get_group_or_404(db, group_id)
    if not is_member(db, group_id, creator_id):
        raise ForbiddenError("Only group members can start a hangout")

    if active_round(db, group_id):
        raise ConflictError("A hangout round is already active for this group")

    request = HangoutRequest(
        id=str(uuid.uuid4()),
        group_id=group_id,
        creator_id=creator_id,
        status=HangoutStatus.ACTIVE,
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent open for the same group
        db.rollback()
        raise ConflictError("A hangout round is already active for this group")

    db.refresh(request)
    logger.info(f"Hangout round {request.id} opened for group {group_id} by {creator_id}")
    return request

def _validate_constraints(constraints: HangoutResponseCreate) -> None:
    if constraints.price_limit < 0:
        raise InvalidArgumentError("price_limit must be at least 0")
    if constraints.distance_limit <= 0:
        raise InvalidArgumentError("distance_limit must be greater than 0")
    if not 0 <= constraints.time_of_day < 24:
        raise InvalidArgumentError("time_of_day must be in [0, 24)")
    if (constraints.latitude is None) != (constraints.longitude is None):
        raise InvalidArgumentError("latitude and longitude must be provided together")

def submit_response(
    db: Session,
    request_id: str,
    user_id: str,
    constraints: Union[HangoutResponseCreate, dict],
) -> HangoutResponse:
    """Record a member's constraints for an active round; one response per member"""
    if isinstance(constraints, dict):
        try:
            constraints = HangoutResponseCreate(**constraints)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc))
    _validate_constraints(constraints)

    request = get_request_or_404(db, request_id)
    if not is_member(db, request.group_id, user_id):
        raise ForbiddenError("Only group members can respond")
    if request.status != HangoutStatus.ACTIVE:
        raise InvalidStateError("Hangout round is no longer accepting responses")
    if get_response(db, request_id, user_id):
        raise ConflictError("You have already responded to this hangout")

    response = HangoutResponse(
        id=str(uuid.uuid4()),
        request_id=request_id,
        user_id=user_id,
        price_limit=constraints.price_limit,
        distance_limit=constraints.distance_limit,
        time_of_day=constraints.time_of_day,
        preferences=constraints.preferences or "",
        latitude=constraints.latitude,
        longitude=constraints.longitude,
    )
    db.add(response)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already responded to this hangout")

    db.refresh(response)
    logger.info(f"User {user_id} responded to hangout round {request_id}")
    return response

def readiness(db: Session, request_id: str) -> Readiness:
    """Responses received versus group size; closing requires at least one response"""
    request = get_request_or_404(db, request_id)
    responded = [
        row.user_id for row in db.query(HangoutResponse.user_id).filter(
            HangoutResponse.request_id == request_id,
        )
    ]
    received = len(responded)
    return Readiness(
        request_id=request_id,
        responses_received=received,
        total_members=member_count(db, request.group_id),
        can_close=request.status == HangoutStatus.ACTIVE and received > 0,
        responded_user_ids=responded,
    )

def _member_locations(db: Session, responses: List[HangoutResponse]) -> List[GeoPoint]:
    """Location submitted with each response, else the responder's profile location"""
    missing = [r.user_id for r in responses if r.latitude is None or r.longitude is None]
    profiles = {user.id: user for user in get_users_by_ids(db, missing)}

    locations = []
    for response in responses:
        if response.latitude is not None and response.longitude is not None:
            locations.append(GeoPoint(lat=response.latitude, lng=response.longitude))
            continue
        profile = profiles.get(response.user_id)
        if profile is not None and profile.location is not None:
            lat, lng = profile.location
            locations.append(GeoPoint(lat=lat, lng=lng))
        else:
            logger.debug(f"No location known for user {response.user_id}")
    return locations

def _round_result(db: Session, request: HangoutRequest, place_search: PlaceSearch, limit: Optional[int]) -> RoundResult:
    responses = responses_for(db, request.id)
    result = aggregate(_member_locations(db, responses), responses, place_search, limit)
    return RoundResult(
        request=HangoutRequestSchema.model_validate(request),
        constraints=result.constraints,
        candidates=result.candidates,
        used_fallback=result.used_fallback,
    )

def close_round(
    db: Session,
    request_id: str,
    acting_user_id: str,
    place_search: PlaceSearch,
    limit: Optional[int] = None,
) -> RoundResult:
    """Complete an active round and return its ranked recommendations"""
    request = get_request_or_404(db, request_id)
    group = get_group_or_404(db, request.group_id)
    if group.creator_id != acting_user_id:
        raise ForbiddenError("Only the group creator can finish a hangout")
    if request.status != HangoutStatus.ACTIVE:
        raise InvalidStateError("Hangout round is not active")

    # Re-read at close time; readiness() results may be stale
    responses = responses_for(db, request_id)
    if not responses:
        raise InvalidStateError("Cannot finish a hangout with no responses")
    if not _member_locations(db, responses):
        raise InvalidArgumentError("No location is known for any responding member")

    updated = db.query(HangoutRequest).filter(
        HangoutRequest.id == request_id,
        HangoutRequest.status == HangoutStatus.ACTIVE,
    ).update(
        {HangoutRequest.status: HangoutStatus.COMPLETED, HangoutRequest.completed_at: func.now()},
        synchronize_session=False,
    )
    if updated == 0:
        db.rollback()
        raise AlreadyProcessedError("Hangout round was already completed")
    db.commit()
    db.refresh(request)
    logger.info(f"Hangout round {request_id} completed by {acting_user_id}")

    return _round_result(db, request, place_search, limit)

def round_recommendations(
    db: Session,
    request_id: str,
    user_id: str,
    place_search: PlaceSearch,
    limit: Optional[int] = None,
) -> RoundResult:
    """Recompute the recommendations of a completed round for any group member"""
    request = get_request_or_404(db, request_id)
    if not is_member(db, request.group_id, user_id):
        raise ForbiddenError("Only group members can view recommendations")
    if request.status != HangoutStatus.COMPLETED:
        raise InvalidStateError("Hangout round is still collecting responses")
    return _round_result(db, request, place_search, limit)
