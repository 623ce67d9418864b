import threading
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import AlreadyProcessedError, ConflictError, ForbiddenError, NotFoundError
from app.db.session import SessionLocal
from app.modules.friendships.models.friendship import FriendRequestStatus, Friendship, FriendshipRequest
from app.modules.friendships.schemas.friendship import FriendshipState
from app.modules.friendships.services.friendship import (
    accept_request,
    are_friends,
    cancel_request,
    friends_of,
    friendship_status,
    pending_requests_for,
    reject_request,
    send_request,
    sent_requests_by,
)


def test_accept_creates_both_edges(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")

    request = send_request(db, alice.id, bob.id)
    assert request.status == FriendRequestStatus.PENDING
    assert not are_friends(db, alice.id, bob.id)

    accepted = accept_request(db, request.id, bob.id)

    assert accepted.status == FriendRequestStatus.ACCEPTED
    assert are_friends(db, alice.id, bob.id)
    assert are_friends(db, bob.id, alice.id)
    assert [u.id for u in friends_of(db, alice.id)] == [bob.id]
    assert [u.id for u in friends_of(db, bob.id)] == [alice.id]


def test_every_edge_has_an_accepted_request(db, make_user):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    accept_request(db, send_request(db, alice.id, bob.id).id, bob.id)
    reject_request(db, send_request(db, carol.id, alice.id).id, alice.id)

    edges = db.query(Friendship).all()
    assert len(edges) == 2
    for edge in edges:
        accepted = db.query(FriendshipRequest).filter(
            FriendshipRequest.status == FriendRequestStatus.ACCEPTED,
            FriendshipRequest.sender_id.in_([edge.user_id, edge.friend_id]),
            FriendshipRequest.receiver_id.in_([edge.user_id, edge.friend_id]),
        ).count()
        assert accepted == 1


def test_request_after_acceptance_conflicts(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    accept_request(db, send_request(db, alice.id, bob.id).id, bob.id)

    with pytest.raises(ConflictError):
        send_request(db, alice.id, bob.id)
    with pytest.raises(ConflictError):
        send_request(db, bob.id, alice.id)


def test_duplicate_pending_request_conflicts_in_either_direction(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    send_request(db, alice.id, bob.id)

    with pytest.raises(ConflictError):
        send_request(db, alice.id, bob.id)
    with pytest.raises(ConflictError):
        send_request(db, bob.id, alice.id)


def test_request_to_self_conflicts(db, make_user):
    alice = make_user("Alice")
    with pytest.raises(ConflictError):
        send_request(db, alice.id, alice.id)


def test_request_to_unknown_user_not_found(db, make_user):
    alice = make_user("Alice")
    with pytest.raises(NotFoundError):
        send_request(db, alice.id, "no-such-user")


def test_rejected_request_allows_resending(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    first = send_request(db, alice.id, bob.id)
    rejected = reject_request(db, first.id, bob.id)
    assert rejected.status == FriendRequestStatus.REJECTED
    assert not are_friends(db, alice.id, bob.id)

    second = send_request(db, alice.id, bob.id)
    assert second.id != first.id
    assert second.status == FriendRequestStatus.PENDING


def test_processed_request_cannot_be_processed_again(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    request = send_request(db, alice.id, bob.id)
    accept_request(db, request.id, bob.id)

    with pytest.raises(AlreadyProcessedError):
        accept_request(db, request.id, bob.id)
    with pytest.raises(AlreadyProcessedError):
        reject_request(db, request.id, bob.id)


def test_only_recipient_can_answer(db, make_user):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    request = send_request(db, alice.id, bob.id)

    with pytest.raises(NotFoundError):
        accept_request(db, request.id, carol.id)
    with pytest.raises(NotFoundError):
        accept_request(db, request.id, alice.id)


def test_cancel_pending_request(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    request = send_request(db, alice.id, bob.id)

    with pytest.raises(ForbiddenError):
        cancel_request(db, request.id, bob.id)

    cancel_request(db, request.id, alice.id)
    assert pending_requests_for(db, bob.id) == []
    # The pair is free again
    send_request(db, bob.id, alice.id)


def test_pending_requests_newest_first(db, make_user):
    bob = make_user("Bob")
    senders = [make_user(name) for name in ("Alice", "Carol", "Dave")]
    base = datetime(2026, 1, 1, 12, 0, 0)
    for offset, sender in enumerate(senders):
        request = send_request(db, sender.id, bob.id)
        request.created_at = base + timedelta(minutes=offset)
    db.commit()

    pending = pending_requests_for(db, bob.id)

    assert [r.sender_id for r in pending] == [s.id for s in reversed(senders)]


def test_sent_requests_filter_by_status(db, make_user):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    accept_request(db, send_request(db, alice.id, bob.id).id, bob.id)
    send_request(db, alice.id, carol.id)

    assert len(sent_requests_by(db, alice.id)) == 2
    pending = sent_requests_by(db, alice.id, FriendRequestStatus.PENDING)
    assert [r.receiver_id for r in pending] == [carol.id]


def test_friendship_status_from_each_side(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    assert friendship_status(db, alice.id, alice.id).status == FriendshipState.SELF
    assert friendship_status(db, alice.id, bob.id).status == FriendshipState.NOT_FRIENDS

    request = send_request(db, alice.id, bob.id)
    sent = friendship_status(db, alice.id, bob.id)
    received = friendship_status(db, bob.id, alice.id)
    assert sent.status == FriendshipState.REQUEST_SENT
    assert received.status == FriendshipState.REQUEST_RECEIVED
    assert sent.request_id == received.request_id == request.id

    accept_request(db, request.id, bob.id)
    assert friendship_status(db, alice.id, bob.id).status == FriendshipState.FRIENDS


def test_concurrent_accept_and_reject_only_one_wins(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    request_id = send_request(db, alice.id, bob.id).id

    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def answer(action):
        session = SessionLocal()
        try:
            barrier.wait()
            action(session, request_id, bob.id)
            result = "ok"
        except AlreadyProcessedError:
            result = "already_processed"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [
        threading.Thread(target=answer, args=(accept_request,)),
        threading.Thread(target=answer, args=(reject_request,)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["already_processed", "ok"]

    db.expire_all()
    final = db.query(FriendshipRequest).filter(FriendshipRequest.id == request_id).one()
    edges = db.query(Friendship).count()
    if final.status == FriendRequestStatus.ACCEPTED:
        assert edges == 2
    else:
        assert final.status == FriendRequestStatus.REJECTED
        assert edges == 0
