from app.modules.recommendations.services.place_search import get_place_search
from app.main import app

from conftest import FailingPlaceSearch, auth_headers

API = "/api/v1"


def _befriend(client, sender, recipient):
    response = client.post(f"{API}/friends/requests", json={"receiver_id": recipient.id}, headers=auth_headers(sender))
    assert response.status_code == 201
    request_id = response.json()["id"]
    response = client.post(f"{API}/friends/requests/{request_id}/accept", headers=auth_headers(recipient))
    assert response.status_code == 200


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "version" in response.json()
    assert "X-Process-Time" in response.headers


def test_requests_without_a_valid_token_are_rejected(client):
    assert client.get(f"{API}/users/me").status_code == 401
    assert client.get(f"{API}/users/me", headers={"Authorization": "Bearer nonsense"}).status_code == 403


def test_onboarding_then_profile(client):
    headers = auth_headers("identity-123")
    assert client.get(f"{API}/users/me", headers=headers).status_code == 404

    response = client.post(f"{API}/users/onboarding", headers=headers, json={
        "username": "alice",
        "display_name": "Alice",
        "email": "alice@example.com",
        "interests": "Coffee, hiking, coffee",
        "latitude": 40.7,
        "longitude": -74.0,
    })
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "identity-123"
    assert body["interests"] == ["coffee", "hiking"]

    duplicate = client.post(f"{API}/users/onboarding", headers=headers, json={"username": "alice2", "display_name": "A"})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "CONFLICT"

    response = client.put(f"{API}/users/me", headers=headers, json={"preferences": "quiet places"})
    assert response.status_code == 200
    assert response.json()["preferences"] == "quiet places"


def test_user_search_excludes_caller(client, make_user):
    alice = make_user("Alice")
    make_user("Alicia")
    make_user("Bob")

    response = client.get(f"{API}/users/search", params={"q": "ali"}, headers=auth_headers(alice))

    assert response.status_code == 200
    assert [u["display_name"] for u in response.json()] == ["Alicia"]


def test_friend_request_flow(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    _befriend(client, alice, bob)

    friends = client.get(f"{API}/friends/", headers=auth_headers(alice)).json()
    assert [f["id"] for f in friends] == [bob.id]

    status = client.get(f"{API}/friends/status/{alice.id}", headers=auth_headers(bob)).json()
    assert status["status"] == "friends"

    again = client.post(f"{API}/friends/requests", json={"receiver_id": bob.id}, headers=auth_headers(alice))
    assert again.status_code == 409
    assert again.json()["code"] == "CONFLICT"


def test_answering_twice_reports_already_processed(client, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    request_id = client.post(
        f"{API}/friends/requests", json={"receiver_id": bob.id}, headers=auth_headers(alice)
    ).json()["id"]

    received = client.get(f"{API}/friends/requests/received", headers=auth_headers(bob)).json()
    assert [r["id"] for r in received] == [request_id]

    assert client.post(f"{API}/friends/requests/{request_id}/reject", headers=auth_headers(bob)).status_code == 200
    second = client.post(f"{API}/friends/requests/{request_id}/accept", headers=auth_headers(bob))
    assert second.status_code == 409
    assert second.json()["code"] == "ALREADY_PROCESSED"


def test_group_round_flow_with_failing_search(client, make_user):
    alice = make_user("Alice", lat=40.7128, lng=-74.0060)
    bob = make_user("Bob", lat=40.7300, lng=-73.9950)
    carol = make_user("Carol", lat=40.7000, lng=-74.0150)
    _befriend(client, alice, bob)
    _befriend(client, alice, carol)

    blank = client.post(f"{API}/groups/", json={"name": "  "}, headers=auth_headers(alice))
    assert blank.status_code == 422

    created = client.post(
        f"{API}/groups/",
        json={"name": "Dinner Club", "invitee_ids": [bob.id, carol.id]},
        headers=auth_headers(alice),
    )
    assert created.status_code == 201
    group_id = created.json()["group"]["id"]
    assert len(created.json()["invitations"]) == 2

    for member in (bob, carol):
        inbox = client.get(f"{API}/notifications/", headers=auth_headers(member)).json()
        assert inbox["total"] == 1
        invitation_id = inbox["group_invitations"][0]["invitation"]["id"]
        assert inbox["group_invitations"][0]["sender"]["id"] == alice.id
        response = client.post(
            f"{API}/groups/invitations/{invitation_id}/respond",
            json={"accept": True},
            headers=auth_headers(member),
        )
        assert response.status_code == 200

    detail = client.get(f"{API}/groups/{group_id}", headers=auth_headers(bob)).json()
    assert detail["member_count"] == 3
    assert detail["my_role"] == "member"

    opened = client.post(f"{API}/hangouts/groups/{group_id}/rounds", headers=auth_headers(alice))
    assert opened.status_code == 201
    round_id = opened.json()["id"]
    again = client.post(f"{API}/hangouts/groups/{group_id}/rounds", headers=auth_headers(bob))
    assert again.status_code == 409

    inbox = client.get(f"{API}/notifications/", headers=auth_headers(carol)).json()
    assert [item["request"]["id"] for item in inbox["hangout_rounds"]] == [round_id]

    too_early = client.post(f"{API}/hangouts/rounds/{round_id}/close", headers=auth_headers(alice))
    assert too_early.status_code == 409
    assert too_early.json()["code"] == "INVALID_STATE"

    response = client.post(
        f"{API}/hangouts/rounds/{round_id}/responses",
        json={"price_limit": 25, "distance_limit": 3, "time_of_day": 19.5, "preferences": "pizza"},
        headers=auth_headers(bob),
    )
    assert response.status_code == 201

    readiness = client.get(f"{API}/hangouts/rounds/{round_id}/readiness", headers=auth_headers(alice)).json()
    assert readiness["responses_received"] == 1
    assert readiness["total_members"] == 3
    assert readiness["can_close"] is True

    not_creator = client.post(f"{API}/hangouts/rounds/{round_id}/close", headers=auth_headers(bob))
    assert not_creator.status_code == 403

    app.dependency_overrides[get_place_search] = FailingPlaceSearch
    closed = client.post(f"{API}/hangouts/rounds/{round_id}/close", headers=auth_headers(alice))
    assert closed.status_code == 200
    body = closed.json()
    assert body["used_fallback"] is True
    assert body["request"]["status"] == "completed"
    assert body["constraints"]["time_of_day_label"] == "7:30 PM"
    assert body["candidates"]

    late = client.post(
        f"{API}/hangouts/rounds/{round_id}/responses",
        json={"price_limit": 25, "distance_limit": 3, "time_of_day": 19},
        headers=auth_headers(carol),
    )
    assert late.status_code == 409

    active = client.get(f"{API}/hangouts/groups/{group_id}/rounds/active", headers=auth_headers(carol))
    assert active.status_code == 200
    assert active.json() is None

    inbox = client.get(f"{API}/notifications/", headers=auth_headers(carol)).json()
    assert inbox["total"] == 0


def test_out_of_range_slider_is_rejected(client, make_user):
    alice = make_user("Alice")
    group_id = client.post(f"{API}/groups/", json={"name": "Solo"}, headers=auth_headers(alice)).json()["group"]["id"]
    round_id = client.post(f"{API}/hangouts/groups/{group_id}/rounds", headers=auth_headers(alice)).json()["id"]

    response = client.post(
        f"{API}/hangouts/rounds/{round_id}/responses",
        json={"price_limit": 20, "distance_limit": 0, "time_of_day": 12},
        headers=auth_headers(alice),
    )
    assert response.status_code == 422
