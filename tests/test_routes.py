import pytest
from fastapi.testclient import TestClient

from conftest import make_profile
from unistay.db.connection_store import MongoConnectionRequestStore
from unistay.db.profile_store import MongoProfileStore
from unistay.errors import NotFoundError
from unistay.main import app
from unistay.utils import jwt_utils
from unistay.utils.dependencies import get_connection_store, get_profile_store


@pytest.fixture
def client(mongo_db, monkeypatch):
    monkeypatch.setattr(jwt_utils, "SECRET_KEY", "test-secret")
    app.dependency_overrides[get_profile_store] = lambda: MongoProfileStore(mongo_db["profiles"])
    app.dependency_overrides[get_connection_store] = lambda: MongoConnectionRequestStore(mongo_db["connection_requests"])
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id, **claims):
    return {"Authorization": f"Bearer {jwt_utils.create_access_token(user_id, **claims)}"}


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_requests_without_token_are_rejected(client):
    assert client.get("/profiles/me").status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/profiles/me", headers=bad).status_code == 401


def test_token_in_cookie_is_accepted(client, seed_profiles):
    seed_profiles(make_profile("alice"))
    client.cookies.set("access_token", jwt_utils.create_access_token("alice"))
    assert client.get("/profiles/me").json()["id"] == "alice"


def test_create_profile_for_current_user(client):
    body = {"name": "Alice", "budget": 400000, "cleanliness": "Tidy", "university_id": "uni-1"}
    response = client.post("/profiles/", json=body, headers=auth("alice", email="alice@example.com"))
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "alice"
    assert data["email"] == "alice@example.com"
    assert data["roommate_status"] == "no-roommate"
    assert data["is_complete"] is False

    again = client.post("/profiles/", json=body, headers=auth("alice"))
    assert again.status_code == 400


def test_create_profile_rejects_bad_values(client):
    response = client.post("/profiles/", json={"name": "Al", "age": -3}, headers=auth("al"))
    assert response.status_code == 422
    response = client.post("/profiles/", json={"name": "Al", "cleanliness": "Spotless"}, headers=auth("al"))
    assert response.status_code == 422


def test_update_own_profile(client, seed_profiles):
    seed_profiles(make_profile("alice"))
    response = client.put("/profiles/me", json={"budget": 123000}, headers=auth("alice"))
    assert response.status_code == 200
    assert response.json()["budget"] == 123000
    assert client.put("/profiles/me", json={}, headers=auth("alice")).status_code == 400
    assert client.put("/profiles/me", json={"budget": 1}, headers=auth("nobody")).status_code == 404


def test_get_profile_by_id(client, seed_profiles):
    seed_profiles(make_profile("alice"), make_profile("bob"))
    assert client.get("/profiles/bob", headers=auth("alice")).json()["name"] == "Bob"
    assert client.get("/profiles/zed", headers=auth("alice")).status_code == 404
    assert len(client.get("/profiles/", headers=auth("alice")).json()) == 2


def test_top_matches(client, seed_profiles):
    seed_profiles(
        make_profile("alice"),
        make_profile("bob"),
        make_profile("cat", university_id="elsewhere"),
        make_profile("dan", seeking_gender="Female"),
    )
    response = client.get("/matches/top", params={"top_n": 2}, headers=auth("alice"))
    assert response.status_code == 200
    results = response.json()
    assert [r["profile"]["id"] for r in results] == ["bob", "cat"]
    assert [r["score"] for r in results] == [100, 80]
    assert "Same university" in results[0]["reasons"]


def test_matches_need_a_profile(client):
    assert client.get("/matches/top", headers=auth("ghost")).status_code == 404


def test_search_filters_sorts_and_reports_skipped(client, seed_profiles, mongo_db):
    seed_profiles(
        make_profile("alice"),
        make_profile("bob", budget=300000),
        make_profile("cat", budget=600000),
        make_profile("dee", gender="Female", budget=200000),
    )
    mongo_db["profiles"].insert_one({"_id": "broken", "name": "Broken", "budget": -1})
    body = {"criteria": {"gender": ["Male"], "budget_max": 650000}, "sort_by": "budget-high"}
    response = client.post("/matches/search", json=body, headers=auth("alice"))
    assert response.status_code == 200
    data = response.json()
    assert [r["profile"]["id"] for r in data["results"]] == ["cat", "bob"]
    assert data["total"] == 2
    assert data["active_filters"] == 2
    assert [s["profile_id"] for s in data["skipped"]] == ["broken"]


def test_search_with_no_results(client, seed_profiles):
    seed_profiles(make_profile("alice"), make_profile("bob"))
    body = {"criteria": {"university": ["nowhere"]}}
    data = client.post("/matches/search", json=body, headers=auth("alice")).json()
    assert data["results"] == []
    assert data["total"] == 0


def test_search_rejects_unknown_sort_key(client, seed_profiles):
    seed_profiles(make_profile("alice"))
    body = {"sort_by": "alphabetical"}
    assert client.post("/matches/search", json=body, headers=auth("alice")).status_code == 422


def test_connection_request_flow(client, seed_profiles):
    seed_profiles(make_profile("alice"), make_profile("bob"))

    sent = client.post("/connections/requests", json={"recipient_id": "bob"}, headers=auth("alice"))
    assert sent.status_code == 200
    request_id = sent.json()["id"]
    assert sent.json()["sender_name"] == "Alice"

    duplicate = client.post("/connections/requests", json={"recipient_id": "alice"}, headers=auth("bob"))
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Request already pending"

    received = client.get("/connections/requests/received", headers=auth("bob")).json()
    assert [r["id"] for r in received] == [request_id]

    forbidden = client.post(f"/connections/requests/{request_id}/accept", headers=auth("alice"))
    assert forbidden.status_code == 403

    accepted = client.post(f"/connections/requests/{request_id}/accept", headers=auth("bob"))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"

    status = client.get("/connections/status/bob", headers=auth("alice")).json()
    assert status["state"] == "ACCEPTED"
    assert client.get("/profiles/alice", headers=auth("bob")).json()["roommate_status"] == "roomies"

    again = client.post(f"/connections/requests/{request_id}/reject", headers=auth("bob"))
    assert again.status_code == 409


def test_request_to_unknown_user(client, seed_profiles):
    seed_profiles(make_profile("alice"))
    response = client.post("/connections/requests", json={"recipient_id": "ghost"}, headers=auth("alice"))
    assert response.status_code == 404


def test_cancel_and_reject(client, seed_profiles):
    seed_profiles(make_profile("alice"), make_profile("bob"))
    first = client.post("/connections/requests", json={"recipient_id": "bob"}, headers=auth("alice")).json()
    assert client.delete(f"/connections/requests/{first['id']}", headers=auth("alice")).status_code == 200
    assert client.get("/connections/status/alice", headers=auth("bob")).json()["state"] == "NONE"

    second = client.post("/connections/requests", json={"recipient_id": "bob"}, headers=auth("alice")).json()
    rejected = client.post(f"/connections/requests/{second['id']}/reject", headers=auth("bob"))
    assert rejected.json()["status"] == "rejected"
    sent = client.get("/connections/requests/sent", headers=auth("alice")).json()
    assert [r["status"] for r in sent] == ["rejected"]


def test_answering_unknown_request(client, seed_profiles):
    seed_profiles(make_profile("bob"))
    response = client.post("/connections/requests/65f000000000000000000000/accept", headers=auth("bob"))
    assert response.status_code == 409


def test_unset_secret_refuses_every_token(client, seed_profiles, monkeypatch):
    seed_profiles(make_profile("alice"))
    headers = auth("alice")
    monkeypatch.setattr(jwt_utils, "SECRET_KEY", None)
    assert client.get("/profiles/me", headers=headers).status_code == 500


def test_only_the_sender_can_cancel(client, seed_profiles):
    seed_profiles(make_profile("alice"), make_profile("bob"))
    sent = client.post("/connections/requests", json={"recipient_id": "bob"}, headers=auth("alice")).json()

    response = client.delete(f"/connections/requests/{sent['id']}", headers=auth("bob"))
    assert response.status_code == 403
    assert client.get("/connections/status/bob", headers=auth("alice")).json()["state"] == "PENDING"


class LateProfileStore(MongoProfileStore):
    """Misses a profile written by a concurrent request."""

    def get(self, profile_id):
        raise NotFoundError(f"Profile {profile_id} not found")


def test_concurrent_profile_creation_is_a_conflict(client, seed_profiles, mongo_db):
    seed_profiles(make_profile("alice"))
    app.dependency_overrides[get_profile_store] = lambda: LateProfileStore(mongo_db["profiles"])

    response = client.post("/profiles/", json={"name": "Alice"}, headers=auth("alice"))
    assert response.status_code == 400
    assert response.json()["detail"] == "User already has a profile"
