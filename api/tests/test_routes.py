"""HTTP-level tests: authentication, problem responses and role-dependent payloads."""

from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from wayfarer import models
from wayfarer.auth import create_access_token
from wayfarer.services.travel_stats import get_statistics


def test_protected_route_requires_token(client: TestClient):
    response = client.get("/profile/me")
    assert response.status_code == 401


def test_invalid_and_expired_tokens_rejected(client: TestClient, make_user):
    user = make_user("alice")

    response = client.get("/profile/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401

    expired = create_access_token(user.id, expires_in_seconds=-10)
    response = client.get("/profile/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token expired"


def test_banned_user_cannot_authenticate(client: TestClient, db: Session, make_user, auth_headers):
    user = make_user("alice")
    user.account_banned = True
    db.commit()

    response = client.get("/profile/me", headers=auth_headers(user))
    assert response.status_code == 401
    assert response.json()["detail"] == "Account banned"


def test_follow_over_http(client: TestClient, db: Session, make_user, auth_headers):
    alice, bob = make_user("alice"), make_user("bob")

    response = client.post(f"/social/follow/{bob.id}", headers=auth_headers(alice))
    assert response.status_code == 201
    assert response.json()["message"] == "Successfully followed user"

    response = client.get(f"/social/is-following/{bob.id}", headers=auth_headers(alice))
    assert response.json() == {"is_following": True}

    response = client.get(f"/social/followers/{bob.id}")
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["username"] == "alice"

    db.expire_all()
    assert get_statistics(db, bob.id).total_followers == 1


def test_domain_errors_render_as_problem_details(client: TestClient, make_user, auth_headers):
    alice, bob = make_user("alice"), make_user("bob")
    client.post(f"/social/follow/{bob.id}", headers=auth_headers(alice))

    response = client.post(f"/social/follow/{bob.id}", headers=auth_headers(alice))
    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json() == {
        "type": "about:blank",
        "title": "Already Exists",
        "status": 409,
        "detail": "Already following this user",
    }

    response = client.post(f"/social/follow/{alice.id}", headers=auth_headers(alice))
    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot follow yourself"

    response = client.delete(f"/social/follow/{alice.id}", headers=auth_headers(bob))
    assert response.status_code == 400


def test_post_lifecycle_over_http(client: TestClient, make_user, auth_headers):
    owner, fan = make_user("owner"), make_user("fan")

    response = client.post(
        "/posts", json={"caption": "Patagonia", "visibility": "FOLLOWERS"}, headers=auth_headers(owner)
    )
    assert response.status_code == 201
    post = response.json()
    assert post["approved_by_admin"] is False

    # Not visible to the fan, so it cannot be liked either
    assert client.get(f"/posts/{post['id']}", headers=auth_headers(fan)).status_code == 404
    assert client.post(f"/posts/{post['id']}/like", headers=auth_headers(fan)).status_code == 404

    response = client.patch(
        f"/posts/{post['id']}", json={"caption": "Hijacked"}, headers=auth_headers(fan)
    )
    assert response.status_code == 403

    response = client.delete(f"/posts/{post['id']}", headers=auth_headers(owner))
    assert response.status_code == 204
    assert client.get(f"/posts/{post['id']}", headers=auth_headers(owner)).status_code == 404


def test_settings_payload_depends_on_role(client: TestClient, make_user, auth_headers):
    member = make_user("alice")
    admin = make_user("mod", role=models.ROLE_ADMIN)

    body = client.get("/profile/me/settings", headers=auth_headers(member)).json()
    assert body["kind"] == "member"
    assert "account_settings" in body
    assert "admin_settings" not in body

    body = client.get("/profile/me/settings", headers=auth_headers(admin)).json()
    assert body["kind"] == "admin"
    assert body["admin_settings"]["admin_auto_approve_posts"] is False


def test_admin_routes(client: TestClient, db: Session, make_user, auth_headers):
    member = make_user("alice")
    admin = make_user("mod", role=models.ROLE_ADMIN)
    post = client.post("/posts", json={"caption": "Hello"}, headers=auth_headers(member)).json()

    response = client.post(f"/admin/posts/{post['id']}/approve", headers=auth_headers(member))
    assert response.status_code == 403

    response = client.post(f"/admin/posts/{post['id']}/approve", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["approved_by_admin"] is True
    assert client.get(f"/posts/{post['id']}").status_code == 200

    response = client.post(f"/admin/users/{admin.id}/ban", headers=auth_headers(admin))
    assert response.status_code == 400

    response = client.post(f"/admin/users/{member.id}/ban", headers=auth_headers(admin))
    assert response.status_code == 200
    assert client.get(f"/posts/{post['id']}").status_code == 404

    db.expire_all()
    assert db.get(models.User, member.id).account_banned is True


def test_notifications_over_http(client: TestClient, make_user, auth_headers):
    alice, bob = make_user("alice"), make_user("bob")
    client.post(f"/social/follow/{bob.id}", headers=auth_headers(alice))

    body = client.get("/notifications", headers=auth_headers(bob)).json()
    assert body["total"] == 1
    assert body["unread_count"] == 1
    note_id = body["data"][0]["id"]

    response = client.post("/notifications/mark-read", json=[note_id], headers=auth_headers(bob))
    assert response.status_code == 204
    body = client.get("/notifications", headers=auth_headers(bob)).json()
    assert body["unread_count"] == 0

    assert client.delete(f"/notifications/{note_id}", headers=auth_headers(alice)).status_code == 404
    assert client.delete(f"/notifications/{note_id}", headers=auth_headers(bob)).status_code == 204


def test_profile_statistics_over_http(client: TestClient, make_user, auth_headers):
    user = make_user("nomad")
    response = client.post(
        "/itineraries",
        json={"title": "Silk Road", "destination": "Samarkand, Uzbekistan"},
        headers=auth_headers(user),
    )
    assert response.status_code == 201

    stats = client.get("/profile/me/statistics", headers=auth_headers(user)).json()
    assert stats["total_trips"] == 1
    assert stats["countries_visited"] == 1
    assert stats["continents_visited"] == 1

    response = client.get("/profile/nomad")
    assert response.status_code == 200
    assert response.json()["statistics"]["total_trips"] == 1
