"""Test the admin approval queue, removals and dashboard counts."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from wayfarer import models, schemas
from wayfarer.errors import NotFound
from wayfarer.services import accounts, content, engagement, moderation
from wayfarer.services.travel_stats import get_statistics


def test_pending_queue_newest_first(db: Session, make_user):
    owner = make_user("owner")
    older = content.create_post(db, owner.id, schemas.PostCreate(caption="older"))
    newer = content.create_post(db, owner.id, schemas.PostCreate(caption="newer"))
    approved = content.create_post(db, owner.id, schemas.PostCreate(caption="approved"))
    content.set_post_approval(db, approved.id)
    removed = content.create_post(db, owner.id, schemas.PostCreate(caption="removed"))
    content.delete_post(db, removed.id, owner.id)

    rows, total = moderation.list_pending_posts(db)
    assert total == 2
    assert [p.id for p in rows] == [newer.id, older.id]

    trip = content.create_itinerary(db, owner.id, schemas.ItineraryCreate(title="Andes"))
    assert [i.id for i in moderation.list_pending_itineraries(db)[0]] == [trip.id]
    content.set_itinerary_approval(db, trip.id)
    assert moderation.list_pending_itineraries(db) == ([], 0)


def test_reject_post_decrements_owner_total(db: Session, make_user):
    owner = make_user("owner")
    post = content.create_post(db, owner.id, schemas.PostCreate(caption="spam"))
    content.create_post(db, owner.id, schemas.PostCreate(caption="keep"))
    assert get_statistics(db, owner.id).total_posts == 2

    moderation.reject_post(db, post.id)

    assert get_statistics(db, owner.id).total_posts == 1
    assert db.get(models.Post, post.id).status == models.STATUS_DELETED
    assert moderation.list_pending_posts(db)[1] == 1

    with pytest.raises(NotFound):
        moderation.reject_post(db, post.id)
    assert get_statistics(db, owner.id).total_posts == 1


def test_admin_itinerary_delete_recomputes_travel_stats(db: Session, make_user):
    owner = make_user("owner")
    kyoto = content.create_itinerary(
        db, owner.id, schemas.ItineraryCreate(title="Kyoto", destination="Kyoto, Japan")
    )
    content.create_itinerary(
        db, owner.id, schemas.ItineraryCreate(title="Lima", destination="Lima, Peru")
    )
    stats = get_statistics(db, owner.id)
    assert (stats.total_trips, stats.countries_visited, stats.continents_visited) == (2, 2, 2)

    moderation.delete_itinerary(db, kyoto.id)

    stats = get_statistics(db, owner.id)
    assert (stats.total_trips, stats.countries_visited, stats.continents_visited) == (1, 1, 1)
    assert db.get(models.Itinerary, kyoto.id) is None

    with pytest.raises(NotFound):
        moderation.delete_itinerary(db, kyoto.id)


def test_dashboard_on_empty_site(db: Session):
    stats = moderation.get_dashboard_stats(db)
    assert stats.total_users == 0
    assert (stats.total_likes, stats.total_comments, stats.total_shares, stats.total_views) == (
        0,
        0,
        0,
        0,
    )


def test_dashboard_counts(db: Session, make_user):
    make_user("mod", role=models.ROLE_ADMIN)
    owner, fan = make_user("owner"), make_user("fan")

    live = content.create_post(db, owner.id, schemas.PostCreate(caption="live"))
    content.set_post_approval(db, live.id)
    content.create_post(db, owner.id, schemas.PostCreate(caption="waiting"))
    gone = content.create_post(db, owner.id, schemas.PostCreate(caption="gone"))
    moderation.reject_post(db, gone.id)

    trip = content.create_itinerary(db, owner.id, schemas.ItineraryCreate(title="Alps"))
    content.set_itinerary_approval(db, trip.id)
    content.create_itinerary(db, owner.id, schemas.ItineraryCreate(title="Fjords"))

    engagement.like_post(db, live.id, fan.id)
    engagement.add_comment(db, live.id, fan.id, "Lovely")
    content.get_post(db, live.id, fan.id)
    accounts.set_banned(db, fan.id, True)

    stats = moderation.get_dashboard_stats(db)

    assert stats.total_users == 3
    assert stats.active_users == 2
    assert stats.total_posts == 2
    assert stats.total_itineraries == 2
    assert stats.pending_posts == 1
    assert stats.pending_itineraries == 1
    assert stats.total_likes == 1
    assert stats.total_comments == 1
    assert stats.total_shares == 0
    assert stats.total_views == 1


def test_moderation_routes(client: TestClient, db: Session, make_user, auth_headers):
    member = make_user("alice")
    admin = make_user("mod", role=models.ROLE_ADMIN)
    post = client.post("/posts", json={"caption": "Hello"}, headers=auth_headers(member)).json()
    trip = client.post(
        "/itineraries",
        json={"title": "Kyoto", "destination": "Kyoto, Japan"},
        headers=auth_headers(member),
    ).json()

    for path in ("/admin/pending/posts", "/admin/dashboard"):
        assert client.get(path, headers=auth_headers(member)).status_code == 403

    body = client.get("/admin/pending/posts", headers=auth_headers(admin)).json()
    assert [p["id"] for p in body["data"]] == [post["id"]]
    body = client.get("/admin/pending/itineraries", headers=auth_headers(admin)).json()
    assert body["total"] == 1

    response = client.get("/admin/dashboard", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["pending_posts"] == 1

    response = client.post(f"/admin/posts/{post['id']}/reject", headers=auth_headers(admin))
    assert response.status_code == 200
    response = client.delete(f"/admin/itineraries/{trip['id']}", headers=auth_headers(admin))
    assert response.status_code == 204

    stats = get_statistics(db, member.id)
    assert (stats.total_posts, stats.total_trips, stats.countries_visited) == (0, 0, 0)
    assert client.get("/admin/dashboard", headers=auth_headers(admin)).json()["pending_posts"] == 0
