"""Test tagging of posts and itineraries and tag listings."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wayfarer import models, schemas
from wayfarer.services import content, feed, tags


def test_normalize_tags_lowercases_and_dedupes():
    assert tags.normalize_tags([" Beach", "beach", "HIKING", "  ", "Food "]) == [
        "beach",
        "hiking",
        "food",
    ]


def test_tags_are_shared_between_posts_and_itineraries(db: Session, make_user):
    owner = make_user("owner")

    post = content.create_post(
        db, owner.id, schemas.PostCreate(caption="Sunset", tags=["Beach", "beach", "Sunset"])
    )
    trip = content.create_itinerary(
        db, owner.id, schemas.ItineraryCreate(title="Algarve", tags=["BEACH"])
    )

    assert [t.tag_name for t in post.tags] == ["beach", "sunset"]
    assert [t.tag_name for t in trip.tags] == ["beach"]
    assert trip.tags[0].id == post.tags[0].id
    assert db.scalar(select(func.count()).select_from(models.Tag)) == 2

    view = schemas.Post.model_validate(post)
    assert [t.tag_name for t in view.tags] == ["beach", "sunset"]


def test_post_tag_pair_is_unique(db: Session, make_user):
    owner = make_user("owner")
    post = content.create_post(db, owner.id, schemas.PostCreate(caption="x", tags=["city"]))

    db.add(models.PostTag(post_id=post.id, tag_id=post.tags[0].id))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_posts_by_tag_respect_visibility(db: Session, make_user):
    owner, stranger = make_user("owner"), make_user("stranger")
    public = content.create_post(db, owner.id, schemas.PostCreate(caption="a", tags=["alps"]))
    content.set_post_approval(db, public.id)
    newer = content.create_post(db, owner.id, schemas.PostCreate(caption="b", tags=["Alps"]))
    content.set_post_approval(db, newer.id)
    pending = content.create_post(db, owner.id, schemas.PostCreate(caption="c", tags=["alps"]))
    friends = content.create_post(
        db, owner.id, schemas.PostCreate(caption="d", tags=["alps"], visibility="FOLLOWERS")
    )
    content.set_post_approval(db, friends.id)
    deleted = content.create_post(db, owner.id, schemas.PostCreate(caption="e", tags=["alps"]))
    content.set_post_approval(db, deleted.id)
    content.delete_post(db, deleted.id, owner.id)

    rows, total = feed.list_posts_by_tag(db, "ALPS", stranger.id)
    assert total == 2
    assert [p.id for p in rows] == [newer.id, public.id]

    rows, total = feed.list_posts_by_tag(db, "alps", owner.id)
    assert total == 4
    assert pending.id in [p.id for p in rows]

    assert feed.list_posts_by_tag(db, "desert", owner.id) == ([], 0)


def test_tag_listing_over_http(client: TestClient, make_user, auth_headers):
    owner = make_user("owner", role=models.ROLE_ADMIN)
    response = client.post(
        "/itineraries",
        json={"title": "Dolomites", "tags": ["Hiking", "alps"]},
        headers=auth_headers(owner),
    )
    assert response.status_code == 201
    trip = response.json()
    assert sorted(t["tag_name"] for t in trip["tags"]) == ["alps", "hiking"]

    client.post(f"/admin/itineraries/{trip['id']}/approve", headers=auth_headers(owner))

    response = client.get("/itineraries/tags/Hiking")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["id"] == trip["id"]

    assert client.get("/posts/tags/hiking").json()["total"] == 0
