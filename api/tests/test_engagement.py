"""Test likes, saves, shares, comments and replies."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from wayfarer import models, schemas
from wayfarer.db import retry_on_transient
from wayfarer.errors import Forbidden, InvalidOperation, NotFound
from wayfarer.schemas import EngagementStatus
from wayfarer.services import content, engagement


@pytest.fixture
def owner(make_user) -> models.User:
    return make_user("owner")


@pytest.fixture
def fan(make_user) -> models.User:
    return make_user("fan")


@pytest.fixture
def post(db: Session, owner: models.User) -> models.Post:
    return content.create_post(db, owner.id, schemas.PostCreate(caption="Sunrise over Kyoto"))


@pytest.fixture
def itinerary(db: Session, owner: models.User) -> models.Itinerary:
    return content.create_itinerary(
        db, owner.id, schemas.ItineraryCreate(title="Ring road", destination="Reykjavik, Iceland")
    )


def _post_counter(db: Session, post_id: int, column: str) -> int:
    db.expire_all()
    return getattr(db.get(models.Post, post_id), column)


def _notifications(db: Session, user_id: int) -> list[models.Notification]:
    return db.query(models.Notification).filter(models.Notification.user_id == user_id).all()


def test_like_twice_counts_once(db: Session, post, fan, owner):
    first = engagement.like_post(db, post.id, fan.id)
    second = engagement.like_post(db, post.id, fan.id)

    assert first.status == EngagementStatus.CREATED
    assert first.count == 1
    assert second.status == EngagementStatus.ALREADY
    assert second.count == 1
    assert _post_counter(db, post.id, "like_count") == 1

    notes = _notifications(db, owner.id)
    assert len(notes) == 1
    assert notes[0].type == "like"
    assert notes[0].content == "liked your post"
    assert notes[0].related_post_id == post.id


def test_racing_like_loses_on_unique_constraint(db: Session, post, fan, monkeypatch):
    """Two concurrent likes by the same user: the loser reports already and the count moves by one."""
    engagement.like_post(db, post.id, fan.id)

    monkeypatch.setattr(engagement, "_edge_exists", lambda *args: False)
    result = engagement.like_post(db, post.id, fan.id)

    assert result.status == EngagementStatus.ALREADY
    assert _post_counter(db, post.id, "like_count") == 1
    assert db.query(models.PostLike).count() == 1


def test_unlike_restores_count(db: Session, post, fan):
    engagement.like_post(db, post.id, fan.id)
    result = engagement.unlike_post(db, post.id, fan.id)

    assert result.status == EngagementStatus.REMOVED
    assert result.count == 0
    assert _post_counter(db, post.id, "like_count") == 0


def test_unlike_without_like_never_goes_negative(db: Session, post, fan):
    result = engagement.unlike_post(db, post.id, fan.id)

    assert result.status == EngagementStatus.ABSENT
    assert _post_counter(db, post.id, "like_count") == 0


def test_self_like_does_not_notify(db: Session, post, owner):
    engagement.like_post(db, post.id, owner.id)
    assert _post_counter(db, post.id, "like_count") == 1
    assert _notifications(db, owner.id) == []


def test_save_does_not_notify(db: Session, post, fan, owner):
    result = engagement.save_post(db, post.id, fan.id)
    assert result.status == EngagementStatus.CREATED
    assert _post_counter(db, post.id, "save_count") == 1
    assert _notifications(db, owner.id) == []

    engagement.unsave_post(db, post.id, fan.id)
    assert _post_counter(db, post.id, "save_count") == 0


def test_engagement_on_missing_item(db: Session, fan):
    with pytest.raises(NotFound):
        engagement.like_post(db, 12345, fan.id)
    with pytest.raises(NotFound):
        engagement.unlike_post(db, 12345, fan.id)


def test_like_on_deleted_post_is_not_found(db: Session, post, fan, owner):
    content.delete_post(db, post.id, owner.id)
    with pytest.raises(NotFound):
        engagement.like_post(db, post.id, fan.id)


def test_unknown_engagement_kind(db: Session, post, fan):
    with pytest.raises(InvalidOperation):
        engagement.add_engagement(db, "post", "bookmark", post.id, fan.id)


def test_itinerary_like_and_save(db: Session, itinerary, fan, owner):
    assert engagement.like_itinerary(db, itinerary.id, fan.id).count == 1
    assert engagement.save_itinerary(db, itinerary.id, fan.id).count == 1
    assert engagement.like_itinerary(db, itinerary.id, fan.id).status == EngagementStatus.ALREADY
    # Itinerary engagement is silent
    assert _notifications(db, owner.id) == []

    assert engagement.unlike_itinerary(db, itinerary.id, fan.id).count == 0
    assert engagement.unsave_itinerary(db, itinerary.id, fan.id).count == 0


def test_shares_are_not_unique(db: Session, post, itinerary, fan):
    engagement.share_item(db, engagement.POST, post.id, fan.id, "whatsapp")
    result = engagement.share_item(db, engagement.POST, post.id, fan.id)
    assert result.count == 2
    assert db.query(models.PostShare).filter(models.PostShare.post_id == post.id).count() == 2

    assert engagement.share_item(db, engagement.ITINERARY, itinerary.id, fan.id).count == 1


def test_comment_increments_and_notifies(db: Session, post, fan, owner):
    comment = engagement.add_comment(db, post.id, fan.id, "Stunning!")

    assert comment.comment_text == "Stunning!"
    assert _post_counter(db, post.id, "comment_count") == 1
    notes = _notifications(db, owner.id)
    assert [n.type for n in notes] == ["comment"]
    assert notes[0].content == "commented on your post"


def test_reply_notifies_comment_author(db: Session, post, fan, owner):
    comment = engagement.add_comment(db, post.id, fan.id, "Where is this?")
    reply = engagement.add_reply(db, comment.id, owner.id, "Fushimi Inari")

    assert reply.comment_id == comment.id
    db.expire_all()
    assert db.get(models.PostComment, comment.id).reply_count == 1

    notes = _notifications(db, fan.id)
    assert len(notes) == 1
    assert notes[0].type == "reply"
    assert notes[0].content == "replied to your comment"
    assert notes[0].related_post_id == post.id


def test_comment_like(db: Session, post, fan, owner):
    comment = engagement.add_comment(db, post.id, fan.id, "Nice")
    assert engagement.like_comment(db, comment.id, owner.id).count == 1
    assert engagement.like_comment(db, comment.id, owner.id).status == EngagementStatus.ALREADY
    assert engagement.unlike_comment(db, comment.id, owner.id).count == 0


def test_only_author_can_delete_comment(db: Session, post, fan, owner):
    comment_id = engagement.add_comment(db, post.id, fan.id, "First").id
    engagement.add_reply(db, comment_id, owner.id, "Thanks")
    engagement.like_comment(db, comment_id, owner.id)

    with pytest.raises(Forbidden):
        engagement.delete_comment(db, comment_id, owner.id)
    assert _post_counter(db, post.id, "comment_count") == 1

    engagement.delete_comment(db, comment_id, fan.id)

    assert _post_counter(db, post.id, "comment_count") == 0
    assert db.get(models.PostComment, comment_id) is None
    assert db.query(models.CommentReply).count() == 0
    assert db.query(models.CommentLike).count() == 0
    with pytest.raises(NotFound):
        engagement.get_replies(db, comment_id)
    with pytest.raises(NotFound):
        engagement.delete_comment(db, comment_id, fan.id)


def test_comments_newest_first_and_replies_oldest_first(db: Session, post, fan, owner):
    first = engagement.add_comment(db, post.id, fan.id, "one")
    second = engagement.add_comment(db, post.id, owner.id, "two")
    r1 = engagement.add_reply(db, first.id, owner.id, "a")
    r2 = engagement.add_reply(db, first.id, fan.id, "b")

    comments, total = engagement.get_comments(db, post.id)
    assert total == 2
    assert [c.id for c in comments] == [second.id, first.id]

    replies, total = engagement.get_replies(db, first.id)
    assert total == 2
    assert [r.id for r in replies] == [r1.id, r2.id]


def test_retry_on_transient_retries_operational_errors(db: Session):
    calls = {"n": 0}

    @retry_on_transient(attempts=3)
    def flaky(session):
        calls["n"] += 1
        if calls["n"] < 3:
            raise OperationalError("UPDATE posts", {}, Exception("database is locked"))
        return "ok"

    assert flaky(db) == "ok"
    assert calls["n"] == 3


def test_retry_on_transient_gives_up(db: Session):
    calls = {"n": 0}

    @retry_on_transient(attempts=2)
    def broken(session):
        calls["n"] += 1
        raise OperationalError("UPDATE posts", {}, Exception("connection lost"))

    with pytest.raises(OperationalError):
        broken(db)
    assert calls["n"] == 2
