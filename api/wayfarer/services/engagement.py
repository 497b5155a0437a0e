"""
Engagement Counter Manager.

Likes and saves are unique (user, item) edges with a denormalized counter on
the item. A single registry describes every (kind, action) pair so the
add/remove logic, including its race handling, lives in exactly one place.

Shares, comments and replies are append-only and handled separately below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import atomic, retry_on_transient
from ..errors import Forbidden, InvalidOperation, NotFound
from ..pagination import paginate
from . import counters
from .notifications import COMMENT, LIKE, REPLY, notify_if_not_self

logger = logging.getLogger(__name__)

POST = "post"
ITINERARY = "itinerary"
COMMENT_KIND = "comment"

ACTION_LIKE = "like"
ACTION_SAVE = "save"

_PAST_TENSE = {ACTION_LIKE: "liked", ACTION_SAVE: "saved"}


@dataclass(frozen=True)
class EngagementRule:
    """How one (kind, action) pair maps onto tables and counters."""

    edge: type
    item: type
    fk: str
    counter: str
    owner_attr: str = "owner_id"
    notification: tuple[str, str] | None = None


ENGAGEMENT_RULES: dict[tuple[str, str], EngagementRule] = {
    (POST, ACTION_LIKE): EngagementRule(
        models.PostLike, models.Post, "post_id", "like_count",
        notification=(LIKE, "liked your post"),
    ),
    (POST, ACTION_SAVE): EngagementRule(models.PostSave, models.Post, "post_id", "save_count"),
    (ITINERARY, ACTION_LIKE): EngagementRule(
        models.ItineraryLike, models.Itinerary, "itinerary_id", "like_count"
    ),
    (ITINERARY, ACTION_SAVE): EngagementRule(
        models.ItinerarySave, models.Itinerary, "itinerary_id", "save_count"
    ),
    (COMMENT_KIND, ACTION_LIKE): EngagementRule(
        models.CommentLike, models.PostComment, "comment_id", "like_count",
        owner_attr="user_id",
    ),
}

_SHARE_MODELS = {
    POST: (models.PostShare, models.Post, "post_id"),
    ITINERARY: (models.ItineraryShare, models.Itinerary, "itinerary_id"),
}


def _rule(kind: str, action: str) -> EngagementRule:
    try:
        return ENGAGEMENT_RULES[(kind, action)]
    except KeyError:
        raise InvalidOperation(f"Unsupported engagement: {action} on {kind}")


def _get_item(db: Session, item_model: type, item_id: int, kind: str, live_only: bool = True):
    item = db.get(item_model, item_id)
    if item is None or (live_only and getattr(item, "is_deleted", False)):
        raise NotFound(f"{kind.capitalize()} not found")
    return item


def _edge_exists(db: Session, rule: EngagementRule, item_id: int, user_id: int) -> bool:
    fk = getattr(rule.edge, rule.fk)
    return bool(
        db.scalar(select(exists().where(fk == item_id, rule.edge.user_id == user_id)))
    )


def _notification_target(kind: str, item_id: int) -> dict:
    if kind == POST:
        return {"post_id": item_id}
    if kind == ITINERARY:
        return {"itinerary_id": item_id}
    return {}


def _current_count(db: Session, rule: EngagementRule, item_id: int) -> int:
    return counters.read_counter(db, getattr(rule.item, rule.counter), rule.item.id == item_id)


@retry_on_transient
def add_engagement(
    db: Session, kind: str, action: str, item_id: int, user_id: int
) -> schemas.EngagementResult:
    """
    Idempotently add a like/save edge and bump the item's counter.

    A second call, or a concurrent call that loses the unique-constraint race,
    reports ``already`` and leaves the counter alone.

    Raises:
        NotFound: Item does not exist (or is a deleted post)
        InvalidOperation: Unknown (kind, action)
    """
    rule = _rule(kind, action)
    item = _get_item(db, rule.item, item_id, kind)
    owner_id = getattr(item, rule.owner_attr)
    label = kind.capitalize()
    past = _PAST_TENSE[action]

    if _edge_exists(db, rule, item_id, user_id):
        return schemas.EngagementResult(
            status=schemas.EngagementStatus.ALREADY,
            message=f"{label} already {past}",
            count=_current_count(db, rule, item_id),
        )

    try:
        with atomic(db):
            db.add(rule.edge(**{rule.fk: item_id, "user_id": user_id}))
            db.flush()
            counters.increment(db, getattr(rule.item, rule.counter), rule.item.id == item_id)
            if rule.notification:
                notification_type, content = rule.notification
                notify_if_not_self(
                    db, user_id, owner_id, notification_type, content,
                    **_notification_target(kind, item_id),
                )
    except IntegrityError:
        logger.info(f"Concurrent {action} on {kind} {item_id} by user {user_id} already recorded")
        return schemas.EngagementResult(
            status=schemas.EngagementStatus.ALREADY,
            message=f"{label} already {past}",
            count=_current_count(db, rule, item_id),
        )

    logger.info(f"User {user_id} {past} {kind} {item_id}")
    return schemas.EngagementResult(
        status=schemas.EngagementStatus.CREATED,
        message=f"{label} {past} successfully",
        count=_current_count(db, rule, item_id),
    )


@retry_on_transient
def remove_engagement(
    db: Session, kind: str, action: str, item_id: int, user_id: int
) -> schemas.EngagementResult:
    """
    Idempotently remove a like/save edge.

    The counter is decremented only when this call deleted a row, and never
    below zero.

    Raises:
        NotFound: Item does not exist
    """
    rule = _rule(kind, action)
    _get_item(db, rule.item, item_id, kind, live_only=False)
    label = kind.capitalize()
    past = _PAST_TENSE[action]

    with atomic(db):
        deleted = (
            db.query(rule.edge)
            .filter(getattr(rule.edge, rule.fk) == item_id, rule.edge.user_id == user_id)
            .delete(synchronize_session=False)
        )
        if deleted:
            counters.decrement(db, getattr(rule.item, rule.counter), rule.item.id == item_id)

    if not deleted:
        logger.debug(f"No {action} by user {user_id} on {kind} {item_id} to remove")
        return schemas.EngagementResult(
            status=schemas.EngagementStatus.ABSENT,
            message=f"{label} was not {past}",
            count=_current_count(db, rule, item_id),
        )

    logger.info(f"User {user_id} un{past} {kind} {item_id}")
    return schemas.EngagementResult(
        status=schemas.EngagementStatus.REMOVED,
        message=f"{label} un{past} successfully",
        count=_current_count(db, rule, item_id),
    )


def like_post(db: Session, post_id: int, user_id: int) -> schemas.EngagementResult:
    return add_engagement(db, POST, ACTION_LIKE, post_id, user_id)


def unlike_post(db: Session, post_id: int, user_id: int) -> schemas.EngagementResult:
    return remove_engagement(db, POST, ACTION_LIKE, post_id, user_id)


def save_post(db: Session, post_id: int, user_id: int) -> schemas.EngagementResult:
    return add_engagement(db, POST, ACTION_SAVE, post_id, user_id)


def unsave_post(db: Session, post_id: int, user_id: int) -> schemas.EngagementResult:
    return remove_engagement(db, POST, ACTION_SAVE, post_id, user_id)


def like_itinerary(db: Session, itinerary_id: int, user_id: int) -> schemas.EngagementResult:
    return add_engagement(db, ITINERARY, ACTION_LIKE, itinerary_id, user_id)


def unlike_itinerary(db: Session, itinerary_id: int, user_id: int) -> schemas.EngagementResult:
    return remove_engagement(db, ITINERARY, ACTION_LIKE, itinerary_id, user_id)


def save_itinerary(db: Session, itinerary_id: int, user_id: int) -> schemas.EngagementResult:
    return add_engagement(db, ITINERARY, ACTION_SAVE, itinerary_id, user_id)


def unsave_itinerary(db: Session, itinerary_id: int, user_id: int) -> schemas.EngagementResult:
    return remove_engagement(db, ITINERARY, ACTION_SAVE, itinerary_id, user_id)


def like_comment(db: Session, comment_id: int, user_id: int) -> schemas.EngagementResult:
    return add_engagement(db, COMMENT_KIND, ACTION_LIKE, comment_id, user_id)


def unlike_comment(db: Session, comment_id: int, user_id: int) -> schemas.EngagementResult:
    return remove_engagement(db, COMMENT_KIND, ACTION_LIKE, comment_id, user_id)


# ============================================================================
# SHARES
# ============================================================================


def share_item(
    db: Session, kind: str, item_id: int, user_id: int, shared_to: str | None = None
) -> schemas.EngagementResult:
    """Record a share. Shares are not unique; every call adds one."""
    if kind not in _SHARE_MODELS:
        raise InvalidOperation(f"Unsupported engagement: share on {kind}")
    share_model, item_model, fk = _SHARE_MODELS[kind]
    _get_item(db, item_model, item_id, kind)

    with atomic(db):
        db.add(share_model(**{fk: item_id, "user_id": user_id, "shared_to": shared_to}))
        counters.increment(db, item_model.share_count, item_model.id == item_id)

    logger.info(f"User {user_id} shared {kind} {item_id} to {shared_to or 'unspecified'}")
    return schemas.EngagementResult(
        status=schemas.EngagementStatus.CREATED,
        message=f"{kind.capitalize()} shared successfully",
        count=counters.read_counter(db, item_model.share_count, item_model.id == item_id),
    )


# ============================================================================
# COMMENTS & REPLIES
# ============================================================================


def add_comment(db: Session, post_id: int, user_id: int, text: str) -> models.PostComment:
    post = _get_item(db, models.Post, post_id, POST)
    owner_id = post.owner_id

    with atomic(db):
        comment = models.PostComment(post_id=post_id, user_id=user_id, comment_text=text)
        db.add(comment)
        counters.increment(db, models.Post.comment_count, models.Post.id == post_id)
        notify_if_not_self(
            db, user_id, owner_id, COMMENT, "commented on your post", post_id=post_id
        )

    db.refresh(comment)
    logger.info(f"User {user_id} commented on post {post_id}")
    return comment


def add_reply(db: Session, comment_id: int, user_id: int, text: str) -> models.CommentReply:
    """Reply to a top-level comment. Replies cannot be replied to."""
    comment = _get_item(db, models.PostComment, comment_id, COMMENT_KIND)
    author_id = comment.user_id
    post_id = comment.post_id

    with atomic(db):
        reply = models.CommentReply(comment_id=comment_id, user_id=user_id, reply_text=text)
        db.add(reply)
        counters.increment(db, models.PostComment.reply_count, models.PostComment.id == comment_id)
        notify_if_not_self(
            db, user_id, author_id, REPLY, "replied to your comment", post_id=post_id
        )

    db.refresh(reply)
    logger.info(f"User {user_id} replied to comment {comment_id}")
    return reply


def delete_comment(db: Session, comment_id: int, user_id: int) -> None:
    comment = _get_item(db, models.PostComment, comment_id, COMMENT_KIND)
    if comment.user_id != user_id:
        raise Forbidden("You can only delete your own comments")
    post_id = comment.post_id

    with atomic(db):
        deleted = (
            db.query(models.PostComment)
            .filter(models.PostComment.id == comment_id)
            .delete(synchronize_session=False)
        )
        if deleted:
            counters.decrement(db, models.Post.comment_count, models.Post.id == post_id)

    logger.info(f"User {user_id} deleted comment {comment_id} on post {post_id}")


def get_comments(
    db: Session, post_id: int, offset: int = 0, limit: int | None = None
) -> tuple[list[models.PostComment], int]:
    """Top-level comments of a post, newest first."""
    _get_item(db, models.Post, post_id, POST)
    stmt = (
        select(models.PostComment)
        .where(models.PostComment.post_id == post_id)
        .order_by(models.PostComment.created_at.desc(), models.PostComment.id.desc())
    )
    return paginate(db, stmt, offset, limit)


def get_replies(
    db: Session, comment_id: int, offset: int = 0, limit: int | None = None
) -> tuple[list[models.CommentReply], int]:
    """Replies to a comment, oldest first so threads read top to bottom."""
    _get_item(db, models.PostComment, comment_id, COMMENT_KIND)
    stmt = (
        select(models.CommentReply)
        .where(models.CommentReply.comment_id == comment_id)
        .order_by(models.CommentReply.created_at.asc(), models.CommentReply.id.asc())
    )
    return paginate(db, stmt, offset, limit)
