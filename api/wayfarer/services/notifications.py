"""
Notification Sink.

Append-only record of social events (follow, like, comment, reply) for a
recipient, plus the read API used by the notifications endpoints.

Notifications are written inside the caller's transaction: if the triggering
action rolls back, so does its notification.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from .. import models
from ..db import atomic
from ..pagination import paginate

logger = logging.getLogger(__name__)

# Notification types
FOLLOW = "follow"
LIKE = "like"
COMMENT = "comment"
REPLY = "reply"


def notify_if_not_self(
    db: Session,
    actor_id: int,
    recipient_id: int,
    notification_type: str,
    content: str,
    *,
    post_id: int | None = None,
    itinerary_id: int | None = None,
) -> models.Notification | None:
    """
    Append a notification for ``recipient_id`` unless the actor is the recipient.

    Does not commit; the row becomes visible when the caller's transaction does.

    Args:
        db: Database session (inside an open transaction)
        actor_id: User who performed the action
        recipient_id: User to notify
        notification_type: 'follow', 'like', 'comment' or 'reply'
        content: Human-readable text, e.g. "liked your post"
        post_id: Related post, if any
        itinerary_id: Related itinerary, if any

    Returns:
        The pending notification, or None if skipped (self-action)
    """
    if actor_id == recipient_id:
        logger.debug(f"Skipping self-notification for user {recipient_id}")
        return None

    notification = models.Notification(
        user_id=recipient_id,
        type=notification_type,
        content=content,
        related_user_id=actor_id,
        related_post_id=post_id,
        related_itinerary_id=itinerary_id,
        is_read=False,
    )
    db.add(notification)
    logger.info(
        f"Queued {notification_type} notification for user {recipient_id} from user {actor_id}"
    )
    return notification


def get_unread_count(db: Session, user_id: int) -> int:
    return (
        db.scalar(
            select(func.count(models.Notification.id)).where(
                models.Notification.user_id == user_id,
                models.Notification.is_read.is_(False),
            )
        )
        or 0
    )


def list_notifications(
    db: Session,
    user_id: int,
    offset: int = 0,
    limit: int | None = None,
    unread_only: bool = False,
) -> tuple[list[models.Notification], int, int]:
    """
    List a user's notifications, newest first.

    Returns:
        Tuple of (notifications, total, unread_count)
    """
    stmt = select(models.Notification).where(models.Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(models.Notification.is_read.is_(False))
    stmt = stmt.order_by(
        models.Notification.created_at.desc(), models.Notification.id.desc()
    )

    items, total = paginate(db, stmt, offset, limit)
    return items, total, get_unread_count(db, user_id)


def mark_as_read(db: Session, user_id: int, notification_ids: list[int]) -> int:
    """Mark specific notifications of ``user_id`` as read. Returns rows updated."""
    if not notification_ids:
        return 0
    with atomic(db):
        result = db.execute(
            update(models.Notification)
            .where(
                models.Notification.id.in_(notification_ids),
                models.Notification.user_id == user_id,
                models.Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
    return result.rowcount


def mark_all_as_read(db: Session, user_id: int) -> int:
    with atomic(db):
        result = db.execute(
            update(models.Notification)
            .where(
                models.Notification.user_id == user_id,
                models.Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
    return result.rowcount


def delete_notification(db: Session, user_id: int, notification_id: int) -> bool:
    """
    Delete a notification owned by ``user_id``.

    Returns:
        True if deleted, False if not found
    """
    with atomic(db):
        result = db.execute(
            delete(models.Notification).where(
                models.Notification.id == notification_id,
                models.Notification.user_id == user_id,
            )
        )
    return result.rowcount > 0
