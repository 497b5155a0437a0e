"""
Admin moderation: the approval queue, removals and the dashboard counts.

Removals keep the owner's counters consistent the same way owner deletes do:
the post status flip and the ``total_posts`` decrement share a transaction,
and itinerary removal rewrites the owner's travel statistics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import models
from ..db import atomic
from ..errors import NotFound
from ..pagination import paginate
from ..utils.visibility import recency_order
from . import counters
from .travel_stats import write_travel_stats

logger = logging.getLogger(__name__)


@dataclass
class DashboardStats:
    total_users: int
    active_users: int
    total_posts: int
    total_itineraries: int
    pending_posts: int
    pending_itineraries: int
    total_likes: int
    total_comments: int
    total_shares: int
    total_views: int


def list_pending_posts(
    db: Session, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Post], int]:
    """Active posts awaiting approval, newest first."""
    stmt = (
        select(models.Post)
        .where(
            models.Post.approved_by_admin.is_(False),
            models.Post.status == models.STATUS_ACTIVE,
        )
        .order_by(*recency_order(models.Post))
    )
    return paginate(db, stmt, offset, limit)


def list_pending_itineraries(
    db: Session, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Itinerary], int]:
    stmt = (
        select(models.Itinerary)
        .where(models.Itinerary.approved_by_admin.is_(False))
        .order_by(*recency_order(models.Itinerary))
    )
    return paginate(db, stmt, offset, limit)


def reject_post(db: Session, post_id: int) -> None:
    """
    Soft-delete a post on an admin's behalf.

    Raises:
        NotFound: Post absent or already deleted
    """
    post = db.get(models.Post, post_id)
    if post is None or post.is_deleted:
        raise NotFound("Post not found")
    owner_id = post.owner_id

    with atomic(db):
        flipped = (
            db.query(models.Post)
            .filter(models.Post.id == post_id, models.Post.status == models.STATUS_ACTIVE)
            .update({"status": models.STATUS_DELETED}, synchronize_session=False)
        )
        if flipped:
            counters.decrement_user_stat(db, owner_id, models.UserStatistics.total_posts)

    db.expire_all()
    logger.info(f"Post {post_id} of user {owner_id} rejected")


def delete_itinerary(db: Session, itinerary_id: int) -> None:
    """Hard-delete any itinerary and rewrite its owner's travel statistics."""
    itinerary = db.get(models.Itinerary, itinerary_id)
    if itinerary is None:
        raise NotFound("Itinerary not found")
    owner_id = itinerary.owner_id

    with atomic(db):
        db.delete(itinerary)
        db.flush()
        write_travel_stats(db, owner_id)

    logger.info(f"Itinerary {itinerary_id} of user {owner_id} removed by admin")


def get_dashboard_stats(db: Session) -> DashboardStats:
    def count(stmt) -> int:
        return db.scalar(stmt) or 0

    active_posts = models.Post.status == models.STATUS_ACTIVE
    totals = db.execute(
        select(
            func.coalesce(func.sum(models.Post.like_count), 0),
            func.coalesce(func.sum(models.Post.comment_count), 0),
            func.coalesce(func.sum(models.Post.share_count), 0),
            func.coalesce(func.sum(models.Post.view_count), 0),
        )
    ).one()

    return DashboardStats(
        total_users=count(select(func.count(models.User.id))),
        active_users=count(
            select(func.count(models.User.id)).where(models.User.account_banned.is_(False))
        ),
        total_posts=count(select(func.count(models.Post.id)).where(active_posts)),
        total_itineraries=count(select(func.count(models.Itinerary.id))),
        pending_posts=count(
            select(func.count(models.Post.id)).where(
                active_posts, models.Post.approved_by_admin.is_(False)
            )
        ),
        pending_itineraries=count(
            select(func.count(models.Itinerary.id)).where(
                models.Itinerary.approved_by_admin.is_(False)
            )
        ),
        total_likes=int(totals[0]),
        total_comments=int(totals[1]),
        total_shares=int(totals[2]),
        total_views=int(totals[3]),
    )
