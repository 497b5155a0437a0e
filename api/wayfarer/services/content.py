"""Post and itinerary lifecycle: create, update, delete, read and moderation."""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import atomic
from ..errors import Forbidden, NotFound
from ..utils.visibility import can_view_content
from . import counters, tags
from .travel_stats import write_travel_stats

logger = logging.getLogger(__name__)


def _auto_approves(db: Session, owner_id: int) -> bool:
    """Admins with auto-approve enabled publish without moderation."""
    owner = db.get(models.User, owner_id)
    if owner is None:
        raise NotFound("User not found")
    if not owner.is_admin:
        return False
    settings = owner.admin_settings
    return bool(settings and settings.admin_auto_approve_posts)


def mark_viewer_engagement(
    db: Session, items: Sequence, kind: str, viewer_id: int | None
) -> None:
    """
    Set transient ``is_liked``/``is_saved`` flags on posts or itineraries.

    One query per edge table regardless of page size.
    """
    if kind == "post":
        like_model, save_model, fk = models.PostLike, models.PostSave, "post_id"
    else:
        like_model, save_model, fk = models.ItineraryLike, models.ItinerarySave, "itinerary_id"

    ids = [item.id for item in items]
    liked: set[int] = set()
    saved: set[int] = set()
    if viewer_id is not None and ids:
        liked = set(
            db.scalars(
                select(getattr(like_model, fk)).where(
                    like_model.user_id == viewer_id, getattr(like_model, fk).in_(ids)
                )
            )
        )
        saved = set(
            db.scalars(
                select(getattr(save_model, fk)).where(
                    save_model.user_id == viewer_id, getattr(save_model, fk).in_(ids)
                )
            )
        )
    for item in items:
        item.is_liked = item.id in liked
        item.is_saved = item.id in saved


# ============================================================================
# POSTS
# ============================================================================


def _get_owned_post(db: Session, post_id: int, user_id: int, action: str) -> models.Post:
    post = db.get(models.Post, post_id)
    if post is None or post.is_deleted:
        raise NotFound("Post not found")
    if post.owner_id != user_id:
        raise Forbidden(f"You can only {action} your own posts")
    return post


def create_post(db: Session, owner_id: int, data: schemas.PostCreate) -> models.Post:
    approved = _auto_approves(db, owner_id)

    with atomic(db):
        post = models.Post(
            owner_id=owner_id,
            caption=data.caption,
            details=data.details,
            location=data.location,
            image_links=list(data.image_links),
            visibility=data.visibility,
            approved_by_admin=approved,
            status=models.STATUS_ACTIVE,
        )
        db.add(post)
        db.flush()
        tags.tag_post(db, post.id, data.tags)
        counters.ensure_user_statistics(db, owner_id)
        counters.increment_user_stat(db, owner_id, models.UserStatistics.total_posts)

    db.refresh(post)
    logger.info(f"User {owner_id} created post {post.id} (approved={approved})")
    return post


def update_post(
    db: Session, post_id: int, user_id: int, data: schemas.PostUpdate
) -> models.Post:
    post = _get_owned_post(db, post_id, user_id, "update")

    with atomic(db):
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("visibility", "image_links"):
                continue
            setattr(post, field, value)

    db.refresh(post)
    return post


def delete_post(db: Session, post_id: int, user_id: int) -> None:
    """
    Soft-delete a post.

    ``total_posts`` is only decremented by the call that flips the status,
    so concurrent deletes of the same post decrement once.
    """
    _get_owned_post(db, post_id, user_id, "delete")

    with atomic(db):
        flipped = (
            db.query(models.Post)
            .filter(models.Post.id == post_id, models.Post.status == models.STATUS_ACTIVE)
            .update({"status": models.STATUS_DELETED}, synchronize_session=False)
        )
        if flipped:
            counters.decrement_user_stat(db, user_id, models.UserStatistics.total_posts)

    db.expire_all()
    logger.info(f"User {user_id} deleted post {post_id}")


def get_post(db: Session, post_id: int, viewer_id: int | None) -> models.Post:
    """
    Fetch a post for a viewer and count the view.

    Raises:
        NotFound: Post absent or not visible to the viewer
    """
    post = db.get(models.Post, post_id)
    if post is None or not can_view_content(db, viewer_id, post):
        raise NotFound("Post not found")

    with atomic(db):
        counters.increment(db, models.Post.view_count, models.Post.id == post_id)

    db.refresh(post)
    mark_viewer_engagement(db, [post], "post", viewer_id)
    return post


def set_post_approval(db: Session, post_id: int, approved: bool = True) -> models.Post:
    post = db.get(models.Post, post_id)
    if post is None or post.is_deleted:
        raise NotFound("Post not found")
    with atomic(db):
        post.approved_by_admin = approved
    db.refresh(post)
    logger.info(f"Post {post_id} approval set to {approved}")
    return post


# ============================================================================
# ITINERARIES
# ============================================================================


def _get_owned_itinerary(
    db: Session, itinerary_id: int, user_id: int, action: str
) -> models.Itinerary:
    itinerary = db.get(models.Itinerary, itinerary_id)
    if itinerary is None:
        raise NotFound("Itinerary not found")
    if itinerary.owner_id != user_id:
        raise Forbidden(f"You can only {action} your own itineraries")
    return itinerary


def create_itinerary(
    db: Session, owner_id: int, data: schemas.ItineraryCreate
) -> models.Itinerary:
    """Create an itinerary and refresh the owner's travel statistics in the same transaction."""
    approved = _auto_approves(db, owner_id)

    with atomic(db):
        itinerary = models.Itinerary(
            owner_id=owner_id,
            approved_by_admin=approved,
            **data.model_dump(exclude={"tags"}),
        )
        db.add(itinerary)
        db.flush()
        tags.tag_itinerary(db, itinerary.id, data.tags)
        write_travel_stats(db, owner_id)

    db.refresh(itinerary)
    logger.info(f"User {owner_id} created itinerary {itinerary.id}")
    return itinerary


def update_itinerary(
    db: Session, itinerary_id: int, user_id: int, data: schemas.ItineraryUpdate
) -> models.Itinerary:
    itinerary = _get_owned_itinerary(db, itinerary_id, user_id, "update")

    with atomic(db):
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("title", "visibility"):
                continue
            setattr(itinerary, field, value)
        db.flush()
        write_travel_stats(db, user_id)

    db.refresh(itinerary)
    return itinerary


def delete_itinerary(db: Session, itinerary_id: int, user_id: int) -> None:
    """Hard-delete an itinerary; its likes, saves and shares cascade."""
    itinerary = _get_owned_itinerary(db, itinerary_id, user_id, "delete")

    with atomic(db):
        db.delete(itinerary)
        db.flush()
        write_travel_stats(db, user_id)

    logger.info(f"User {user_id} deleted itinerary {itinerary_id}")


def get_itinerary(db: Session, itinerary_id: int, viewer_id: int | None) -> models.Itinerary:
    itinerary = db.get(models.Itinerary, itinerary_id)
    if itinerary is None or not can_view_content(db, viewer_id, itinerary):
        raise NotFound("Itinerary not found")

    with atomic(db):
        counters.increment(db, models.Itinerary.view_count, models.Itinerary.id == itinerary_id)

    db.refresh(itinerary)
    mark_viewer_engagement(db, [itinerary], "itinerary", viewer_id)
    return itinerary


def set_itinerary_approval(
    db: Session, itinerary_id: int, approved: bool = True
) -> models.Itinerary:
    itinerary = db.get(models.Itinerary, itinerary_id)
    if itinerary is None:
        raise NotFound("Itinerary not found")
    with atomic(db):
        itinerary.approved_by_admin = approved
    db.refresh(itinerary)
    logger.info(f"Itinerary {itinerary_id} approval set to {approved}")
    return itinerary
