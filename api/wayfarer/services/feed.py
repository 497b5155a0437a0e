"""
Content listings: generic feeds, popularity ("top") lists, per-user posts and saves.

Every listing goes through ``visible_content_clause`` so feeds never show an
item the single-item read would refuse.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from .. import models
from ..errors import NotFound
from ..pagination import paginate
from ..utils.visibility import (
    can_view_profile,
    recency_order,
    top_order,
    visible_content_clause,
)
from .content import mark_viewer_engagement

logger = logging.getLogger(__name__)


def list_posts_feed(
    db: Session, viewer_id: int | None, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Post], int]:
    """Posts visible to the viewer, newest first."""
    stmt = (
        select(models.Post)
        .where(visible_content_clause(models.Post, viewer_id))
        .order_by(*recency_order(models.Post))
    )
    posts, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, posts, "post", viewer_id)
    return posts, total


def list_itineraries_feed(
    db: Session, viewer_id: int | None, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Itinerary], int]:
    """Itineraries visible to the viewer, newest first."""
    stmt = (
        select(models.Itinerary)
        .where(visible_content_clause(models.Itinerary, viewer_id))
        .order_by(*recency_order(models.Itinerary))
    )
    itineraries, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, itineraries, "itinerary", viewer_id)
    return itineraries, total


def list_top_posts(
    db: Session, viewer_id: int | None = None, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Post], int]:
    """Public approved posts by popularity (likes, then views, then recency)."""
    stmt = (
        select(models.Post)
        .where(visible_content_clause(models.Post, None))
        .order_by(*top_order(models.Post))
    )
    posts, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, posts, "post", viewer_id)
    return posts, total


def list_top_itineraries(
    db: Session, viewer_id: int | None = None, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Itinerary], int]:
    stmt = (
        select(models.Itinerary)
        .where(visible_content_clause(models.Itinerary, None))
        .order_by(*top_order(models.Itinerary))
    )
    itineraries, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, itineraries, "itinerary", viewer_id)
    return itineraries, total


def list_user_posts(
    db: Session,
    owner_id: int,
    viewer_id: int | None,
    offset: int = 0,
    limit: int | None = None,
) -> tuple[list[models.Post], int]:
    """
    A single user's posts as the viewer is allowed to see them.

    Raises:
        NotFound: Owner absent, or a private profile hidden from the viewer
    """
    owner = db.get(models.User, owner_id)
    if owner is None:
        raise NotFound("User not found")
    if not can_view_profile(db, viewer_id, owner):
        raise NotFound("This account is private")

    stmt = (
        select(models.Post)
        .where(
            models.Post.owner_id == owner_id,
            visible_content_clause(models.Post, viewer_id),
        )
        .order_by(*recency_order(models.Post))
    )
    posts, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, posts, "post", viewer_id)
    return posts, total


def list_saved_posts(
    db: Session, user_id: int, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Post], int]:
    """
    The user's saved posts, most recently saved first.

    Saves of posts that have since become invisible to the user are skipped.
    """
    stmt = (
        select(models.Post)
        .join(
            models.PostSave,
            and_(models.PostSave.post_id == models.Post.id, models.PostSave.user_id == user_id),
        )
        .where(visible_content_clause(models.Post, user_id))
        .order_by(models.PostSave.created_at.desc(), models.PostSave.id.desc())
    )
    posts, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, posts, "post", user_id)
    return posts, total


def list_saved_itineraries(
    db: Session, user_id: int, offset: int = 0, limit: int | None = None
) -> tuple[list[models.Itinerary], int]:
    stmt = (
        select(models.Itinerary)
        .join(
            models.ItinerarySave,
            and_(
                models.ItinerarySave.itinerary_id == models.Itinerary.id,
                models.ItinerarySave.user_id == user_id,
            ),
        )
        .where(visible_content_clause(models.Itinerary, user_id))
        .order_by(models.ItinerarySave.created_at.desc(), models.ItinerarySave.id.desc())
    )
    itineraries, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, itineraries, "itinerary", user_id)
    return itineraries, total


def list_posts_by_tag(
    db: Session,
    tag_name: str,
    viewer_id: int | None,
    offset: int = 0,
    limit: int | None = None,
) -> tuple[list[models.Post], int]:
    """Visible posts carrying a tag, newest first. Tag lookup ignores case."""
    stmt = (
        select(models.Post)
        .join(models.PostTag, models.PostTag.post_id == models.Post.id)
        .join(models.Tag, models.Tag.id == models.PostTag.tag_id)
        .where(
            models.Tag.tag_name == tag_name.strip().lower(),
            visible_content_clause(models.Post, viewer_id),
        )
        .order_by(*recency_order(models.Post))
    )
    posts, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, posts, "post", viewer_id)
    return posts, total


def list_itineraries_by_tag(
    db: Session,
    tag_name: str,
    viewer_id: int | None,
    offset: int = 0,
    limit: int | None = None,
) -> tuple[list[models.Itinerary], int]:
    stmt = (
        select(models.Itinerary)
        .join(models.ItineraryTag, models.ItineraryTag.itinerary_id == models.Itinerary.id)
        .join(models.Tag, models.Tag.id == models.ItineraryTag.tag_id)
        .where(
            models.Tag.tag_name == tag_name.strip().lower(),
            visible_content_clause(models.Itinerary, viewer_id),
        )
        .order_by(*recency_order(models.Itinerary))
    )
    itineraries, total = paginate(db, stmt, offset, limit)
    mark_viewer_engagement(db, itineraries, "itinerary", viewer_id)
    return itineraries, total
