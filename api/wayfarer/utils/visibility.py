"""Visibility and access control utilities for profiles, posts and itineraries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.orm import Session

from .. import models

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement

ContentItem = Union["models.Post", "models.Itinerary"]


def _has_follow_edge(db: Session, follower_id: int, following_id: int) -> bool:
    return bool(
        db.scalar(
            select(
                exists().where(
                    models.Follow.follower_id == follower_id,
                    models.Follow.following_id == following_id,
                )
            )
        )
    )


def is_private_account(owner: "models.User") -> bool:
    settings = owner.account_settings
    return bool(settings and settings.account_private)


def can_view_profile(db: Session, viewer_id: int | None, owner: "models.User") -> bool:
    """
    Check if a viewer can see a profile.

    Access is allowed if:
    - The account is not private, OR
    - The viewer is the owner, OR
    - The viewer follows the owner

    Callers report a hidden profile as not found, never as forbidden.
    """
    if not is_private_account(owner):
        return True
    if viewer_id is None:
        return False
    if viewer_id == owner.id:
        return True
    return _has_follow_edge(db, viewer_id, owner.id)


def can_view_content(db: Session, viewer_id: int | None, item: ContentItem) -> bool:
    """
    Check if a viewer can see a post or itinerary.

    Deleted items are visible to no one. The owner always sees their own
    live item, even unapproved. Everyone else needs the owner not banned and
    the item approved; ``ALL`` items are then public and ``FOLLOWERS`` items
    need a follow edge from the viewer to the owner.

    Args:
        db: Database session
        viewer_id: Current user id (None for anonymous viewers)
        item: Post or Itinerary to check

    Returns:
        True if access is allowed, False otherwise
    """
    if item.is_deleted:
        return False

    if viewer_id is not None and viewer_id == item.owner_id:
        return True

    if item.owner is None or item.owner.account_banned:
        return False

    if not item.approved_by_admin:
        return False

    if item.visibility == models.VISIBILITY_ALL:
        return True

    if item.visibility == models.VISIBILITY_FOLLOWERS and viewer_id is not None:
        return _has_follow_edge(db, viewer_id, item.owner_id)

    return False


def visible_content_clause(model, viewer_id: int | None) -> "ColumnElement[bool]":
    """
    SQL filter selecting the items of ``model`` that ``viewer_id`` may see.

    Same rules as ``can_view_content``, expressed as one WHERE clause for feed
    queries: own items, approved ``ALL`` items and approved ``FOLLOWERS``
    items of followed accounts. Banned owners' items are excluded except the
    viewer's own, and soft-deleted posts are always excluded.
    """
    banned_owners = select(models.User.id).where(models.User.account_banned.is_(True))
    shared = and_(
        model.approved_by_admin.is_(True),
        model.owner_id.not_in(banned_owners),
    )

    if viewer_id is None:
        clause = and_(shared, model.visibility == models.VISIBILITY_ALL)
    else:
        followed = select(models.Follow.following_id).where(
            models.Follow.follower_id == viewer_id
        )
        clause = or_(
            model.owner_id == viewer_id,
            and_(
                shared,
                or_(
                    model.visibility == models.VISIBILITY_ALL,
                    and_(
                        model.visibility == models.VISIBILITY_FOLLOWERS,
                        model.owner_id.in_(followed),
                    ),
                ),
            ),
        )

    if model is models.Post:
        clause = and_(clause, model.status != models.STATUS_DELETED)
    return clause


def recency_order(model) -> tuple:
    # id breaks ties between rows created in the same second
    return (model.created_at.desc(), model.id.desc())


def top_order(model) -> tuple:
    return (
        model.like_count.desc(),
        model.view_count.desc(),
        model.created_at.desc(),
        model.id.desc(),
    )
