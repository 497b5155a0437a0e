"""
Follow Graph Manager.

One ``follows`` table is the single source of truth for both directions of
the graph; followers and following lists are two queries over it. The
per-user ``total_followers``/``total_following`` counters change in the same
transaction as the edge.
"""

from __future__ import annotations

import logging

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import atomic
from ..errors import AlreadyExists, InvalidOperation, NotFound
from ..pagination import paginate
from ..settings import SUGGESTION_LIMIT
from . import counters
from .notifications import FOLLOW, notify_if_not_self

logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def follow_user(db: Session, follower_id: int, target_id: int) -> models.Follow:
    """
    Create the edge follower -> target.

    Raises:
        InvalidOperation: Self-follow
        NotFound: Either user does not exist
        AlreadyExists: The edge is already present (including a racing insert)
    """
    if follower_id == target_id:
        raise InvalidOperation("You cannot follow yourself")

    _get_user_or_404(db, target_id)
    _get_user_or_404(db, follower_id)

    if is_following(db, follower_id, target_id):
        raise AlreadyExists("Already following this user")

    try:
        with atomic(db):
            follow = models.Follow(follower_id=follower_id, following_id=target_id)
            db.add(follow)
            db.flush()

            counters.ensure_user_statistics(db, target_id)
            counters.ensure_user_statistics(db, follower_id)
            counters.increment_user_stat(db, target_id, models.UserStatistics.total_followers)
            counters.increment_user_stat(db, follower_id, models.UserStatistics.total_following)

            notify_if_not_self(db, follower_id, target_id, FOLLOW, "started following you")
    except IntegrityError:
        logger.info(f"Concurrent follow {follower_id} -> {target_id} lost the unique constraint race")
        raise AlreadyExists("Already following this user")

    logger.info(f"User {follower_id} followed user {target_id}")
    return follow


def unfollow_user(db: Session, follower_id: int, target_id: int) -> None:
    """
    Remove the edge follower -> target.

    Counters are only decremented if this call actually deleted the edge.

    Raises:
        InvalidOperation: No such edge
    """
    with atomic(db):
        deleted = (
            db.query(models.Follow)
            .filter(
                models.Follow.follower_id == follower_id,
                models.Follow.following_id == target_id,
            )
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise InvalidOperation("Not following this user")

        counters.decrement_user_stat(db, target_id, models.UserStatistics.total_followers)
        counters.decrement_user_stat(db, follower_id, models.UserStatistics.total_following)

    logger.info(f"User {follower_id} unfollowed user {target_id}")


def is_following(db: Session, follower_id: int, target_id: int) -> bool:
    return bool(
        db.scalar(
            select(
                exists().where(
                    models.Follow.follower_id == follower_id,
                    models.Follow.following_id == target_id,
                )
            )
        )
    )


def _summary_stmt(edge_user_column):
    """Select (user, profile, statistics, edge created_at) rows joined through ``edge_user_column``."""
    return (
        select(
            models.User,
            models.Profile,
            models.UserStatistics,
            models.Follow.created_at,
        )
        .select_from(models.Follow)
        .join(models.User, models.User.id == edge_user_column)
        .outerjoin(models.Profile, models.Profile.user_id == models.User.id)
        .outerjoin(models.UserStatistics, models.UserStatistics.user_id == models.User.id)
    )


def user_summary(
    user: models.User,
    profile: models.Profile | None,
    stats: models.UserStatistics | None,
    followed_at=None,
) -> schemas.UserSummary:
    return schemas.UserSummary(
        id=user.id,
        full_name=user.full_name,
        username=profile.username if profile else None,
        profile_image=profile.profile_image if profile else None,
        bio=profile.bio if profile else None,
        total_followers=stats.total_followers if stats else None,
        total_posts=stats.total_posts if stats else None,
        followed_at=followed_at,
    )


def list_followers(
    db: Session, user_id: int, offset: int = 0, limit: int | None = None
) -> tuple[list[schemas.UserSummary], int]:
    """
    Users following ``user_id``, newest edge first.

    Returns:
        Tuple of (summaries, total)
    """
    _get_user_or_404(db, user_id)
    stmt = (
        _summary_stmt(models.Follow.follower_id)
        .where(models.Follow.following_id == user_id)
        .order_by(models.Follow.created_at.desc(), models.Follow.id.desc())
    )
    rows, total = paginate(db, stmt, offset, limit)
    return [user_summary(u, p, s, followed_at) for u, p, s, followed_at in rows], total


def list_following(
    db: Session, user_id: int, offset: int = 0, limit: int | None = None
) -> tuple[list[schemas.UserSummary], int]:
    """
    Users that ``user_id`` follows, newest edge first.

    Returns:
        Tuple of (summaries, total)
    """
    _get_user_or_404(db, user_id)
    stmt = (
        _summary_stmt(models.Follow.following_id)
        .where(models.Follow.follower_id == user_id)
        .order_by(models.Follow.created_at.desc(), models.Follow.id.desc())
    )
    rows, total = paginate(db, stmt, offset, limit)
    return [user_summary(u, p, s, followed_at) for u, p, s, followed_at in rows], total


def suggest_users(
    db: Session, user_id: int, limit: int = SUGGESTION_LIMIT
) -> list[schemas.UserSummary]:
    """
    Accounts ``user_id`` might want to follow.

    Excludes the user, banned accounts, accounts that opted out of suggestions
    and accounts already followed. Most-followed first.
    """
    already_followed = select(models.Follow.following_id).where(
        models.Follow.follower_id == user_id
    )
    stmt = (
        select(models.User, models.Profile, models.UserStatistics)
        .join(models.AccountSettings, models.AccountSettings.user_id == models.User.id)
        .outerjoin(models.Profile, models.Profile.user_id == models.User.id)
        .outerjoin(models.UserStatistics, models.UserStatistics.user_id == models.User.id)
        .where(
            models.User.id != user_id,
            models.User.account_banned.is_(False),
            models.AccountSettings.suggest_account.is_(True),
            models.User.id.not_in(already_followed),
        )
        .order_by(
            func.coalesce(models.UserStatistics.total_followers, 0).desc(),
            models.User.id.asc(),
        )
        .limit(max(1, limit))
    )
    return [user_summary(u, p, s) for u, p, s in db.execute(stmt).all()]
