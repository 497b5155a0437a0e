"""
Account lifecycle: registration, moderation flags, deletion, profile and settings.

Deleting an account repairs the counters that other users and other users'
content hold about it before the cascade removes the rows themselves.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import atomic
from ..errors import Conflict, InvalidOperation, NotFound
from ..utils.visibility import can_view_profile
from . import counters
from .travel_stats import get_statistics, write_travel_stats

logger = logging.getLogger(__name__)

_USERNAME_UNSAFE = re.compile(r"[^a-z0-9_.]")


def get_user_or_404(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def _username_taken(db: Session, username: str, exclude_user_id: int | None = None) -> bool:
    stmt = select(models.Profile.user_id).where(models.Profile.username == username)
    owner_id = db.scalar(stmt)
    return owner_id is not None and owner_id != exclude_user_id


def _default_username(db: Session, email: str) -> str:
    """``<email local part>_<n>`` with the smallest free n."""
    base = _USERNAME_UNSAFE.sub("", email.split("@", 1)[0].lower())[:40] or "user"
    n = 1
    while _username_taken(db, f"{base}_{n}"):
        n += 1
    return f"{base}_{n}"


# ============================================================================
# LIFECYCLE
# ============================================================================


def register_user(
    db: Session,
    email: str,
    full_name: str | None,
    username: str | None = None,
    role: str = models.ROLE_MEMBER,
) -> models.User:
    """
    Create a user together with every dependent row.

    Raises:
        Conflict: Email or username already in use
        InvalidOperation: Unknown role
    """
    if role not in (models.ROLE_MEMBER, models.ROLE_ADMIN):
        raise InvalidOperation(f"Unknown role: {role}")

    email = email.strip().lower()
    if db.scalar(select(models.User.id).where(models.User.email == email)) is not None:
        raise Conflict("An account with this email already exists")
    if username and _username_taken(db, username):
        raise Conflict("Username already taken")

    try:
        with atomic(db):
            user = models.User(email=email, full_name=full_name, role=role)
            db.add(user)
            db.flush()

            db.add_all(
                [
                    models.Profile(
                        user_id=user.id,
                        username=username or _default_username(db, email),
                        countries_explored=[],
                    ),
                    models.AccountSettings(user_id=user.id),
                    models.NotificationSettings(user_id=user.id),
                    models.PrivacySecuritySettings(user_id=user.id),
                    models.UserStatistics(user_id=user.id),
                ]
            )
            if role == models.ROLE_ADMIN:
                db.add(models.AdminSettings(user_id=user.id))
    except IntegrityError as e:
        logger.info(f"Registration for {email} lost a uniqueness race: {e.orig}")
        raise Conflict("An account with this email or username already exists")

    db.refresh(user)
    logger.info(f"Registered user {user.id} ({role})")
    return user


def set_banned(db: Session, user_id: int, banned: bool) -> models.User:
    user = get_user_or_404(db, user_id)
    if user.account_banned != banned:
        with atomic(db):
            user.account_banned = banned
        logger.info(f"User {user_id} {'banned' if banned else 'unbanned'}")
    return user


def set_active(db: Session, user_id: int, active: bool) -> models.User:
    user = get_user_or_404(db, user_id)
    if user.is_active != active:
        with atomic(db):
            user.is_active = active
        logger.info(f"User {user_id} {'reactivated' if active else 'deactivated'}")
    return user


def _decrement_where_edge(db: Session, column, item_id_column, edge_item_column, edge_user_column, user_id: int) -> None:
    """Decrement ``column`` once for every item the user holds a unique edge on."""
    counters.decrement(
        db,
        column,
        item_id_column.in_(select(edge_item_column).where(edge_user_column == user_id)),
    )


def _decrement_grouped(db: Session, column, item_id_column, edge_item_column, edge_user_column, user_id: int) -> None:
    """Decrement ``column`` by the number of non-unique rows the user holds per item."""
    rows = db.execute(
        select(edge_item_column, func.count())
        .where(edge_user_column == user_id)
        .group_by(edge_item_column)
    ).all()
    for item_id, n in rows:
        counters.decrement(db, column, item_id_column == item_id, by=n)


def delete_account(db: Session, user_id: int) -> None:
    """
    Permanently delete a user.

    In one transaction: repair follow counters of both neighbours, repair
    engagement counters on content the user liked, saved, shared or commented
    on, then delete the user and let the database cascade the owned rows.
    """
    get_user_or_404(db, user_id)
    S = models.UserStatistics

    with atomic(db):
        # Follow graph
        _decrement_where_edge(db, S.total_following, S.user_id, models.Follow.follower_id, models.Follow.following_id, user_id)
        _decrement_where_edge(db, S.total_followers, S.user_id, models.Follow.following_id, models.Follow.follower_id, user_id)

        # Unique engagement edges
        _decrement_where_edge(db, models.Post.like_count, models.Post.id, models.PostLike.post_id, models.PostLike.user_id, user_id)
        _decrement_where_edge(db, models.Post.save_count, models.Post.id, models.PostSave.post_id, models.PostSave.user_id, user_id)
        _decrement_where_edge(db, models.Itinerary.like_count, models.Itinerary.id, models.ItineraryLike.itinerary_id, models.ItineraryLike.user_id, user_id)
        _decrement_where_edge(db, models.Itinerary.save_count, models.Itinerary.id, models.ItinerarySave.itinerary_id, models.ItinerarySave.user_id, user_id)
        _decrement_where_edge(db, models.PostComment.like_count, models.PostComment.id, models.CommentLike.comment_id, models.CommentLike.user_id, user_id)

        # Append-only engagement
        _decrement_grouped(db, models.Post.share_count, models.Post.id, models.PostShare.post_id, models.PostShare.user_id, user_id)
        _decrement_grouped(db, models.Itinerary.share_count, models.Itinerary.id, models.ItineraryShare.itinerary_id, models.ItineraryShare.user_id, user_id)
        _decrement_grouped(db, models.Post.comment_count, models.Post.id, models.PostComment.post_id, models.PostComment.user_id, user_id)
        _decrement_grouped(db, models.PostComment.reply_count, models.PostComment.id, models.CommentReply.comment_id, models.CommentReply.user_id, user_id)

        db.execute(delete(models.User).where(models.User.id == user_id))

    logger.info(f"Deleted user {user_id}")


# ============================================================================
# PROFILE
# ============================================================================


def _profile_view(db: Session, user: models.User) -> schemas.ProfilePublic:
    profile = user.profile
    if profile is None:
        raise NotFound("Profile not found")
    return schemas.ProfilePublic(
        id=profile.id,
        user_id=user.id,
        username=profile.username,
        full_name=user.full_name,
        bio=profile.bio,
        location=profile.location,
        website=profile.website,
        profile_image=profile.profile_image,
        cover_image=profile.cover_image,
        countries_explored=list(profile.countries_explored or []),
        statistics=get_statistics(db, user.id),
    )


def get_my_profile(db: Session, user: models.User) -> schemas.ProfilePublic:
    return _profile_view(db, user)


def get_profile_by_username(
    db: Session, username: str, viewer_id: int | None
) -> schemas.ProfilePublic:
    """
    Public profile lookup.

    Raises:
        NotFound: No such username, or a private account hidden from the viewer
    """
    profile = db.query(models.Profile).filter(models.Profile.username == username).first()
    if profile is None:
        raise NotFound("Profile not found")
    if not can_view_profile(db, viewer_id, profile.user):
        raise NotFound("This account is private")
    return _profile_view(db, profile.user)


def update_profile(db: Session, user_id: int, data: schemas.ProfileUpdate) -> schemas.ProfilePublic:
    """
    Update profile fields.

    ``countries_explored`` is de-duplicated (first occurrence wins) and, when
    present, the travel statistics are recomputed in the same transaction.

    Raises:
        Conflict: Username held by another user
    """
    user = get_user_or_404(db, user_id)
    changes = data.model_dump(exclude_unset=True)

    username = changes.get("username")
    if username and _username_taken(db, username, exclude_user_id=user_id):
        raise Conflict("Username already taken")

    with atomic(db):
        profile = user.profile
        if profile is None:
            raise NotFound("Profile not found")
        if "full_name" in changes:
            user.full_name = changes.pop("full_name")
        if changes.get("username") is None:
            changes.pop("username", None)

        countries_changed = "countries_explored" in changes
        if countries_changed:
            countries = changes.pop("countries_explored") or []
            profile.countries_explored = list(
                dict.fromkeys(c.strip() for c in countries if c and c.strip())
            )

        for field, value in changes.items():
            setattr(profile, field, value)
        db.flush()

        if countries_changed:
            write_travel_stats(db, user_id)

    db.refresh(user)
    logger.info(f"Updated profile of user {user_id}")
    return _profile_view(db, user)


# ============================================================================
# SETTINGS
# ============================================================================


def _ensure_admin_settings(db: Session, user: models.User) -> models.AdminSettings:
    if user.admin_settings is None:
        with atomic(db):
            db.add(models.AdminSettings(user_id=user.id))
        db.refresh(user)
    return user.admin_settings


def build_settings_view(
    db: Session, user: models.User
) -> schemas.MemberSettingsView | schemas.AdminSettingsView:
    """
    Role-tagged settings payload.

    Admins see moderation settings and their admin notification channels;
    members see account, notification, privacy settings and statistics.
    """
    if user.is_admin:
        admin_settings = _ensure_admin_settings(db, user)
        return schemas.AdminSettingsView(
            notification_settings=(
                schemas.AdminNotificationSettings.model_validate(user.notification_settings)
                if user.notification_settings
                else None
            ),
            admin_settings=schemas.AdminSettingsOut.model_validate(admin_settings),
        )

    return schemas.MemberSettingsView(
        account_settings=(
            schemas.AccountSettingsOut.model_validate(user.account_settings)
            if user.account_settings
            else None
        ),
        notification_settings=(
            schemas.MemberNotificationSettings.model_validate(user.notification_settings)
            if user.notification_settings
            else None
        ),
        privacy_security_settings=(
            schemas.PrivacySecuritySettingsOut.model_validate(user.privacy_security_settings)
            if user.privacy_security_settings
            else None
        ),
        statistics=get_statistics(db, user.id),
    )


_ADMIN_FIELDS = ("admin_auto_approve_posts", "admin_new_registrations")


def update_account_settings(
    db: Session, user: models.User, data: schemas.AccountSettingsUpdate
) -> schemas.MemberSettingsView | schemas.AdminSettingsView:
    """Apply member settings for anyone; admin fields are ignored for non-admins."""
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    admin_changes = {k: changes.pop(k) for k in _ADMIN_FIELDS if k in changes}

    with atomic(db):
        settings = user.account_settings
        if settings is None:
            settings = models.AccountSettings(user_id=user.id)
            db.add(settings)
        for field, value in changes.items():
            setattr(settings, field, value)

        if admin_changes and user.is_admin:
            admin_settings = user.admin_settings
            if admin_settings is None:
                admin_settings = models.AdminSettings(user_id=user.id)
                db.add(admin_settings)
            for field, value in admin_changes.items():
                setattr(admin_settings, field, value)
        elif admin_changes:
            logger.debug(f"Ignoring admin settings from non-admin user {user.id}")

    db.refresh(user)
    return build_settings_view(db, user)
