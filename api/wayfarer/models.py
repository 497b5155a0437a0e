from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .db import Base

# Roles
ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"

# Content visibility
VISIBILITY_ALL = "ALL"
VISIBILITY_FOLLOWERS = "FOLLOWERS"

# Post lifecycle
STATUS_ACTIVE = "ACTIVE"
STATUS_DELETED = "DELETED"


# ============================================================================
# ACCOUNTS
# ============================================================================


class User(Base):
    """User account: identity, role and moderation flags."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_MEMBER)  # "member" | "admin"

    # Moderation & lifecycle flags
    account_banned = Column(Boolean, nullable=False, default=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # One-to-one dependents (rows are removed by ON DELETE CASCADE)
    profile = relationship("Profile", back_populates="user", uselist=False, passive_deletes=True)
    account_settings = relationship(
        "AccountSettings", back_populates="user", uselist=False, passive_deletes=True
    )
    notification_settings = relationship(
        "NotificationSettings", back_populates="user", uselist=False, passive_deletes=True
    )
    privacy_security_settings = relationship(
        "PrivacySecuritySettings", back_populates="user", uselist=False, passive_deletes=True
    )
    admin_settings = relationship(
        "AdminSettings", back_populates="user", uselist=False, passive_deletes=True
    )
    statistics = relationship(
        "UserStatistics", back_populates="user", uselist=False, passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class Profile(Base):
    """Public profile: username, bio and declared travel history."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    username = Column(String(50), unique=True, nullable=False, index=True)
    bio = Column(Text, nullable=True)
    location = Column(String(200), nullable=True)
    website = Column(String(500), nullable=True)
    profile_image = Column(String(1000), nullable=True)
    cover_image = Column(String(1000), nullable=True)

    # Free-text country names declared by the user (list of str)
    countries_explored = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    user = relationship("User", back_populates="profile")


class AccountSettings(Base):
    """Privacy and discovery preferences."""

    __tablename__ = "account_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    account_private = Column(Boolean, nullable=False, default=False)
    suggest_account = Column(Boolean, nullable=False, default=True)  # Listed in follow suggestions
    show_activity_status = Column(Boolean, nullable=False, default=True)
    show_followers_list = Column(Boolean, nullable=False, default=True)
    show_following_list = Column(Boolean, nullable=False, default=True)
    show_liked_posts = Column(Boolean, nullable=False, default=True)
    show_saved_posts = Column(Boolean, nullable=False, default=False)
    dark_mode = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="account_settings")


class NotificationSettings(Base):
    """Notification channel preferences (admin fields only meaningful for admins)."""

    __tablename__ = "notification_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    push_notification = Column(Boolean, nullable=False, default=True)
    email_notification = Column(Boolean, nullable=False, default=True)
    admin_admin_notification = Column(Boolean, nullable=False, default=True)
    admin_security_alerts = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="notification_settings")


class PrivacySecuritySettings(Base):
    """Security preferences."""

    __tablename__ = "privacy_security_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    two_factor_enabled = Column(Boolean, nullable=False, default=False)
    remember_me = Column(Boolean, nullable=False, default=False)
    trusted_contact_email = Column(String(255), nullable=True)

    user = relationship("User", back_populates="privacy_security_settings")


class AdminSettings(Base):
    """Moderation preferences, created lazily for admins."""

    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    admin_auto_approve_posts = Column(Boolean, nullable=False, default=False)
    admin_new_registrations = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="admin_settings")


class UserStatistics(Base):
    """
    Denormalized per-user counters.

    These are read-through caches over the follows, posts and itineraries
    tables; they are only ever changed in the same transaction as the rows
    that justify them, or rebuilt wholesale by a recount.
    """

    __tablename__ = "user_statistics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    total_followers = Column(Integer, nullable=False, default=0, index=True)
    total_following = Column(Integer, nullable=False, default=0)
    total_posts = Column(Integer, nullable=False, default=0)
    total_trips = Column(Integer, nullable=False, default=0)
    countries_visited = Column(Integer, nullable=False, default=0)
    continents_visited = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    user = relationship("User", back_populates="statistics")


# ============================================================================
# SOCIAL GRAPH
# ============================================================================


class Follow(Base):
    """Directed follow edge. Both the followers and following lists read this table."""

    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    following_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    follower = relationship("User", foreign_keys=[follower_id])
    following = relationship("User", foreign_keys=[following_id])

    __table_args__ = (
        UniqueConstraint(
            "follower_id", "following_id", name="uq_follow_follower_following"
        ),
        CheckConstraint("follower_id <> following_id", name="ck_follow_no_self"),
        Index("ix_follows_following_created", following_id, created_at.desc()),
    )


# ============================================================================
# CONTENT
# ============================================================================


class Post(Base):
    """Photo post with engagement counters."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    owner_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Content
    caption = Column(Text, nullable=True)
    details = Column(Text, nullable=True)
    location = Column(String(200), nullable=True)
    image_links = Column(JSON, nullable=False, default=list)

    # Visibility & moderation
    visibility = Column(String(20), nullable=False, default=VISIBILITY_ALL, index=True)
    approved_by_admin = Column(Boolean, nullable=False, default=False, index=True)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE, index=True)

    # Engagement counters
    like_count = Column(Integer, nullable=False, default=0, index=True)
    comment_count = Column(Integer, nullable=False, default=0)
    share_count = Column(Integer, nullable=False, default=0)
    save_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    owner = relationship("User", foreign_keys=[owner_id])
    tags = relationship(
        "Tag", secondary="post_tags", order_by="Tag.tag_name", lazy="selectin", viewonly=True
    )

    __table_args__ = (
        Index("ix_posts_owner_created", owner_id, created_at.desc()),
    )

    @property
    def is_deleted(self) -> bool:
        return self.status == STATUS_DELETED


class Itinerary(Base):
    """Trip itinerary. ``destination`` feeds the travel statistics."""

    __tablename__ = "itineraries"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    owner_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    main_image_link = Column(String(1000), nullable=True)
    destination = Column(String(300), nullable=True)  # e.g. "Kyoto, Japan"
    country = Column(String(100), nullable=True)
    budget = Column(Float, nullable=True)
    rating = Column(Float, nullable=True)
    duration_days = Column(Integer, nullable=True)

    # Visibility & moderation
    visibility = Column(String(20), nullable=False, default=VISIBILITY_ALL, index=True)
    approved_by_admin = Column(Boolean, nullable=False, default=False, index=True)

    # Engagement counters
    like_count = Column(Integer, nullable=False, default=0, index=True)
    save_count = Column(Integer, nullable=False, default=0)
    share_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    owner = relationship("User", foreign_keys=[owner_id])
    tags = relationship(
        "Tag", secondary="itinerary_tags", order_by="Tag.tag_name", lazy="selectin", viewonly=True
    )

    __table_args__ = (
        Index("ix_itineraries_owner_created", owner_id, created_at.desc()),
    )

    @property
    def is_deleted(self) -> bool:
        # Itineraries are hard-deleted
        return False


# ============================================================================
# ENGAGEMENT
# ============================================================================


class PostLike(Base):
    __tablename__ = "post_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_like_post_user"),)


class PostSave(Base):
    __tablename__ = "post_saves"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    post = relationship("Post")

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_save_post_user"),)


class PostShare(Base):
    """Share record; many per (user, post) are allowed."""

    __tablename__ = "post_shares"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    shared_to = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ItineraryLike(Base):
    __tablename__ = "itinerary_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    itinerary_id = Column(
        Integer, ForeignKey("itineraries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("itinerary_id", "user_id", name="uq_itinerary_like_itinerary_user"),
    )


class ItinerarySave(Base):
    __tablename__ = "itinerary_saves"

    id = Column(Integer, primary_key=True, autoincrement=True)
    itinerary_id = Column(
        Integer, ForeignKey("itineraries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    itinerary = relationship("Itinerary")

    __table_args__ = (
        UniqueConstraint("itinerary_id", "user_id", name="uq_itinerary_save_itinerary_user"),
    )


class ItineraryShare(Base):
    __tablename__ = "itinerary_shares"

    id = Column(Integer, primary_key=True, autoincrement=True)
    itinerary_id = Column(
        Integer, ForeignKey("itineraries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    shared_to = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PostComment(Base):
    """Top-level comment on a post. Replies live in ``comment_replies``."""

    __tablename__ = "post_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    comment_text = Column(Text, nullable=False)

    like_count = Column(Integer, nullable=False, default=0)
    reply_count = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    author = relationship("User", foreign_keys=[user_id])

    __table_args__ = (Index("ix_post_comments_post_created", post_id, created_at.desc()),)


class CommentReply(Base):
    """Reply to a comment (one level of nesting)."""

    __tablename__ = "comment_replies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(
        Integer, ForeignKey("post_comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reply_text = Column(Text, nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    author = relationship("User", foreign_keys=[user_id])


class CommentLike(Base):
    __tablename__ = "comment_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(
        Integer, ForeignKey("post_comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_like_comment_user"),
    )


# ============================================================================
# TAGS
# ============================================================================


class Tag(Base):
    """Free-form topic label, stored lowercased. Shared by posts and itineraries."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tag_name = Column(String(50), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PostTag(Base):
    __tablename__ = "post_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (UniqueConstraint("post_id", "tag_id", name="uq_post_tag_post_tag"),)


class ItineraryTag(Base):
    __tablename__ = "itinerary_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    itinerary_id = Column(
        Integer, ForeignKey("itineraries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("itinerary_id", "tag_id", name="uq_itinerary_tag_itinerary_tag"),
    )


# ============================================================================
# NOTIFICATIONS
# ============================================================================


class Notification(Base):
    """Append-only record of a social event for a recipient."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(50), nullable=False)  # follow | like | comment | reply
    content = Column(Text, nullable=False)

    related_user_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    related_post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True
    )
    related_itinerary_id = Column(
        Integer, ForeignKey("itineraries.id", ondelete="CASCADE"), nullable=True, index=True
    )

    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    __table_args__ = (
        Index("ix_notifications_user_created", user_id, created_at.desc()),
    )
