"""initial wayfarer schema

Revision ID: 20261019000000
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20261019000000"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True)


def _fk(name: str, target: str, ondelete: str = "CASCADE", nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Integer(), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True)


def _flag(name: str, default: bool) -> sa.Column:
    return sa.Column(
        name, sa.Boolean(), nullable=False, server_default=sa.true() if default else sa.false()
    )


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def _edge_table(name: str, item_fk: str, item_target: str, unique_name: str | None) -> None:
    args = [
        _id(),
        _fk(item_fk, item_target),
        _fk("user_id", "users.id"),
        _created_at(),
    ]
    if unique_name:
        args.append(sa.UniqueConstraint(item_fk, "user_id", name=unique_name))
    op.create_table(name, *args)
    op.create_index(f"ix_{name}_{item_fk}", name, [item_fk])
    op.create_index(f"ix_{name}_user_id", name, ["user_id"])


def upgrade() -> None:
    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="member"),
        _flag("account_banned", False),
        _flag("is_active", True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_account_banned", "users", ["account_banned"])
    op.create_index("ix_users_is_active", "users", ["is_active"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "profiles",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("profile_image", sa.String(length=1000), nullable=True),
        sa.Column("cover_image", sa.String(length=1000), nullable=True),
        sa.Column("countries_explored", sa.JSON(), nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=True)
    op.create_index("ix_profiles_username", "profiles", ["username"], unique=True)

    op.create_table(
        "account_settings",
        _id(),
        _fk("user_id", "users.id"),
        _flag("account_private", False),
        _flag("suggest_account", True),
        _flag("show_activity_status", True),
        _flag("show_followers_list", True),
        _flag("show_following_list", True),
        _flag("show_liked_posts", True),
        _flag("show_saved_posts", False),
        _flag("dark_mode", False),
    )
    op.create_index("ix_account_settings_user_id", "account_settings", ["user_id"], unique=True)

    op.create_table(
        "notification_settings",
        _id(),
        _fk("user_id", "users.id"),
        _flag("push_notification", True),
        _flag("email_notification", True),
        _flag("admin_admin_notification", True),
        _flag("admin_security_alerts", True),
    )
    op.create_index(
        "ix_notification_settings_user_id", "notification_settings", ["user_id"], unique=True
    )

    op.create_table(
        "privacy_security_settings",
        _id(),
        _fk("user_id", "users.id"),
        _flag("two_factor_enabled", False),
        _flag("remember_me", False),
        sa.Column("trusted_contact_email", sa.String(length=255), nullable=True),
    )
    op.create_index(
        "ix_privacy_security_settings_user_id", "privacy_security_settings", ["user_id"], unique=True
    )

    op.create_table(
        "admin_settings",
        _id(),
        _fk("user_id", "users.id"),
        _flag("admin_auto_approve_posts", False),
        _flag("admin_new_registrations", True),
    )
    op.create_index("ix_admin_settings_user_id", "admin_settings", ["user_id"], unique=True)

    op.create_table(
        "user_statistics",
        _id(),
        _fk("user_id", "users.id"),
        _counter("total_followers"),
        _counter("total_following"),
        _counter("total_posts"),
        _counter("total_trips"),
        _counter("countries_visited"),
        _counter("continents_visited"),
        _updated_at(),
    )
    op.create_index("ix_user_statistics_user_id", "user_statistics", ["user_id"], unique=True)
    op.create_index("ix_user_statistics_total_followers", "user_statistics", ["total_followers"])

    # ------------------------------------------------------------------
    # Social graph
    # ------------------------------------------------------------------
    op.create_table(
        "follows",
        _id(),
        _fk("follower_id", "users.id"),
        _fk("following_id", "users.id"),
        _created_at(),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follow_follower_following"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_follow_no_self"),
    )
    op.create_index("ix_follows_follower_id", "follows", ["follower_id"])
    op.create_index("ix_follows_following_id", "follows", ["following_id"])
    op.create_index("ix_follows_created_at", "follows", ["created_at"])
    op.create_index(
        "ix_follows_following_created", "follows", ["following_id", sa.text("created_at DESC")]
    )

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------
    op.create_table(
        "posts",
        _id(),
        _fk("owner_id", "users.id"),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("image_links", sa.JSON(), nullable=False),
        sa.Column("visibility", sa.String(length=20), nullable=False, server_default="ALL"),
        _flag("approved_by_admin", False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ACTIVE"),
        _counter("like_count"),
        _counter("comment_count"),
        _counter("share_count"),
        _counter("save_count"),
        _counter("view_count"),
        _created_at(),
        _updated_at(),
    )
    for column in ("id", "owner_id", "visibility", "approved_by_admin", "status", "like_count", "created_at"):
        op.create_index(f"ix_posts_{column}", "posts", [column])
    op.create_index("ix_posts_owner_created", "posts", ["owner_id", sa.text("created_at DESC")])

    op.create_table(
        "itineraries",
        _id(),
        _fk("owner_id", "users.id"),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("main_image_link", sa.String(length=1000), nullable=True),
        sa.Column("destination", sa.String(length=300), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("budget", sa.Float(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("duration_days", sa.Integer(), nullable=True),
        sa.Column("visibility", sa.String(length=20), nullable=False, server_default="ALL"),
        _flag("approved_by_admin", False),
        _counter("like_count"),
        _counter("save_count"),
        _counter("share_count"),
        _counter("view_count"),
        _created_at(),
        _updated_at(),
    )
    for column in ("id", "owner_id", "visibility", "approved_by_admin", "like_count", "created_at"):
        op.create_index(f"ix_itineraries_{column}", "itineraries", [column])
    op.create_index(
        "ix_itineraries_owner_created", "itineraries", ["owner_id", sa.text("created_at DESC")]
    )

    # ------------------------------------------------------------------
    # Engagement
    # ------------------------------------------------------------------
    _edge_table("post_likes", "post_id", "posts.id", "uq_post_like_post_user")
    _edge_table("post_saves", "post_id", "posts.id", "uq_post_save_post_user")
    _edge_table("itinerary_likes", "itinerary_id", "itineraries.id", "uq_itinerary_like_itinerary_user")
    _edge_table("itinerary_saves", "itinerary_id", "itineraries.id", "uq_itinerary_save_itinerary_user")

    for name, item_fk, target in (
        ("post_shares", "post_id", "posts.id"),
        ("itinerary_shares", "itinerary_id", "itineraries.id"),
    ):
        op.create_table(
            name,
            _id(),
            _fk(item_fk, target),
            _fk("user_id", "users.id"),
            sa.Column("shared_to", sa.String(length=100), nullable=True),
            _created_at(),
        )
        op.create_index(f"ix_{name}_{item_fk}", name, [item_fk])
        op.create_index(f"ix_{name}_user_id", name, ["user_id"])

    op.create_table(
        "post_comments",
        _id(),
        _fk("post_id", "posts.id"),
        _fk("user_id", "users.id"),
        sa.Column("comment_text", sa.Text(), nullable=False),
        _counter("like_count"),
        _counter("reply_count"),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_post_comments_post_id", "post_comments", ["post_id"])
    op.create_index("ix_post_comments_user_id", "post_comments", ["user_id"])
    op.create_index("ix_post_comments_created_at", "post_comments", ["created_at"])
    op.create_index(
        "ix_post_comments_post_created", "post_comments", ["post_id", sa.text("created_at DESC")]
    )

    op.create_table(
        "comment_replies",
        _id(),
        _fk("comment_id", "post_comments.id"),
        _fk("user_id", "users.id"),
        sa.Column("reply_text", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_comment_replies_comment_id", "comment_replies", ["comment_id"])
    op.create_index("ix_comment_replies_user_id", "comment_replies", ["user_id"])
    op.create_index("ix_comment_replies_created_at", "comment_replies", ["created_at"])

    _edge_table("comment_likes", "comment_id", "post_comments.id", "uq_comment_like_comment_user")

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _fk("related_user_id", "users.id", ondelete="SET NULL", nullable=True),
        _fk("related_post_id", "posts.id", nullable=True),
        _fk("related_itinerary_id", "itineraries.id", nullable=True),
        _flag("is_read", False),
        _created_at(),
    )
    for column in ("user_id", "related_user_id", "related_post_id", "related_itinerary_id", "created_at"):
        op.create_index(f"ix_notifications_{column}", "notifications", [column])
    op.create_index(
        "ix_notifications_user_created", "notifications", ["user_id", sa.text("created_at DESC")]
    )


def downgrade() -> None:
    for table in (
        "notifications",
        "comment_likes",
        "comment_replies",
        "post_comments",
        "itinerary_shares",
        "post_shares",
        "itinerary_saves",
        "itinerary_likes",
        "post_saves",
        "post_likes",
        "itineraries",
        "posts",
        "follows",
        "user_statistics",
        "admin_settings",
        "privacy_security_settings",
        "notification_settings",
        "account_settings",
        "profiles",
        "users",
    ):
        op.drop_table(table)
