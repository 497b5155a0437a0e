from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from .settings import DEFAULT_PAGE_SIZE


# ============================================================================
# BASE SCHEMAS
# ============================================================================


class Problem(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs."""

    type: str = Field(default="about:blank")
    title: str
    status: int
    detail: str | None = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Generic offset-paginated response."""

    data: list[T]
    total: int
    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE


class Message(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


Visibility = Literal["ALL", "FOLLOWERS"]


# ============================================================================
# USER SCHEMAS
# ============================================================================


class UserSummary(BaseModel):
    """Compact user card used by follower lists and suggestions."""

    id: int
    full_name: str | None = None
    username: str | None = None
    profile_image: str | None = None
    bio: str | None = None
    total_followers: int | None = None
    total_posts: int | None = None
    followed_at: datetime | None = None


class StatsSnapshot(BaseModel):
    """Per-user counters as currently stored."""

    user_id: int
    total_followers: int = 0
    total_following: int = 0
    total_posts: int = 0
    total_trips: int = 0
    countries_visited: int = 0
    continents_visited: int = 0

    model_config = ConfigDict(from_attributes=True)


class ProfilePublic(BaseModel):
    id: int
    user_id: int
    username: str
    full_name: str | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    profile_image: str | None = None
    cover_image: str | None = None
    countries_explored: list[str] = []
    statistics: StatsSnapshot | None = None


class ProfileUpdate(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=50)
    full_name: str | None = Field(None, max_length=200)
    bio: str | None = None
    location: str | None = Field(None, max_length=200)
    website: str | None = Field(None, max_length=500)
    profile_image: str | None = None
    cover_image: str | None = None
    countries_explored: list[str] | None = None


class UserRegister(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: str | None = None
    username: str | None = Field(None, min_length=1, max_length=50)


# ============================================================================
# SETTINGS (role-tagged views)
# ============================================================================


class AccountSettingsOut(BaseModel):
    account_private: bool
    suggest_account: bool
    show_activity_status: bool
    show_followers_list: bool
    show_following_list: bool
    show_liked_posts: bool
    show_saved_posts: bool
    dark_mode: bool

    model_config = ConfigDict(from_attributes=True)


class MemberNotificationSettings(BaseModel):
    push_notification: bool
    email_notification: bool

    model_config = ConfigDict(from_attributes=True)


class AdminNotificationSettings(BaseModel):
    admin_admin_notification: bool
    admin_security_alerts: bool

    model_config = ConfigDict(from_attributes=True)


class PrivacySecuritySettingsOut(BaseModel):
    two_factor_enabled: bool
    remember_me: bool
    trusted_contact_email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AdminSettingsOut(BaseModel):
    admin_auto_approve_posts: bool
    admin_new_registrations: bool

    model_config = ConfigDict(from_attributes=True)


class MemberSettingsView(BaseModel):
    kind: Literal["member"] = "member"
    account_settings: AccountSettingsOut | None = None
    notification_settings: MemberNotificationSettings | None = None
    privacy_security_settings: PrivacySecuritySettingsOut | None = None
    statistics: StatsSnapshot | None = None


class AdminSettingsView(BaseModel):
    kind: Literal["admin"] = "admin"
    notification_settings: AdminNotificationSettings | None = None
    admin_settings: AdminSettingsOut


SettingsView = Annotated[
    Union[MemberSettingsView, AdminSettingsView], Field(discriminator="kind")
]


class AccountSettingsUpdate(BaseModel):
    account_private: bool | None = None
    suggest_account: bool | None = None
    show_activity_status: bool | None = None
    show_followers_list: bool | None = None
    show_following_list: bool | None = None
    show_liked_posts: bool | None = None
    show_saved_posts: bool | None = None
    dark_mode: bool | None = None

    # Only applied for admins
    admin_auto_approve_posts: bool | None = None
    admin_new_registrations: bool | None = None


# ============================================================================
# CONTENT SCHEMAS
# ============================================================================


TagName = Annotated[str, Field(min_length=1, max_length=50)]


class Tag(BaseModel):
    id: int
    tag_name: str

    model_config = ConfigDict(from_attributes=True)


class PostCreate(BaseModel):
    caption: str | None = None
    details: str | None = None
    location: str | None = Field(None, max_length=200)
    image_links: list[str] = []
    visibility: Visibility = "ALL"
    tags: list[TagName] = Field(default_factory=list, max_length=20)


class PostUpdate(BaseModel):
    caption: str | None = None
    details: str | None = None
    location: str | None = Field(None, max_length=200)
    image_links: list[str] | None = None
    visibility: Visibility | None = None


class Post(BaseModel):
    id: int
    owner_id: int
    caption: str | None = None
    details: str | None = None
    location: str | None = None
    image_links: list[str] = []
    visibility: str
    approved_by_admin: bool
    status: str
    like_count: int
    comment_count: int
    share_count: int
    save_count: int
    view_count: int
    created_at: datetime
    tags: list[Tag] = []
    is_liked: bool = False
    is_saved: bool = False

    model_config = ConfigDict(from_attributes=True)


class ItineraryCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    main_image_link: str | None = None
    destination: str | None = Field(None, max_length=300)
    country: str | None = Field(None, max_length=100)
    budget: float | None = None
    rating: float | None = None
    duration_days: int | None = Field(None, ge=0)
    visibility: Visibility = "ALL"
    tags: list[TagName] = Field(default_factory=list, max_length=20)


class ItineraryUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    main_image_link: str | None = None
    destination: str | None = Field(None, max_length=300)
    country: str | None = Field(None, max_length=100)
    budget: float | None = None
    rating: float | None = None
    duration_days: int | None = Field(None, ge=0)
    visibility: Visibility | None = None


class Itinerary(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str | None = None
    main_image_link: str | None = None
    destination: str | None = None
    country: str | None = None
    budget: float | None = None
    rating: float | None = None
    duration_days: int | None = None
    visibility: str
    approved_by_admin: bool
    like_count: int
    save_count: int
    share_count: int
    view_count: int
    created_at: datetime
    tags: list[Tag] = []
    is_liked: bool = False
    is_saved: bool = False

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# ENGAGEMENT SCHEMAS
# ============================================================================


class EngagementStatus(str, Enum):
    CREATED = "created"
    ALREADY = "already"
    REMOVED = "removed"
    ABSENT = "absent"


class EngagementResult(BaseModel):
    """Outcome of an idempotent add/remove engagement call."""

    status: EngagementStatus
    message: str
    count: int


class ShareCreate(BaseModel):
    shared_to: str | None = Field(None, max_length=100)


class CommentCreate(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=2000)


class ReplyCreate(BaseModel):
    reply_text: str = Field(..., min_length=1, max_length=2000)


class Comment(BaseModel):
    id: int
    post_id: int
    user_id: int
    comment_text: str
    like_count: int
    reply_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Reply(BaseModel):
    id: int
    comment_id: int
    user_id: int
    reply_text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================


class Notification(BaseModel):
    id: int
    type: str
    content: str
    related_user_id: int | None = None
    related_post_id: int | None = None
    related_itinerary_id: int | None = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationPage(Page[Notification]):
    unread_count: int = 0


class FollowStatus(BaseModel):
    is_following: bool


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================


class DashboardStats(BaseModel):
    """Sitewide counts for the admin dashboard."""

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

    model_config = ConfigDict(from_attributes=True)
