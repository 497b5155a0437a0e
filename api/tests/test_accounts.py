"""Test registration, moderation flags, account deletion, profile and settings."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from wayfarer import models, schemas
from wayfarer.errors import Conflict, InvalidOperation, NotFound
from wayfarer.services import accounts, content, engagement, follow_graph
from wayfarer.services.travel_stats import get_statistics


def test_register_creates_dependents(db: Session):
    user = accounts.register_user(db, "  Alice@Example.COM ", "Alice Liddell")

    assert user.email == "alice@example.com"
    assert user.profile.username == "alice_1"
    assert user.account_settings is not None
    assert user.notification_settings is not None
    assert user.privacy_security_settings is not None
    assert user.statistics is not None
    assert user.admin_settings is None


def test_default_username_picks_smallest_free_suffix(db: Session):
    accounts.register_user(db, "sam@one.org", None)
    second = accounts.register_user(db, "sam@two.org", None)
    assert second.profile.username == "sam_2"


def test_register_rejects_duplicates(db: Session, make_user):
    make_user("alice")

    with pytest.raises(Conflict):
        accounts.register_user(db, "ALICE@example.com", None)
    with pytest.raises(Conflict):
        accounts.register_user(db, "other@example.com", None, username="alice")
    with pytest.raises(InvalidOperation):
        accounts.register_user(db, "root@example.com", None, role="superuser")


def test_admin_registration_creates_admin_settings(db: Session):
    admin = accounts.register_user(db, "mod@example.com", "Mod", role=models.ROLE_ADMIN)
    assert admin.is_admin
    assert admin.admin_settings is not None
    assert admin.admin_settings.admin_auto_approve_posts is False


def test_ban_and_deactivate_are_idempotent(db: Session, make_user):
    user = make_user("alice")

    assert accounts.set_banned(db, user.id, True).account_banned is True
    assert accounts.set_banned(db, user.id, True).account_banned is True
    assert accounts.set_banned(db, user.id, False).account_banned is False

    assert accounts.set_active(db, user.id, False).is_active is False
    assert accounts.set_active(db, user.id, True).is_active is True

    with pytest.raises(NotFound):
        accounts.set_banned(db, 999, True)


def test_delete_account_repairs_counters(db: Session, make_user):
    leaving, host, fan = make_user("leaving"), make_user("host"), make_user("fan")
    follow_graph.follow_user(db, leaving.id, host.id)
    follow_graph.follow_user(db, fan.id, leaving.id)

    post = content.create_post(db, host.id, schemas.PostCreate(caption="Sahara"))
    itinerary = content.create_itinerary(db, host.id, schemas.ItineraryCreate(title="Atlas"))
    engagement.like_post(db, post.id, leaving.id)
    engagement.save_post(db, post.id, leaving.id)
    engagement.like_post(db, post.id, fan.id)
    engagement.share_item(db, engagement.POST, post.id, leaving.id)
    engagement.share_item(db, engagement.POST, post.id, leaving.id)
    engagement.like_itinerary(db, itinerary.id, leaving.id)
    comment = engagement.add_comment(db, post.id, fan.id, "Wow")
    engagement.add_comment(db, post.id, leaving.id, "Been there")
    engagement.add_reply(db, comment.id, leaving.id, "Me too")
    engagement.like_comment(db, comment.id, leaving.id)
    leaving_id = leaving.id

    accounts.delete_account(db, leaving_id)

    assert db.get(models.User, leaving_id) is None
    assert get_statistics(db, host.id).total_followers == 0
    assert get_statistics(db, fan.id).total_following == 0

    post = db.get(models.Post, post.id)
    assert post.like_count == 1
    assert post.save_count == 0
    assert post.share_count == 0
    assert post.comment_count == 1
    assert db.get(models.Itinerary, itinerary.id).like_count == 0

    comment = db.get(models.PostComment, comment.id)
    assert comment.reply_count == 0
    assert comment.like_count == 0
    assert db.query(models.Follow).count() == 0


def test_update_profile(db: Session, make_user):
    alice = make_user("alice")
    make_user("bob")

    with pytest.raises(Conflict):
        accounts.update_profile(db, alice.id, schemas.ProfileUpdate(username="bob"))

    profile = accounts.update_profile(
        db, alice.id, schemas.ProfileUpdate(username="alice.travels", full_name="Alice L.", bio="Hi")
    )
    assert profile.username == "alice.travels"
    assert profile.full_name == "Alice L."
    assert profile.bio == "Hi"

    # Keeping one's own username is not a conflict
    accounts.update_profile(db, alice.id, schemas.ProfileUpdate(username="alice.travels"))


def test_member_settings_view(db: Session, make_user):
    user = make_user("alice")

    view = accounts.build_settings_view(db, user)

    assert isinstance(view, schemas.MemberSettingsView)
    assert view.kind == "member"
    assert view.account_settings.account_private is False
    assert view.statistics.user_id == user.id


def test_admin_settings_created_lazily(db: Session, make_user):
    admin = make_user("mod", role=models.ROLE_ADMIN)
    db.query(models.AdminSettings).delete()
    db.commit()
    db.expire_all()

    view = accounts.build_settings_view(db, admin)

    assert isinstance(view, schemas.AdminSettingsView)
    assert view.admin_settings.admin_auto_approve_posts is False
    assert db.query(models.AdminSettings).count() == 1


def test_admin_fields_ignored_for_members(db: Session, make_user):
    member = make_user("alice")

    view = accounts.update_account_settings(
        db,
        member,
        schemas.AccountSettingsUpdate(dark_mode=True, admin_auto_approve_posts=True),
    )

    assert view.kind == "member"
    assert view.account_settings.dark_mode is True
    assert db.query(models.AdminSettings).count() == 0


def test_admin_auto_approve(db: Session, make_user):
    admin = make_user("mod", role=models.ROLE_ADMIN)
    view = accounts.update_account_settings(
        db, admin, schemas.AccountSettingsUpdate(admin_auto_approve_posts=True)
    )
    assert view.admin_settings.admin_auto_approve_posts is True

    post = content.create_post(db, admin.id, schemas.PostCreate(caption="Announcement"))
    assert post.approved_by_admin is True

    member = make_user("alice")
    assert content.create_post(db, member.id, schemas.PostCreate()).approved_by_admin is False
