"""Profile, settings and statistics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_db
from ..errors import NotFound
from ..pagination import PageParams, page_params
from ..services import accounts, feed, travel_stats

router = APIRouter(prefix="/profile", tags=["Profiles"])


@router.get("/me", response_model=schemas.ProfilePublic)
def get_my_profile(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.ProfilePublic:
    return accounts.get_my_profile(db, current_user)


@router.patch("/me", response_model=schemas.ProfilePublic)
def update_my_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.ProfilePublic:
    """
    Update the caller's profile.

    Changing ``countries_explored`` recomputes travel statistics.
    """
    return accounts.update_profile(db, current_user.id, payload)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_account(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    accounts.delete_account(db, current_user.id)


@router.get("/me/settings", response_model=schemas.SettingsView)
def get_my_settings(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Settings payload; shape depends on the caller's role (see ``kind``)."""
    return accounts.build_settings_view(db, current_user)


@router.patch("/me/settings", response_model=schemas.SettingsView)
def update_my_settings(
    payload: schemas.AccountSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return accounts.update_account_settings(db, current_user, payload)


@router.get("/me/statistics", response_model=schemas.StatsSnapshot)
def get_my_statistics(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.StatsSnapshot:
    return travel_stats.get_statistics(db, current_user.id)


@router.get("/{username}", response_model=schemas.ProfilePublic)
def get_profile(
    username: str,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.ProfilePublic:
    """Public profile. Private accounts are reported as not found to non-followers."""
    viewer_id = current_user.id if current_user else None
    return accounts.get_profile_by_username(db, username, viewer_id)


@router.get("/{username}/posts", response_model=schemas.Page[schemas.Post])
def get_profile_posts(
    username: str,
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Post]:
    profile = db.query(models.Profile).filter(models.Profile.username == username).first()
    if profile is None:
        raise NotFound("Profile not found")
    viewer_id = current_user.id if current_user else None
    rows, total = feed.list_user_posts(db, profile.user_id, viewer_id, page.offset, page.limit)
    return schemas.Page(
        data=[schemas.Post.model_validate(p) for p in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
    )
