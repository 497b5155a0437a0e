"""Admin moderation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..deps import get_db
from ..errors import InvalidOperation
from ..pagination import PageParams, page_params
from ..services import accounts, content, moderation, travel_stats

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


@router.post("/users/{user_id}/ban", response_model=schemas.Message)
def ban_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Message:
    """Ban a user. Their content disappears from everyone else's feeds."""
    if user_id == admin.id:
        raise InvalidOperation("You cannot ban yourself")
    accounts.set_banned(db, user_id, True)
    logger.info(f"Admin {admin.id} banned user {user_id}")
    return schemas.Message(message="User banned successfully")


@router.post("/users/{user_id}/unban", response_model=schemas.Message)
def unban_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Message:
    accounts.set_banned(db, user_id, False)
    logger.info(f"Admin {admin.id} unbanned user {user_id}")
    return schemas.Message(message="User unbanned successfully")


@router.post("/users/{user_id}/deactivate", response_model=schemas.Message)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Message:
    if user_id == admin.id:
        raise InvalidOperation("You cannot deactivate yourself")
    accounts.set_active(db, user_id, False)
    return schemas.Message(message="Account deactivated successfully")


@router.post("/users/{user_id}/activate", response_model=schemas.Message)
def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Message:
    accounts.set_active(db, user_id, True)
    return schemas.Message(message="Account reactivated successfully")


@router.post("/users/{user_id}/reconcile-statistics", response_model=schemas.StatsSnapshot)
def reconcile_user_statistics(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.StatsSnapshot:
    """Rebuild a user's counters from source tables."""
    return travel_stats.reconcile_statistics(db, user_id)


@router.post("/posts/{post_id}/approve", response_model=schemas.Post)
def approve_post(
    post_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Post:
    return schemas.Post.model_validate(content.set_post_approval(db, post_id, True))


@router.post("/itineraries/{itinerary_id}/approve", response_model=schemas.Itinerary)
def approve_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Itinerary:
    return schemas.Itinerary.model_validate(
        content.set_itinerary_approval(db, itinerary_id, True)
    )


@router.get("/pending/posts", response_model=schemas.Page[schemas.Post])
def pending_posts(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.Post]:
    """Active posts awaiting approval, newest first."""
    rows, total = moderation.list_pending_posts(db, page.offset, page.limit)
    return schemas.Page(
        data=[schemas.Post.model_validate(p) for p in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
    )


@router.get("/pending/itineraries", response_model=schemas.Page[schemas.Itinerary])
def pending_itineraries(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.Itinerary]:
    rows, total = moderation.list_pending_itineraries(db, page.offset, page.limit)
    return schemas.Page(
        data=[schemas.Itinerary.model_validate(i) for i in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
    )


@router.post("/posts/{post_id}/reject", response_model=schemas.Message)
def reject_post(
    post_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Message:
    """Remove a post; the owner's post count drops with it."""
    moderation.reject_post(db, post_id)
    logger.info(f"Admin {admin.id} rejected post {post_id}")
    return schemas.Message(message="Post rejected")


@router.delete("/itineraries/{itinerary_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> None:
    moderation.delete_itinerary(db, itinerary_id)
    logger.info(f"Admin {admin.id} deleted itinerary {itinerary_id}")


@router.get("/dashboard", response_model=schemas.DashboardStats)
def dashboard(
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.DashboardStats:
    """Sitewide counts: users, content, the approval backlog and engagement totals."""
    return schemas.DashboardStats.model_validate(moderation.get_dashboard_stats(db))
