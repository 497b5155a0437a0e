"""Notification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..deps import get_db
from ..errors import NotFound
from ..pagination import PageParams, page_params
from ..services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=schemas.NotificationPage)
def list_notifications(
    page: PageParams = Depends(page_params),
    unread_only: bool = Query(False, description="Only return unread notifications"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.NotificationPage:
    """List notifications for the current user, newest first."""
    rows, total, unread_count = notification_service.list_notifications(
        db, current_user.id, page.offset, page.limit, unread_only
    )
    return schemas.NotificationPage(
        data=[schemas.Notification.model_validate(n) for n in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
        unread_count=unread_count,
    )


@router.post("/mark-read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notifications_read(
    notification_ids: list[int],
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """
    Mark specific notifications as read.

    Only notifications belonging to the current user are updated.
    """
    notification_service.mark_as_read(db, current_user.id, notification_ids)


@router.post("/mark-all-read", status_code=status.HTTP_204_NO_CONTENT)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    notification_service.mark_all_as_read(db, current_user.id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    if not notification_service.delete_notification(db, current_user.id, notification_id):
        raise NotFound("Notification not found")
