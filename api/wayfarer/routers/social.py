"""Follow graph endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..deps import get_db
from ..pagination import PageParams, page_params
from ..services import follow_graph
from ..settings import SUGGESTION_LIMIT

router = APIRouter(prefix="/social", tags=["Social"])


@router.post("/follow/{user_id}", response_model=schemas.Message, status_code=status.HTTP_201_CREATED)
def follow(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Message:
    follow_graph.follow_user(db, current_user.id, user_id)
    return schemas.Message(message="Successfully followed user")


@router.delete("/follow/{user_id}", response_model=schemas.Message)
def unfollow(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Message:
    follow_graph.unfollow_user(db, current_user.id, user_id)
    return schemas.Message(message="Successfully unfollowed user")


@router.get("/followers/{user_id}", response_model=schemas.Page[schemas.UserSummary])
def get_followers(
    user_id: int,
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.UserSummary]:
    """Users following ``user_id``, most recent first."""
    rows, total = follow_graph.list_followers(db, user_id, page.offset, page.limit)
    return schemas.Page(data=rows, total=total, offset=page.offset, limit=page.limit)


@router.get("/following/{user_id}", response_model=schemas.Page[schemas.UserSummary])
def get_following(
    user_id: int,
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.UserSummary]:
    rows, total = follow_graph.list_following(db, user_id, page.offset, page.limit)
    return schemas.Page(data=rows, total=total, offset=page.offset, limit=page.limit)


@router.get("/is-following/{user_id}", response_model=schemas.FollowStatus)
def is_following(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.FollowStatus:
    return schemas.FollowStatus(
        is_following=follow_graph.is_following(db, current_user.id, user_id)
    )


@router.get("/suggestions", response_model=list[schemas.UserSummary])
def get_suggestions(
    limit: int = Query(SUGGESTION_LIMIT, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.UserSummary]:
    """Accounts to follow, most-followed first."""
    return follow_graph.suggest_users(db, current_user.id, limit)
