"""Itinerary endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_db
from ..errors import NotFound
from ..pagination import PageParams, page_params
from ..services import content, engagement, feed
from ..utils.visibility import can_view_content

router = APIRouter(prefix="/itineraries", tags=["Itineraries"])


def _page(rows, total: int, page: PageParams) -> schemas.Page[schemas.Itinerary]:
    return schemas.Page(
        data=[schemas.Itinerary.model_validate(i) for i in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
    )


def _require_visible(db: Session, itinerary_id: int, user: models.User) -> None:
    itinerary = db.get(models.Itinerary, itinerary_id)
    if itinerary is None or not can_view_content(db, user.id, itinerary):
        raise NotFound("Itinerary not found")


@router.get("", response_model=schemas.Page[schemas.Itinerary])
def list_itineraries(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Itinerary]:
    viewer_id = current_user.id if current_user else None
    rows, total = feed.list_itineraries_feed(db, viewer_id, page.offset, page.limit)
    return _page(rows, total, page)


@router.post("", response_model=schemas.Itinerary, status_code=status.HTTP_201_CREATED)
def create_itinerary(
    payload: schemas.ItineraryCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Itinerary:
    """Create an itinerary. The owner's travel statistics update immediately."""
    itinerary = content.create_itinerary(db, current_user.id, payload)
    return schemas.Itinerary.model_validate(itinerary)


@router.get("/top", response_model=schemas.Page[schemas.Itinerary])
def list_top_itineraries(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Itinerary]:
    viewer_id = current_user.id if current_user else None
    rows, total = feed.list_top_itineraries(db, viewer_id, page.offset, page.limit)
    return _page(rows, total, page)


@router.get("/saved", response_model=schemas.Page[schemas.Itinerary])
def list_saved_itineraries(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Page[schemas.Itinerary]:
    rows, total = feed.list_saved_itineraries(db, current_user.id, page.offset, page.limit)
    return _page(rows, total, page)


@router.get("/tags/{tag_name}", response_model=schemas.Page[schemas.Itinerary])
def list_itineraries_by_tag(
    tag_name: str,
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Itinerary]:
    viewer_id = current_user.id if current_user else None
    rows, total = feed.list_itineraries_by_tag(db, tag_name, viewer_id, page.offset, page.limit)
    return _page(rows, total, page)


@router.get("/{itinerary_id}", response_model=schemas.Itinerary)
def get_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Itinerary:
    viewer_id = current_user.id if current_user else None
    return schemas.Itinerary.model_validate(content.get_itinerary(db, itinerary_id, viewer_id))


@router.patch("/{itinerary_id}", response_model=schemas.Itinerary)
def update_itinerary(
    itinerary_id: int,
    payload: schemas.ItineraryUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Itinerary:
    itinerary = content.update_itinerary(db, itinerary_id, current_user.id, payload)
    return schemas.Itinerary.model_validate(itinerary)


@router.delete("/{itinerary_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    content.delete_itinerary(db, itinerary_id, current_user.id)


@router.post("/{itinerary_id}/like", response_model=schemas.EngagementResult)
def like_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    _require_visible(db, itinerary_id, current_user)
    return engagement.like_itinerary(db, itinerary_id, current_user.id)


@router.delete("/{itinerary_id}/like", response_model=schemas.EngagementResult)
def unlike_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    return engagement.unlike_itinerary(db, itinerary_id, current_user.id)


@router.post("/{itinerary_id}/save", response_model=schemas.EngagementResult)
def save_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    _require_visible(db, itinerary_id, current_user)
    return engagement.save_itinerary(db, itinerary_id, current_user.id)


@router.delete("/{itinerary_id}/save", response_model=schemas.EngagementResult)
def unsave_itinerary(
    itinerary_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    return engagement.unsave_itinerary(db, itinerary_id, current_user.id)


@router.post("/{itinerary_id}/share", response_model=schemas.EngagementResult)
def share_itinerary(
    itinerary_id: int,
    payload: schemas.ShareCreate | None = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    _require_visible(db, itinerary_id, current_user)
    shared_to = payload.shared_to if payload else None
    return engagement.share_item(
        db, engagement.ITINERARY, itinerary_id, current_user.id, shared_to
    )
