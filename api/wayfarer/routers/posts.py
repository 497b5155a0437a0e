"""Post endpoints: feed, CRUD, engagement and comments."""

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

router = APIRouter(prefix="/posts", tags=["Posts"])


def _page(rows, total: int, page: PageParams) -> schemas.Page[schemas.Post]:
    return schemas.Page(
        data=[schemas.Post.model_validate(p) for p in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
    )


def _require_visible(db: Session, post_id: int, user: models.User) -> None:
    """Engagement is only possible on posts the user can see."""
    post = db.get(models.Post, post_id)
    if post is None or not can_view_content(db, user.id, post):
        raise NotFound("Post not found")


@router.get("", response_model=schemas.Page[schemas.Post])
def list_posts(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Post]:
    """Posts visible to the caller, newest first."""
    viewer_id = current_user.id if current_user else None
    rows, total = feed.list_posts_feed(db, viewer_id, page.offset, page.limit)
    return _page(rows, total, page)


@router.post("", response_model=schemas.Post, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: schemas.PostCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    post = content.create_post(db, current_user.id, payload)
    return schemas.Post.model_validate(post)


@router.get("/top", response_model=schemas.Page[schemas.Post])
def list_top_posts(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Post]:
    """Public posts ranked by likes, then views."""
    viewer_id = current_user.id if current_user else None
    rows, total = feed.list_top_posts(db, viewer_id, page.offset, page.limit)
    return _page(rows, total, page)


@router.get("/saved", response_model=schemas.Page[schemas.Post])
def list_saved_posts(
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Page[schemas.Post]:
    rows, total = feed.list_saved_posts(db, current_user.id, page.offset, page.limit)
    return _page(rows, total, page)


@router.get("/tags/{tag_name}", response_model=schemas.Page[schemas.Post])
def list_posts_by_tag(
    tag_name: str,
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Post]:
    """Visible posts with the given tag, newest first."""
    viewer_id = current_user.id if current_user else None
    rows, total = feed.list_posts_by_tag(db, tag_name, viewer_id, page.offset, page.limit)
    return _page(rows, total, page)


@router.get("/{post_id}", response_model=schemas.Post)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> schemas.Post:
    viewer_id = current_user.id if current_user else None
    return schemas.Post.model_validate(content.get_post(db, post_id, viewer_id))


@router.patch("/{post_id}", response_model=schemas.Post)
def update_post(
    post_id: int,
    payload: schemas.PostUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Post:
    post = content.update_post(db, post_id, current_user.id, payload)
    return schemas.Post.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    content.delete_post(db, post_id, current_user.id)


# ----------------------------------------------------------------------------
# Engagement
# ----------------------------------------------------------------------------


@router.post("/{post_id}/like", response_model=schemas.EngagementResult)
def like_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    _require_visible(db, post_id, current_user)
    return engagement.like_post(db, post_id, current_user.id)


@router.delete("/{post_id}/like", response_model=schemas.EngagementResult)
def unlike_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    return engagement.unlike_post(db, post_id, current_user.id)


@router.post("/{post_id}/save", response_model=schemas.EngagementResult)
def save_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    _require_visible(db, post_id, current_user)
    return engagement.save_post(db, post_id, current_user.id)


@router.delete("/{post_id}/save", response_model=schemas.EngagementResult)
def unsave_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    return engagement.unsave_post(db, post_id, current_user.id)


@router.post("/{post_id}/share", response_model=schemas.EngagementResult)
def share_post(
    post_id: int,
    payload: schemas.ShareCreate | None = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    _require_visible(db, post_id, current_user)
    shared_to = payload.shared_to if payload else None
    return engagement.share_item(db, engagement.POST, post_id, current_user.id, shared_to)


# ----------------------------------------------------------------------------
# Comments
# ----------------------------------------------------------------------------


@router.get("/{post_id}/comments", response_model=schemas.Page[schemas.Comment])
def list_comments(
    post_id: int,
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.Comment]:
    rows, total = engagement.get_comments(db, post_id, page.offset, page.limit)
    return schemas.Page(
        data=[schemas.Comment.model_validate(c) for c in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
    )


@router.post(
    "/{post_id}/comments", response_model=schemas.Comment, status_code=status.HTTP_201_CREATED
)
def create_comment(
    post_id: int,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    _require_visible(db, post_id, current_user)
    comment = engagement.add_comment(db, post_id, current_user.id, payload.comment_text)
    return schemas.Comment.model_validate(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    engagement.delete_comment(db, comment_id, current_user.id)


@router.post("/comments/{comment_id}/like", response_model=schemas.EngagementResult)
def like_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    return engagement.like_comment(db, comment_id, current_user.id)


@router.delete("/comments/{comment_id}/like", response_model=schemas.EngagementResult)
def unlike_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.EngagementResult:
    return engagement.unlike_comment(db, comment_id, current_user.id)


@router.get("/comments/{comment_id}/replies", response_model=schemas.Page[schemas.Reply])
def list_replies(
    comment_id: int,
    page: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
) -> schemas.Page[schemas.Reply]:
    rows, total = engagement.get_replies(db, comment_id, page.offset, page.limit)
    return schemas.Page(
        data=[schemas.Reply.model_validate(r) for r in rows],
        total=total,
        offset=page.offset,
        limit=page.limit,
    )


@router.post(
    "/comments/{comment_id}/replies",
    response_model=schemas.Reply,
    status_code=status.HTTP_201_CREATED,
)
def create_reply(
    comment_id: int,
    payload: schemas.ReplyCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Reply:
    reply = engagement.add_reply(db, comment_id, current_user.id, payload.reply_text)
    return schemas.Reply.model_validate(reply)
