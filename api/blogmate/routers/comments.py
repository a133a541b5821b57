"""Comment and reply endpoints, nested under their blog."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..deps import get_db, pagination_params
from ..ids import EntityKind
from ..pagination import Pagination
from ..services import comments as comment_service
from ..services import replies as reply_service
from ..services.interactions import Action, annotate_interactions, interact

router = APIRouter(prefix="/blogs/{blog_id}/comments", tags=["Comments"])


def _comments_out(db: Session, comments: list[models.Comment]) -> list[schemas.Comment]:
    annotate_interactions(db, EntityKind.COMMENT, comments)
    return [schemas.Comment.model_validate(comment) for comment in comments]


def _replies_out(db: Session, replies: list[models.Reply]) -> list[schemas.Reply]:
    annotate_interactions(db, EntityKind.REPLY, replies)
    return [schemas.Reply.model_validate(reply) for reply in replies]


# ============================================================================
# COMMENTS
# ============================================================================


@router.get("", response_model=list[schemas.Comment])
def list_comments(
    blog_id: str,
    author_id: str | None = Query(None, alias="authorId"),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Comment]:
    """Comments of a blog, newest first."""
    return _comments_out(
        db, comment_service.query_comments(db, blog_id, author_id, pagination)
    )


@router.post("", response_model=schemas.Comment)
def create_comment(
    blog_id: str,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    comment = comment_service.create_comment(db, blog_id, current_user, payload.content)
    return _comments_out(db, [comment])[0]


@router.get("/{comment_id}", response_model=schemas.Comment)
def get_comment(
    blog_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    return _comments_out(db, [comment_service.get_comment(db, blog_id, comment_id)])[0]


@router.patch("/{comment_id}", response_model=schemas.Comment)
def update_comment(
    blog_id: str,
    comment_id: str,
    payload: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    comment = comment_service.update_comment(db, blog_id, comment_id, payload, current_user)
    return _comments_out(db, [comment])[0]


@router.delete("/{comment_id}", response_model=schemas.MessageResponse)
def delete_comment(
    blog_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    """Delete a comment and its replies (owner or admin)."""
    comment_service.delete_comment(db, blog_id, comment_id, current_user)
    return schemas.MessageResponse(message="Comment deleted")


@router.post("/{comment_id}/interact/{action}", response_model=schemas.MessageResponse)
def interact_with_comment(
    blog_id: str,
    comment_id: str,
    action: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    parsed = Action.parse(action)
    comment = comment_service.get_comment(db, blog_id, comment_id)
    return schemas.MessageResponse(
        message=interact(db, EntityKind.COMMENT, comment.id, current_user, parsed)
    )


# ============================================================================
# REPLIES
# ============================================================================


@router.get("/{comment_id}/replies", response_model=list[schemas.Reply])
def list_replies(
    blog_id: str,
    comment_id: str,
    author_id: str | None = Query(None, alias="authorId"),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Reply]:
    return _replies_out(
        db, reply_service.query_replies(db, blog_id, comment_id, author_id, pagination)
    )


@router.post("/{comment_id}/replies", response_model=schemas.Reply)
def create_reply(
    blog_id: str,
    comment_id: str,
    payload: schemas.ReplyCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Reply:
    reply = reply_service.create_reply(db, blog_id, comment_id, current_user, payload.content)
    return _replies_out(db, [reply])[0]


@router.get("/{comment_id}/replies/{reply_id}", response_model=schemas.Reply)
def get_reply(
    blog_id: str,
    comment_id: str,
    reply_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Reply:
    return _replies_out(db, [reply_service.get_reply(db, blog_id, comment_id, reply_id)])[0]


@router.patch("/{comment_id}/replies/{reply_id}", response_model=schemas.Reply)
def update_reply(
    blog_id: str,
    comment_id: str,
    reply_id: str,
    payload: schemas.ReplyUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Reply:
    reply = reply_service.update_reply(db, blog_id, comment_id, reply_id, payload, current_user)
    return _replies_out(db, [reply])[0]


@router.delete("/{comment_id}/replies/{reply_id}", response_model=schemas.MessageResponse)
def delete_reply(
    blog_id: str,
    comment_id: str,
    reply_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    reply_service.delete_reply(db, blog_id, comment_id, reply_id, current_user)
    return schemas.MessageResponse(message="Reply deleted")


@router.post(
    "/{comment_id}/replies/{reply_id}/interact/{action}",
    response_model=schemas.MessageResponse,
)
def interact_with_reply(
    blog_id: str,
    comment_id: str,
    reply_id: str,
    action: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    parsed = Action.parse(action)
    reply = reply_service.get_reply(db, blog_id, comment_id, reply_id)
    return schemas.MessageResponse(
        message=interact(db, EntityKind.REPLY, reply.id, current_user, parsed)
    )
