"""Replies on comments, scoped to both the comment and its blog."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..auth import require_ownership
from ..errors import InvalidAuthor, NotFound, ScopeMismatch, ValidationFailed
from ..ids import EntityKind, parse_id
from ..pagination import Pagination
from .blogs import get_blog
from .comments import get_comment
from .interactions import delete_interactions

logger = logging.getLogger(__name__)


def _adjust_reply_count(db: Session, comment_pk: int, delta: int) -> int:
    return db.query(models.Comment).filter(models.Comment.id == comment_pk).update(
        {models.Comment.reply_count: models.Comment.reply_count + delta},
        synchronize_session=False,
    )


def create_reply(
    db: Session,
    blog_id: str,
    comment_id: str,
    author: models.User | None,
    content: str | None,
) -> models.Reply:
    if author is None or author.is_deleted:
        raise InvalidAuthor()
    content = (content or "").strip()
    if not content:
        raise ValidationFailed("content is required")

    # Blog before comment, the same order as the cascades
    get_blog(db, blog_id, lock=True)
    comment = get_comment(db, blog_id, comment_id, lock=True)
    # Zero rows means the comment was deleted after it was read
    if _adjust_reply_count(db, comment.id, 1) != 1:
        db.rollback()
        raise NotFound("comment not found")

    reply = models.Reply(
        comment_id=comment.id,
        blog_id=comment.blog_id,
        author_id=author.id,
        content=content,
    )
    db.add(reply)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise NotFound("comment not found")
    db.refresh(reply)

    logger.info(f"User {author.id} replied {reply.id} on comment {comment.id}")
    return reply


def get_reply(db: Session, blog_id: str, comment_id: str, reply_id: str) -> models.Reply:
    comment = get_comment(db, blog_id, comment_id)
    reply = db.get(models.Reply, parse_id(EntityKind.REPLY, reply_id))
    if reply is None:
        raise NotFound("reply not found")
    if reply.comment_id != comment.id or reply.blog_id != comment.blog_id:
        raise ScopeMismatch("reply does not belong to this comment")
    return reply


def query_replies(
    db: Session,
    blog_id: str,
    comment_id: str,
    author_id: str | None = None,
    pagination: Pagination | None = None,
) -> list[models.Reply]:
    comment = get_comment(db, blog_id, comment_id)
    pagination = pagination or Pagination()

    query = db.query(models.Reply).filter(models.Reply.comment_id == comment.id)
    if author_id:
        query = query.filter(models.Reply.author_id == parse_id(EntityKind.USER, author_id))
    query = query.order_by(models.Reply.created_at.desc(), models.Reply.id.asc())
    return pagination.apply(query).all()


def update_reply(
    db: Session, blog_id: str, comment_id: str, reply_id: str, patch, actor: models.User
) -> models.Reply:
    reply = get_reply(db, blog_id, comment_id, reply_id)
    require_ownership(reply.author_id, actor)

    if patch.content and patch.content.strip():
        reply.content = patch.content.strip()
        reply.updated_at = models.utcnow()
        db.commit()
        db.refresh(reply)
    return reply


def delete_reply(
    db: Session, blog_id: str, comment_id: str, reply_id: str, actor: models.User
) -> None:
    reply = get_reply(db, blog_id, comment_id, reply_id)
    require_ownership(reply.author_id, actor)

    reply_pk, comment_pk = reply.id, reply.comment_id
    db.expunge(reply)

    delete_interactions(db, EntityKind.REPLY, [reply_pk])
    deleted = (
        db.query(models.Reply).filter(models.Reply.id == reply_pk).delete(synchronize_session=False)
    )
    if deleted:
        _adjust_reply_count(db, comment_pk, -1)
    db.commit()

    logger.info(f"User {actor.id} deleted reply {reply_pk} of comment {comment_pk}")
