"""Comments on blogs. Every operation is scoped to the blog named in the path."""

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
from .interactions import delete_interactions

logger = logging.getLogger(__name__)


def _adjust_comment_count(db: Session, blog_pk: int, delta: int) -> int:
    return db.query(models.Blog).filter(models.Blog.id == blog_pk).update(
        {models.Blog.comment_count: models.Blog.comment_count + delta},
        synchronize_session=False,
    )


def create_comment(
    db: Session, blog_id: str, author: models.User | None, content: str | None
) -> models.Comment:
    if author is None or author.is_deleted:
        raise InvalidAuthor()
    content = (content or "").strip()
    if not content:
        raise ValidationFailed("content is required")

    blog = get_blog(db, blog_id, lock=True)
    # Zero rows means the blog was deleted after it was read
    if _adjust_comment_count(db, blog.id, 1) != 1:
        db.rollback()
        raise NotFound("blog not found")

    comment = models.Comment(blog_id=blog.id, author_id=author.id, content=content, reply_count=0)
    db.add(comment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise NotFound("blog not found")
    db.refresh(comment)

    logger.info(f"User {author.id} commented {comment.id} on blog {blog.id}")
    return comment


def get_comment(
    db: Session, blog_id: str, comment_id: str, lock: bool = False
) -> models.Comment:
    """
    ``lock`` re-reads the row with SELECT ... FOR UPDATE.

    Raises:
        InvalidId: either id is malformed
        NotFound: no such comment
        ScopeMismatch: the comment belongs to another blog
    """
    blog_pk = parse_id(EntityKind.BLOG, blog_id)
    comment = db.get(
        models.Comment,
        parse_id(EntityKind.COMMENT, comment_id),
        with_for_update=lock,
        populate_existing=lock,
    )
    if comment is None:
        raise NotFound("comment not found")
    if comment.blog_id != blog_pk:
        raise ScopeMismatch("comment does not belong to this blog")
    return comment


def query_comments(
    db: Session,
    blog_id: str,
    author_id: str | None = None,
    pagination: Pagination | None = None,
) -> list[models.Comment]:
    blog = get_blog(db, blog_id)
    pagination = pagination or Pagination()

    query = db.query(models.Comment).filter(models.Comment.blog_id == blog.id)
    if author_id:
        query = query.filter(models.Comment.author_id == parse_id(EntityKind.USER, author_id))
    query = query.order_by(models.Comment.created_at.desc(), models.Comment.id.asc())
    return pagination.apply(query).all()


def update_comment(
    db: Session, blog_id: str, comment_id: str, patch, actor: models.User
) -> models.Comment:
    comment = get_comment(db, blog_id, comment_id)
    require_ownership(comment.author_id, actor)

    if patch.content and patch.content.strip():
        comment.content = patch.content.strip()
        comment.updated_at = models.utcnow()
        db.commit()
        db.refresh(comment)
    return comment


def delete_comment(db: Session, blog_id: str, comment_id: str, actor: models.User) -> None:
    """Delete a comment with its replies and their interactions."""
    # Blog before comment, the same order as the cascades
    get_blog(db, blog_id, lock=True)
    comment = get_comment(db, blog_id, comment_id, lock=True)
    require_ownership(comment.author_id, actor)

    comment_pk, blog_pk = comment.id, comment.blog_id
    db.expunge(comment)

    reply_ids = [
        row.id
        for row in db.query(models.Reply.id).filter(models.Reply.comment_id == comment_pk)
    ]
    delete_interactions(db, EntityKind.REPLY, reply_ids)
    db.query(models.Reply).filter(models.Reply.comment_id == comment_pk).delete(
        synchronize_session=False
    )
    delete_interactions(db, EntityKind.COMMENT, [comment_pk])
    deleted = (
        db.query(models.Comment)
        .filter(models.Comment.id == comment_pk)
        .delete(synchronize_session=False)
    )
    # A concurrent delete already decremented the counter
    if deleted:
        _adjust_comment_count(db, blog_pk, -1)
    db.commit()

    logger.info(f"User {actor.id} deleted comment {comment_pk} of blog {blog_pk}")
