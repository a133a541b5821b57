"""Blog storage: create, read, filter, patch and cascade delete."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from .. import models
from ..auth import require_ownership
from ..errors import InvalidAuthor, NotFound, ValidationFailed
from ..ids import EntityKind, parse_id
from ..pagination import Pagination
from .interactions import delete_interactions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlogFilter:
    """All fields optional and ANDed. ``tags`` matches blogs carrying any of them."""

    blog_id: str | None = None
    title: str | None = None
    author_id: str | None = None
    created_at: datetime | None = None
    tags: tuple[str, ...] | None = None


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Trim and deduplicate, keeping first-seen order. Empty tags are rejected."""
    result: list[str] = []
    for tag in tags or ():
        tag = (tag or "").strip()
        if not tag:
            raise ValidationFailed("tags must be non-empty strings")
        if tag not in result:
            result.append(tag)
    return result


def _required_text(value: str | None, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailed(f"{field} is required")
    return value


def _replace_tags(blog: models.Blog, tags: list[str]) -> None:
    # Keep rows for tags that stay, the (blog, tag) pair is unique
    kept = [row for row in blog.tag_rows if row.tag in tags]
    existing = {row.tag for row in kept}
    blog.tag_rows = kept + [models.BlogTag(tag=tag) for tag in tags if tag not in existing]


def create_blog(
    db: Session,
    author: models.User | None,
    title: str | None,
    content: str | None,
    tags: Iterable[str] | None = None,
) -> models.Blog:
    if author is None or author.is_deleted:
        raise InvalidAuthor()

    blog = models.Blog(
        author_id=author.id,
        title=_required_text(title, "title"),
        content=_required_text(content, "content"),
        comment_count=0,
    )
    _replace_tags(blog, normalize_tags(tags))
    db.add(blog)
    db.commit()
    db.refresh(blog)

    logger.info(f"User {author.id} created blog {blog.id}")
    return blog


def get_blog(db: Session, blog_id: str, lock: bool = False) -> models.Blog:
    """``lock`` re-reads the row with SELECT ... FOR UPDATE."""
    blog = db.get(
        models.Blog,
        parse_id(EntityKind.BLOG, blog_id),
        with_for_update=lock,
        populate_existing=lock,
    )
    if blog is None:
        raise NotFound("blog not found")
    return blog


def query_blogs(
    db: Session, filter: BlogFilter | None = None, pagination: Pagination | None = None
) -> list[models.Blog]:
    """
    Filtered, paginated blog listing, newest first.

    Ids in the filter are public ids; an unparseable one raises InvalidId.
    """
    filter = filter or BlogFilter()
    pagination = pagination or Pagination()

    query = db.query(models.Blog)
    if filter.blog_id:
        query = query.filter(models.Blog.id == parse_id(EntityKind.BLOG, filter.blog_id))
    if filter.title:
        query = query.filter(models.Blog.title == filter.title)
    if filter.author_id:
        query = query.filter(
            models.Blog.author_id == parse_id(EntityKind.USER, filter.author_id)
        )
    if filter.created_at is not None:
        query = query.filter(models.Blog.created_at == filter.created_at)
    if filter.tags:
        wanted = [tag.strip() for tag in filter.tags if tag and tag.strip()]
        if wanted:
            query = query.filter(models.Blog.tag_rows.any(models.BlogTag.tag.in_(wanted)))

    query = query.order_by(models.Blog.created_at.desc(), models.Blog.id.asc())
    return pagination.apply(query).all()


def update_blog(db: Session, blog_id: str, patch, actor: models.User) -> models.Blog:
    """
    Apply the non-empty fields of ``patch`` (title, content, tags).

    Author, timestamps, counters and interactions are not part of any patch.
    An empty patch returns the blog unchanged.
    """
    blog = get_blog(db, blog_id)
    require_ownership(blog.author_id, actor)

    changed = False
    if patch.title and patch.title.strip():
        blog.title = patch.title.strip()
        changed = True
    if patch.content and patch.content.strip():
        blog.content = patch.content.strip()
        changed = True
    if patch.tags:
        _replace_tags(blog, normalize_tags(patch.tags))
        changed = True

    if changed:
        blog.updated_at = models.utcnow()
        db.commit()
        db.refresh(blog)
        logger.info(f"User {actor.id} updated blog {blog.id}")
    return blog


def cascade_delete_blog(db: Session, blog_pk: int) -> None:
    """
    Remove a blog with its comments, replies, tags and all their interactions.

    Only deletes rows that still exist, so an interrupted cascade can be re-run.
    The caller commits.
    """
    reply_ids = [
        row.id for row in db.query(models.Reply.id).filter(models.Reply.blog_id == blog_pk)
    ]
    comment_ids = [
        row.id for row in db.query(models.Comment.id).filter(models.Comment.blog_id == blog_pk)
    ]

    delete_interactions(db, EntityKind.REPLY, reply_ids)
    db.query(models.Reply).filter(models.Reply.blog_id == blog_pk).delete(
        synchronize_session=False
    )
    delete_interactions(db, EntityKind.COMMENT, comment_ids)
    db.query(models.Comment).filter(models.Comment.blog_id == blog_pk).delete(
        synchronize_session=False
    )
    delete_interactions(db, EntityKind.BLOG, [blog_pk])
    db.query(models.BlogTag).filter(models.BlogTag.blog_id == blog_pk).delete(
        synchronize_session=False
    )
    db.query(models.Blog).filter(models.Blog.id == blog_pk).delete(synchronize_session=False)


def delete_blog(db: Session, blog_id: str, actor: models.User) -> None:
    blog = get_blog(db, blog_id, lock=True)
    require_ownership(blog.author_id, actor)

    blog_pk = blog.id
    db.expunge(blog)
    cascade_delete_blog(db, blog_pk)
    db.commit()

    logger.info(f"User {actor.id} deleted blog {blog_pk}")
