"""Blog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..deps import get_db, pagination_params
from ..ids import EntityKind
from ..pagination import Pagination
from ..services import blogs as blog_service
from ..services.interactions import Action, annotate_interactions, interact
from ..services.popularity import popular_blogs

router = APIRouter(prefix="/blogs", tags=["Blogs"])


def _out(db: Session, blogs: list[models.Blog]) -> list[schemas.Blog]:
    annotate_interactions(db, EntityKind.BLOG, blogs)
    return [schemas.Blog.model_validate(blog) for blog in blogs]


@router.post("", response_model=schemas.Blog)
def create_blog(
    payload: schemas.BlogCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    """Create a blog authored by the caller."""
    blog = blog_service.create_blog(db, current_user, payload.title, payload.content, payload.tags)
    return _out(db, [blog])[0]


@router.get("", response_model=list[schemas.Blog])
def list_blogs(
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
) -> list[schemas.Blog]:
    """List blogs, newest first."""
    return _out(db, blog_service.query_blogs(db, None, pagination))


@router.get("/popular", response_model=list[schemas.Blog])
def list_popular_blogs(db: Session = Depends(get_db)) -> list[schemas.Blog]:
    """
    Blogs ranked by popularity.

    Order: likes desc, views desc, comments desc, dislikes asc, then newest
    first.
    """
    return _out(db, popular_blogs(db))


@router.api_route("/filter", methods=["GET", "POST"], response_model=list[schemas.Blog])
def filter_blogs(
    payload: schemas.BlogFilterRequest | None = Body(None),
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
) -> list[schemas.Blog]:
    """
    Filter blogs by id, exact title, author, exact creation time or tags (any
    of them). All fields are optional and combined with AND.
    """
    payload = payload or schemas.BlogFilterRequest()
    blog_filter = blog_service.BlogFilter(
        blog_id=payload.blog_id,
        title=payload.title,
        author_id=payload.author_id,
        created_at=payload.created_at,
        tags=tuple(payload.tags) if payload.tags else None,
    )
    return _out(db, blog_service.query_blogs(db, blog_filter, pagination))


@router.get("/{blog_id}", response_model=schemas.Blog)
def get_blog(blog_id: str, db: Session = Depends(get_db)) -> schemas.Blog:
    return _out(db, [blog_service.get_blog(db, blog_id)])[0]


@router.patch("/{blog_id}", response_model=schemas.Blog)
def update_blog(
    blog_id: str,
    payload: schemas.BlogUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    """Update title, content or tags (owner or admin). Empty fields are left alone."""
    blog = blog_service.update_blog(db, blog_id, payload, current_user)
    return _out(db, [blog])[0]


@router.delete("/{blog_id}", response_model=schemas.MessageResponse)
def delete_blog(
    blog_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    """Delete a blog with all its comments and replies (owner or admin)."""
    blog_service.delete_blog(db, blog_id, current_user)
    return schemas.MessageResponse(message="Blog deleted")


@router.post("/{blog_id}/interact/{action}", response_model=schemas.MessageResponse)
def interact_with_blog(
    blog_id: str,
    action: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    """Like, dislike or view a blog."""
    parsed = Action.parse(action)
    blog = blog_service.get_blog(db, blog_id)
    return schemas.MessageResponse(
        message=interact(db, EntityKind.BLOG, blog.id, current_user, parsed)
    )
