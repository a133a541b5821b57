"""Blog popularity ranking, recomputed from the interaction table on every call."""

from __future__ import annotations

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from .. import models
from ..ids import EntityKind
from ..models import VOTE_DISLIKE, VOTE_LIKE


def popular_blogs(db: Session) -> list[models.Blog]:
    """
    All blogs ordered by likes desc, views desc, comments desc, dislikes asc,
    then newest first and primary key ascending.
    """
    Interaction = models.Interaction
    stats = (
        db.query(
            Interaction.entity_id.label("blog_id"),
            func.sum(case((Interaction.vote == VOTE_LIKE, 1), else_=0)).label("likes"),
            func.sum(case((Interaction.vote == VOTE_DISLIKE, 1), else_=0)).label("dislikes"),
            func.count(Interaction.id).label("views"),
        )
        .filter(Interaction.entity_kind == EntityKind.BLOG.value)
        .group_by(Interaction.entity_id)
        .subquery()
    )

    return (
        db.query(models.Blog)
        .outerjoin(stats, stats.c.blog_id == models.Blog.id)
        .order_by(
            func.coalesce(stats.c.likes, 0).desc(),
            func.coalesce(stats.c.views, 0).desc(),
            models.Blog.comment_count.desc(),
            func.coalesce(stats.c.dislikes, 0).asc(),
            models.Blog.created_at.desc(),
            models.Blog.id.asc(),
        )
        .all()
    )
