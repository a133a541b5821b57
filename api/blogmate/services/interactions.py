"""
Interaction engine: likes, dislikes and views on blogs, comments and replies.

Each (entity, user) pair is one ``interactions`` row. The row is created with
an insert that ignores conflicts and then locked with SELECT ... FOR UPDATE, so
two concurrent transitions on the same pair always run one after the other.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .. import models
from ..errors import InvalidAction, InvalidUser
from ..ids import EntityKind, new_id
from ..models import VOTE_DISLIKE, VOTE_LIKE

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"
    VIEW = "view"

    @classmethod
    def parse(cls, value: str) -> "Action":
        try:
            return cls(value.lower())
        except ValueError:
            raise InvalidAction(
                f"unknown interaction type: {value}, must be one of like, dislike, view"
            )


MSG_ADDED_LIKE = "added your like"
MSG_REMOVED_LIKE = "removed your like"
MSG_ADDED_DISLIKE = "added your dislike"
MSG_REMOVED_DISLIKE = "removed your dislike"
MSG_ADDED_VIEW = "added view"
MSG_ALREADY_VIEWED = "already viewed"


def _insert_if_absent(db: Session, kind: EntityKind, entity_id: int, user_id: int) -> bool:
    """Create the (entity, user) row unless it exists. Returns True if inserted."""
    insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert
    stmt = (
        insert(models.Interaction)
        .values(
            entity_kind=kind.value,
            entity_id=entity_id,
            user_id=user_id,
            vote=None,
            created_at=models.utcnow(),
        )
        .on_conflict_do_nothing(index_elements=["entity_kind", "entity_id", "user_id"])
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def _locked_row(db: Session, kind: EntityKind, entity_id: int, user_id: int) -> models.Interaction | None:
    return db.execute(
        select(models.Interaction)
        .where(
            models.Interaction.entity_kind == kind.value,
            models.Interaction.entity_id == entity_id,
            models.Interaction.user_id == user_id,
        )
        .with_for_update()
    ).scalar_one_or_none()


def _vote(row: models.Interaction, action: Action) -> str:
    wanted = VOTE_LIKE if action is Action.LIKE else VOTE_DISLIKE
    if row.vote == wanted:
        row.vote = None
        return MSG_REMOVED_LIKE if action is Action.LIKE else MSG_REMOVED_DISLIKE
    # Replaces an opposite vote, if any
    row.vote = wanted
    return MSG_ADDED_LIKE if action is Action.LIKE else MSG_ADDED_DISLIKE


def interact(
    db: Session,
    kind: EntityKind,
    entity_id: int,
    user: models.User | None,
    action: Action | str,
) -> str:
    """
    Apply a like / dislike / view transition for ``user`` on an entity.

    The entity must already be resolved (and scope-checked) by the caller.
    Liking or disliking also records a view. Commits and returns the message
    describing the transition.
    """
    if not isinstance(action, Action):
        action = Action.parse(action)
    if user is None or user.is_deleted:
        raise InvalidUser()

    if action is Action.VIEW:
        if _locked_row(db, kind, entity_id, user.id) is not None:
            db.rollback()
            return MSG_ALREADY_VIEWED
        inserted = _insert_if_absent(db, kind, entity_id, user.id)
        db.commit()
        return MSG_ADDED_VIEW if inserted else MSG_ALREADY_VIEWED

    _insert_if_absent(db, kind, entity_id, user.id)
    row = _locked_row(db, kind, entity_id, user.id)
    message = _vote(row, action)
    db.commit()

    logger.debug(f"{kind.value} {entity_id}: user {user.id} {action.value} -> {message}")
    return message


def annotate_interactions(db: Session, kind: EntityKind, entities: Iterable) -> list:
    """
    Attach ``likes``, ``dislikes`` and ``viewers`` (lists of public user ids) to
    each entity, using one query for the whole batch.
    """
    entities = list(entities)
    if not entities:
        return entities

    rows = db.execute(
        select(models.Interaction.entity_id, models.Interaction.user_id, models.Interaction.vote)
        .where(
            models.Interaction.entity_kind == kind.value,
            models.Interaction.entity_id.in_([e.id for e in entities]),
        )
        .order_by(models.Interaction.id)
    ).all()

    likes: dict[int, list[str]] = defaultdict(list)
    dislikes: dict[int, list[str]] = defaultdict(list)
    viewers: dict[int, list[str]] = defaultdict(list)
    for entity_id, user_id, vote in rows:
        user_public_id = new_id(EntityKind.USER, user_id)
        viewers[entity_id].append(user_public_id)
        if vote == VOTE_LIKE:
            likes[entity_id].append(user_public_id)
        elif vote == VOTE_DISLIKE:
            dislikes[entity_id].append(user_public_id)

    for entity in entities:
        entity.likes = likes.get(entity.id, [])
        entity.dislikes = dislikes.get(entity.id, [])
        entity.viewers = viewers.get(entity.id, [])
    return entities


def delete_interactions(db: Session, kind: EntityKind, entity_ids: list[int]) -> int:
    """Remove the interaction rows of deleted entities. The caller commits."""
    if not entity_ids:
        return 0
    return (
        db.query(models.Interaction)
        .filter(
            models.Interaction.entity_kind == kind.value,
            models.Interaction.entity_id.in_(entity_ids),
        )
        .delete(synchronize_session=False)
    )
