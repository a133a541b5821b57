"""Public identifiers.

Every row has an integer primary key; clients only ever see a Sqids encoding of
``[kind_code, pk]``. The kind code keeps ids unique across entity kinds, so a
blog id can never be mistaken for a comment id.
"""

from __future__ import annotations

import enum
import os

from sqids import Sqids

from .errors import InvalidId

SQIDS_ALPHABET = os.getenv(
    "SQIDS_ALPHABET", "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
)
SQIDS_MIN_LENGTH = 10

sqids = Sqids(alphabet=SQIDS_ALPHABET, min_length=SQIDS_MIN_LENGTH)


class EntityKind(str, enum.Enum):
    USER = "user"
    BLOG = "blog"
    COMMENT = "comment"
    REPLY = "reply"


_KIND_CODES = {
    EntityKind.USER: 1,
    EntityKind.BLOG: 2,
    EntityKind.COMMENT: 3,
    EntityKind.REPLY: 4,
}


def new_id(kind: EntityKind, pk: int) -> str:
    """Mint the public id for the row ``pk`` of the given kind."""
    return sqids.encode([_KIND_CODES[kind], pk])


def parse_id(kind: EntityKind, value: str | None) -> int:
    """
    Decode a public id back to a primary key.

    Raises InvalidId when ``value`` is not the canonical id of a ``kind`` row.
    Sqids can decode some non-canonical strings, so the result is re-encoded
    and compared.
    """
    if not value:
        raise InvalidId(f"invalid {kind.value} id")
    try:
        decoded = sqids.decode(value)
    except ValueError:
        raise InvalidId(f"invalid {kind.value} id: {value}")

    if len(decoded) != 2 or decoded[0] != _KIND_CODES[kind]:
        raise InvalidId(f"invalid {kind.value} id: {value}")
    if sqids.encode(decoded) != value:
        raise InvalidId(f"invalid {kind.value} id: {value}")
    return decoded[1]
