from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 5


@dataclass(frozen=True)
class Pagination:
    """1-based page window. Missing or non-positive values fall back to (1, 5)."""

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_params(cls, page: int | None, page_size: int | None) -> "Pagination":
        return cls(
            page=page if page and page > 0 else DEFAULT_PAGE,
            page_size=page_size if page_size and page_size > 0 else DEFAULT_PAGE_SIZE,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def apply(self, query):
        """Apply LIMIT/OFFSET to a SQLAlchemy query."""
        return query.offset(self.offset).limit(self.page_size)
