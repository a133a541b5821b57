from __future__ import annotations

from typing import TYPE_CHECKING, Generator

from fastapi import Query, Request
from sqlalchemy.orm import Session

from .db import get_session
from .pagination import Pagination
from .settings import Settings

if TYPE_CHECKING:
    from .services.ai import AIHelper


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    yield from get_session(request.app.state.session_factory)


def get_ai(request: Request) -> "AIHelper":
    return request.app.state.ai


def pagination_params(
    page: int | None = Query(None, alias="pageNumber"),
    page_size: int | None = Query(None, alias="pageSize"),
) -> Pagination:
    return Pagination.from_params(page, page_size)
