from __future__ import annotations

import logging
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .settings import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def get_database_url(settings: Settings) -> str:
    """Combine DATABASE_URI with the optional DATABASE_USERNAME/DATABASE_PASSWORD."""
    url = make_url(settings.database_uri)
    if settings.database_username:
        url = url.set(username=settings.database_username)
    if settings.database_password:
        url = url.set(password=settings.database_password)
    return url.render_as_string(hide_password=False)


def make_engine(settings: Settings) -> Engine:
    url = get_database_url(settings)
    timeout = settings.store_timeout_seconds
    connect_args: dict = {}
    if url.startswith("sqlite"):
        # Requests are served from a threadpool
        connect_args = {"check_same_thread": False, "timeout": timeout}
    elif url.startswith("postgresql"):
        connect_args = {"options": f"-c statement_timeout={int(timeout * 1000)}"}

    engine = create_engine(
        url,
        echo=settings.log_level.upper() == "DEBUG",
        pool_pre_ping=True,
        pool_timeout=timeout,
        connect_args=connect_args,
    )

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            # SQLite ignores declared foreign keys unless asked per connection
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_session(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session: Session = factory()
    try:
        yield session
    finally:
        session.close()
