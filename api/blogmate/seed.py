from __future__ import annotations

import logging

from sqlalchemy.orm import sessionmaker

from . import models
from .services.passwords import hash_password
from .settings import Settings

logger = logging.getLogger(__name__)


def ensure_seed_data(session_factory: sessionmaker, settings: Settings) -> None:
    """
    Create the configured admin account if it does not exist yet.

    Runs after migrations on every startup. The admin comes from
    ADMIN_USERNAME / ADMIN_EMAIL / ADMIN_PASSWORD and is created verified.
    An existing account with that username is promoted, never overwritten.
    """
    if not (settings.admin_username and settings.admin_email and settings.admin_password):
        logger.info("ensure_seed_data: No admin configured, nothing to seed.")
        return

    with session_factory() as db:
        user = (
            db.query(models.User)
            .filter(models.User.username == settings.admin_username)
            .first()
        )
        if user is None:
            db.add(
                models.User(
                    username=settings.admin_username,
                    email=settings.admin_email.strip().lower(),
                    password_hash=hash_password(settings.admin_password),
                    role=models.ROLE_ADMIN,
                    verified=True,
                )
            )
            logger.info(f"ensure_seed_data: Created admin {settings.admin_username}.")
        elif user.role != models.ROLE_ADMIN:
            user.role = models.ROLE_ADMIN
            logger.info(f"ensure_seed_data: Promoted {settings.admin_username} to admin.")
        db.commit()
