"""Password reset service for handling password reset tokens."""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta

from sqlalchemy.orm import Session

from .. import models
from ..errors import InvalidToken, TokenExpired
from ..models import as_utc, utcnow

logger = logging.getLogger(__name__)

# Token expiration: 1 hour
PASSWORD_RESET_TOKEN_EXPIRATION_HOURS = 1


def _hash_token(token: str) -> str:
    """Hash a token using SHA256."""
    return hashlib.sha256(token.encode()).hexdigest()


def create_reset_token(db: Session, user: models.User) -> str:
    """
    Create a password reset token for a user.

    Expired, unused tokens of the user are cleaned up first. Commits.
    Returns the plain text token (to be sent via email).
    """
    db.query(models.PasswordResetToken).filter(
        models.PasswordResetToken.user_id == user.id,
        models.PasswordResetToken.used_at.is_(None),
        models.PasswordResetToken.expires_at < utcnow(),
    ).delete(synchronize_session=False)

    plain_token = secrets.token_urlsafe(32)
    expires_at = utcnow() + timedelta(hours=PASSWORD_RESET_TOKEN_EXPIRATION_HOURS)

    db.add(
        models.PasswordResetToken(
            user_id=user.id,
            token_hash=_hash_token(plain_token),
            expires_at=expires_at,
        )
    )
    db.commit()

    logger.info(f"Created password reset token for user {user.id}, expires at {expires_at}")
    return plain_token


def claim_reset_token(db: Session, token: str) -> models.PasswordResetToken:
    """
    Look up a reset token and mark it used. The caller commits.

    Raises:
        InvalidToken: unknown or already used token
        TokenExpired: the token is past its expiry
    """
    reset_token = (
        db.query(models.PasswordResetToken)
        .filter(models.PasswordResetToken.token_hash == _hash_token(token))
        .with_for_update()
        .first()
    )

    if not reset_token or reset_token.used_at is not None:
        raise InvalidToken("invalid or already used password reset token")

    if as_utc(reset_token.expires_at) < utcnow():
        raise TokenExpired("password reset token expired")

    reset_token.used_at = utcnow()
    return reset_token
