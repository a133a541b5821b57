"""Email verification token service for secure token generation and validation."""

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

TOKEN_EXPIRY_HOURS = 24


def _hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return hashlib.sha256(token.encode()).hexdigest()


def create_verification_token(db: Session, user: models.User) -> str:
    """
    Create a new email verification token for ``user``.

    The token row is added to the session; the caller commits.
    Returns the plain token (to be sent via email).
    """
    token = secrets.token_urlsafe(32)
    expires_at = utcnow() + timedelta(hours=TOKEN_EXPIRY_HOURS)

    db.add(
        models.EmailVerificationToken(
            user_id=user.id,
            token_hash=_hash_token(token),
            email=user.email,
            expires_at=expires_at,
        )
    )
    logger.info(f"Created verification token for user {user.id}, expires at {expires_at}")
    return token


def consume_verification_token(db: Session, token: str) -> models.User:
    """
    Validate a verification token, mark it used and mark the user verified.

    Raises:
        InvalidToken: unknown or already used token, or the account is gone
        TokenExpired: the token is past its expiry
    """
    verification_token = (
        db.query(models.EmailVerificationToken)
        .filter(models.EmailVerificationToken.token_hash == _hash_token(token))
        .with_for_update()
        .first()
    )

    if not verification_token:
        logger.warning("Verification token not found")
        raise InvalidToken("invalid verification token")

    if verification_token.used_at is not None:
        logger.warning(f"Verification token already used at {verification_token.used_at}")
        raise InvalidToken("verification token already used")

    if as_utc(verification_token.expires_at) < utcnow():
        logger.warning(f"Verification token expired at {verification_token.expires_at}")
        raise TokenExpired("verification token expired")

    user = verification_token.user
    if user is None or user.is_deleted:
        raise InvalidToken("invalid verification token")

    verification_token.used_at = utcnow()
    user.verified = True
    db.commit()

    logger.info(f"Email verified for user {user.id}")
    return user
