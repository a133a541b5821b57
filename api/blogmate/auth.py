from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import models
from .deps import get_db, get_settings
from .errors import InvalidId, SelfDemotion, Unauthorized
from .ids import EntityKind, parse_id
from .models import as_utc, utcnow
from .settings import Settings

logger = logging.getLogger(__name__)

# Security scheme for Bearer token
oauth2_scheme = HTTPBearer(auto_error=False)


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(
    user: models.User, settings: Settings, expires_in_seconds: int | None = None
) -> str:
    """
    Create a JWT access token carrying the user's public id and role.
    """
    if expires_in_seconds is None:
        expires_in_seconds = settings.access_token_expire_minutes * 60

    now = utcnow()
    payload = {
        "user_id": user.public_id,
        "role": user.role,
        "exp": now + timedelta(seconds=expires_in_seconds),
        "iat": now,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(db: Session, user: models.User, settings: Settings) -> str:
    """
    Create a refresh token for a user and store its hash. Commits.
    """
    token = secrets.token_urlsafe(32)
    db.add(
        models.RefreshToken(
            user_id=user.id,
            token_hash=_hash_token(token),
            expires_at=utcnow() + timedelta(days=settings.refresh_token_expire_days),
        )
    )
    db.commit()
    return token


def verify_refresh_token(db: Session, token: str) -> models.User | None:
    """
    Return the owner of a live refresh token, or None.
    """
    refresh_token = (
        db.query(models.RefreshToken)
        .filter(
            models.RefreshToken.token_hash == _hash_token(token),
            models.RefreshToken.revoked == False,  # noqa: E712
        )
        .first()
    )
    if not refresh_token or as_utc(refresh_token.expires_at) <= utcnow():
        return None
    return refresh_token.user


def revoke_refresh_tokens(db: Session, user: models.User) -> int:
    """Revoke every refresh token of ``user``. The caller commits."""
    return (
        db.query(models.RefreshToken)
        .filter(
            models.RefreshToken.user_id == user.id,
            models.RefreshToken.revoked == False,  # noqa: E712
        )
        .update({models.RefreshToken.revoked: True}, synchronize_session=False)
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> models.User:
    """
    Get current authenticated user from Bearer token.
    """
    if not credentials:
        raise _unauthorized("Authentication required")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")

    try:
        user_pk = parse_id(EntityKind.USER, payload.get("user_id"))
    except InvalidId:
        raise _unauthorized("Invalid user ID in token")

    user = db.get(models.User, user_pk)
    if not user or user.is_deleted:
        raise _unauthorized("User not found")

    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    """
    Require that the current user has the admin role.
    """
    if not user.is_admin:
        raise Unauthorized("admin role required")
    return user


def check_ownership(author_id: int, current_user: models.User) -> bool:
    """
    True if the current user authored the resource or is an admin.
    """
    return author_id == current_user.id or current_user.is_admin


def require_ownership(author_id: int, current_user: models.User) -> None:
    """
    Require that the current user owns a resource or is an admin.
    """
    if not check_ownership(author_id, current_user):
        raise Unauthorized("you don't have permission to modify this resource")


def ensure_not_self_demotion(target: models.User, actor: models.User) -> None:
    """
    An admin cannot take the admin role away from themselves.
    """
    if target.id == actor.id:
        raise SelfDemotion()
