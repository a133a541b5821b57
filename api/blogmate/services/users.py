"""
User directory: account lifecycle, credentials and roles.

Accounts move pending -> active (email verification) -> deleted (soft delete).
The role is independent of the lifecycle state.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..auth import (
    create_access_token,
    create_refresh_token,
    ensure_not_self_demotion,
    revoke_refresh_tokens,
    verify_refresh_token,
)
from ..errors import (
    BadCredentials,
    DuplicateEmail,
    DuplicateUsername,
    InvalidToken,
    NotFound,
    Unauthorized,
    ValidationFailed,
)
from ..ids import EntityKind, parse_id
from ..models import ROLE_ADMIN, ROLE_USER
from ..pagination import Pagination
from ..settings import Settings
from .email import send_password_reset_email, send_verification_email
from .email_verification import consume_verification_token, create_verification_token
from .password_reset import claim_reset_token, create_reset_token
from .passwords import MIN_PASSWORD_LENGTH, hash_password, verify_password

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class LoginResult:
    user: models.User
    access_token: str
    refresh_token: str


def normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailed("a valid email address is required")
    return email


def _check_password(password: str | None) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def _find_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email).first()


def _find_by_username(db: Session, username: str) -> models.User | None:
    return db.query(models.User).filter(models.User.username == username).first()


# ============================================================================
# REGISTRATION AND LOGIN
# ============================================================================


def register(
    db: Session, settings: Settings, username: str | None, email: str | None, password: str | None
) -> models.User:
    """
    Create a pending account and email it a verification link.

    Raises DuplicateUsername, DuplicateEmail or ValidationFailed.
    """
    username = (username or "").strip()
    if not USERNAME_PATTERN.match(username):
        raise ValidationFailed(
            "username must be 3-50 characters of letters, digits, '.', '_' or '-'"
        )
    email = normalize_email(email)
    _check_password(password)

    if _find_by_username(db, username):
        raise DuplicateUsername()
    if _find_by_email(db, email):
        raise DuplicateEmail()

    user = models.User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_USER,
        verified=False,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        db.rollback()
        if "email" in str(e.orig).lower():
            raise DuplicateEmail()
        raise DuplicateUsername()

    token = create_verification_token(db, user)
    db.commit()
    db.refresh(user)

    if send_verification_email(settings, user.email, token, user.username) is None:
        logger.warning(f"Verification email for user {user.id} was not sent")
    logger.info(f"Registered user {user.id} ({user.username})")
    return user


def verify_account(db: Session, token: str | None) -> models.User:
    if not token:
        raise InvalidToken("verification token is required")
    return consume_verification_token(db, token)


def login(db: Session, settings: Settings, identifier: str | None, password: str | None) -> LoginResult:
    """
    Log in with a username or an email address.

    Unknown accounts, deleted accounts and wrong passwords all raise
    BadCredentials; a correct password on a pending account raises Unauthorized.
    """
    identifier = (identifier or "").strip()
    if not identifier or not password:
        raise BadCredentials()

    if "@" in identifier:
        user = _find_by_email(db, identifier.lower())
    else:
        user = _find_by_username(db, identifier)

    if user is None or user.is_deleted or not verify_password(password, user.password_hash):
        raise BadCredentials()
    if not user.verified:
        raise Unauthorized("email not verified, check your inbox for the verification link")

    access_token = create_access_token(user, settings)
    refresh_token = create_refresh_token(db, user, settings)
    logger.info(f"User {user.id} logged in")
    return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)


def refresh(db: Session, settings: Settings, user_id: str, refresh_token: str | None) -> str:
    """Issue a new access token for ``user_id`` from one of its live refresh tokens."""
    user_pk = parse_id(EntityKind.USER, user_id)
    owner = verify_refresh_token(db, refresh_token) if refresh_token else None
    if owner is None or owner.id != user_pk or owner.is_deleted:
        raise InvalidToken("invalid or expired refresh token")
    return create_access_token(owner, settings)


def logout(db: Session, user: models.User) -> int:
    revoked = revoke_refresh_tokens(db, user)
    db.commit()
    logger.info(f"User {user.id} logged out, revoked {revoked} refresh tokens")
    return revoked


# ============================================================================
# PASSWORDS AND EMAIL
# ============================================================================


def forget_password(db: Session, settings: Settings, email: str | None) -> None:
    """
    Email a password reset link if the account exists.

    Never reports whether it does, so callers cannot enumerate accounts.
    """
    email = (email or "").strip().lower()
    user = _find_by_email(db, email) if email else None
    if user is None or user.is_deleted:
        logger.info("Password reset requested for an unknown email")
        return

    token = create_reset_token(db, user)
    send_password_reset_email(settings, user.email, token, user.username)


def reset_password(db: Session, token: str | None, new_password: str | None) -> models.User:
    if not token:
        raise InvalidToken("password reset token is required")
    _check_password(new_password)

    reset_token = claim_reset_token(db, token)
    user = reset_token.user
    if user is None or user.is_deleted:
        db.rollback()
        raise InvalidToken("invalid password reset token")

    user.password_hash = hash_password(new_password)
    revoke_refresh_tokens(db, user)
    db.commit()

    logger.info(f"Password reset for user {user.id}")
    return user


def change_password(
    db: Session, user: models.User, old_password: str | None, new_password: str | None
) -> None:
    if not old_password or not verify_password(old_password, user.password_hash):
        raise BadCredentials("current password is incorrect")
    user.password_hash = hash_password(_check_password(new_password))
    db.commit()
    logger.info(f"User {user.id} changed password")


def change_email(db: Session, user: models.User, email: str | None) -> models.User:
    email = normalize_email(email)
    if email == user.email:
        return user

    existing = _find_by_email(db, email)
    if existing is not None and existing.id != user.id:
        raise DuplicateEmail()

    user.email = email
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail()
    db.refresh(user)
    logger.info(f"User {user.id} changed email")
    return user


# ============================================================================
# DIRECTORY AND ROLES
# ============================================================================


def list_users(db: Session, pagination: Pagination | None = None) -> list[models.User]:
    pagination = pagination or Pagination()
    query = (
        db.query(models.User)
        .filter(models.User.deleted_at.is_(None))
        .order_by(models.User.created_at.asc(), models.User.id.asc())
    )
    return pagination.apply(query).all()


def get_user(db: Session, user_id: str) -> models.User:
    user = db.get(models.User, parse_id(EntityKind.USER, user_id))
    if user is None or user.is_deleted:
        raise NotFound("user not found")
    return user


def _set_role(db: Session, target: models.User | None, role: str, actor: models.User) -> models.User:
    if target is None or target.is_deleted:
        raise NotFound("user not found")
    if role != ROLE_ADMIN:
        ensure_not_self_demotion(target, actor)

    if target.role != role:
        target.role = role
        db.commit()
        db.refresh(target)
        logger.info(f"User {actor.id} set role of user {target.id} to {role}")
    return target


def set_role_by_username(db: Session, username: str, role: str, actor: models.User) -> models.User:
    return _set_role(db, _find_by_username(db, username.strip()), role, actor)


def set_role_by_email(db: Session, email: str, role: str, actor: models.User) -> models.User:
    return _set_role(db, _find_by_email(db, email.strip().lower()), role, actor)


def delete_user(db: Session, user_id: str, actor: models.User) -> None:
    """Soft-delete an account. Allowed for admins and for the account itself."""
    target = get_user(db, user_id)
    if target.id != actor.id and not actor.is_admin:
        raise Unauthorized("you can only delete your own account")

    target.deleted_at = models.utcnow()
    revoke_refresh_tokens(db, target)
    db.commit()
    logger.info(f"User {actor.id} deleted user {target.id}")
