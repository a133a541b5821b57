"""User account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_admin
from ..deps import get_db, get_settings, pagination_params
from ..models import ROLE_ADMIN, ROLE_USER
from ..pagination import Pagination
from ..services import users as user_service
from ..settings import Settings

router = APIRouter(prefix="/users", tags=["Users"])


# ============================================================================
# REGISTRATION & LOGIN
# ============================================================================


@router.post(
    "/register",
    response_model=schemas.UserPrivate,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> schemas.UserPrivate:
    """
    Register a new account.

    The account stays pending until the emailed verification link is opened.
    """
    user = user_service.register(db, settings, payload.username, payload.email, payload.password)
    return schemas.UserPrivate.model_validate(user)


@router.get("/accountVerification", response_model=schemas.MessageResponse)
def verify_account(
    token: str = Query(...),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    user_service.verify_account(db, token)
    return schemas.MessageResponse(message="Account verified")


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> schemas.LoginResponse:
    """Log in with a username or email and a password."""
    result = user_service.login(db, settings, payload.identifier, payload.password)
    return schemas.LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
        user=schemas.UserPrivate.model_validate(result.user),
    )


@router.get("/forgetPassword", response_model=schemas.MessageResponse)
def forget_password(
    email: str = Query(...),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> schemas.MessageResponse:
    """
    Request a password reset email.

    Always answers the same way, whether or not the account exists.
    """
    user_service.forget_password(db, settings, email)
    return schemas.MessageResponse(
        message="If an account exists with this email, a password reset link has been sent."
    )


@router.post("/resetPassword", response_model=schemas.MessageResponse)
def reset_password(
    payload: schemas.ResetPasswordRequest,
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    user_service.reset_password(db, payload.token, payload.new_password)
    return schemas.MessageResponse(message="Password reset successfully")


@router.get("/logout", response_model=schemas.MessageResponse)
def logout(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    """Revoke every refresh token of the caller."""
    user_service.logout(db, current_user)
    return schemas.MessageResponse(message="Logged out")


@router.post("/{user_id}/refresh", response_model=schemas.AccessTokenResponse)
def refresh_access_token(
    user_id: str,
    payload: schemas.RefreshTokenRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> schemas.AccessTokenResponse:
    access_token = user_service.refresh(db, settings, user_id, payload.refresh_token)
    return schemas.AccessTokenResponse(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


# ============================================================================
# ACCOUNT SETTINGS
# ============================================================================


@router.put("/changePassword", response_model=schemas.MessageResponse)
def change_password(
    payload: schemas.ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    user_service.change_password(db, current_user, payload.old_password, payload.new_password)
    return schemas.MessageResponse(message="Password changed")


@router.put("/changeEmail", response_model=schemas.UserPrivate)
def change_email(
    payload: schemas.ChangeEmailRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UserPrivate:
    user = user_service.change_email(db, current_user, payload.email)
    return schemas.UserPrivate.model_validate(user)


# ============================================================================
# ROLES (admin only)
# ============================================================================


@router.patch("/promote/{username}", response_model=schemas.UserPublic)
def promote(
    username: str,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.UserPublic:
    user = user_service.set_role_by_username(db, username, ROLE_ADMIN, admin)
    return schemas.UserPublic.model_validate(user)


@router.patch("/demote/{username}", response_model=schemas.UserPublic)
def demote(
    username: str,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.UserPublic:
    user = user_service.set_role_by_username(db, username, ROLE_USER, admin)
    return schemas.UserPublic.model_validate(user)


@router.patch("/promotebyemail/{email}", response_model=schemas.UserPublic)
def promote_by_email(
    email: str,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.UserPublic:
    user = user_service.set_role_by_email(db, email, ROLE_ADMIN, admin)
    return schemas.UserPublic.model_validate(user)


@router.patch("/demotebyemail/{email}", response_model=schemas.UserPublic)
def demote_by_email(
    email: str,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.UserPublic:
    user = user_service.set_role_by_email(db, email, ROLE_USER, admin)
    return schemas.UserPublic.model_validate(user)


# ============================================================================
# DIRECTORY
# ============================================================================


@router.get("/", response_model=list[schemas.UserPublic])
def list_users(
    pagination: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
) -> list[schemas.UserPublic]:
    return [schemas.UserPublic.model_validate(u) for u in user_service.list_users(db, pagination)]


@router.get("/{user_id}", response_model=schemas.UserPublic)
def get_user(user_id: str, db: Session = Depends(get_db)) -> schemas.UserPublic:
    return schemas.UserPublic.model_validate(user_service.get_user(db, user_id))


@router.delete("/{user_id}", response_model=schemas.MessageResponse)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    """Delete an account (admin, or the account itself)."""
    user_service.delete_user(db, user_id, current_user)
    return schemas.MessageResponse(message="User deleted")
