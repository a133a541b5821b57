"""Test authentication functionality."""

from datetime import timedelta

import jwt
import pytest
from sqlalchemy.orm import Session

from blogmate import models
from blogmate.auth import (
    create_access_token,
    create_refresh_token,
    revoke_refresh_tokens,
    verify_refresh_token,
)


@pytest.fixture
def test_user(make_user) -> models.User:
    """Create a test user."""
    return make_user("testuser")


def test_create_access_token(test_user: models.User, settings):
    """Access tokens carry the public id and role of the user."""
    token = create_access_token(test_user, settings)
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    assert payload["user_id"] == test_user.public_id
    assert payload["role"] == "user"
    assert payload["type"] == "access"


def test_refresh_token_lifecycle(test_user: models.User, db: Session, settings):
    """Refresh tokens verify until revoked."""
    token = create_refresh_token(db, test_user, settings)
    assert verify_refresh_token(db, token).id == test_user.id
    assert verify_refresh_token(db, "not-a-token") is None

    assert revoke_refresh_tokens(db, test_user) == 1
    db.commit()
    assert verify_refresh_token(db, token) is None


def test_expired_refresh_token(test_user: models.User, db: Session, settings):
    token = create_refresh_token(db, test_user, settings)
    db.query(models.RefreshToken).update(
        {models.RefreshToken.expires_at: models.utcnow() - timedelta(seconds=1)}
    )
    db.commit()
    assert verify_refresh_token(db, token) is None


def test_expired_access_token_is_rejected(client, test_user: models.User, settings):
    token = create_access_token(test_user, settings, expires_in_seconds=-10)
    response = client.get("/users/logout", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json() == {"error": "Token expired"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_token_signed_with_another_secret(client, test_user: models.User, settings):
    token = jwt.encode(
        {"user_id": test_user.public_id, "type": "access"},
        "x" * 40,
        algorithm=settings.jwt_algorithm,
    )
    response = client.get("/users/logout", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


def test_refresh_token_is_not_an_access_token(client, test_user: models.User, settings):
    """A token without the access type is refused."""
    token = jwt.encode(
        {"user_id": test_user.public_id, "type": "refresh"},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    response = client.get("/users/logout", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token type"}


def test_token_with_garbage_user_id(client, settings):
    token = jwt.encode(
        {"user_id": "???", "type": "access"}, settings.jwt_secret, algorithm=settings.jwt_algorithm
    )
    response = client.get("/users/logout", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
