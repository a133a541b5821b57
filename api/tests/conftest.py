from __future__ import annotations

from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from blogmate import models
from blogmate.auth import create_access_token
from blogmate.main import create_app
from blogmate.services.passwords import hash_password
from blogmate.settings import Settings

JWT_SECRET = "test-secret-key-that-is-definitely-long-enough"
PASSWORD = "correct-horse-battery"


class FakeModel:
    """
    Scripted stand-in for the Gemini client.

    Answers are consumed in order; once the script runs out every prompt is
    answered with ``default``. An Exception instance in the script is raised.
    """

    def __init__(self, default: str = "yes") -> None:
        self.default = default
        self.answers: list = []
        self.prompts: list[str] = []

    def script(self, *answers) -> None:
        self.answers.extend(answers)

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        answer = self.answers.pop(0) if self.answers else self.default
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        jwt_secret=JWT_SECRET,
        database_uri=f"sqlite:///{tmp_path / 'blogmate-test.db'}",
        base_url="http://testserver",
        log_level="WARNING",
    )


@pytest.fixture()
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture()
def app(settings: Settings, fake_model: FakeModel) -> FastAPI:
    return create_app(settings, ai_model=fake_model)


@pytest.fixture()
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    # Entering the client runs the lifespan, which migrates the test database
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db(app: FastAPI, client: TestClient) -> Generator[Session, None, None]:
    """Database session on the migrated test database."""
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db: Session) -> Callable[..., models.User]:
    """Create an active account directly in the database."""

    def _make_user(
        username: str, role: str = models.ROLE_USER, verified: bool = True
    ) -> models.User:
        user = models.User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(PASSWORD),
            role=role,
            verified=verified,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def auth_headers(settings: Settings) -> Callable[[models.User], dict[str, str]]:
    def _headers(user: models.User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user, settings)}"}

    return _headers


@pytest.fixture()
def u1(make_user) -> models.User:
    return make_user("alice")


@pytest.fixture()
def u2(make_user) -> models.User:
    return make_user("bob")


@pytest.fixture()
def u3(make_user) -> models.User:
    return make_user("carol")


@pytest.fixture()
def admin(make_user) -> models.User:
    return make_user("root", role=models.ROLE_ADMIN)


@pytest.fixture()
def create_blog(client: TestClient, auth_headers) -> Callable[..., dict]:
    def _create_blog(author: models.User, title: str = "Hello", content: str = "World", tags=None) -> dict:
        response = client.post(
            "/blogs",
            json={"title": title, "content": content, "tags": tags or []},
            headers=auth_headers(author),
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _create_blog
