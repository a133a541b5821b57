"""Centralized environment-driven settings.

Keep this module lightweight: no app imports, to avoid circular deps.
Settings are read once at startup and handed to ``create_app``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_PROMPTS_FILE = str(Path(__file__).resolve().parent / "prompts.json")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    database_uri: str = "sqlite:///./blogmate.db"
    database_username: str | None = None
    database_password: str | None = None
    email_key: str | None = None
    email_from: str = "noreply@blogmate.local"
    base_url: str = "http://localhost:8080"
    port: int = 8080
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 30
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    prompts_file: str = DEFAULT_PROMPTS_FILE
    ai_timeout_seconds: float = 20.0
    store_timeout_seconds: float = 30.0
    cors_origins: tuple[str, ...] = field(default=("http://localhost:3000",))
    log_level: str = "INFO"
    run_migrations: bool = True
    admin_username: str | None = None
    admin_email: str | None = None
    admin_password: str | None = None

    def __post_init__(self) -> None:
        if not self.jwt_secret:
            raise RuntimeError(
                "JWT environment variable is required but not set. "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        # 256 bits; base64 encoding is longer, so this is a lower bound on length only
        if len(self.jwt_secret) < 32:
            raise RuntimeError("JWT secret is too short. Must be at least 32 characters long.")


def load_settings() -> Settings:
    """Build Settings from the process environment (and a .env file, if any)."""
    load_dotenv()

    cors_origins_str = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return Settings(
        jwt_secret=os.getenv("JWT", ""),
        database_uri=os.getenv("DATABASE_URI") or "sqlite:///./blogmate.db",
        database_username=os.getenv("DATABASE_USERNAME") or None,
        database_password=os.getenv("DATABASE_PASSWORD") or None,
        email_key=os.getenv("EMAIL_KEY") or None,
        email_from=os.getenv("EMAIL_FROM", "noreply@blogmate.local"),
        base_url=os.getenv("BASE_URL", "http://localhost:8080"),
        port=_int_env("PORT", 8080),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=_int_env("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 60),
        refresh_token_expire_days=_int_env("JWT_REFRESH_TOKEN_EXPIRE_DAYS", 30),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL") or "gemini-1.5-flash",
        prompts_file=os.getenv("PROMPTS_FILE") or DEFAULT_PROMPTS_FILE,
        ai_timeout_seconds=_float_env("AI_TIMEOUT_SECONDS", 20.0),
        store_timeout_seconds=_float_env("STORE_TIMEOUT_SECONDS", 30.0),
        cors_origins=tuple(origin.strip() for origin in cors_origins_str.split(",") if origin.strip()),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        run_migrations=_bool_env("RUN_MIGRATIONS", True),
        admin_username=os.getenv("ADMIN_USERNAME") or None,
        admin_email=os.getenv("ADMIN_EMAIL") or None,
        admin_password=os.getenv("ADMIN_PASSWORD") or None,
    )
