from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .models import as_utc


# ============================================================================
# BASE SCHEMAS
# ============================================================================


class ErrorResponse(BaseModel):
    error: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


class _Timestamped(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        # SQLite returns naive datetimes
        return as_utc(value) if value is not None else None


class _Interactions(BaseModel):
    likes: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    viewers: list[str] = Field(default_factory=list)


# ============================================================================
# BLOGS
# ============================================================================


class BlogCreate(BaseModel):
    """Author and timestamps are stamped by the server; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., max_length=200)
    content: str
    tags: list[str] = Field(default_factory=list)


class BlogUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(None, max_length=200)
    content: str | None = None
    tags: list[str] | None = None


class BlogFilterRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    blog_id: str | None = None
    title: str | None = None
    author_id: str | None = None
    created_at: datetime | None = None
    tags: list[str] | None = None


class Blog(_Timestamped, _Interactions):
    blog_id: str = Field(validation_alias=AliasChoices("public_id", "blog_id"))
    author_id: str = Field(validation_alias=AliasChoices("author_public_id", "author_id"))
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    comment_count: int = 0


# ============================================================================
# COMMENTS & REPLIES
# ============================================================================


class CommentCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str


class CommentUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str | None = None


class Comment(_Timestamped, _Interactions):
    comment_id: str = Field(validation_alias=AliasChoices("public_id", "comment_id"))
    blog_id: str = Field(validation_alias=AliasChoices("blog_public_id", "blog_id"))
    author_id: str = Field(validation_alias=AliasChoices("author_public_id", "author_id"))
    content: str
    reply_count: int = 0


class ReplyCreate(CommentCreate):
    pass


class ReplyUpdate(CommentUpdate):
    pass


class Reply(_Timestamped, _Interactions):
    reply_id: str = Field(validation_alias=AliasChoices("public_id", "reply_id"))
    comment_id: str = Field(validation_alias=AliasChoices("comment_public_id", "comment_id"))
    blog_id: str = Field(validation_alias=AliasChoices("blog_public_id", "blog_id"))
    author_id: str = Field(validation_alias=AliasChoices("author_public_id", "author_id"))
    content: str


# ============================================================================
# USERS & AUTH
# ============================================================================


class UserPublic(_Timestamped):
    """Public profile; never carries credentials or the email address."""

    user_id: str = Field(validation_alias=AliasChoices("public_id", "user_id"))
    username: str
    role: Literal["user", "admin"]
    status: Literal["pending", "active", "deleted"]


class UserPrivate(UserPublic):
    email: str
    verified: bool


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    """``identifier`` is a username or an email address."""

    identifier: str = Field(validation_alias=AliasChoices("identifier", "username", "email"))
    password: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserPrivate


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(validation_alias=AliasChoices("new_password", "password"))


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class ChangeEmailRequest(BaseModel):
    email: str


# ============================================================================
# AI
# ============================================================================


class AIData(BaseModel):
    """Blog draft sent to the AI helpers. Each helper reads the fields it needs."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, validation_alias=AliasChoices("message", "prompt"))


class ChatResponse(BaseModel):
    response: str


class TitleResponse(BaseModel):
    title: str


class ContentResponse(BaseModel):
    content: str


class TagsResponse(BaseModel):
    tags: list[str]


class SummaryResponse(BaseModel):
    summary: str
