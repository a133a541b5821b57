from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base
from .ids import EntityKind, new_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


ROLE_USER = "user"
ROLE_ADMIN = "admin"

VOTE_LIKE = "like"
VOTE_DISLIKE = "dislike"


# ============================================================================
# USERS
# ============================================================================


class User(Base):
    """User account. Lifecycle: pending (unverified) -> active -> deleted."""

    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=ROLE_USER, index=True)
    verified = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    refresh_tokens = relationship(
        "RefreshToken", back_populates="user", cascade="all, delete-orphan"
    )
    email_verification_tokens = relationship(
        "EmailVerificationToken", back_populates="user", cascade="all, delete-orphan"
    )
    password_reset_tokens = relationship(
        "PasswordResetToken", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def public_id(self) -> str:
        return new_id(EntityKind.USER, self.id)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def status(self) -> str:
        if self.deleted_at is not None:
            return "deleted"
        return "active" if self.verified else "pending"


class RefreshToken(Base):
    """Refresh token for JWT authentication."""

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(255), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="refresh_tokens")


class EmailVerificationToken(Base):
    """Single-use token that moves an account from pending to active."""

    __tablename__ = "email_verification_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = relationship("User", back_populates="email_verification_tokens")


class PasswordResetToken(Base):
    """Password reset token for resetting user passwords."""

    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(255), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = relationship("User", back_populates="password_reset_tokens")


# ============================================================================
# CONTENT
# ============================================================================


class Blog(Base):
    """Blog post. Owns comments, which own replies (see services.blogs for the cascade)."""

    __tablename__ = "blogs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False, index=True)
    content = Column(Text, nullable=False)
    comment_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    author = relationship("User", foreign_keys=[author_id])
    tag_rows = relationship(
        "BlogTag",
        back_populates="blog",
        cascade="all, delete-orphan",
        order_by="BlogTag.tag",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_blogs_created_id", created_at.desc(), id),
        {"sqlite_autoincrement": True},
    )

    @property
    def public_id(self) -> str:
        return new_id(EntityKind.BLOG, self.id)

    @property
    def author_public_id(self) -> str:
        return new_id(EntityKind.USER, self.author_id)

    @property
    def tags(self) -> list[str]:
        return [row.tag for row in self.tag_rows]


class BlogTag(Base):
    """One tag of a blog; the (blog, tag) pair is unique so tag sets stay deduplicated."""

    __tablename__ = "blog_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    blog_id = Column(Integer, ForeignKey("blogs.id"), nullable=False, index=True)
    tag = Column(String(100), nullable=False, index=True)

    blog = relationship("Blog", back_populates="tag_rows")

    __table_args__ = (UniqueConstraint("blog_id", "tag", name="uq_blog_tags_blog_tag"),)


class Comment(Base):
    """Comment on a blog."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    blog_id = Column(Integer, ForeignKey("blogs.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    reply_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    __table_args__ = (
        Index("ix_comments_blog_created", blog_id, created_at.desc()),
        {"sqlite_autoincrement": True},
    )

    @property
    def public_id(self) -> str:
        return new_id(EntityKind.COMMENT, self.id)

    @property
    def blog_public_id(self) -> str:
        return new_id(EntityKind.BLOG, self.blog_id)

    @property
    def author_public_id(self) -> str:
        return new_id(EntityKind.USER, self.author_id)


class Reply(Base):
    """Reply on a comment. ``blog_id`` is denormalized for scoping."""

    __tablename__ = "replies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(Integer, ForeignKey("comments.id"), nullable=False, index=True)
    blog_id = Column(Integer, ForeignKey("blogs.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    __table_args__ = (
        Index("ix_replies_comment_created", comment_id, created_at.desc()),
        {"sqlite_autoincrement": True},
    )

    @property
    def public_id(self) -> str:
        return new_id(EntityKind.REPLY, self.id)

    @property
    def comment_public_id(self) -> str:
        return new_id(EntityKind.COMMENT, self.comment_id)

    @property
    def blog_public_id(self) -> str:
        return new_id(EntityKind.BLOG, self.blog_id)

    @property
    def author_public_id(self) -> str:
        return new_id(EntityKind.USER, self.author_id)


# ============================================================================
# INTERACTIONS
# ============================================================================


class Interaction(Base):
    """
    A user's relationship with one blog, comment or reply.

    The row itself means "viewed"; ``vote`` is null, "like" or "dislike". A
    single vote column makes a like and a dislike by the same user impossible.
    Rows are only deleted together with their entity.
    """

    __tablename__ = "interactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_kind = Column(String(16), nullable=False)
    entity_id = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vote = Column(String(8), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("entity_kind", "entity_id", "user_id", name="uq_interactions_entity_user"),
        Index("ix_interactions_entity", entity_kind, entity_id),
    )
