"""Domain error taxonomy.

Services raise these; ``main`` renders them as ``{"error": message}`` with the
status code attached to each class.
"""

from __future__ import annotations

from fastapi import status


class BlogMateError(Exception):
    """Base class for every error the API reports to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(BlogMateError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class ScopeMismatch(BlogMateError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "entity does not belong to the requested parent"


class Unauthorized(BlogMateError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "unauthorized"


class BadCredentials(Unauthorized):
    default_message = "invalid username, email or password"


class SelfDemotion(Unauthorized):
    default_message = "you cannot demote yourself"


class ValidationFailed(BlogMateError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "validation failed"


class InvalidAuthor(ValidationFailed):
    default_message = "author does not exist"


class InvalidUser(ValidationFailed):
    default_message = "user does not exist"


class InvalidAction(ValidationFailed):
    default_message = "interaction type must be one of like, dislike, view"


class InvalidId(BlogMateError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid id"


class InvalidToken(BlogMateError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid token"


class TokenExpired(BlogMateError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "token expired"


class Duplicate(BlogMateError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "already exists"


class DuplicateUsername(Duplicate):
    default_message = "username already taken"


class DuplicateEmail(Duplicate):
    default_message = "an account with this email already exists"


class OffTopic(BlogMateError):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    default_message = "prompt is not about blogging"


class ParseFailed(BlogMateError):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    default_message = "failed to parse the model response"


class InsufficientResults(BlogMateError):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    default_message = "insufficient recommendations generated"


class AITimeout(BlogMateError):
    default_message = "the ai model did not answer in time"


class StoreUnavailable(BlogMateError):
    default_message = "storage unavailable"


class Internal(BlogMateError):
    pass
