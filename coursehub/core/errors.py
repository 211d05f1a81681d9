"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each subclass maps to
exactly one HTTP status in ``coursehub.core.exception_handlers``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    tier: str
    limit: int
    retry_after: int
    course_code: str
    section: str
    provider: str
    request_id: str
    errors: list[dict[str, Any]]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails (including captcha)."""


class UnauthorizedAppError(AppError):
    """Raised when a one-time verification code does not match."""


class NotFoundAppError(AppError):
    """Raised when a course or section does not exist."""


class ConflictAppError(AppError):
    """Raised when a course, section or link already exists."""


class GoneAppError(AppError):
    """Raised when no live verification code exists for an identity."""


class UnprocessableAppError(AppError):
    """Raised when the email provider rejects the recipient address."""


@dataclass
class RateLimitedAppError(AppError):
    """Raised when an admission tier budget is exhausted.

    Attributes:
        headers: Reset-time hint headers to attach to the response.
    """

    headers: dict[str, str] | None = None


class DeliveryAppError(AppError):
    """Raised when the email provider fails to accept a message."""


class StoreAppError(AppError):
    """Raised when the document store cannot complete an operation."""
