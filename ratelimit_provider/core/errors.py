"""Application-level exception types.

Every failure of a rate limit operation surfaces as one of the AppError
subclasses below, so the HTTP layer and callers can branch on the type and on
the stable ``code`` instead of parsing messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    project_id: str
    identifier: str
    rate_limit_id: str
    model: str
    http_status: int
    upstream_code: str
    timeout_s: float
    hint: str
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

    def annotate(self, **context: Any) -> "AppError":
        """Attach diagnostic context without overwriting existing keys.

        Returns:
            The same error instance, so it can be re-raised directly.
        """

        merged: dict[str, Any] = dict(self.details or {})
        for key, value in context.items():
            if value is not None:
                merged.setdefault(key, value)
        self.details = merged  # type: ignore[assignment]
        return self


class ValidationAppError(AppError):
    """Raised when caller input or configuration is invalid."""


class NotFoundAppError(AppError):
    """Raised when an identifier does not resolve against the project catalog.

    An unknown project and an unknown model/id are indistinguishable here and
    are reported the same way.
    """


class RemoteAppError(AppError):
    """Raised when the remote API call fails (HTTP error, timeout, network)."""

    @property
    def http_status(self) -> int | None:
        return (self.details or {}).get("http_status")

    @property
    def is_permission_error(self) -> bool:
        return self.http_status in (401, 403)


class DecodeAppError(AppError):
    """Raised when a remote response cannot be parsed into the expected shape."""
