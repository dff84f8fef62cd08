"""Application error taxonomy.

Every error a workflow raises on purpose derives from ``AppError`` and carries
the HTTP status it maps to, so the transport layer can render it without
knowing about individual services. Unexpected exceptions never derive from
``AppError`` and are rendered as a generic 500 by the exception handlers in
``src.dine.main``.
"""

from collections.abc import Mapping, Sequence
from typing import Any


class AppError(Exception):
    """Base exception for all expected application errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        issues: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.issues = issues
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Client-visible payload: ``{message, issues?}``."""
        body: dict[str, Any] = {"message": self.message}
        if self.issues:
            body["issues"] = self.issues
        return body


class ValidationError(AppError):
    """Raised when input fails validation before any side effect runs."""

    status_code = 400
    default_message = "Invalid input"

    @classmethod
    def from_errors(
        cls, errors: Sequence[Mapping[str, Any]], message: str | None = None
    ) -> "ValidationError":
        """Build from pydantic-style error dicts (``loc`` + ``msg``)."""
        issues = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in errors
        ]
        return cls(message, issues=issues)


class UnauthorizedError(AppError):
    """Raised when a request lacks a valid identity."""

    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    """Raised when an authenticated user may not act on a resource."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """Raised when a write collides with existing state."""

    status_code = 400
    default_message = "Conflict"


class DependencyError(AppError):
    """Raised when an external dependency (geocoder, storage) fails.

    Subclasses pick 400 when the failure reflects unresolvable input and 500
    when it reflects a provider or configuration fault.
    """

    status_code = 500
    default_message = "Dependency failure"


class InternalError(AppError):
    """Catch-all for failures that should surface as a generic 500."""

    status_code = 500
