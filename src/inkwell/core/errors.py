"""Domain exceptions raised by the service layer.

The API layer maps each class to an HTTP status in ``inkwell.main``; services
never build HTTP responses themselves.
"""

from __future__ import annotations

from collections.abc import Mapping


class InkwellError(RuntimeError):
    """Base exception for all domain-level failures."""


class ValidationError(InkwellError):
    """Raised when input fails a required, format or uniqueness rule.

    Attributes:
        errors: Mapping of field name to a human-readable message.
    """

    def __init__(self, message: str, errors: Mapping[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors: dict[str, str] = dict(errors or {})

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        """Build an error that concerns a single field."""
        return cls(message, {field: message})


class NotFoundError(InkwellError):
    """Raised when a referenced post or account does not exist."""


class ConflictError(InkwellError):
    """Raised when a uniqueness conflict persists after bounded retries."""


class PermissionDeniedError(InkwellError):
    """Raised when the caller does not own the resource they are changing."""


class AuthenticationError(InkwellError):
    """Raised when submitted credentials do not match a stored account."""
