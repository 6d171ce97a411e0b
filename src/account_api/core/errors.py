"""Domain error taxonomy raised by the account service.

Each error carries the HTTP status code and message the transport layer
renders, so routers never translate errors by hand.
"""

from typing import ClassVar


class AccountError(Exception):
    """Base class for all account-domain failures."""

    status_code: ClassVar[int] = 400
    default_message: ClassVar[str] = "Request failed"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code  # type: ignore[misc]
        super().__init__(self.message)

    def to_body(self) -> dict:
        """Return the JSON body for this error."""
        return {"message": self.message}


class ValidationFailedError(AccountError):
    """Malformed, missing or non-unique input."""

    status_code = 422
    default_message = "The given data was invalid."

    def __init__(self, errors: dict[str, list[str]], message: str | None = None) -> None:
        self.errors = errors
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        """Build an error for a single offending field."""
        return cls({field: [message]})

    def to_body(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class InvalidCredentialsError(AccountError):
    """Unknown email or wrong password (deliberately indistinguishable)."""

    status_code = 401
    default_message = "Invalid credentials"


class ForbiddenError(AccountError):
    """Actor lacks the role for the operation, or hit a self-action guard."""

    status_code = 403
    default_message = "Access denied. Admin privileges required."


class NotFoundError(AccountError):
    """Target user does not exist."""

    status_code = 404
    default_message = "User not found"


class TransientStoreError(AccountError):
    """The user or token store is unavailable; the caller may retry."""

    status_code = 503
    default_message = "Service temporarily unavailable, please retry"
