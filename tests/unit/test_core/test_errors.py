"""Unit tests for the account error taxonomy."""

from account_api.core.errors import (
    AccountError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    TransientStoreError,
    ValidationFailedError,
)


class TestAccountErrors:
    """Tests for status codes and bodies."""

    def test_status_codes(self) -> None:
        assert ValidationFailedError({}).status_code == 422
        assert InvalidCredentialsError().status_code == 401
        assert ForbiddenError().status_code == 403
        assert NotFoundError().status_code == 404
        assert TransientStoreError().status_code == 503

    def test_default_messages(self) -> None:
        assert InvalidCredentialsError().message == "Invalid credentials"
        assert NotFoundError().message == "User not found"
        assert ForbiddenError().message == "Access denied. Admin privileges required."

    def test_status_override_is_per_instance(self) -> None:
        error = InvalidCredentialsError("Current password is incorrect", status_code=422)
        assert error.status_code == 422
        assert InvalidCredentialsError().status_code == 401

    def test_body_has_message_only(self) -> None:
        assert ForbiddenError("Cannot delete your own account.").to_body() == {
            "message": "Cannot delete your own account."
        }

    def test_validation_body_includes_field_errors(self) -> None:
        error = ValidationFailedError.for_field("email", "The email has already been taken.")
        assert error.to_body() == {
            "message": "The given data was invalid.",
            "errors": {"email": ["The email has already been taken."]},
        }

    def test_all_are_account_errors(self) -> None:
        for cls in (InvalidCredentialsError, ForbiddenError, NotFoundError, TransientStoreError):
            assert issubclass(cls, AccountError)
