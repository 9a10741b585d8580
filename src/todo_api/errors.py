from __future__ import annotations


# PUBLIC_INTERFACE
class TodoAppError(Exception):
    """
    Base class for domain errors raised by the stores and services.

    Each subclass carries the HTTP status the API layer answers with and a
    stable machine-readable code used in the JSON error body.
    """

    status_code: int = 500
    code: str = "InternalError"
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ConfigError(TodoAppError):
    """Unrecoverable configuration problem detected at startup."""

    code = "ConfigError"
    default_message = "Invalid configuration"


class NotFound(TodoAppError):
    status_code = 404
    code = "NotFound"
    default_message = "Not found"


class TodoNotFound(NotFound):
    default_message = "Todo not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class SessionNotFound(NotFound):
    """Session token is unknown or has expired."""

    status_code = 401
    code = "InvalidSession"
    default_message = "Invalid or expired session"


class AlreadyExists(TodoAppError):
    status_code = 409
    code = "AlreadyExists"
    default_message = "User already exists"


class InvalidCredentials(TodoAppError):
    # Same message for unknown user and wrong password.
    status_code = 401
    code = "InvalidCredentials"
    default_message = "Invalid credentials"


class PermissionDenied(TodoAppError):
    status_code = 403
    code = "PermissionDenied"
    default_message = "You don't have permission to access this todo"


class ValidationError(TodoAppError):
    status_code = 422
    code = "ValidationError"
    default_message = "Validation failed"


class InvalidUUID(TodoAppError):
    status_code = 400
    code = "InvalidUUID"
    default_message = "Invalid UUID"


class InvalidState(TodoAppError):
    status_code = 400
    code = "InvalidState"
    default_message = "Invalid OAuth state"


class OAuthExchangeError(TodoAppError):
    status_code = 502
    code = "OAuthExchangeError"
    default_message = "Failed to exchange code for token"


class ProfileFetchError(TodoAppError):
    status_code = 502
    code = "ProfileFetchError"
    default_message = "Failed to get GitHub user"
