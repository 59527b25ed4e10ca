"""Domain errors and the HTTP status each one is answered with."""

from fastapi import status


class ReminderHubError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Internal server error"

    def __init__(self, detail=None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ConfigurationError(RuntimeError):
    """Raised at startup when settings are unsafe to serve with."""


class ValidationFailed(ReminderHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class DuplicateUsername(ReminderHubError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Username already exists"


class InvalidCredentials(ReminderHubError):
    # Same detail for an unknown username and a wrong password.
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid credentials"


class Unauthenticated(ReminderHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid token"


class MissingToken(Unauthenticated):
    detail = "Authorization header required"


class TokenMalformed(Unauthenticated):
    reason = "malformed"


class TokenBadSignature(Unauthenticated):
    reason = "bad_signature"


class TokenExpired(Unauthenticated):
    reason = "expired"


class Forbidden(ReminderHubError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Not allowed."


class NotFound(ReminderHubError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class GroupNotFound(NotFound):
    detail = "Group not found"


class ReminderNotFound(NotFound):
    detail = "Reminder not found"


class InternalFailure(ReminderHubError):
    """Store or hashing failure; callers only ever see the generic detail."""
