"""Domain exceptions for the identity core.

Every failure a flow can produce is an ``IdentityError`` subclass carrying a
machine-readable ``code``, a user-facing ``message`` and the HTTP status the
API layer maps it to. Messages for failures that could reveal whether an
account exists are shared constants, so "no such account" and "wrong secret"
are indistinguishable to the caller.
"""

from dataclasses import dataclass

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
INVALID_VERIFICATION_TOKEN_MESSAGE = "Invalid or expired verification token"
INVALID_RESET_TOKEN_MESSAGE = "Invalid or expired reset token"
INVALID_REFRESH_TOKEN_MESSAGE = "Invalid refresh token"
FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)


@dataclass(frozen=True)
class FieldError:
    """A single input validation failure."""

    field: str
    message: str
    code: str


class IdentityError(Exception):
    """Base class for all identity core errors."""

    code = "identity_error"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(IdentityError):
    """Raised for malformed input, before any side effect takes place."""

    code = "validation_error"
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: list[FieldError], message: str | None = None) -> None:
        self.errors = errors
        super().__init__(message)


class DuplicateEmailError(IdentityError):
    """Raised when registering an email that already belongs to an account."""

    code = "duplicate_email"
    status_code = 409
    default_message = "User already exists with this email"


class InvalidCredentialsError(IdentityError):
    """Raised for unknown email, inactive account or wrong password alike."""

    code = "invalid_credentials"
    status_code = 401
    default_message = INVALID_CREDENTIALS_MESSAGE


class AccountInactiveError(IdentityError):
    """Raised when a valid session token references a deactivated or missing account."""

    code = "account_inactive"
    status_code = 401
    default_message = "Account not found or inactive"


class InvalidVerificationTokenError(IdentityError):
    """Raised when an email verification token matches no pending verification."""

    code = "invalid_verification_token"
    status_code = 400
    default_message = INVALID_VERIFICATION_TOKEN_MESSAGE


class InvalidOrExpiredResetTokenError(IdentityError):
    """Raised for unknown, expired or already consumed reset tokens alike."""

    code = "invalid_reset_token"
    status_code = 400
    default_message = INVALID_RESET_TOKEN_MESSAGE


class InvalidRefreshTokenError(IdentityError):
    """Raised when a refresh token cannot be exchanged for a new pair."""

    code = "invalid_refresh_token"
    status_code = 401
    default_message = INVALID_REFRESH_TOKEN_MESSAGE


class InvalidSessionTokenError(IdentityError):
    """Raised when an access token presented to a protected route is rejected."""

    code = "invalid_token"
    status_code = 401
    default_message = "Could not validate credentials"


class SessionExpiredError(InvalidSessionTokenError):
    """Raised when an access token was valid but its lifetime has passed."""

    code = "token_expired"
    default_message = "Token has expired"


class ForbiddenError(IdentityError):
    """Raised when an authenticated account lacks the required role."""

    code = "forbidden"
    status_code = 403
    default_message = "You do not have permission to perform this action"


class AccountNotFoundError(IdentityError):
    """Raised when an account looked up by id does not exist."""

    code = "account_not_found"
    status_code = 404
    default_message = "User not found"


class TransientStoreError(IdentityError):
    """Raised when the credential store times out or loses its connection.

    Callers may retry; the core itself never does.
    """

    code = "store_unavailable"
    status_code = 503
    default_message = "Credential store temporarily unavailable"
    retryable = True


class NotificationFailureError(IdentityError):
    """Raised when a notification could not be delivered."""

    code = "notification_failed"
    status_code = 500
    default_message = "Failed to send notification"
