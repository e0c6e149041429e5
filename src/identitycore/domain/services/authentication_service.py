"""Authentication flows.

Orchestrates registration, login, token refresh, email verification, forgot
and reset password, and change password on top of the password hasher, the
JWT service, the ephemeral token store and the credential repository.

Every flow validates its input before touching the repository. Failures that
could reveal whether an account exists share one error and message with
their "account exists but the secret is wrong" counterpart.
"""

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from identitycore.core.logging import get_logger
from identitycore.domain.entities.account import Account
from identitycore.domain.entities.session import TokenClass, TokenPair
from identitycore.domain.exceptions import (
    FORGOT_PASSWORD_MESSAGE,
    AccountNotFoundError,
    FieldError,
    InvalidCredentialsError,
    InvalidOrExpiredResetTokenError,
    InvalidRefreshTokenError,
    NotificationFailureError,
    ValidationError,
)
from identitycore.domain.ports import CredentialRepository, NotificationKind, NotificationSender
from identitycore.domain.services.account_validator import validate_email_address, validate_name
from identitycore.domain.services.ephemeral_token_store import EphemeralTokenStore, utcnow
from identitycore.domain.services.password_validator import PasswordValidator
from identitycore.infrastructure.auth.jwt_service import JWTError, JWTService
from identitycore.infrastructure.auth.password_hasher import PasswordHasher

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistrationInput:
    """Fields accepted at registration."""

    email: str
    password: str
    first_name: str
    last_name: str


@dataclass(frozen=True)
class AuthResult:
    """An account together with freshly issued session tokens."""

    account: Account
    tokens: TokenPair


@dataclass(frozen=True)
class ForgotPasswordResult:
    """Outcome of a forgot-password request, identical whether or not the account exists."""

    message: str = FORGOT_PASSWORD_MESSAGE


def _require_token(token: str, field: str = "token") -> None:
    if not token or not token.strip():
        raise ValidationError(
            [FieldError(field=field, message="Token is required", code="required")]
        )


class AuthenticationService:
    """Service for authentication and credential lifecycle flows."""

    def __init__(
        self,
        repository: CredentialRepository,
        token_store: EphemeralTokenStore,
        jwt_service: JWTService,
        password_hasher: PasswordHasher,
        notification_sender: NotificationSender,
        password_validator: PasswordValidator | None = None,
        app_url: str = "",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the authentication service.

        Args:
            repository: Credential repository.
            token_store: Store for verification and reset tokens.
            jwt_service: Issuer and validator of session tokens.
            password_hasher: One-way password hasher.
            notification_sender: Delivers verification and reset emails.
            password_validator: Password policy. Defaults to a 6 character minimum.
            app_url: Frontend base URL used to build links in notifications.
            clock: Returns the current UTC time.
        """
        self.repository = repository
        self.token_store = token_store
        self.jwt_service = jwt_service
        self.password_hasher = password_hasher
        self.notification_sender = notification_sender
        self.password_validator = password_validator or PasswordValidator()
        self.app_url = app_url.rstrip("/")
        self.clock = clock

    # ------------------------------------------------------------------
    # Explicit persistence operations
    # ------------------------------------------------------------------

    async def hash_secret(self, password: str) -> str:
        """Hash a password off the event loop."""
        return await asyncio.to_thread(self.password_hasher.hash, password)

    async def verify_secret(self, password: str, password_hash: str) -> bool:
        """Verify a password off the event loop."""
        return await asyncio.to_thread(self.password_hasher.verify, password, password_hash)

    async def hash_and_store(self, account_id: str, password: str) -> None:
        """Hash a new password and replace the stored hash.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        password_hash = await self.hash_secret(password)
        if await self.repository.update(account_id, password_hash=password_hash) is None:
            raise AccountNotFoundError()

    async def record_login(self, account_id: str) -> None:
        """Stamp the login time and increment the login count."""
        await self.repository.record_login(account_id, self.clock())

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    async def register(self, data: RegistrationInput) -> AuthResult:
        """Create an account, start email verification and sign the user in.

        A verification email is sent on a best-effort basis: if delivery
        fails the account still exists and the failure is only logged.

        Raises:
            ValidationError: If any field is malformed.
            DuplicateEmailError: If the email is already registered.
        """
        email, errors = validate_email_address(data.email)
        first_name, name_errors = validate_name(data.first_name, "first_name", "First name")
        errors += name_errors
        last_name, name_errors = validate_name(data.last_name, "last_name", "Last name")
        errors += name_errors
        errors += self.password_validator.validate(data.password)
        if errors:
            raise ValidationError(errors)

        account = Account(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=await self.hash_secret(data.password),
            first_name=first_name,
            last_name=last_name,
        )
        await self.repository.create(account)
        verification_token = await self.token_store.issue_verification(account.id)
        await self.repository.commit()

        logger.info("Account registered", account_id=account.id)

        try:
            await self.notification_sender.send(
                account.email,
                NotificationKind.EMAIL_VERIFICATION,
                {
                    "first_name": account.first_name,
                    "verification_url": f"{self.app_url}/verify-email?token={verification_token}",
                    "token": verification_token,
                },
            )
        except NotificationFailureError as e:
            logger.warning(
                "Verification email failed, registration kept",
                account_id=account.id,
                error=e.message,
            )

        stored = await self.repository.find_by_id(account.id)
        return AuthResult(account=stored, tokens=self.jwt_service.issue_pair(account.id))

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password.

        The password is always checked against some hash, a dummy one when
        no active account matches, so response time does not reveal whether
        the email is registered.

        Raises:
            ValidationError: If the email is malformed or the password empty.
            InvalidCredentialsError: For an unknown email, an inactive account or a wrong password.
        """
        normalized, errors = validate_email_address(email)
        if not password:
            errors.append(FieldError(field="password", message="Password is required", code="required"))
        if errors:
            raise ValidationError(errors)

        account = await self.repository.find_by_email(normalized, active_only=True)
        if account is None:
            await self.verify_secret(password, self.password_hasher.dummy_hash)
            logger.info("Login failed: no active account")
            raise InvalidCredentialsError()

        if not await self.verify_secret(password, account.password_hash):
            logger.info("Login failed: invalid password", account_id=account.id)
            raise InvalidCredentialsError()

        await self.record_login(account.id)
        if self.password_hasher.needs_rehash(account.password_hash):
            await self.hash_and_store(account.id, password)
            logger.info("Password hash upgraded", account_id=account.id)
        await self.repository.commit()

        logger.info("Account logged in", account_id=account.id)
        stored = await self.repository.find_by_id(account.id)
        return AuthResult(account=stored, tokens=self.jwt_service.issue_pair(account.id))

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new access and refresh pair.

        The presented refresh token is not revoked; it stays valid until it
        expires.

        Raises:
            InvalidRefreshTokenError: If the token fails validation, is an access
                token, or its account is missing or inactive.
        """
        if not refresh_token:
            raise InvalidRefreshTokenError("Refresh token is required")
        try:
            claims = self.jwt_service.validate(refresh_token, TokenClass.REFRESH)
        except JWTError as e:
            logger.info("Token refresh failed", reason=type(e).__name__)
            raise InvalidRefreshTokenError() from e

        account = await self.repository.find_by_id(claims.account_id)
        if account is None or not account.is_active:
            logger.info("Token refresh failed: account missing or inactive", account_id=claims.account_id)
            raise InvalidRefreshTokenError()

        return self.jwt_service.issue_pair(account.id)

    async def verify_email(self, token: str) -> Account:
        """Consume a verification token and mark the email verified.

        Raises:
            ValidationError: If the token is empty.
            InvalidVerificationTokenError: If the token matches no pending verification.
        """
        _require_token(token)
        account_id = await self.token_store.consume_verification(token)
        await self.repository.commit()
        logger.info("Email verified", account_id=account_id)
        return await self.repository.find_by_id(account_id)

    async def forgot_password(self, email: str) -> ForgotPasswordResult:
        """Start a password reset.

        Returns the same result whether or not an active account has this
        email. If the reset email cannot be sent, the issued token is
        discarded and the failure is reported.

        Raises:
            ValidationError: If the email is malformed.
            NotificationFailureError: If the reset email could not be sent.
        """
        normalized, errors = validate_email_address(email)
        if errors:
            raise ValidationError(errors)

        account = await self.repository.find_by_email(normalized, active_only=True)
        if account is None:
            logger.info("Password reset requested for unknown or inactive email")
            return ForgotPasswordResult()

        token, expires_at = await self.token_store.issue_reset(account.id)
        await self.repository.commit()

        try:
            await self.notification_sender.send(
                account.email,
                NotificationKind.PASSWORD_RESET,
                {
                    "first_name": account.first_name,
                    "reset_url": f"{self.app_url}/reset-password?token={token}",
                    "token": token,
                    "expires_at": expires_at.isoformat(),
                },
            )
        except NotificationFailureError as e:
            await self.token_store.clear_reset(account.id)
            await self.repository.commit()
            logger.error("Password reset email failed, token discarded", account_id=account.id)
            raise NotificationFailureError("Failed to send password reset email") from e

        logger.info("Password reset email sent", account_id=account.id)
        return ForgotPasswordResult()

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token.

        The new hash is written and the token cleared in one conditional
        update, so a token can be used at most once.

        Raises:
            ValidationError: If the token is empty or the password fails the policy.
            InvalidOrExpiredResetTokenError: If the token is unknown, expired or used.
        """
        _require_token(token)
        errors = self.password_validator.validate(new_password)
        if errors:
            raise ValidationError(errors)

        if not await self.token_store.is_reset_token_valid(token):
            logger.info("Password reset failed: token invalid or expired")
            raise InvalidOrExpiredResetTokenError()

        new_hash = await self.hash_secret(new_password)
        account_id = await self.token_store.consume_reset(token, new_hash)
        await self.repository.commit()
        logger.info("Password reset successfully", account_id=account_id)

    async def change_password(self, account_id: str, current_password: str, new_password: str) -> None:
        """Replace the password of an authenticated account.

        Raises:
            ValidationError: If the new password fails the policy.
            AccountNotFoundError: If the account does not exist.
            InvalidCredentialsError: If the current password does not match.
        """
        errors = self.password_validator.validate(new_password, field="new_password")
        if not current_password:
            errors.append(
                FieldError(field="current_password", message="Current password is required", code="required")
            )
        if errors:
            raise ValidationError(errors)

        account = await self.repository.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        if not await self.verify_secret(current_password, account.password_hash):
            logger.info("Change password failed: current password mismatch", account_id=account_id)
            raise InvalidCredentialsError("Current password is incorrect")

        await self.hash_and_store(account_id, new_password)
        await self.repository.commit()
        logger.info("Password changed", account_id=account_id)

    async def get_account(self, account_id: str) -> Account:
        """Return an account by id.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        account = await self.repository.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        return account
