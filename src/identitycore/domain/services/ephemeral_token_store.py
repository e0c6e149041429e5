"""Single-use tokens for email verification and password reset.

Raw tokens are 256-bit random hex strings handed to the caller exactly once,
for delivery by email. Only their SHA-256 digest is persisted on the account,
so lookups are by exact digest match and a copy of the database does not
yield usable tokens. Consumption is a single conditional write; a token that
has been consumed, has expired or never existed fails the same way.
"""

import hashlib
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from identitycore.core.logging import get_logger
from identitycore.domain.exceptions import (
    AccountNotFoundError,
    InvalidOrExpiredResetTokenError,
    InvalidVerificationTokenError,
)
from identitycore.domain.ports import CredentialRepository

logger = get_logger(__name__)

TOKEN_BYTES = 32
DEFAULT_RESET_TOKEN_TTL = timedelta(minutes=10)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_token(length: int = TOKEN_BYTES) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes. Default is 32 bytes (64 hex chars).
    """
    return secrets.token_hex(length)


def digest_token(token: str) -> str:
    """Return the SHA-256 hex digest under which a token is stored."""
    return hashlib.sha256(token.encode()).hexdigest()


class EphemeralTokenStore:
    """Issues and consumes verification and reset tokens bound to an account.

    Args:
        repository: Credential repository the tokens are persisted through.
        reset_token_ttl: Lifetime of reset tokens.
        verification_token_ttl: Lifetime of verification tokens, None for no expiry.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        repository: CredentialRepository,
        reset_token_ttl: timedelta = DEFAULT_RESET_TOKEN_TTL,
        verification_token_ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.reset_token_ttl = reset_token_ttl
        self.verification_token_ttl = verification_token_ttl
        self.clock = clock

    async def issue_verification(self, account_id: str) -> str:
        """Generate a verification token and store its digest on the account.

        Replaces any verification token already pending.

        Returns:
            The raw token, for out-of-band delivery.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        token = generate_token()
        expires_at = None
        if self.verification_token_ttl is not None:
            expires_at = self.clock() + self.verification_token_ttl
        account = await self.repository.update(
            account_id,
            email_verification_token=digest_token(token),
            email_verification_expires_at=expires_at,
        )
        if account is None:
            raise AccountNotFoundError()
        logger.info("Verification token issued", account_id=account_id)
        return token

    async def issue_reset(self, account_id: str) -> tuple[str, datetime]:
        """Generate a reset token and store its digest and expiry on the account.

        Replaces any reset token already pending.

        Returns:
            The raw token and its expiry.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        token = generate_token()
        expires_at = self.clock() + self.reset_token_ttl
        account = await self.repository.update(
            account_id,
            password_reset_token=digest_token(token),
            password_reset_expires_at=expires_at,
        )
        if account is None:
            raise AccountNotFoundError()
        logger.info("Password reset token issued", account_id=account_id, expires_at=expires_at)
        return token, expires_at

    async def consume_verification(self, token: str) -> str:
        """Consume a verification token, marking the account's email verified.

        Returns:
            The id of the verified account.

        Raises:
            InvalidVerificationTokenError: If no pending verification matches.
        """
        account_id = await self.repository.consume_verification_token(
            digest_token(token), self.clock()
        )
        if account_id is None:
            raise InvalidVerificationTokenError()
        return account_id

    async def is_reset_token_valid(self, token: str) -> bool:
        """Check a reset token without consuming it."""
        account = await self.repository.find_by_valid_reset_token(digest_token(token), self.clock())
        return account is not None

    async def consume_reset(self, token: str, new_password_hash: str) -> str:
        """Consume a reset token, replacing the password hash in the same write.

        The write only applies while the token matches, has not expired and
        the account is active; token and expiry are cleared with it.

        Returns:
            The id of the account whose password was reset.

        Raises:
            InvalidOrExpiredResetTokenError: If the token is unknown, expired or used.
        """
        account_id = await self.repository.consume_reset_token(
            digest_token(token), self.clock(), new_password_hash
        )
        if account_id is None:
            raise InvalidOrExpiredResetTokenError()
        return account_id

    async def clear_reset(self, account_id: str) -> None:
        """Discard a pending reset token, e.g. when its email could not be sent."""
        await self.repository.update(
            account_id,
            password_reset_token=None,
            password_reset_expires_at=None,
        )
