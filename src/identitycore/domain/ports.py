"""Interfaces the identity core depends on.

The core talks to persistence and notification delivery only through these
abstract classes. Infrastructure provides the concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any

from identitycore.domain.entities.account import Account, AccountRole, AccountStatus


class NotificationKind(str, Enum):
    """Templates a notification can be rendered from."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class NotificationSender(ABC):
    """Delivers out-of-band messages (email) to an account holder."""

    @abstractmethod
    async def send(self, to: str, kind: NotificationKind, data: dict[str, Any]) -> None:
        """Send a notification.

        Args:
            to: Destination address.
            kind: Which template to render.
            data: Template variables.

        Raises:
            NotificationFailureError: If the message could not be delivered.
        """


class CredentialRepository(ABC):
    """Persistence of account records.

    Implementations must enforce email uniqueness with a constraint rather
    than a read-then-write check, and must make the consume operations a
    single conditional write. Mutations are staged until ``commit``.
    Store timeouts and connection failures are raised as
    ``TransientStoreError``.
    """

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Insert a new account.

        Raises:
            DuplicateEmailError: If the email is already taken.
        """

    @abstractmethod
    async def find_by_id(self, account_id: str) -> Account | None:
        """Return the account with this id, or None."""

    @abstractmethod
    async def find_by_email(self, email: str, active_only: bool = False) -> Account | None:
        """Return the account with this normalized email, or None."""

    @abstractmethod
    async def find_by_verification_token(self, token_digest: str) -> Account | None:
        """Return the account with this pending verification token digest, or None."""

    @abstractmethod
    async def find_by_valid_reset_token(
        self, token_digest: str, now: datetime
    ) -> Account | None:
        """Return the active account whose reset token matches and has not expired."""

    @abstractmethod
    async def update(self, account_id: str, **fields: Any) -> Account | None:
        """Apply a partial update and return the updated account, or None if missing."""

    @abstractmethod
    async def record_login(self, account_id: str, at: datetime) -> None:
        """Set last_login_at and increment login_count in one write."""

    @abstractmethod
    async def consume_verification_token(
        self, token_digest: str, now: datetime
    ) -> str | None:
        """Mark the matching account verified and clear the token in one write.

        Returns:
            The account id, or None if no pending verification matched.
        """

    @abstractmethod
    async def consume_reset_token(
        self, token_digest: str, now: datetime, new_password_hash: str
    ) -> str | None:
        """Replace the password hash and clear the reset token in one write.

        The write only applies when the token matches, has not expired and the
        account is active.

        Returns:
            The account id, or None if nothing matched.
        """

    @abstractmethod
    async def count_by(self, **criteria: Any) -> int:
        """Count accounts whose fields equal the given values."""

    @abstractmethod
    async def list_accounts(
        self,
        offset: int = 0,
        limit: int = 10,
        role: AccountRole | None = None,
        status: AccountStatus | None = None,
        search: str | None = None,
    ) -> tuple[list[Account], int]:
        """Return one page of accounts, newest first, and the total match count.

        ``search`` is a case-insensitive substring match on first name, last
        name and email.
        """

    @abstractmethod
    async def commit(self) -> None:
        """Make staged mutations durable."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard staged mutations."""
