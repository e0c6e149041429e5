"""Account entity for authentication and credential lifecycle.

An account is the identity record the core authenticates against. It owns the
password hash and the pending ephemeral token state (email verification and
password reset). Accounts are never hard-deleted; deactivation is the terminal
state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class AccountRole(str, Enum):
    """Roles an account can hold."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class AccountStatus(str, Enum):
    """Whether an account may authenticate."""

    ACTIVE = "active"
    DEACTIVATED = "deactivated"


def normalize_email(email: str) -> str:
    """Return the canonical form of an email address used for lookups."""
    return email.strip().lower()


@dataclass
class Account:
    """Identity record.

    Attributes:
        id: Unique identifier (UUID string).
        email: Normalized email address, globally unique.
        password_hash: One-way hash of the password. Never serialized outward.
        first_name: Given name.
        last_name: Family name.
        role: Account role, student by default.
        status: Active or deactivated.
        email_verified: Whether the email address has been confirmed.
        email_verification_token: Digest of the pending verification token.
        email_verification_expires_at: Optional expiry of the verification token.
        password_reset_token: Digest of the pending reset token.
        password_reset_expires_at: Expiry of the pending reset token.
        login_count: Number of successful logins.
        last_login_at: Timestamp of the last successful login.
        created_at: When the account was created.
        updated_at: When the account was last modified.
    """

    id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: AccountRole = AccountRole.STUDENT
    status: AccountStatus = AccountStatus.ACTIVE
    email_verified: bool = False
    email_verification_token: str | None = None
    email_verification_expires_at: datetime | None = None
    password_reset_token: str | None = None
    password_reset_expires_at: datetime | None = None
    login_count: int = 0
    last_login_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate account data after initialization."""
        if not self.id:
            raise ValueError("Account ID is required")
        if not self.email:
            raise ValueError("Email is required")
        if not self.password_hash:
            raise ValueError("Password hash is required")
        if (self.password_reset_token is None) != (self.password_reset_expires_at is None):
            raise ValueError("Reset token and reset expiry must be set together")
        self.role = AccountRole(self.role)
        self.status = AccountStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
