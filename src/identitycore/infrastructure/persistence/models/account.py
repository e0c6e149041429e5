"""SQLAlchemy model for the accounts table.

Accounts are uniquely identified by their normalized email. Pending ephemeral
tokens live on the row as SHA-256 digests.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from identitycore.infrastructure.persistence.database import Base


class AccountModel(Base):
    """SQLAlchemy model for the accounts table.

    Attributes:
        id: Primary key (UUID string).
        email: Normalized email address, unique.
        password_hash: Argon2 password hash.
        first_name: Given name.
        last_name: Family name.
        role: student, teacher or admin.
        status: active or deactivated.
        email_verified: Whether the email address has been confirmed.
        email_verification_token: SHA-256 digest of the pending verification token.
        email_verification_expires_at: Optional expiry of the verification token.
        password_reset_token: SHA-256 digest of the pending reset token.
        password_reset_expires_at: Expiry of the pending reset token.
        login_count: Number of successful logins.
        last_login_at: Timestamp of the last successful login.
        created_at: Timestamp when the account was created.
        updated_at: Timestamp when the account was last updated.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Account ID (UUID)",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Normalized email address",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Hashed password (argon2id)",
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="student",
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        index=True,
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_verification_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        comment="SHA-256 hash of the pending verification token",
    )
    email_verification_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    password_reset_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        comment="SHA-256 hash of the pending reset token",
    )
    password_reset_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    login_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Timestamp of last successful login",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "(password_reset_token IS NULL) = (password_reset_expires_at IS NULL)",
            name="ck_accounts_reset_pair",
        ),
        CheckConstraint("role IN ('student', 'teacher', 'admin')", name="ck_accounts_role"),
        CheckConstraint("status IN ('active', 'deactivated')", name="ck_accounts_status"),
        Index("ix_accounts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email={self.email}, role={self.role})>"
