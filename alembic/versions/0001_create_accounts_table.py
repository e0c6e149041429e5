"""create_accounts_table

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the accounts table."""
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Account ID (UUID)"),
        sa.Column("email", sa.String(length=255), nullable=False, comment="Normalized email address"),
        sa.Column("password_hash", sa.String(length=255), nullable=False, comment="Hashed password (argon2id)"),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column(
            "email_verification_token",
            sa.String(length=64),
            nullable=True,
            comment="SHA-256 hash of the pending verification token",
        ),
        sa.Column("email_verification_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "password_reset_token",
            sa.String(length=64),
            nullable=True,
            comment="SHA-256 hash of the pending reset token",
        ),
        sa.Column("password_reset_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("login_count", sa.Integer(), nullable=False),
        sa.Column(
            "last_login_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Timestamp of last successful login",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "(password_reset_token IS NULL) = (password_reset_expires_at IS NULL)",
            name="ck_accounts_reset_pair",
        ),
        sa.CheckConstraint("role IN ('student', 'teacher', 'admin')", name="ck_accounts_role"),
        sa.CheckConstraint("status IN ('active', 'deactivated')", name="ck_accounts_status"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_accounts_role", "accounts", ["role"])
    op.create_index("ix_accounts_status", "accounts", ["status"])
    op.create_index("ix_accounts_email_verification_token", "accounts", ["email_verification_token"])
    op.create_index("ix_accounts_password_reset_token", "accounts", ["password_reset_token"])
    op.create_index("ix_accounts_created_at", "accounts", ["created_at"])


def downgrade() -> None:
    """Drop the accounts table."""
    op.drop_index("ix_accounts_created_at", table_name="accounts")
    op.drop_index("ix_accounts_password_reset_token", table_name="accounts")
    op.drop_index("ix_accounts_email_verification_token", table_name="accounts")
    op.drop_index("ix_accounts_status", table_name="accounts")
    op.drop_index("ix_accounts_role", table_name="accounts")
    op.drop_table("accounts")
