"""Service for administering accounts.

Role and status changes, self-deactivation, lookups, paginated listing and
account statistics. Also bootstraps the first admin account from the CLI or
settings.
"""

import asyncio
import math
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from identitycore.core.logging import get_logger
from identitycore.domain.entities.account import Account, AccountRole, AccountStatus
from identitycore.domain.exceptions import AccountNotFoundError, FieldError, ValidationError
from identitycore.domain.ports import CredentialRepository
from identitycore.domain.services.account_validator import validate_email_address, validate_name
from identitycore.domain.services.password_validator import PasswordValidator

logger = get_logger(__name__)

LIST_MAX_LIMIT = 100


def _invalid_choice(field: str, value: str, choices: type) -> ValidationError:
    allowed = ", ".join(choice.value for choice in choices)
    return ValidationError(
        [FieldError(field=field, message=f"'{value}' is not one of: {allowed}", code="invalid_choice")]
    )


@dataclass(frozen=True)
class AccountPage:
    """One page of an account listing."""

    accounts: list[Account]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


class AccountAdminService:
    """Administrative operations on accounts."""

    def __init__(self, repository: CredentialRepository) -> None:
        self.repository = repository

    async def get_account(self, account_id: str) -> Account:
        """Return an account by id.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        account = await self.repository.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        return account

    async def list_accounts(
        self,
        page: int = 1,
        limit: int = 10,
        role: AccountRole | str | None = None,
        status: AccountStatus | str | None = None,
        search: str | None = None,
    ) -> AccountPage:
        """List accounts newest first, optionally filtered.

        Args:
            page: 1-indexed page number.
            limit: Page size, at most ``LIST_MAX_LIMIT``.
            role: Only accounts with this role.
            status: Only accounts with this status.
            search: Case-insensitive substring of first name, last name or email.

        Raises:
            ValidationError: If the paging values or a filter are invalid.
        """
        errors = []
        if page < 1:
            errors.append(FieldError("page", "Page must be at least 1", "invalid_page"))
        if not 1 <= limit <= LIST_MAX_LIMIT:
            errors.append(
                FieldError(
                    "limit", f"Limit must be between 1 and {LIST_MAX_LIMIT}", "invalid_limit"
                )
            )
        if errors:
            raise ValidationError(errors)
        if role is not None:
            try:
                role = AccountRole(role)
            except ValueError:
                raise _invalid_choice("role", str(role), AccountRole) from None
        if status is not None:
            try:
                status = AccountStatus(status)
            except ValueError:
                raise _invalid_choice("status", str(status), AccountStatus) from None

        accounts, total = await self.repository.list_accounts(
            offset=(page - 1) * limit,
            limit=limit,
            role=role,
            status=status,
            search=search.strip() if search else None,
        )
        return AccountPage(accounts=accounts, total=total, page=page, limit=limit)

    async def change_role(self, account_id: str, role: AccountRole | str) -> Account:
        """Assign a new role to an account.

        Raises:
            ValidationError: If the role is unknown.
            AccountNotFoundError: If the account does not exist.
        """
        try:
            role = AccountRole(role)
        except ValueError:
            raise _invalid_choice("role", str(role), AccountRole) from None

        account = await self.repository.update(account_id, role=role)
        if account is None:
            raise AccountNotFoundError()
        await self.repository.commit()
        logger.info("Account role changed", account_id=account_id, role=role.value)
        return account

    async def change_status(self, account_id: str, status: AccountStatus | str) -> Account:
        """Activate or deactivate an account.

        Deactivation takes effect on the next request: login, refresh and
        protected routes all re-check the status.

        Raises:
            ValidationError: If the status is unknown.
            AccountNotFoundError: If the account does not exist.
        """
        try:
            status = AccountStatus(status)
        except ValueError:
            raise _invalid_choice("status", str(status), AccountStatus) from None

        account = await self.repository.update(account_id, status=status)
        if account is None:
            raise AccountNotFoundError()
        await self.repository.commit()
        logger.info("Account status changed", account_id=account_id, status=status.value)
        return account

    async def deactivate_self(self, account_id: str) -> None:
        """Soft-delete the caller's own account."""
        await self.change_status(account_id, AccountStatus.DEACTIVATED)

    async def statistics(self) -> dict[str, int]:
        """Count accounts by status, role and verification state."""
        stats = {
            "total_users": await self.repository.count_by(),
            "active_users": await self.repository.count_by(status=AccountStatus.ACTIVE),
            "deactivated_users": await self.repository.count_by(status=AccountStatus.DEACTIVATED),
            "verified_users": await self.repository.count_by(email_verified=True),
        }
        for role in AccountRole:
            stats[f"{role.value}_count"] = await self.repository.count_by(role=role)
        return stats


async def create_admin_account(
    session: AsyncSession,
    email: str,
    password: str,
    first_name: str = "Admin",
    last_name: str = "User",
) -> Account:
    """Create a verified admin account and commit it.

    Args:
        session: Database session.
        email: Admin email.
        password: Admin password, checked against the default policy.
        first_name: Admin first name.
        last_name: Admin last name.

    Returns:
        The created account.

    Raises:
        ValidationError: If the email, names or password are invalid.
        DuplicateEmailError: If the email is already registered.
    """
    from identitycore.core.config import get_settings
    from identitycore.infrastructure.auth import hash_password
    from identitycore.infrastructure.persistence.repositories import AccountRepository

    normalized, errors = validate_email_address(email)
    first_name, name_errors = validate_name(first_name, "first_name", "First name")
    errors += name_errors
    last_name, name_errors = validate_name(last_name, "last_name", "Last name")
    errors += name_errors
    errors += PasswordValidator(min_length=get_settings().password_min_length).validate(password)
    if errors:
        raise ValidationError(errors)

    password_hash = await asyncio.to_thread(hash_password, password)
    repository = AccountRepository(session)
    account = await repository.create(
        Account(
            id=str(uuid.uuid4()),
            email=normalized,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=AccountRole.ADMIN,
            email_verified=True,
        )
    )
    await repository.commit()
    logger.info("Admin account created", account_id=account.id)
    return account
