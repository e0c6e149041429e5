"""Account repository for database operations.

SQLAlchemy implementation of the credential repository. Email uniqueness is
enforced by the UNIQUE constraint, and token consumption is a conditional
UPDATE whose WHERE clause re-checks every precondition, so two concurrent
consumers of the same token cannot both succeed.
"""

import asyncio
import functools
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from identitycore.core.logging import get_logger
from identitycore.domain.entities.account import Account, AccountRole, AccountStatus, normalize_email
from identitycore.domain.exceptions import DuplicateEmailError, TransientStoreError
from identitycore.domain.ports import CredentialRepository
from identitycore.infrastructure.persistence.models import AccountModel

logger = get_logger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {
        "password_hash",
        "first_name",
        "last_name",
        "role",
        "status",
        "email_verified",
        "email_verification_token",
        "email_verification_expires_at",
        "password_reset_token",
        "password_reset_expires_at",
    }
)


def _translate_store_errors(method):
    """Re-raise timeouts and connection failures as TransientStoreError."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except (OperationalError, PoolTimeoutError, asyncio.TimeoutError) as e:
            logger.warning("Credential store unavailable", operation=method.__name__, error=str(e))
            raise TransientStoreError() from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.warning("Credential store connection lost", operation=method.__name__)
                raise TransientStoreError() from e
            raise

    return wrapper


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _column_values(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in fields.items()}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class AccountRepository(CredentialRepository):
    """Repository for account database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    def _to_model(self, account: Account) -> AccountModel:
        """Convert domain entity to infrastructure model."""
        return AccountModel(
            id=account.id,
            email=normalize_email(account.email),
            password_hash=account.password_hash,
            first_name=account.first_name,
            last_name=account.last_name,
            role=account.role.value,
            status=account.status.value,
            email_verified=account.email_verified,
            email_verification_token=account.email_verification_token,
            email_verification_expires_at=account.email_verification_expires_at,
            password_reset_token=account.password_reset_token,
            password_reset_expires_at=account.password_reset_expires_at,
            login_count=account.login_count,
            last_login_at=account.last_login_at,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )

    def _to_entity(self, model: AccountModel) -> Account:
        """Convert infrastructure model to domain entity."""
        return Account(
            id=model.id,
            email=model.email,
            password_hash=model.password_hash,
            first_name=model.first_name,
            last_name=model.last_name,
            role=model.role,
            status=model.status,
            email_verified=model.email_verified,
            email_verification_token=model.email_verification_token,
            email_verification_expires_at=_as_utc(model.email_verification_expires_at),
            password_reset_token=model.password_reset_token,
            password_reset_expires_at=_as_utc(model.password_reset_expires_at),
            login_count=model.login_count,
            last_login_at=_as_utc(model.last_login_at),
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )

    async def _get_model(self, *criteria) -> AccountModel | None:
        result = await self.session.execute(
            select(AccountModel).where(*criteria).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @_translate_store_errors
    async def create(self, account: Account) -> Account:
        """Create a new account.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        model = self._to_model(account)
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateEmailError() from e
        return self._to_entity(model)

    @_translate_store_errors
    async def find_by_id(self, account_id: str) -> Account | None:
        model = await self._get_model(AccountModel.id == account_id)
        return self._to_entity(model) if model else None

    @_translate_store_errors
    async def find_by_email(self, email: str, active_only: bool = False) -> Account | None:
        criteria = [AccountModel.email == normalize_email(email)]
        if active_only:
            criteria.append(AccountModel.status == AccountStatus.ACTIVE.value)
        model = await self._get_model(*criteria)
        return self._to_entity(model) if model else None

    @_translate_store_errors
    async def find_by_verification_token(self, token_digest: str) -> Account | None:
        model = await self._get_model(AccountModel.email_verification_token == token_digest)
        return self._to_entity(model) if model else None

    @_translate_store_errors
    async def find_by_valid_reset_token(self, token_digest: str, now: datetime) -> Account | None:
        model = await self._get_model(*self._valid_reset_criteria(token_digest, now))
        return self._to_entity(model) if model else None

    @_translate_store_errors
    async def update(self, account_id: str, **fields: Any) -> Account | None:
        """Apply a partial update.

        Args:
            account_id: ID of the account to update.
            **fields: Column values to set.

        Returns:
            The updated account, or None if no account has this id.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        if fields:
            await self.session.execute(
                update(AccountModel)
                .where(AccountModel.id == account_id)
                .values(**_column_values(fields))
                .execution_options(synchronize_session=False)
            )
            await self.session.flush()
        return await self.find_by_id(account_id)

    @_translate_store_errors
    async def record_login(self, account_id: str, at: datetime) -> None:
        await self.session.execute(
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .values(last_login_at=at, login_count=AccountModel.login_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

    @_translate_store_errors
    async def consume_verification_token(self, token_digest: str, now: datetime) -> str | None:
        criteria = (
            AccountModel.email_verification_token == token_digest,
            or_(
                AccountModel.email_verification_expires_at.is_(None),
                AccountModel.email_verification_expires_at > now,
            ),
        )
        return await self._compare_and_set(
            criteria,
            email_verified=True,
            email_verification_token=None,
            email_verification_expires_at=None,
        )

    @_translate_store_errors
    async def consume_reset_token(
        self, token_digest: str, now: datetime, new_password_hash: str
    ) -> str | None:
        return await self._compare_and_set(
            self._valid_reset_criteria(token_digest, now),
            password_hash=new_password_hash,
            password_reset_token=None,
            password_reset_expires_at=None,
        )

    @_translate_store_errors
    async def count_by(self, **criteria: Any) -> int:
        stmt = select(func.count(AccountModel.id))
        for key, value in _column_values(criteria).items():
            stmt = stmt.where(getattr(AccountModel, key) == value)
        result = await self.session.execute(stmt)
        return result.scalar_one() or 0

    @_translate_store_errors
    async def list_accounts(
        self,
        offset: int = 0,
        limit: int = 10,
        role: AccountRole | None = None,
        status: AccountStatus | None = None,
        search: str | None = None,
    ) -> tuple[list[Account], int]:
        """Get one page of accounts, newest first.

        Args:
            offset: Number of matching accounts to skip.
            limit: Maximum number of accounts to return.
            role: Only accounts with this role.
            status: Only accounts with this status.
            search: Case-insensitive substring of first name, last name or email.

        Returns:
            Tuple of (accounts on the page, total matching count).
        """
        criteria = []
        if role is not None:
            criteria.append(AccountModel.role == AccountRole(role).value)
        if status is not None:
            criteria.append(AccountModel.status == AccountStatus(status).value)
        if search:
            pattern = f"%{_escape_like(search)}%"
            criteria.append(
                or_(
                    AccountModel.first_name.ilike(pattern, escape="\\"),
                    AccountModel.last_name.ilike(pattern, escape="\\"),
                    AccountModel.email.ilike(pattern, escape="\\"),
                )
            )

        count_result = await self.session.execute(
            select(func.count(AccountModel.id)).where(*criteria)
        )
        total = count_result.scalar_one() or 0

        result = await self.session.execute(
            select(AccountModel)
            .where(*criteria)
            .order_by(AccountModel.created_at.desc(), AccountModel.id.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(model) for model in result.scalars().all()], total

    @_translate_store_errors
    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _compare_and_set(self, criteria: tuple, **values: Any) -> str | None:
        """Update the single row matching criteria and return its id.

        The UPDATE repeats the criteria, so if another transaction consumed
        the row between the lookup and the write, no row changes and None
        is returned.
        """
        result = await self.session.execute(select(AccountModel.id).where(*criteria))
        account_id = result.scalar_one_or_none()
        if account_id is None:
            return None
        result = await self.session.execute(
            update(AccountModel)
            .where(AccountModel.id == account_id, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        if result.rowcount != 1:
            return None
        return account_id

    @staticmethod
    def _valid_reset_criteria(token_digest: str, now: datetime) -> tuple:
        return (
            and_(
                AccountModel.password_reset_token == token_digest,
                AccountModel.password_reset_expires_at > now,
            ),
            AccountModel.status == AccountStatus.ACTIVE.value,
        )
