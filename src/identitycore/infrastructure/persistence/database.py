"""Async SQLAlchemy engine and session handling.

One ``DatabaseManager`` per process owns the engine. Request handlers get a
session through the ``get_db_session`` dependency; the services decide when
to commit.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from identitycore.core.config import Settings, get_settings
from identitycore.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for identitycore models."""


def _engine_options(settings: Settings) -> dict:
    options: dict = {"echo": settings.db_echo}
    if settings.database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in settings.database_url:
            # every pooled connection would otherwise see its own empty database
            options["poolclass"] = StaticPool
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )
    return options


class DatabaseManager:
    """Lazily creates the engine and session factory from settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self.settings.database_url, **_engine_options(self.settings)
            )
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def create_tables(self) -> None:
        """Create missing tables. Migrations own the schema in production."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session; uncommitted work is rolled back if the block raises."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database connection check failed", error=str(e))
            return False
        return True


_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    async with get_db_manager().session() as session:
        yield session


async def init_database() -> None:
    """Prepare the database at startup.

    Creates the SQLite directory when needed, checks connectivity, creates
    tables outside production and bootstraps the admin from settings.

    Raises:
        RuntimeError: If the database cannot be reached.
    """
    from identitycore.infrastructure.persistence.models import AccountModel  # noqa: F401

    db = get_db_manager()
    settings = db.settings

    if settings.database_url.startswith("sqlite") and ":memory:" not in settings.database_url:
        Path(settings.database_url.split(":///")[-1]).parent.mkdir(parents=True, exist_ok=True)

    if not await db.check_connection():
        raise RuntimeError("Failed to connect to database")

    if settings.is_production:
        logger.info("Production mode: schema managed by migrations")
    else:
        await db.create_tables()

    await _create_admin_from_env(db)


async def _create_admin_from_env(db: DatabaseManager) -> None:
    from identitycore.domain.exceptions import DuplicateEmailError, ValidationError
    from identitycore.domain.services.account_admin_service import create_admin_account

    settings = db.settings
    if not settings.admin_email or not settings.admin_password:
        return

    try:
        async with db.session() as session:
            account = await create_admin_account(
                session, settings.admin_email, settings.admin_password
            )
    except DuplicateEmailError:
        logger.info("Bootstrap admin already exists")
    except ValidationError as e:
        logger.error("Bootstrap admin credentials rejected", error=e.message)
    else:
        logger.info("Bootstrap admin created", account_id=account.id)


async def close_database() -> None:
    await get_db_manager().disconnect()
