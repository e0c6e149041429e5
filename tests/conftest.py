"""Pytest configuration for all tests."""

import os

os.environ.setdefault("IDENTITYCORE_ENVIRONMENT", "testing")
os.environ.setdefault("IDENTITYCORE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IDENTITYCORE_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("IDENTITYCORE_PASSWORD_HASH_TIME_COST", "1")
os.environ.setdefault("IDENTITYCORE_PASSWORD_HASH_MEMORY_COST", "8192")
os.environ.setdefault("IDENTITYCORE_PASSWORD_HASH_PARALLELISM", "1")
os.environ.setdefault("IDENTITYCORE_EMAIL_PROVIDER", "console")

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from identitycore.domain.entities.account import Account, AccountRole, AccountStatus  # noqa: E402
from identitycore.domain.ports import NotificationSender  # noqa: E402
from identitycore.domain.services import (  # noqa: E402
    AuthenticationService,
    AuthorizationGuard,
    EphemeralTokenStore,
    PasswordValidator,
)
from identitycore.infrastructure.auth import JWTService, PasswordHasher, SigningKeyRing  # noqa: E402
from identitycore.infrastructure.persistence.database import Base  # noqa: E402
from identitycore.infrastructure.persistence.repositories import AccountRepository  # noqa: E402

TEST_SIGNING_KEY = "unit-test-signing-key-0123456789abcdef"
DEFAULT_PASSWORD = "Secret123"


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_maker() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture
def repository(db_session: AsyncSession) -> AccountRepository:
    return AccountRepository(db_session)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def password_hasher() -> PasswordHasher:
    """Hasher with minimal work factors so tests stay fast."""
    return PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1)


@pytest.fixture
def key_ring() -> SigningKeyRing:
    return SigningKeyRing(current_kid="test-v1", current_key=TEST_SIGNING_KEY)


@pytest.fixture
def jwt_service(key_ring: SigningKeyRing) -> JWTService:
    return JWTService(
        key_ring=key_ring,
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=30),
    )


@pytest.fixture
def token_store(repository: AccountRepository, clock: FakeClock) -> EphemeralTokenStore:
    return EphemeralTokenStore(repository, reset_token_ttl=timedelta(minutes=10), clock=clock)


@pytest.fixture
def notifier() -> AsyncMock:
    """Notification sender that records calls instead of sending."""
    return AsyncMock(spec=NotificationSender)


@pytest.fixture
def auth_service(
    repository: AccountRepository,
    token_store: EphemeralTokenStore,
    jwt_service: JWTService,
    password_hasher: PasswordHasher,
    notifier: AsyncMock,
    clock: FakeClock,
) -> AuthenticationService:
    return AuthenticationService(
        repository=repository,
        token_store=token_store,
        jwt_service=jwt_service,
        password_hasher=password_hasher,
        notification_sender=notifier,
        password_validator=PasswordValidator(min_length=6),
        app_url="http://localhost:3000",
        clock=clock,
    )


@pytest.fixture
def guard(repository: AccountRepository, jwt_service: JWTService) -> AuthorizationGuard:
    return AuthorizationGuard(repository, jwt_service)


@pytest.fixture
def make_account(repository: AccountRepository, password_hasher: PasswordHasher):
    """Factory persisting an account directly through the repository."""
    counter = {"n": 0}

    async def _make(
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: AccountRole = AccountRole.STUDENT,
        status: AccountStatus = AccountStatus.ACTIVE,
        email_verified: bool = False,
        first_name: str = "Test",
        last_name: str = "User",
        created_at: datetime | None = None,
    ) -> Account:
        counter["n"] += 1
        account = Account(
            id=f"00000000-0000-0000-0000-{counter['n']:012d}",
            email=email or f"user{counter['n']}@example.com",
            password_hash=password_hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
            status=status,
            email_verified=email_verified,
        )
        if created_at is not None:
            account.created_at = created_at
        created = await repository.create(account)
        await repository.commit()
        return created

    return _make


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    jwt_service: JWTService,
    password_hasher: PasswordHasher,
    notifier: AsyncMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database, signing and email dependencies."""
    from identitycore.infrastructure.api.app import app
    from identitycore.infrastructure.api.dependencies import (
        get_hasher,
        get_jwt_service,
        get_notification_sender,
    )
    from identitycore.infrastructure.persistence.database import get_db_session

    async def override_get_db_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_jwt_service] = lambda: jwt_service
    app.dependency_overrides[get_hasher] = lambda: password_hasher
    app.dependency_overrides[get_notification_sender] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def sent_token(notifier: AsyncMock):
    """Return the raw token passed to the most recent notification of a kind."""

    def _sent_token(kind) -> str:
        for call in reversed(notifier.send.await_args_list):
            _, sent_kind, data = call.args
            if sent_kind == kind:
                return data["token"]
        raise AssertionError(f"No {kind} notification was sent")

    return _sent_token
