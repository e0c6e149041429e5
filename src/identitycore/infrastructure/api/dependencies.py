"""FastAPI dependencies for services, authentication and authorization.

Services are assembled per request around the request's database session.
The JWT service and the notification sender are shared and live on
``app.state``, so tests can replace them through ``dependency_overrides``.
"""

from collections.abc import Callable, Coroutine
from datetime import timedelta
from typing import Annotated, Any

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from identitycore.core.config import get_settings
from identitycore.core.logging import get_logger
from identitycore.domain.entities.account import AccountRole
from identitycore.domain.entities.session import AccountContext
from identitycore.domain.exceptions import InvalidSessionTokenError
from identitycore.domain.ports import CredentialRepository, NotificationSender
from identitycore.domain.services import (
    AccountAdminService,
    AuthenticationService,
    AuthorizationGuard,
    EphemeralTokenStore,
    PasswordValidator,
)
from identitycore.infrastructure.auth import JWTService, PasswordHasher, get_password_hasher
from identitycore.infrastructure.persistence.database import get_db_session
from identitycore.infrastructure.persistence.repositories import AccountRepository
from identitycore.infrastructure.services.notification_service import create_notification_sender

logger = get_logger(__name__)


def get_jwt_service(request: Request) -> JWTService:
    """Return the application's JWT service, creating it on first use."""
    if not hasattr(request.app.state, "jwt_service"):
        request.app.state.jwt_service = JWTService()
    return request.app.state.jwt_service


def get_notification_sender(request: Request) -> NotificationSender:
    """Return the application's notification sender, creating it on first use."""
    if not hasattr(request.app.state, "notification_sender"):
        request.app.state.notification_sender = create_notification_sender()
    return request.app.state.notification_sender


def get_hasher() -> PasswordHasher:
    return get_password_hasher()


def get_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> CredentialRepository:
    return AccountRepository(session)


def get_auth_service(
    repository: Annotated[CredentialRepository, Depends(get_repository)],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
    password_hasher: Annotated[PasswordHasher, Depends(get_hasher)],
    notification_sender: Annotated[NotificationSender, Depends(get_notification_sender)],
) -> AuthenticationService:
    """Assemble the authentication service for one request."""
    settings = get_settings()
    verification_ttl = None
    if settings.verification_token_expire_minutes is not None:
        verification_ttl = timedelta(minutes=settings.verification_token_expire_minutes)
    token_store = EphemeralTokenStore(
        repository,
        reset_token_ttl=timedelta(minutes=settings.password_reset_token_expire_minutes),
        verification_token_ttl=verification_ttl,
    )
    return AuthenticationService(
        repository=repository,
        token_store=token_store,
        jwt_service=jwt_service,
        password_hasher=password_hasher,
        notification_sender=notification_sender,
        password_validator=PasswordValidator(min_length=settings.password_min_length),
        app_url=settings.app_url,
    )


def get_admin_service(
    repository: Annotated[CredentialRepository, Depends(get_repository)],
) -> AccountAdminService:
    return AccountAdminService(repository)


def get_authorization_guard(
    repository: Annotated[CredentialRepository, Depends(get_repository)],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
) -> AuthorizationGuard:
    return AuthorizationGuard(repository, jwt_service)


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from a ``Bearer <token>`` header value.

    Raises:
        InvalidSessionTokenError: If the header is missing or not a bearer header.
    """
    if authorization is None:
        logger.info("Authentication failed: missing Authorization header")
        raise InvalidSessionTokenError("Not authorized, no token")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.info("Authentication failed: invalid Authorization header format")
        raise InvalidSessionTokenError("Not authorized, no token")
    return parts[1]


async def get_current_account(
    guard: Annotated[AuthorizationGuard, Depends(get_authorization_guard)],
    authorization: Annotated[str | None, Header()] = None,
) -> AccountContext:
    """Authenticate the caller from the Authorization header.

    Raises:
        InvalidSessionTokenError: If the token is missing or rejected.
        AccountInactiveError: If the account is missing or deactivated.
    """
    return await guard.authenticate(extract_bearer_token(authorization))


# Type alias for dependency injection
CurrentAccount = Annotated[AccountContext, Depends(get_current_account)]


def require_role(
    *roles: AccountRole,
) -> Callable[[AccountContext], Coroutine[Any, Any, AccountContext]]:
    """Create a dependency that admits only callers holding one of ``roles``.

    Example:
        @router.get("/stats", dependencies=[Depends(require_role(AccountRole.ADMIN))])
    """

    async def check_role(current: CurrentAccount) -> AccountContext:
        return AuthorizationGuard.require_role(current, roles)

    return check_role


AdminAccount = Annotated[AccountContext, Depends(require_role(AccountRole.ADMIN))]
