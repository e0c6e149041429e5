"""Authorization guard for protected operations.

Resolves a raw access token to the calling account and enforces role
membership. The account is re-read on every call, so a deactivation takes
effect on the next request even while its access tokens are unexpired.
"""

from collections.abc import Iterable

from identitycore.core.logging import get_logger
from identitycore.domain.entities.account import AccountRole
from identitycore.domain.entities.session import AccountContext, TokenClass
from identitycore.domain.exceptions import (
    AccountInactiveError,
    ForbiddenError,
    InvalidSessionTokenError,
    SessionExpiredError,
)
from identitycore.domain.ports import CredentialRepository
from identitycore.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTService,
    TokenExpiredError,
    WrongTokenClassError,
)

logger = get_logger(__name__)


class AuthorizationGuard:
    """Authenticates access tokens and checks roles."""

    def __init__(self, repository: CredentialRepository, jwt_service: JWTService) -> None:
        self.repository = repository
        self.jwt_service = jwt_service

    async def authenticate(self, raw_token: str | None) -> AccountContext:
        """Resolve an access token to the account it was issued to.

        Args:
            raw_token: The bearer token, without the scheme.

        Raises:
            SessionExpiredError: If the token has expired.
            InvalidSessionTokenError: If the token is missing, tampered with,
                malformed or a refresh token.
            AccountInactiveError: If the account no longer exists or is deactivated.
        """
        if not raw_token:
            raise InvalidSessionTokenError("Not authorized, no token")

        try:
            claims = self.jwt_service.validate(raw_token, TokenClass.ACCESS)
        except TokenExpiredError as e:
            raise SessionExpiredError() from e
        except WrongTokenClassError as e:
            raise InvalidSessionTokenError("Invalid token type") from e
        except InvalidTokenError as e:
            logger.info("Access token rejected", reason=type(e).__name__)
            raise InvalidSessionTokenError() from e

        account = await self.repository.find_by_id(claims.account_id)
        if account is None or not account.is_active:
            logger.info("Access token for missing or inactive account", account_id=claims.account_id)
            raise AccountInactiveError()

        return AccountContext(account_id=account.id, email=account.email, role=account.role)

    @staticmethod
    def require_role(context: AccountContext, allowed_roles: Iterable[AccountRole]) -> AccountContext:
        """Check that the caller holds one of the allowed roles.

        Raises:
            ForbiddenError: If the caller's role is not allowed.
        """
        allowed = {AccountRole(role) for role in allowed_roles}
        if context.role not in allowed:
            logger.info(
                "Role check failed",
                account_id=context.account_id,
                role=context.role.value,
                allowed=sorted(role.value for role in allowed),
            )
            raise ForbiddenError(
                f"User role '{context.role.value}' is not authorized to access this route"
            )
        return context
