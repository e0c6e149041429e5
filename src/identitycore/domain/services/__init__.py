"""Domain services for the identity core.

Services contain the credential lifecycle logic. They reach persistence and
notification delivery only through the ports in ``identitycore.domain.ports``.
"""

from identitycore.domain.services.account_admin_service import (
    AccountAdminService,
    AccountPage,
    create_admin_account,
)
from identitycore.domain.services.account_validator import (
    validate_email_address,
    validate_name,
)
from identitycore.domain.services.authentication_service import (
    AuthenticationService,
    AuthResult,
    ForgotPasswordResult,
    RegistrationInput,
)
from identitycore.domain.services.authorization_guard import AuthorizationGuard
from identitycore.domain.services.ephemeral_token_store import (
    EphemeralTokenStore,
    digest_token,
    generate_token,
)
from identitycore.domain.services.password_validator import PasswordValidator

__all__ = [
    "AccountAdminService",
    "AccountPage",
    "AuthResult",
    "AuthenticationService",
    "AuthorizationGuard",
    "EphemeralTokenStore",
    "ForgotPasswordResult",
    "PasswordValidator",
    "RegistrationInput",
    "create_admin_account",
    "digest_token",
    "generate_token",
    "validate_email_address",
    "validate_name",
]
