"""Domain entities for identitycore."""

from identitycore.domain.entities.account import (
    Account,
    AccountRole,
    AccountStatus,
    normalize_email,
)
from identitycore.domain.entities.session import (
    AccountContext,
    TokenClaims,
    TokenClass,
    TokenPair,
)

__all__ = [
    "Account",
    "AccountContext",
    "AccountRole",
    "AccountStatus",
    "TokenClaims",
    "TokenClass",
    "TokenPair",
    "normalize_email",
]
