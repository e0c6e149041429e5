"""Session token types.

Session tokens are stateless; these types describe what the issuer hands out
and what a validated token resolves to.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from identitycore.domain.entities.account import AccountRole


class TokenClass(str, Enum):
    """Class of a session token. An access token is never accepted as a refresh token."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    """Claims of a validated session token."""

    account_id: str
    token_class: TokenClass
    token_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh tokens issued together."""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


@dataclass(frozen=True)
class AccountContext:
    """The authenticated caller of a protected operation."""

    account_id: str
    email: str
    role: AccountRole
