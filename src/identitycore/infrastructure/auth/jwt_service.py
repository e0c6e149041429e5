"""JWT token service.

Creates and validates signed, time-limited session tokens. Every token carries
the account id as subject and a ``type`` claim naming its class, so an access
token can never be replayed where a refresh token is expected.

Validation order is fixed: the signature is checked first (PyJWT verifies the
signature before it looks at any claim), then expiry and required claims, and
only then the token class.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from identitycore.core.config import get_settings
from identitycore.domain.entities.session import TokenClaims, TokenClass, TokenPair
from identitycore.infrastructure.auth.signing_keys import (
    SigningKeyRing,
    UnknownSigningKeyError,
)


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class InvalidSignatureError(InvalidTokenError):
    """Raised when the token signature does not verify."""

    pass


class WrongTokenClassError(InvalidTokenError):
    """Raised when a token of one class is presented where the other is expected."""

    pass


class MalformedTokenError(InvalidTokenError):
    """Raised when the token cannot be parsed or lacks required claims."""

    pass


class JWTService:
    """Service for creating and validating session tokens.

    Args:
        key_ring: Signing keys. Defaults to the keys from settings.
        access_token_ttl: Lifetime of access tokens.
        refresh_token_ttl: Lifetime of refresh tokens.
    """

    ALGORITHM = "HS256"
    ISSUER = "identitycore"
    REQUIRED_CLAIMS = ["exp", "iat", "sub", "jti", "type"]

    def __init__(
        self,
        key_ring: SigningKeyRing | None = None,
        access_token_ttl: timedelta | None = None,
        refresh_token_ttl: timedelta | None = None,
    ) -> None:
        settings = get_settings()
        self.key_ring = key_ring or SigningKeyRing.from_settings(settings)
        self.access_token_ttl = access_token_ttl or timedelta(
            minutes=settings.access_token_expire_minutes
        )
        self.refresh_token_ttl = refresh_token_ttl or timedelta(
            days=settings.refresh_token_expire_days
        )

    def _encode(self, account_id: str, token_class: TokenClass, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.ISSUER,
            "sub": account_id,
            "iat": now,
            "exp": now + ttl,
            "jti": str(uuid.uuid4()),
            "type": token_class.value,
        }
        return jwt.encode(
            payload,
            self.key_ring.current_key,
            algorithm=self.ALGORITHM,
            headers={"kid": self.key_ring.current_kid},
        )

    def issue_access(self, account_id: str, expires_delta: timedelta | None = None) -> str:
        """Create an access token.

        Args:
            account_id: The account the token authenticates.
            expires_delta: Custom lifetime. Defaults to the configured access TTL.

        Returns:
            Encoded JWT access token.
        """
        return self._encode(account_id, TokenClass.ACCESS, expires_delta or self.access_token_ttl)

    def issue_refresh(self, account_id: str, expires_delta: timedelta | None = None) -> str:
        """Create a refresh token.

        Args:
            account_id: The account the token authenticates.
            expires_delta: Custom lifetime. Defaults to the configured refresh TTL.

        Returns:
            Encoded JWT refresh token.
        """
        return self._encode(account_id, TokenClass.REFRESH, expires_delta or self.refresh_token_ttl)

    def issue_pair(self, account_id: str) -> TokenPair:
        """Create a fresh access and refresh token for an account."""
        return TokenPair(
            access_token=self.issue_access(account_id),
            refresh_token=self.issue_refresh(account_id),
            expires_in=self.get_expires_in(),
        )

    def decode_token(self, token: str) -> dict[str, Any]:
        """Verify the signature and standard claims of a token.

        Args:
            token: The encoded JWT token.

        Returns:
            Decoded token payload.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidSignatureError: If the signature check fails.
            MalformedTokenError: If the token cannot be parsed or lacks claims.
        """
        try:
            header = jwt.get_unverified_header(token)
            key = self.key_ring.resolve(header.get("kid"))
            return jwt.decode(
                token,
                key,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
                options={"require": self.REQUIRED_CLAIMS},
            )
        except UnknownSigningKeyError as e:
            raise InvalidSignatureError("Unknown signing key") from e
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidSignatureError("Signature verification failed") from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError("Malformed token") from e

    def validate(self, token: str, expected_class: TokenClass) -> TokenClaims:
        """Validate a token and check that it is of the expected class.

        Args:
            token: The encoded JWT token.
            expected_class: Access or refresh.

        Returns:
            The validated claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidSignatureError: If the signature check fails.
            WrongTokenClassError: If the token is of the other class.
            MalformedTokenError: If the token cannot be parsed.
        """
        payload = self.decode_token(token)
        try:
            token_class = TokenClass(payload["type"])
        except ValueError as e:
            raise MalformedTokenError("Unknown token type") from e
        if token_class is not expected_class:
            raise WrongTokenClassError(f"Not an {expected_class.value} token")
        return TokenClaims(
            account_id=payload["sub"],
            token_class=token_class,
            token_id=payload["jti"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def get_expires_in(self, expires_delta: timedelta | None = None) -> int:
        """Get the access token lifetime in seconds."""
        return int((expires_delta or self.access_token_ttl).total_seconds())
