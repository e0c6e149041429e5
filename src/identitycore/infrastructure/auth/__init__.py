"""Authentication infrastructure components.

This module provides password hashing, signing keys and the JWT token service.
"""

from identitycore.infrastructure.auth.jwt_service import (
    InvalidSignatureError,
    InvalidTokenError,
    JWTError,
    JWTService,
    MalformedTokenError,
    TokenExpiredError,
    WrongTokenClassError,
)
from identitycore.infrastructure.auth.password_hasher import (
    PasswordHasher,
    get_password_hasher,
    hash_password,
    needs_rehash,
    verify_password,
)
from identitycore.infrastructure.auth.signing_keys import (
    SigningKeyRing,
    UnknownSigningKeyError,
)

__all__ = [
    "InvalidSignatureError",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "MalformedTokenError",
    "PasswordHasher",
    "SigningKeyRing",
    "TokenExpiredError",
    "UnknownSigningKeyError",
    "WrongTokenClassError",
    "get_password_hasher",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
