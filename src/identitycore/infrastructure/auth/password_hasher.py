"""Password hashing utility using Argon2.

Provides secure password hashing and verification using the Argon2id
algorithm with a configurable work factor. Argon2 hashes the full input, so
there is no 72-byte truncation as with bcrypt.
"""

from functools import cached_property, lru_cache

from argon2 import PasswordHasher as Argon2PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from identitycore.core.config import get_settings

DUMMY_PASSWORD = "dummy_password_for_timing_safety"


class PasswordHasher:
    """Salted, adaptive one-way hashing of account passwords.

    Args:
        time_cost: Number of Argon2 iterations.
        memory_cost: Memory usage in KiB.
        parallelism: Number of parallel lanes.
    """

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4) -> None:
        self._hasher = Argon2PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash(self, password: str) -> str:
        """Hash a password using Argon2id.

        Args:
            password: The plaintext password to hash.

        Returns:
            The encoded hash, including algorithm parameters and salt.

        Example:
            >>> hasher = PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1)
            >>> hasher.hash("SecureP@ss123!").startswith("$argon2id$")
            True
        """
        return self._hasher.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        """Verify a password against a hash.

        Never raises: a mismatch, a malformed hash or a hash produced by
        another algorithm all return False.

        Args:
            password: The plaintext password to verify.
            hashed: The hashed password to verify against.

        Returns:
            True if the password matches, False otherwise.
        """
        try:
            return self._hasher.verify(hashed, password)
        except (VerificationError, InvalidHashError, UnicodeEncodeError):
            return False

    def needs_rehash(self, hashed: str) -> bool:
        """Check whether a hash was produced with outdated parameters.

        Malformed hashes count as needing a rehash.
        """
        try:
            return self._hasher.check_needs_rehash(hashed)
        except (InvalidHashError, UnicodeEncodeError):
            return True

    @cached_property
    def dummy_hash(self) -> str:
        """Hash to verify against when no account exists, so timing matches a real check."""
        return self.hash(DUMMY_PASSWORD)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Return the process-wide hasher built from settings."""
    settings = get_settings()
    return PasswordHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_cost,
        parallelism=settings.password_hash_parallelism,
    )


def hash_password(password: str) -> str:
    """Hash a password with the configured hasher."""
    return get_password_hasher().hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password with the configured hasher."""
    return get_password_hasher().verify(password, hashed)


def needs_rehash(hashed: str) -> bool:
    """Check a hash against the configured parameters."""
    return get_password_hasher().needs_rehash(hashed)
