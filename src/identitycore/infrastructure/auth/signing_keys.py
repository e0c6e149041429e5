"""Versioned signing keys for session tokens.

The key ring holds one current key, used to sign new tokens, and any number
of retired keys that are still accepted when verifying. Each key is named by
a key id (``kid``) stamped into the token header, so rotating the secret is a
matter of adding a new current key and moving the old one to the retired set.
"""

from dataclasses import dataclass, field


class UnknownSigningKeyError(KeyError):
    """Raised when a token names a key id the ring does not hold."""


@dataclass(frozen=True)
class SigningKeyRing:
    """Current signing key plus retired verification keys."""

    current_kid: str
    current_key: str
    retired: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.current_key:
            raise ValueError("Signing key must not be empty")
        if self.current_kid in self.retired:
            raise ValueError(f"Key id {self.current_kid!r} is both current and retired")

    def resolve(self, kid: str | None) -> str:
        """Return the key for a key id.

        Tokens without a ``kid`` header are verified against the current key.

        Raises:
            UnknownSigningKeyError: If the key id is not in the ring.
        """
        if kid is None or kid == self.current_kid:
            return self.current_key
        try:
            return self.retired[kid]
        except KeyError:
            raise UnknownSigningKeyError(kid) from None

    def rotate(self, new_kid: str, new_key: str) -> "SigningKeyRing":
        """Return a ring signing with a new key and still verifying the current one."""
        retired = dict(self.retired)
        retired[self.current_kid] = self.current_key
        return SigningKeyRing(current_kid=new_kid, current_key=new_key, retired=retired)

    @classmethod
    def from_settings(cls, settings) -> "SigningKeyRing":
        return cls(
            current_kid=settings.secret_key_id,
            current_key=settings.secret_key,
            retired=dict(settings.previous_secret_keys),
        )
