"""Password policy checks.

The default policy only bounds the length (6 to 255 characters). Character
class requirements are opt-in, and every failing rule is reported at once so
a form can show them together.
"""

import re
from typing import NamedTuple

from identitycore.domain.exceptions import FieldError

PASSWORD_MAX_LENGTH = 255


class _ClassRule(NamedTuple):
    pattern: re.Pattern
    code: str
    description: str


_CLASS_RULES = {
    "uppercase": _ClassRule(re.compile(r"[A-Z]"), "password_no_uppercase", "an uppercase letter"),
    "lowercase": _ClassRule(re.compile(r"[a-z]"), "password_no_lowercase", "a lowercase letter"),
    "digit": _ClassRule(re.compile(r"\d"), "password_no_digit", "a digit"),
    "special": _ClassRule(re.compile(r"[^A-Za-z0-9\s]"), "password_no_special", "a special character"),
}


class PasswordValidator:
    """Checks a candidate password against a configurable policy."""

    def __init__(
        self,
        min_length: int = 6,
        require_uppercase: bool = False,
        require_lowercase: bool = False,
        require_digit: bool = False,
        require_special: bool = False,
    ) -> None:
        self.min_length = min_length
        self.required_classes = [
            name
            for name, required in (
                ("uppercase", require_uppercase),
                ("lowercase", require_lowercase),
                ("digit", require_digit),
                ("special", require_special),
            )
            if required
        ]

    def validate(self, password: str, field: str = "password") -> list[FieldError]:
        """Return every policy violation, or an empty list.

        Args:
            password: Candidate password.
            field: Field name reported in the errors (``new_password`` for a change).
        """
        errors: list[FieldError] = []
        if len(password) < self.min_length:
            errors.append(
                FieldError(
                    field, f"Password must be at least {self.min_length} characters", "password_too_short"
                )
            )
        elif len(password) > PASSWORD_MAX_LENGTH:
            errors.append(
                FieldError(
                    field, f"Password cannot exceed {PASSWORD_MAX_LENGTH} characters", "password_too_long"
                )
            )

        try:
            password.encode("utf-8")
        except UnicodeEncodeError:
            errors.append(
                FieldError(field, "Password contains invalid characters", "password_invalid_characters")
            )

        for name in self.required_classes:
            rule = _CLASS_RULES[name]
            if not rule.pattern.search(password):
                errors.append(
                    FieldError(field, f"Password must contain {rule.description}", rule.code)
                )
        return errors

    def is_valid(self, password: str) -> bool:
        return not self.validate(password)
