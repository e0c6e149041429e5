"""Validation of registration and login input.

Runs before any repository call so malformed input never causes a side
effect. Errors are collected per field rather than failing on the first one.
"""

from email_validator import EmailNotValidError, validate_email

from identitycore.domain.entities.account import normalize_email
from identitycore.domain.exceptions import FieldError

NAME_MAX_LENGTH = 50


def validate_email_address(email: str, field: str = "email") -> tuple[str | None, list[FieldError]]:
    """Check an email address and return its normalized form.

    Deliverability (DNS) is not checked.

    Returns:
        Tuple of (normalized email or None, errors).
    """
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return None, [
            FieldError(field=field, message="Please provide a valid email", code="invalid_email")
        ]
    return normalize_email(result.normalized), []


def validate_name(value: str, field: str, label: str) -> tuple[str, list[FieldError]]:
    """Trim a name field and check its length."""
    cleaned = value.strip()
    if not cleaned:
        return cleaned, [FieldError(field=field, message=f"{label} is required", code="required")]
    if len(cleaned) > NAME_MAX_LENGTH:
        return cleaned, [
            FieldError(
                field=field,
                message=f"{label} cannot exceed {NAME_MAX_LENGTH} characters",
                code="too_long",
            )
        ]
    return cleaned, []
