"""Unit tests for password and account input validation."""

import pytest

from identitycore.domain.services.account_validator import (
    NAME_MAX_LENGTH,
    validate_email_address,
    validate_name,
)
from identitycore.domain.services.password_validator import PasswordValidator


class TestPasswordValidator:
    def test_default_policy_accepts_six_characters(self):
        assert PasswordValidator().validate("abcdef") == []

    def test_too_short(self):
        errors = PasswordValidator().validate("abc")

        assert [e.code for e in errors] == ["password_too_short"]
        assert errors[0].field == "password"

    def test_too_long(self):
        errors = PasswordValidator().validate("a" * 256)

        assert [e.code for e in errors] == ["password_too_long"]

    def test_lone_surrogate_rejected(self):
        errors = PasswordValidator().validate("abc\ud800def")

        assert [e.code for e in errors] == ["password_invalid_characters"]

    def test_non_ascii_password_accepted(self):
        assert PasswordValidator().validate("pässwörd") == []

    def test_custom_field_name(self):
        errors = PasswordValidator().validate("abc", field="new_password")

        assert errors[0].field == "new_password"

    def test_strict_policy_reports_every_missing_class(self):
        validator = PasswordValidator(
            min_length=12,
            require_uppercase=True,
            require_lowercase=True,
            require_digit=True,
            require_special=True,
        )

        codes = {e.code for e in validator.validate("short")}

        assert codes == {
            "password_too_short",
            "password_no_uppercase",
            "password_no_digit",
            "password_no_special",
        }
        assert validator.is_valid("Str0ng!Passw0rd") is True


class TestEmailValidation:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("alice@example.com", "alice@example.com"),
            ("  Alice@Example.COM ", "alice@example.com"),
        ],
    )
    def test_normalizes(self, raw, expected):
        normalized, errors = validate_email_address(raw)

        assert errors == []
        assert normalized == expected

    @pytest.mark.parametrize("raw", ["", "not-an-email", "a@", "@example.com", "a b@example.com"])
    def test_rejects_malformed(self, raw):
        normalized, errors = validate_email_address(raw)

        assert normalized is None
        assert errors[0].field == "email"
        assert errors[0].code == "invalid_email"


class TestNameValidation:
    def test_trims(self):
        assert validate_name("  Ada ", "first_name", "First name") == ("Ada", [])

    def test_required(self):
        _, errors = validate_name("   ", "first_name", "First name")

        assert errors[0].code == "required"
        assert errors[0].message == "First name is required"

    def test_too_long(self):
        _, errors = validate_name("x" * (NAME_MAX_LENGTH + 1), "last_name", "Last name")

        assert errors[0].code == "too_long"
        assert errors[0].field == "last_name"
