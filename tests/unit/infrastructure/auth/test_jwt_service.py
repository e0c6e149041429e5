"""Unit tests for the JWT service."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from identitycore.domain.entities.session import TokenClass
from identitycore.infrastructure.auth import (
    InvalidSignatureError,
    JWTService,
    MalformedTokenError,
    SigningKeyRing,
    TokenExpiredError,
    WrongTokenClassError,
)

ACCOUNT_ID = "2d1e8f9a-0000-4000-8000-000000000001"


def decode_unverified(token: str) -> dict:
    return jwt.decode(token, options={"verify_signature": False})


class TestIssue:
    def test_access_token_claims(self, jwt_service):
        token = jwt_service.issue_access(ACCOUNT_ID)
        claims = decode_unverified(token)

        assert claims["sub"] == ACCOUNT_ID
        assert claims["type"] == "access"
        assert claims["iss"] == "identitycore"
        assert {"exp", "iat", "jti"} <= claims.keys()

    def test_refresh_token_claims(self, jwt_service):
        claims = decode_unverified(jwt_service.issue_refresh(ACCOUNT_ID))

        assert claims["type"] == "refresh"
        assert claims["sub"] == ACCOUNT_ID

    def test_header_carries_key_id(self, jwt_service):
        header = jwt.get_unverified_header(jwt_service.issue_access(ACCOUNT_ID))

        assert header["kid"] == "test-v1"
        assert header["alg"] == "HS256"

    def test_access_token_expiration(self, jwt_service):
        start = datetime.now(timezone.utc)
        claims = decode_unverified(jwt_service.issue_access(ACCOUNT_ID))
        expires = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)

        assert start + timedelta(minutes=15) - timedelta(seconds=2) <= expires
        assert expires <= start + timedelta(minutes=15) + timedelta(seconds=2)

    def test_each_token_has_unique_id(self, jwt_service):
        first = decode_unverified(jwt_service.issue_refresh(ACCOUNT_ID))
        second = decode_unverified(jwt_service.issue_refresh(ACCOUNT_ID))

        assert first["jti"] != second["jti"]

    def test_issue_pair(self, jwt_service):
        pair = jwt_service.issue_pair(ACCOUNT_ID)

        assert pair.token_type == "bearer"
        assert pair.expires_in == 15 * 60
        assert jwt_service.validate(pair.access_token, TokenClass.ACCESS).account_id == ACCOUNT_ID
        assert jwt_service.validate(pair.refresh_token, TokenClass.REFRESH).account_id == ACCOUNT_ID


class TestValidate:
    def test_valid_access_token(self, jwt_service):
        claims = jwt_service.validate(jwt_service.issue_access(ACCOUNT_ID), TokenClass.ACCESS)

        assert claims.account_id == ACCOUNT_ID
        assert claims.token_class is TokenClass.ACCESS
        assert claims.expires_at > claims.issued_at

    def test_expired_token(self, jwt_service):
        token = jwt_service.issue_access(ACCOUNT_ID, expires_delta=timedelta(seconds=-1))

        with pytest.raises(TokenExpiredError):
            jwt_service.validate(token, TokenClass.ACCESS)

    def test_refresh_token_rejected_as_access(self, jwt_service):
        with pytest.raises(WrongTokenClassError):
            jwt_service.validate(jwt_service.issue_refresh(ACCOUNT_ID), TokenClass.ACCESS)

    def test_access_token_rejected_as_refresh(self, jwt_service):
        with pytest.raises(WrongTokenClassError):
            jwt_service.validate(jwt_service.issue_access(ACCOUNT_ID), TokenClass.REFRESH)

    def test_tampered_signature(self, jwt_service):
        token = jwt_service.issue_access(ACCOUNT_ID)
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

        with pytest.raises(InvalidSignatureError):
            jwt_service.validate(f"{header}.{payload}.{flipped}", TokenClass.ACCESS)

    def test_token_signed_with_other_key(self, jwt_service):
        token = jwt.encode(
            {
                "iss": "identitycore",
                "sub": ACCOUNT_ID,
                "iat": datetime.now(timezone.utc),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
                "jti": "x",
                "type": "access",
            },
            "another-signing-key-that-is-long-enough!",
            algorithm="HS256",
            headers={"kid": "test-v1"},
        )

        with pytest.raises(InvalidSignatureError):
            jwt_service.validate(token, TokenClass.ACCESS)

    def test_signature_checked_before_expiry(self, jwt_service):
        """An expired token with a bad signature reports the signature failure."""
        other = JWTService(
            key_ring=SigningKeyRing(current_kid="test-v1", current_key="x" * 40),
            access_token_ttl=timedelta(minutes=15),
            refresh_token_ttl=timedelta(days=1),
        )
        token = other.issue_access(ACCOUNT_ID, expires_delta=timedelta(seconds=-10))

        with pytest.raises(InvalidSignatureError):
            jwt_service.validate(token, TokenClass.ACCESS)

    @pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c", "eyJhbGciOiJIUzI1NiJ9.e30"])
    def test_malformed_token(self, jwt_service, token):
        with pytest.raises(MalformedTokenError):
            jwt_service.validate(token, TokenClass.ACCESS)

    def test_missing_type_claim_is_malformed(self, jwt_service, key_ring):
        token = jwt.encode(
            {
                "iss": "identitycore",
                "sub": ACCOUNT_ID,
                "iat": datetime.now(timezone.utc),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
                "jti": "x",
            },
            key_ring.current_key,
            algorithm="HS256",
        )

        with pytest.raises(MalformedTokenError):
            jwt_service.validate(token, TokenClass.ACCESS)

    def test_unknown_type_claim_is_malformed(self, jwt_service, key_ring):
        token = jwt.encode(
            {
                "iss": "identitycore",
                "sub": ACCOUNT_ID,
                "iat": datetime.now(timezone.utc),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
                "jti": "x",
                "type": "api_key",
            },
            key_ring.current_key,
            algorithm="HS256",
        )

        with pytest.raises(MalformedTokenError):
            jwt_service.validate(token, TokenClass.ACCESS)


class TestKeyRotation:
    def test_token_from_retired_key_still_validates(self, jwt_service, key_ring):
        old_token = jwt_service.issue_refresh(ACCOUNT_ID)
        rotated = JWTService(
            key_ring=key_ring.rotate("test-v2", "second-signing-key-0123456789abcdef"),
            access_token_ttl=timedelta(minutes=15),
            refresh_token_ttl=timedelta(days=30),
        )

        assert rotated.validate(old_token, TokenClass.REFRESH).account_id == ACCOUNT_ID
        assert jwt.get_unverified_header(rotated.issue_access(ACCOUNT_ID))["kid"] == "test-v2"

    def test_token_with_unknown_key_id_rejected(self, jwt_service):
        other = JWTService(
            key_ring=SigningKeyRing(current_kid="ghost", current_key="ghost-key-0123456789abcdefghijkl"),
            access_token_ttl=timedelta(minutes=15),
            refresh_token_ttl=timedelta(days=1),
        )

        with pytest.raises(InvalidSignatureError):
            jwt_service.validate(other.issue_access(ACCOUNT_ID), TokenClass.ACCESS)
