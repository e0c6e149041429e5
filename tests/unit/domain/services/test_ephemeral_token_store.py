"""Unit tests for the ephemeral token store."""

import pytest

from identitycore.domain.entities.account import AccountStatus
from identitycore.domain.exceptions import (
    AccountNotFoundError,
    InvalidOrExpiredResetTokenError,
    InvalidVerificationTokenError,
)
from identitycore.domain.services.ephemeral_token_store import (
    EphemeralTokenStore,
    digest_token,
    generate_token,
)


def test_generate_token_is_random_hex():
    first, second = generate_token(), generate_token()

    assert len(first) == 64
    int(first, 16)
    assert first != second


def test_digest_token_is_stable_sha256():
    assert digest_token("abc") == digest_token("abc")
    assert len(digest_token("abc")) == 64
    assert digest_token("abc") != "abc"


class TestVerificationTokens:
    @pytest.mark.asyncio
    async def test_issue_stores_digest_not_raw_token(self, token_store, make_account, repository):
        account = await make_account()

        token = await token_store.issue_verification(account.id)
        stored = await repository.find_by_id(account.id)

        assert stored.email_verification_token == digest_token(token)
        assert stored.email_verification_token != token
        assert stored.email_verification_expires_at is None

    @pytest.mark.asyncio
    async def test_issue_for_missing_account(self, token_store):
        with pytest.raises(AccountNotFoundError):
            await token_store.issue_verification("missing")

    @pytest.mark.asyncio
    async def test_consume_marks_verified_and_clears(self, token_store, make_account, repository):
        account = await make_account()
        token = await token_store.issue_verification(account.id)

        assert await token_store.consume_verification(token) == account.id

        stored = await repository.find_by_id(account.id)
        assert stored.email_verified is True
        assert stored.email_verification_token is None

    @pytest.mark.asyncio
    async def test_consume_twice_fails(self, token_store, make_account):
        account = await make_account()
        token = await token_store.issue_verification(account.id)
        await token_store.consume_verification(token)

        with pytest.raises(InvalidVerificationTokenError):
            await token_store.consume_verification(token)

    @pytest.mark.asyncio
    async def test_consume_unknown_token(self, token_store):
        with pytest.raises(InvalidVerificationTokenError):
            await token_store.consume_verification(generate_token())

    @pytest.mark.asyncio
    async def test_reissue_invalidates_previous_token(self, token_store, make_account):
        account = await make_account()
        first = await token_store.issue_verification(account.id)
        second = await token_store.issue_verification(account.id)

        with pytest.raises(InvalidVerificationTokenError):
            await token_store.consume_verification(first)
        assert await token_store.consume_verification(second) == account.id

    @pytest.mark.asyncio
    async def test_optional_ttl_expires_token(self, repository, make_account, clock):
        from datetime import timedelta

        store = EphemeralTokenStore(
            repository, verification_token_ttl=timedelta(hours=24), clock=clock
        )
        account = await make_account()
        token = await store.issue_verification(account.id)

        clock.advance(hours=24, seconds=1)

        with pytest.raises(InvalidVerificationTokenError):
            await store.consume_verification(token)


class TestResetTokens:
    @pytest.mark.asyncio
    async def test_issue_sets_expiry(self, token_store, make_account, repository, clock):
        account = await make_account()

        token, expires_at = await token_store.issue_reset(account.id)
        stored = await repository.find_by_id(account.id)

        assert expires_at == clock.now + token_store.reset_token_ttl
        assert stored.password_reset_token == digest_token(token)
        assert stored.password_reset_expires_at == expires_at

    @pytest.mark.asyncio
    async def test_valid_until_expiry(self, token_store, make_account, clock):
        account = await make_account()
        token, _ = await token_store.issue_reset(account.id)

        clock.advance(minutes=9, seconds=59)
        assert await token_store.is_reset_token_valid(token) is True

        clock.advance(seconds=2)
        assert await token_store.is_reset_token_valid(token) is False

    @pytest.mark.asyncio
    async def test_consume_replaces_hash_and_clears(self, token_store, make_account, repository):
        account = await make_account()
        token, _ = await token_store.issue_reset(account.id)

        assert await token_store.consume_reset(token, "new-hash") == account.id

        stored = await repository.find_by_id(account.id)
        assert stored.password_hash == "new-hash"
        assert stored.password_reset_token is None
        assert stored.password_reset_expires_at is None

    @pytest.mark.asyncio
    async def test_consume_twice_fails(self, token_store, make_account):
        account = await make_account()
        token, _ = await token_store.issue_reset(account.id)
        await token_store.consume_reset(token, "first-hash")

        with pytest.raises(InvalidOrExpiredResetTokenError):
            await token_store.consume_reset(token, "second-hash")

    @pytest.mark.asyncio
    async def test_consume_after_expiry_fails(self, token_store, make_account, repository, clock):
        account = await make_account()
        token, _ = await token_store.issue_reset(account.id)
        clock.advance(minutes=10, seconds=1)

        with pytest.raises(InvalidOrExpiredResetTokenError):
            await token_store.consume_reset(token, "new-hash")

        stored = await repository.find_by_id(account.id)
        assert stored.password_hash == account.password_hash

    @pytest.mark.asyncio
    async def test_consume_for_deactivated_account_fails(self, token_store, make_account, repository):
        account = await make_account()
        token, _ = await token_store.issue_reset(account.id)
        await repository.update(account.id, status=AccountStatus.DEACTIVATED)

        with pytest.raises(InvalidOrExpiredResetTokenError):
            await token_store.consume_reset(token, "new-hash")

    @pytest.mark.asyncio
    async def test_clear_reset(self, token_store, make_account):
        account = await make_account()
        token, _ = await token_store.issue_reset(account.id)

        await token_store.clear_reset(account.id)

        assert await token_store.is_reset_token_valid(token) is False
