"""Unit tests for the authorization guard."""

from datetime import timedelta

import pytest

from identitycore.domain.entities.account import AccountRole, AccountStatus
from identitycore.domain.entities.session import AccountContext
from identitycore.domain.exceptions import (
    AccountInactiveError,
    ForbiddenError,
    InvalidSessionTokenError,
    SessionExpiredError,
)
from identitycore.domain.services import AuthorizationGuard


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_access_token(self, guard, jwt_service, make_account):
        account = await make_account(role=AccountRole.TEACHER)

        context = await guard.authenticate(jwt_service.issue_access(account.id))

        assert context == AccountContext(account.id, account.email, AccountRole.TEACHER)

    @pytest.mark.asyncio
    async def test_missing_token(self, guard):
        with pytest.raises(InvalidSessionTokenError):
            await guard.authenticate(None)

    @pytest.mark.asyncio
    async def test_expired_token(self, guard, jwt_service, make_account):
        account = await make_account()
        token = jwt_service.issue_access(account.id, expires_delta=timedelta(seconds=-5))

        with pytest.raises(SessionExpiredError) as exc_info:
            await guard.authenticate(token)

        assert exc_info.value.message == "Token has expired"
        assert isinstance(exc_info.value, InvalidSessionTokenError)

    @pytest.mark.asyncio
    async def test_refresh_token_rejected(self, guard, jwt_service, make_account):
        account = await make_account()

        with pytest.raises(InvalidSessionTokenError):
            await guard.authenticate(jwt_service.issue_refresh(account.id))

    @pytest.mark.asyncio
    async def test_malformed_token(self, guard):
        with pytest.raises(InvalidSessionTokenError):
            await guard.authenticate("not.a.token")

    @pytest.mark.asyncio
    async def test_deactivated_account_rejected_despite_valid_signature(
        self, guard, jwt_service, make_account, repository
    ):
        account = await make_account()
        token = jwt_service.issue_access(account.id)
        await repository.update(account.id, status=AccountStatus.DEACTIVATED)

        with pytest.raises(AccountInactiveError):
            await guard.authenticate(token)

    @pytest.mark.asyncio
    async def test_missing_account_rejected(self, guard, jwt_service):
        with pytest.raises(AccountInactiveError):
            await guard.authenticate(jwt_service.issue_access("deleted-account"))


class TestRequireRole:
    def context(self, role: AccountRole) -> AccountContext:
        return AccountContext(account_id="a1", email="a@example.com", role=role)

    def test_allowed_role(self):
        context = self.context(AccountRole.ADMIN)

        assert AuthorizationGuard.require_role(context, [AccountRole.ADMIN]) is context

    def test_one_of_several(self):
        context = self.context(AccountRole.TEACHER)

        AuthorizationGuard.require_role(context, [AccountRole.TEACHER, AccountRole.ADMIN])

    def test_accepts_role_values(self):
        AuthorizationGuard.require_role(self.context(AccountRole.ADMIN), ["admin"])

    def test_forbidden(self):
        with pytest.raises(ForbiddenError) as exc_info:
            AuthorizationGuard.require_role(self.context(AccountRole.STUDENT), [AccountRole.ADMIN])

        assert exc_info.value.status_code == 403
        assert "student" in exc_info.value.message

    def test_empty_allowed_set_forbids_everyone(self):
        with pytest.raises(ForbiddenError):
            AuthorizationGuard.require_role(self.context(AccountRole.ADMIN), [])
