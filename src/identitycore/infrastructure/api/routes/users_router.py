"""User administration API routes.

Self-service account deactivation, plus admin-only listing, lookups,
statistics and role and status changes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from identitycore.domain.entities.account import AccountRole, AccountStatus
from identitycore.domain.services import AccountAdminService
from identitycore.domain.services.account_admin_service import LIST_MAX_LIMIT
from identitycore.infrastructure.api.dependencies import (
    AdminAccount,
    CurrentAccount,
    get_admin_service,
)
from identitycore.infrastructure.api.schemas import (
    ErrorResponse,
    MessageResponse,
    UpdateRoleRequest,
    UpdateStatusRequest,
    UserListResponse,
    UserResponse,
    UserStatsResponse,
)

router = APIRouter()

AdminService = Annotated[AccountAdminService, Depends(get_admin_service)]


@router.delete("/account", response_model=MessageResponse)
async def delete_account(current: CurrentAccount, service: AdminService) -> MessageResponse:
    """Deactivate the caller's own account."""
    await service.deactivate_self(current.account_id)
    return MessageResponse(message="Account deactivated successfully")


@router.get("", response_model=UserListResponse)
async def list_users(
    admin: AdminAccount,
    service: AdminService,
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=LIST_MAX_LIMIT, description="Users per page"),
    role: AccountRole | None = Query(None, description="Filter by role"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    search: str | None = Query(None, description="Search first name, last name and email"),
) -> UserListResponse:
    """List users newest first (admin only)."""
    status = None
    if is_active is not None:
        status = AccountStatus.ACTIVE if is_active else AccountStatus.DEACTIVATED
    account_page = await service.list_accounts(
        page=page, limit=limit, role=role, status=status, search=search
    )
    return UserListResponse.from_page(account_page)


@router.get("/stats", response_model=UserStatsResponse)
async def user_stats(admin: AdminAccount, service: AdminService) -> UserStatsResponse:
    return UserStatsResponse(**await service.statistics())


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def get_user(user_id: str, admin: AdminAccount, service: AdminService) -> UserResponse:
    return UserResponse.from_account(await service.get_account(user_id))


@router.put(
    "/{user_id}/role",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def update_role(
    user_id: str, request: UpdateRoleRequest, admin: AdminAccount, service: AdminService
) -> UserResponse:
    return UserResponse.from_account(await service.change_role(user_id, request.role))


@router.put(
    "/{user_id}/status",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def update_status(
    user_id: str, request: UpdateStatusRequest, admin: AdminAccount, service: AdminService
) -> UserResponse:
    return UserResponse.from_account(await service.change_status(user_id, request.status))
