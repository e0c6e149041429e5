"""Pydantic schemas for user administration endpoints."""

from pydantic import BaseModel, Field

from identitycore.domain.entities.account import AccountRole, AccountStatus
from identitycore.domain.services.account_admin_service import AccountPage
from identitycore.infrastructure.api.schemas.auth_schemas import UserResponse


class UpdateRoleRequest(BaseModel):
    """Request body for changing a user's role."""

    role: AccountRole = Field(..., description="New role")


class UpdateStatusRequest(BaseModel):
    """Request body for activating or deactivating a user."""

    status: AccountStatus = Field(..., description="New status")


class UserStatsResponse(BaseModel):
    """Account counts by status, role and verification state."""

    total_users: int
    active_users: int
    deactivated_users: int
    verified_users: int
    student_count: int
    teacher_count: int
    admin_count: int


class PaginationResponse(BaseModel):
    """Position of a page within a listing."""

    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_users: int = Field(..., ge=0, description="Users matching the filters")
    has_next: bool
    has_prev: bool


class UserListResponse(BaseModel):
    """One page of users with pagination metadata."""

    users: list[UserResponse]
    pagination: PaginationResponse

    @classmethod
    def from_page(cls, page: AccountPage) -> "UserListResponse":
        return cls(
            users=[UserResponse.from_account(account) for account in page.accounts],
            pagination=PaginationResponse(
                current_page=page.page,
                total_pages=page.total_pages,
                total_users=page.total,
                has_next=page.has_next,
                has_prev=page.has_prev,
            ),
        )
