"""API Schemas for request/response validation."""

from identitycore.infrastructure.api.schemas.auth_schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
    ValidationErrorDetail,
    VerifyEmailRequest,
)
from identitycore.infrastructure.api.schemas.users_schemas import (
    PaginationResponse,
    UpdateRoleRequest,
    UpdateStatusRequest,
    UserListResponse,
    UserStatsResponse,
)

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "MessageResponse",
    "PaginationResponse",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "UpdateRoleRequest",
    "UpdateStatusRequest",
    "UserListResponse",
    "UserResponse",
    "UserStatsResponse",
    "ValidationErrorDetail",
    "VerifyEmailRequest",
]
