"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from identitycore.domain.entities.account import Account
from identitycore.domain.entities.session import TokenPair


class RegisterRequest(BaseModel):
    """Request body for account registration."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, max_length=255, description="User's password")
    first_name: str = Field(..., min_length=1, max_length=50, description="First name")
    last_name: str = Field(..., min_length=1, max_length=50, description="Last name")


class LoginRequest(BaseModel):
    """Request body for login."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")


class RefreshRequest(BaseModel):
    """Request body for token refresh."""

    refresh_token: str = Field(..., min_length=1, description="JWT refresh token")


class VerifyEmailRequest(BaseModel):
    """Request body for email verification."""

    token: str = Field(..., min_length=1, description="Verification token from the email")


class ForgotPasswordRequest(BaseModel):
    """Request body for starting a password reset."""

    email: EmailStr = Field(..., description="User's email address")


class ResetPasswordRequest(BaseModel):
    """Request body for completing a password reset."""

    token: str = Field(..., min_length=1, description="Reset token from the email")
    password: str = Field(..., min_length=1, max_length=255, description="New password")


class ChangePasswordRequest(BaseModel):
    """Request body for changing the password of the signed-in user."""

    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, max_length=255, description="New password")


class UserResponse(BaseModel):
    """User information in responses. Never includes secrets or token state."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="User's email address")
    first_name: str
    last_name: str
    role: str = Field(..., description="User's role")
    is_active: bool = Field(..., description="Whether the user is active")
    email_verified: bool
    login_count: int
    last_login_at: datetime | None = None
    created_at: datetime = Field(..., description="When the user was created")

    @classmethod
    def from_account(cls, account: Account) -> "UserResponse":
        return cls(
            id=account.id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            role=account.role.value,
            is_active=account.is_active,
            email_verified=account.email_verified,
            login_count=account.login_count,
            last_login_at=account.last_login_at,
            created_at=account.created_at,
        )


class TokenResponse(BaseModel):
    """Access and refresh token pair."""

    token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field("bearer", description="Authorization scheme")
    expires_in: int = Field(..., description="Access token expiration time in seconds")

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenResponse":
        return cls(
            token=pair.access_token,
            refresh_token=pair.refresh_token,
            token_type=pair.token_type,
            expires_in=pair.expires_in,
        )


class AuthResponse(TokenResponse):
    """Response for successful authentication (login/register)."""

    user: UserResponse = Field(..., description="User information")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ValidationErrorDetail(BaseModel):
    """Detail for a single validation error."""

    field: str = Field(..., description="Field name that failed validation")
    message: str = Field(..., description="Human-readable error message")
    code: str | None = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ValidationErrorDetail] | None = None
