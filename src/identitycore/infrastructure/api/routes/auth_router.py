"""Authentication API routes.

Provides endpoints for registration, login, token refresh, email
verification, password reset and password change. Failures are raised as
``IdentityError`` subclasses and rendered by the application's exception
handler.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from identitycore.domain.services import AuthenticationService, RegistrationInput
from identitycore.infrastructure.api.dependencies import CurrentAccount, get_auth_service
from identitycore.infrastructure.api.schemas import (
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
    VerifyEmailRequest,
)

router = APIRouter()

AuthService = Annotated[AuthenticationService, Depends(get_auth_service)]


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def register(request: RegisterRequest, service: AuthService) -> AuthResponse:
    """Register a new account.

    Sends a verification email and returns tokens for immediate use.
    """
    result = await service.register(
        RegistrationInput(
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
        )
    )
    return AuthResponse(
        **TokenResponse.from_pair(result.tokens).model_dump(),
        user=UserResponse.from_account(result.account),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
async def login(request: LoginRequest, service: AuthService) -> AuthResponse:
    """Authenticate with email and password."""
    result = await service.login(request.email, request.password)
    return AuthResponse(
        **TokenResponse.from_pair(result.tokens).model_dump(),
        user=UserResponse.from_account(result.account),
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid refresh token"}},
)
async def refresh(request: RefreshRequest, service: AuthService) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    return TokenResponse.from_pair(await service.refresh(request.refresh_token))


@router.post(
    "/verify-email",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid verification token"}},
)
async def verify_email(request: VerifyEmailRequest, service: AuthService) -> MessageResponse:
    await service.verify_email(request.token)
    return MessageResponse(message="Email verified successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(request: ForgotPasswordRequest, service: AuthService) -> MessageResponse:
    """Send a password reset link if the email belongs to an active account.

    The response is the same whether or not it does.
    """
    result = await service.forgot_password(request.email)
    return MessageResponse(message=result.message)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid or expired reset token"}},
)
async def reset_password(request: ResetPasswordRequest, service: AuthService) -> MessageResponse:
    await service.reset_password(request.token, request.password)
    return MessageResponse(message="Password reset successful")


@router.get("/me", response_model=UserResponse)
async def me(current: CurrentAccount, service: AuthService) -> UserResponse:
    """Return the signed-in user."""
    return UserResponse.from_account(await service.get_account(current.account_id))


@router.post("/logout", response_model=MessageResponse)
async def logout(current: CurrentAccount) -> MessageResponse:
    """Acknowledge a logout.

    Session tokens are stateless, so the client discards them.
    """
    return MessageResponse(message="Logged out successfully")


@router.put(
    "/change-password",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Current password is incorrect"}},
)
async def change_password(
    request: ChangePasswordRequest, current: CurrentAccount, service: AuthService
) -> MessageResponse:
    await service.change_password(current.account_id, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")
