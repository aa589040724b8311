"""
Account endpoints: sign up, sign in, token refresh and the caller's profile.
"""

from fastapi import APIRouter, Depends, status

from marketplace.config import Settings, get_settings
from marketplace.models.user import User
from marketplace.schemas.auth import (
    AccessTokenResponse,
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegisterRequest,
)
from marketplace.services.auth import AuthService
from marketplace.services.error_handler import error_responses
from marketplace.utils.dependencies import get_auth_service, get_current_active_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _session_response(user: User, tokens, settings: Settings) -> LoginResponse:
    access, refresh = tokens
    return LoginResponse(
        user=CurrentUserResponse.model_validate(user.to_dict()),
        access_token=access,
        refresh_token=refresh,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register account",
    description="Create a seller or buyer account. The new account is signed in straight away.",
    responses=error_responses(409, 422)
)
async def register(
    register_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
) -> LoginResponse:
    """
    Raises:
        DuplicateResourceError: If the email is already registered
        ValidationError: If the email or password is rejected
    """
    user = await auth_service.register(register_data)
    return _session_response(user, auth_service.create_tokens(user), settings)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Sign in",
    description="Exchange an email and password for an access and refresh token pair",
    responses=error_responses(401, 403, 422)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
) -> LoginResponse:
    """
    Raises:
        InvalidCredentialsError: If the email is unknown or the password is wrong
        InactiveUserError: If the account has been deactivated
    """
    user, *tokens = await auth_service.login(email=login_data.email, password=login_data.password)
    return _session_response(user, tokens, settings)


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    summary="Refresh access token",
    description="Trade a refresh token for a fresh access token",
    responses=error_responses(401, 403)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
) -> AccessTokenResponse:
    return AccessTokenResponse(
        access_token=await auth_service.refresh_access_token(refresh_data.refresh_token),
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Current account",
    description="Profile and role of the account the bearer token belongs to",
    responses=error_responses(401, 403)
)
async def read_me(current_user: User = Depends(get_current_active_user)) -> CurrentUserResponse:
    return CurrentUserResponse.model_validate(current_user.to_dict())
