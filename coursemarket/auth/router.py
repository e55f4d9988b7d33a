"""Authentication API endpoints.

Provides routes for:
- User registration and login
- Current user profile
"""

from fastapi import APIRouter, status

from coursemarket.auth.dependencies import AuthServiceDep, CurrentUser
from coursemarket.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)


router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={
        400: {"description": "Email already registered"},
        422: {"description": "Validation error"},
    },
)
async def register(
    data: RegisterRequest,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Register a new user account with role=user."""
    user = await auth_service.register(data)
    return UserResponse.from_user(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="User login",
    responses={401: {"description": "Invalid credentials"}},
)
async def login(
    data: LoginRequest,
    auth_service: AuthServiceDep,
) -> TokenResponse:
    """Authenticate user and return an access token."""
    user = await auth_service.authenticate(data.email, data.password)
    return TokenResponse(access_token=auth_service.issue_token(user))


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user profile",
)
async def get_me(
    current_user: CurrentUser,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Return the caller's stored profile, including subscriptions."""
    user = await auth_service.get_user(current_user.id)
    return UserResponse.from_user(user)
