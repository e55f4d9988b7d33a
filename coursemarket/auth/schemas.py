"""Pydantic schemas for authentication and user profiles."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from coursemarket.auth.models import User
from coursemarket.auth.permissions import UserRole


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=2, max_length=100, description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


# ==============================================================================
# Response Schemas
# ==============================================================================


class TokenResponse(BaseModel):
    """Access token returned on login."""

    access_token: str
    token_type: str = "bearer"


class CurrentUserClaims(BaseModel):
    """Identity carried by a validated access token."""

    id: UUID
    email: str
    role: UserRole
    main_role: str | None = None


class UserResponse(BaseModel):
    """Public user profile (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: UserRole
    main_role: str | None = None
    subscription: list[UUID] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Create response from User entity."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=UserRole(user.role),
            main_role=user.main_role,
            subscription=sorted(user.subscription, key=str),
            created_at=user.created_at,
        )


class UserListResponse(BaseModel):
    """List of users (admin view)."""

    users: list[UserResponse]


class RoleUpdateResponse(BaseModel):
    """Result of a role toggle."""

    message: str
    role: UserRole
