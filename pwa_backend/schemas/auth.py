"""Authentication schemas."""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from pwa_backend.schemas.base import CamelModel


class UserRegister(CamelModel):
    """User registration request."""

    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value


class UserLogin(CamelModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class ProfileUpdate(CamelModel):
    """Profile update request."""

    username: str | None = Field(None, min_length=3, max_length=30)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value


class PasswordChange(CamelModel):
    """Password rotation request."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)


class UserSummary(CamelModel):
    """Public user fields."""

    id: int
    username: str
    email: str
    role: str


class UserProfile(UserSummary):
    """Current user record, without password hash or subscriptions."""

    is_active: bool
    created_at: datetime
    updated_at: datetime


class AuthResponse(CamelModel):
    """Authentication response with token and user info."""

    success: bool = True
    message: str
    token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserSummary


class ProfileResponse(CamelModel):
    """Current user wrapper."""

    success: bool = True
    user: UserProfile


class UserUpdateResponse(CamelModel):
    """Result of a profile update."""

    success: bool = True
    message: str
    user: UserSummary


class UserListResponse(CamelModel):
    """Active users."""

    success: bool = True
    users: list[UserSummary]
