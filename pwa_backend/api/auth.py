"""Authentication API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pwa_backend.api.dependencies import get_current_user, get_user_repository
from pwa_backend.database import get_db
from pwa_backend.models.user import User
from pwa_backend.schemas.auth import (
    AuthResponse,
    PasswordChange,
    ProfileResponse,
    ProfileUpdate,
    UserListResponse,
    UserLogin,
    UserProfile,
    UserRegister,
    UserSummary,
    UserUpdateResponse,
)
from pwa_backend.schemas.base import AckResponse
from pwa_backend.services.auth import (
    authenticate_user,
    change_password,
    create_access_token,
    register_user,
    rename_user,
)
from pwa_backend.services.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user."""
    logger.info(f"Registration attempt for {user_data.username}")
    user = register_user(db, user_data.username, user_data.email, user_data.password)

    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.id),
        user=UserSummary.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password."""
    user = authenticate_user(db, credentials.email, credentials.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id),
        user=UserSummary.model_validate(user),
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return ProfileResponse(user=UserProfile.model_validate(current_user))


@router.put("/profile", response_model=UserUpdateResponse)
def update_profile(
    profile: ProfileUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Rename the current user."""
    if profile.username:
        rename_user(db, current_user, profile.username)

    return UserUpdateResponse(
        message="Profile updated successfully",
        user=UserSummary.model_validate(current_user),
    )


@router.put("/change-password", response_model=AckResponse)
def update_password(
    passwords: PasswordChange,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Change the current user's password."""
    change_password(db, current_user, passwords.current_password, passwords.new_password)
    return AckResponse(message="Password updated successfully")


@router.get("/users", response_model=UserListResponse)
def list_users(
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    """List active users."""
    return UserListResponse(
        users=[UserSummary.model_validate(user) for user in users.list_active()]
    )
