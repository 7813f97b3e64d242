"""Pydantic schemas for API requests and responses."""

from pwa_backend.schemas.auth import (
    AuthResponse,
    PasswordChange,
    ProfileUpdate,
    UserLogin,
    UserProfile,
    UserRegister,
    UserSummary,
)
from pwa_backend.schemas.base import AckResponse, CamelModel
from pwa_backend.schemas.push import (
    BatchDispatchResponse,
    NotificationRequest,
    PushStatsResponse,
    SubscribeRequest,
    UserDispatchResponse,
)

__all__ = [
    "CamelModel",
    "AckResponse",
    "UserRegister",
    "UserLogin",
    "ProfileUpdate",
    "PasswordChange",
    "UserSummary",
    "UserProfile",
    "AuthResponse",
    "NotificationRequest",
    "SubscribeRequest",
    "UserDispatchResponse",
    "BatchDispatchResponse",
    "PushStatsResponse",
]
