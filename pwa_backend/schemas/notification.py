"""User-to-user notification schemas."""

from typing import Any

from pydantic import Field

from pwa_backend.schemas.base import CamelModel
from pwa_backend.schemas.push import UserDispatchResponse


class DirectNotificationRequest(CamelModel):
    """Notify another user from the current one."""

    target_user_id: int
    title: str = Field(..., min_length=1, max_length=200)
    message: str | None = None
    type: str = "message"
    data: dict[str, Any] = Field(default_factory=dict)


class DirectNotificationResponse(CamelModel):
    """Result of a user-to-user notification."""

    success: bool
    message: str
    result: UserDispatchResponse


class AvailableUser(CamelModel):
    """A user who can currently receive notifications."""

    id: int
    username: str
    email: str
    role: str
    has_subscriptions: bool


class AvailableUsersResponse(CamelModel):
    """Users reachable by push."""

    success: bool = True
    users: list[AvailableUser]


class SentHistoryResponse(CamelModel):
    """Sent notification history."""

    success: bool = True
    history: list[dict[str, Any]] = Field(default_factory=list)
