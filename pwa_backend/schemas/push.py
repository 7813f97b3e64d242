"""Push notification schemas."""

from typing import Literal

from pydantic import Field

from pwa_backend.models.enums import DispatchStatus
from pwa_backend.schemas.base import CamelModel


class SubscriptionKeys(CamelModel):
    """Encryption keys issued by the browser."""

    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class SubscriptionPayload(CamelModel):
    """A browser PushSubscription as serialized by the client."""

    endpoint: str = Field(..., min_length=1, max_length=1000)
    keys: SubscriptionKeys


class SubscribeRequest(CamelModel):
    """Register a push subscription for the current user."""

    subscription: SubscriptionPayload


class UnsubscribeRequest(CamelModel):
    """Remove a push subscription of the current user."""

    endpoint: str = Field(..., min_length=1)


class NotificationRequest(CamelModel):
    """Fields shared by every send request."""

    title: str = Field(..., min_length=1, max_length=200)
    message: str | None = None
    icon: str | None = None
    url: str | None = None
    image: str | None = None
    badge: str | None = None
    tag: str | None = None
    ttl: int | None = Field(None, ge=0)
    urgency: Literal["very-low", "low", "normal", "high"] | None = None
    require_interaction: bool = False


class SendToUsersRequest(NotificationRequest):
    """Send to several users by id."""

    user_ids: list[int]


class SendToEmailRequest(NotificationRequest):
    """Send to one user by email."""

    email: str = Field(..., min_length=1)


class SendToEmailsRequest(NotificationRequest):
    """Send to several users by email."""

    emails: list[str]


class UserDispatchResponse(CamelModel):
    """Outcome for one user."""

    success: bool
    message: str
    status: DispatchStatus
    user_id: int
    username: str
    sent: int
    failed: int
    total_subscriptions: int
    pruned: int


class BatchDispatchResponse(CamelModel):
    """Aggregate outcome for several users."""

    success: bool
    message: str
    sent: int
    failed: int
    total_users: int
    user_results: list[UserDispatchResponse]
    not_found: list[str] = []


class PushStatsResponse(CamelModel):
    """Subscription totals."""

    success: bool = True
    total_users: int
    users_with_subscriptions: int
    total_subscriptions: int
    configured: bool
    vapid_public_key: str | None


class VapidPublicKeyResponse(CamelModel):
    """Schema for VAPID public key response."""

    public_key: str | None
