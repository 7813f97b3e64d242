"""Push notification API endpoints: subscriptions, dispatch and stats."""

from typing import Annotated

from fastapi import APIRouter, Depends

from pwa_backend.api.dependencies import get_current_user, get_push_dispatcher
from pwa_backend.config import PushConfig, get_push_config
from pwa_backend.models.user import User
from pwa_backend.schemas.base import AckResponse
from pwa_backend.schemas.push import (
    BatchDispatchResponse,
    NotificationRequest,
    PushStatsResponse,
    SendToEmailRequest,
    SendToEmailsRequest,
    SendToUsersRequest,
    SubscribeRequest,
    UnsubscribeRequest,
    UserDispatchResponse,
    VapidPublicKeyResponse,
)
from pwa_backend.services.push_delivery import SubscriptionInfo
from pwa_backend.services.push_dispatcher import NotificationOptions, PushDispatcher

router = APIRouter(prefix="/api/push", tags=["push"])


def notification_options(request: NotificationRequest) -> NotificationOptions:
    """Map a send request onto dispatcher options."""
    options = NotificationOptions(
        data={"url": request.url or "/"},
        icon=request.icon,
        image=request.image,
        badge=request.badge,
        ttl=request.ttl,
        urgency=request.urgency,
        require_interaction=request.require_interaction,
    )
    if request.message:
        options.body = request.message
    if request.tag:
        options.tag = request.tag
    return options


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
async def get_vapid_public_key(
    config: Annotated[PushConfig, Depends(get_push_config)],
) -> VapidPublicKeyResponse:
    """Get the VAPID public key for push notification subscription."""
    return VapidPublicKeyResponse(public_key=config.public_key)


@router.post("/subscribe", response_model=AckResponse)
def subscribe(
    request: SubscribeRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Subscribe the current user to push notifications."""
    subscription = request.subscription
    dispatcher.save_subscription(
        current_user,
        SubscriptionInfo(
            endpoint=subscription.endpoint,
            p256dh=subscription.keys.p256dh,
            auth=subscription.keys.auth,
        ),
    )
    return AckResponse(message="Subscription saved")


@router.delete("/subscription", response_model=AckResponse)
def unsubscribe(
    request: UnsubscribeRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Remove one of the current user's subscriptions."""
    removed = dispatcher.remove_subscription(current_user, request.endpoint)
    return AckResponse(message="Subscription removed" if removed else "Subscription not found")


@router.post("/send", response_model=BatchDispatchResponse)
def send_to_all(
    request: NotificationRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Broadcast a notification to every subscribed user."""
    result = dispatcher.broadcast(request.title, notification_options(request))
    return BatchDispatchResponse.model_validate(result)


@router.post("/send-to-user/{user_id}", response_model=UserDispatchResponse)
def send_to_user(
    user_id: int,
    request: NotificationRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Send a notification to one user."""
    result = dispatcher.send_to_user(user_id, request.title, notification_options(request))
    return UserDispatchResponse.model_validate(result)


@router.post("/send-to-users", response_model=BatchDispatchResponse)
def send_to_users(
    request: SendToUsersRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Send a notification to several users by id."""
    result = dispatcher.send_to_users(
        request.user_ids, request.title, notification_options(request)
    )
    return BatchDispatchResponse.model_validate(result)


@router.post("/send-to-email", response_model=UserDispatchResponse)
def send_to_email(
    request: SendToEmailRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Send a notification to the user owning an email."""
    result = dispatcher.send_to_email(request.email, request.title, notification_options(request))
    return UserDispatchResponse.model_validate(result)


@router.post("/send-to-emails", response_model=BatchDispatchResponse)
def send_to_emails(
    request: SendToEmailsRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Send a notification to several users by email."""
    result = dispatcher.send_to_emails(
        request.emails, request.title, notification_options(request)
    )
    return BatchDispatchResponse.model_validate(result)


@router.get("/stats", response_model=PushStatsResponse)
def get_stats(
    current_user: Annotated[User, Depends(get_current_user)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Get subscription totals and whether push is configured."""
    stats = dispatcher.stats()
    return PushStatsResponse(
        total_users=stats.total_users,
        users_with_subscriptions=stats.users_with_subscriptions,
        total_subscriptions=stats.total_subscriptions,
        configured=stats.configured,
        vapid_public_key=stats.vapid_public_key,
    )
