"""User-to-user notification endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from pwa_backend.api.dependencies import (
    get_current_user,
    get_push_dispatcher,
    get_user_repository,
)
from pwa_backend.models.user import User
from pwa_backend.schemas.notification import (
    AvailableUser,
    AvailableUsersResponse,
    DirectNotificationRequest,
    DirectNotificationResponse,
    SentHistoryResponse,
)
from pwa_backend.schemas.push import UserDispatchResponse
from pwa_backend.services.push_dispatcher import NotificationOptions, PushDispatcher
from pwa_backend.services.user_repository import UserRepository

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("/send-to-user", response_model=DirectNotificationResponse)
def notify_user(
    request: DirectNotificationRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
    dispatcher: Annotated[PushDispatcher, Depends(get_push_dispatcher)],
):
    """Send a notification from the current user to another user."""
    target = users.find_by_id(request.target_user_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Target user not found")

    options = NotificationOptions(
        data={
            **request.data,
            "type": request.type,
            "fromUser": {"id": current_user.id, "username": current_user.username},
            "timestamp": datetime.now(UTC).isoformat(),
        },
        tag=request.type,
    )
    if request.message:
        options.body = request.message

    result = dispatcher.dispatch_to_user(target, request.title, options)
    return DirectNotificationResponse(
        success=result.success,
        message=result.message,
        result=UserDispatchResponse.model_validate(result),
    )


@router.get("/available-users", response_model=AvailableUsersResponse)
def list_available_users(
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    """List other active users that can receive push notifications."""
    reachable = users.find_active_with_subscriptions(exclude_user_id=current_user.id)
    return AvailableUsersResponse(
        users=[
            AvailableUser(
                id=user.id,
                username=user.username,
                email=user.email,
                role=user.role,
                has_subscriptions=bool(user.subscriptions),
            )
            for user in reachable
        ]
    )


@router.get("/sent-history", response_model=SentHistoryResponse)
async def get_sent_history(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get notifications sent by the current user (history is not stored yet)."""
    return SentHistoryResponse()
