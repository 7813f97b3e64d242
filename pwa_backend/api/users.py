"""User lookup API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from pwa_backend.api.dependencies import get_current_user, get_user_repository
from pwa_backend.models.user import User
from pwa_backend.schemas.auth import UserSummary
from pwa_backend.schemas.users import EmailsLookupRequest, EmailsLookupResponse, UserLookupResponse
from pwa_backend.services.user_repository import UserRepository, normalize_email

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/email/{email}", response_model=UserLookupResponse)
def get_user_by_email(
    email: str,
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Find an active user by email."""
    user = users.find_by_email(email, active_only=True)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserLookupResponse(user=UserSummary.model_validate(user))


@router.post("/emails", response_model=EmailsLookupResponse)
def get_users_by_emails(
    request: EmailsLookupRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Find active users by a list of emails, reporting the ones that matched nobody."""
    if not request.emails:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one email is required",
        )

    found = users.find_active_by_emails(request.emails)
    matched = {normalize_email(user.email) for user in found}

    return EmailsLookupResponse(
        users=[UserSummary.model_validate(user) for user in found],
        found=len(found),
        total=len(request.emails),
        not_found=[email for email in request.emails if normalize_email(email) not in matched],
    )
