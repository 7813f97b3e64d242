"""User lookup schemas."""

from pwa_backend.schemas.auth import UserSummary
from pwa_backend.schemas.base import CamelModel


class UserLookupResponse(CamelModel):
    """Single user found by email."""

    success: bool = True
    user: UserSummary


class EmailsLookupRequest(CamelModel):
    """Emails to resolve."""

    emails: list[str]


class EmailsLookupResponse(CamelModel):
    """Users resolved from a list of emails."""

    success: bool = True
    users: list[UserSummary]
    found: int
    total: int
    not_found: list[str]
