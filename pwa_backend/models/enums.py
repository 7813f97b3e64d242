"""Enums for model fields."""

from enum import Enum


class UserRole(str, Enum):
    """Account roles."""

    USER = "user"
    ADMIN = "admin"


class DispatchStatus(str, Enum):
    """Outcome of dispatching one notification to one user."""

    DELIVERED = "delivered"
    FAILED = "failed"
    NO_SUBSCRIPTIONS = "no_subscriptions"
