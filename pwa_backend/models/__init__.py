"""SQLAlchemy models."""

from pwa_backend.models.push_subscription import PushSubscription
from pwa_backend.models.user import User

__all__ = [
    "User",
    "PushSubscription",
]
