"""Persistence operations for users and their push subscriptions."""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from pwa_backend.models import PushSubscription, User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Lower-case and trim an email for storage and lookup."""
    return email.strip().lower()


class UserRepository:
    """Repository over the users and push_subscriptions tables.

    Subscription mutations commit immediately so a dispatch that prunes a dead
    endpoint leaves the store consistent even if a later delivery fails.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> User | None:
        """Get a user by id."""
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str, active_only: bool = False) -> User | None:
        """Get a user by email (case-insensitive exact match)."""
        query = self.db.query(User).filter(func.lower(User.email) == normalize_email(email))
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.first()

    def find_by_username(self, username: str) -> User | None:
        """Get a user by username."""
        return self.db.query(User).filter(User.username == username).first()

    def find_by_email_or_username(self, email: str, username: str) -> User | None:
        """Get a user holding either the email or the username."""
        return (
            self.db.query(User)
            .filter(
                (func.lower(User.email) == normalize_email(email)) | (User.username == username)
            )
            .first()
        )

    def find_active_by_ids(self, user_ids: Iterable[int]) -> list[User]:
        """Get active users whose id is in the given set, in id order."""
        ids = list(set(user_ids))
        if not ids:
            return []
        return (
            self.db.query(User)
            .options(selectinload(User.subscriptions))
            .filter(User.id.in_(ids), User.is_active.is_(True))
            .order_by(User.id)
            .all()
        )

    def find_active_by_emails(self, emails: Iterable[str]) -> list[User]:
        """Get active users matching any of the given emails."""
        normalized = list({normalize_email(email) for email in emails})
        if not normalized:
            return []
        return (
            self.db.query(User)
            .filter(func.lower(User.email).in_(normalized), User.is_active.is_(True))
            .order_by(User.id)
            .all()
        )

    def find_active_with_subscriptions(self, exclude_user_id: int | None = None) -> list[User]:
        """Get active users that hold at least one push subscription."""
        query = (
            self.db.query(User)
            .options(selectinload(User.subscriptions))
            .filter(User.is_active.is_(True), User.subscriptions.any())
        )
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.order_by(User.id).all()

    def list_active(self) -> list[User]:
        """Get all active users."""
        return self.db.query(User).filter(User.is_active.is_(True)).order_by(User.id).all()

    def add(self, user: User) -> User:
        """Persist a new user."""
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        """Persist changes made to an existing user."""
        self.db.commit()
        self.db.refresh(user)
        return user

    def append_or_replace_subscription(
        self, user: User, endpoint: str, p256dh_key: str, auth_key: str
    ) -> PushSubscription:
        """Store a subscription, updating keys in place when the endpoint is known."""
        existing = (
            self.db.query(PushSubscription)
            .filter(
                PushSubscription.user_id == user.id,
                PushSubscription.endpoint == endpoint,
            )
            .first()
        )

        if existing:
            existing.p256dh_key = p256dh_key
            existing.auth_key = auth_key
            existing.created_at = datetime.now(UTC)
            self.db.commit()
            self.db.refresh(existing)
            self.db.refresh(user)
            return existing

        subscription = PushSubscription(
            user_id=user.id,
            endpoint=endpoint,
            p256dh_key=p256dh_key,
            auth_key=auth_key,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        self.db.refresh(user)
        return subscription

    def remove_subscription_by_endpoint(self, user: User, endpoint: str) -> bool:
        """Delete the user's subscription for an endpoint.

        Returns False when the endpoint was not stored.
        """
        deleted = (
            self.db.query(PushSubscription)
            .filter(
                PushSubscription.user_id == user.id,
                PushSubscription.endpoint == endpoint,
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        self.db.expire(user, ["subscriptions"])
        return deleted > 0

    def clear_all_subscriptions(self) -> int:
        """Delete every stored subscription. Returns how many were removed."""
        deleted = self.db.query(PushSubscription).delete(synchronize_session=False)
        self.db.commit()
        self.db.expire_all()
        logger.info(f"Removed {deleted} push subscriptions")
        return deleted

    def count_active_users(self) -> int:
        """Count active users."""
        return self.db.query(User).filter(User.is_active.is_(True)).count()

    def count_users_with_subscriptions(self) -> int:
        """Count users holding at least one subscription."""
        return self.db.query(User).filter(User.subscriptions.any()).count()

    def count_subscriptions(self, active_users_only: bool = True) -> int:
        """Count stored subscriptions."""
        query = self.db.query(PushSubscription)
        if active_users_only:
            query = query.join(User, PushSubscription.user_id == User.id).filter(
                User.is_active.is_(True)
            )
        return query.count()
