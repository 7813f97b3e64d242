"""Fan out push notifications to users' subscriptions and aggregate the outcome."""

import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from pwa_backend.config import PushConfig
from pwa_backend.models import PushSubscription, User
from pwa_backend.models.enums import DispatchStatus
from pwa_backend.services.errors import NotFoundError, PushNotConfiguredError, ValidationFailedError
from pwa_backend.services.push_delivery import (
    DeliveryClient,
    DeliveryError,
    DeliveryOptions,
    SubscriptionInfo,
)
from pwa_backend.services.user_repository import UserRepository, normalize_email

logger = logging.getLogger(__name__)

DEFAULT_BODY = "You have a new notification"
DEFAULT_TAG = "general"


@dataclass
class NotificationOptions:
    """Recognized notification fields.

    ``icon``, ``badge``, ``ttl`` and ``urgency`` fall back to the push
    configuration defaults when left as None.
    """

    body: str = DEFAULT_BODY
    icon: str | None = None
    image: str | None = None
    badge: str | None = None
    data: dict = field(default_factory=lambda: {"url": "/"})
    tag: str = DEFAULT_TAG
    ttl: int | None = None
    urgency: str | None = None
    require_interaction: bool = False


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one delivery attempt to one subscription."""

    ok: bool
    sent_count: int
    failed_count: int
    pruned: bool = False
    status_code: int | None = None


@dataclass
class UserDispatchResult:
    """Outcome of sending one notification to every subscription of one user."""

    user_id: int
    username: str
    sent: int = 0
    failed: int = 0
    total_subscriptions: int = 0
    pruned: int = 0
    status: DispatchStatus = DispatchStatus.NO_SUBSCRIPTIONS

    @property
    def success(self) -> bool:
        return self.sent > 0

    @property
    def message(self) -> str:
        if self.status == DispatchStatus.NO_SUBSCRIPTIONS:
            return "User has no active push subscriptions"
        return f"Notifications sent to {self.username}: {self.sent} succeeded, {self.failed} failed"


@dataclass
class BatchDispatchResult:
    """Aggregate outcome across several users."""

    sent: int = 0
    failed: int = 0
    user_results: list[UserDispatchResult] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.sent > 0

    @property
    def total_users(self) -> int:
        return len(self.user_results)

    @property
    def message(self) -> str:
        return f"Notifications sent: {self.sent} succeeded, {self.failed} failed"

    def add(self, result: UserDispatchResult) -> None:
        self.user_results.append(result)
        self.sent += result.sent
        self.failed += result.failed


@dataclass(frozen=True)
class PushStats:
    """Subscription totals and configuration state."""

    total_users: int
    users_with_subscriptions: int
    total_subscriptions: int
    configured: bool
    vapid_public_key: str | None


class PushDispatcher:
    """Sends notifications through a delivery client and keeps subscriptions healthy.

    Every addressing mode resolves its targets to users and runs
    ``dispatch_to_user`` on each of them, one after another. Deliveries that
    come back 404 or 410 remove the subscription from the store; any other
    failure leaves it in place for the next attempt.
    """

    def __init__(
        self,
        repository: UserRepository,
        delivery_client: DeliveryClient,
        config: PushConfig,
    ):
        self.repository = repository
        self.delivery_client = delivery_client
        self.config = config

    def _require_configured(self) -> None:
        if not self.config.is_configured:
            logger.warning("Push notifications requested but VAPID credentials are missing")
            raise PushNotConfiguredError()

    def build_payload(self, title: str, options: NotificationOptions) -> dict:
        """Build the JSON payload a service worker receives."""
        data = dict(options.data or {})
        data.setdefault("url", "/")
        return {
            "title": title,
            "body": options.body or DEFAULT_BODY,
            "icon": options.icon or self.config.default_icon,
            "image": options.image,
            "badge": options.badge or self.config.default_badge,
            "data": data,
            "tag": options.tag or DEFAULT_TAG,
            "requireInteraction": options.require_interaction,
            "timestamp": int(time.time() * 1000),
        }

    def _delivery_options(self, options: NotificationOptions) -> DeliveryOptions:
        return DeliveryOptions(
            ttl=options.ttl if options.ttl is not None else self.config.default_ttl,
            urgency=options.urgency or self.config.default_urgency,
        )

    def attempt(
        self,
        user: User,
        subscription: PushSubscription,
        payload: str,
        delivery_options: DeliveryOptions,
    ) -> AttemptResult:
        """Try one subscription, pruning it when the push service says it is gone."""
        info = SubscriptionInfo(
            endpoint=subscription.endpoint,
            p256dh=subscription.p256dh_key,
            auth=subscription.auth_key,
        )
        try:
            info.validate()
        except ValidationFailedError as e:
            logger.warning(f"Skipping malformed subscription {subscription.id}: {e.message}")
            return AttemptResult(ok=False, sent_count=0, failed_count=1)

        try:
            self.delivery_client.send(info, payload, delivery_options)
        except DeliveryError as e:
            logger.error(
                f"Push failed for user {user.id} subscription {subscription.id}: "
                f"status={e.status_code}"
            )
            pruned = False
            if e.is_permanent:
                logger.info(f"Removing expired subscription {subscription.id} of user {user.id}")
                pruned = self.repository.remove_subscription_by_endpoint(user, info.endpoint)
            return AttemptResult(
                ok=False,
                sent_count=0,
                failed_count=1,
                pruned=pruned,
                status_code=e.status_code,
            )

        return AttemptResult(ok=True, sent_count=1, failed_count=0)

    def dispatch_to_user(
        self, user: User, title: str, options: NotificationOptions
    ) -> UserDispatchResult:
        """Send to every subscription of an already loaded user."""
        self._require_configured()

        subscriptions = list(user.subscriptions)
        result = UserDispatchResult(
            user_id=user.id,
            username=user.username,
            total_subscriptions=len(subscriptions),
        )
        if not subscriptions:
            logger.info(f"No push subscriptions for user {user.id}")
            return result

        payload = json.dumps(self.build_payload(title, options))
        delivery_options = self._delivery_options(options)

        for subscription in subscriptions:
            outcome = self.attempt(user, subscription, payload, delivery_options)
            result.sent += outcome.sent_count
            result.failed += outcome.failed_count
            if outcome.pruned:
                result.pruned += 1

        result.status = DispatchStatus.DELIVERED if result.sent else DispatchStatus.FAILED
        logger.info(
            f"Sent push to {result.sent}/{result.total_subscriptions} devices for user {user.id}"
        )
        return result

    def send_to_user(
        self, user_id: int, title: str, options: NotificationOptions | None = None
    ) -> UserDispatchResult:
        """Send to one user by id."""
        self._require_configured()
        user = self.repository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return self.dispatch_to_user(user, title, options or NotificationOptions())

    def send_to_users(
        self, user_ids: Iterable[int], title: str, options: NotificationOptions | None = None
    ) -> BatchDispatchResult:
        """Send to the active users among the given ids."""
        self._require_configured()
        options = options or NotificationOptions()
        requested = list(dict.fromkeys(user_ids))
        users = self.repository.find_active_by_ids(requested)
        logger.info(f"Sending push to {len(users)} selected users: {title}")

        batch = BatchDispatchResult()
        found_ids = {user.id for user in users}
        batch.not_found = [str(user_id) for user_id in requested if user_id not in found_ids]
        for user in users:
            batch.add(self.dispatch_to_user(user, title, options))

        logger.info(f"Selected-user push finished: {batch.sent} sent, {batch.failed} failed")
        return batch

    def send_to_email(
        self, email: str, title: str, options: NotificationOptions | None = None
    ) -> UserDispatchResult:
        """Send to the active user owning an email address."""
        self._require_configured()
        if not email or not email.strip():
            raise ValidationFailedError("Email is required")
        user = self.repository.find_by_email(email, active_only=True)
        if not user:
            raise NotFoundError(f"User with email {email} not found")
        return self.send_to_user(user.id, title, options)

    def send_to_emails(
        self, emails: list[str], title: str, options: NotificationOptions | None = None
    ) -> BatchDispatchResult:
        """Send to the active users owning any of the given emails.

        Emails that match nobody are reported in ``not_found``.
        """
        self._require_configured()
        if not emails:
            raise ValidationFailedError("At least one email is required")

        users = self.repository.find_active_by_emails(emails)
        if not users:
            raise NotFoundError("No users found for the given emails")

        batch = self.send_to_users([user.id for user in users], title, options)
        matched = {normalize_email(user.email) for user in users}
        batch.not_found = [email for email in emails if normalize_email(email) not in matched]
        return batch

    def broadcast(
        self, title: str, options: NotificationOptions | None = None
    ) -> BatchDispatchResult:
        """Send to every active user holding a subscription."""
        self._require_configured()
        options = options or NotificationOptions()
        users = self.repository.find_active_with_subscriptions()
        logger.info(f"Broadcasting push to {len(users)} users: {title}")

        batch = BatchDispatchResult()
        for user in users:
            batch.add(self.dispatch_to_user(user, title, options))

        logger.info(f"Broadcast finished: {batch.sent} sent, {batch.failed} failed")
        return batch

    def save_subscription(self, user: User, subscription: SubscriptionInfo) -> PushSubscription:
        """Register or refresh a subscription for a user."""
        subscription.validate()
        subscription.validate_keys()
        stored = self.repository.append_or_replace_subscription(
            user, subscription.endpoint, subscription.p256dh, subscription.auth
        )
        logger.info(f"Saved push subscription {stored.id} for user {user.id}")
        return stored

    def remove_subscription(self, user: User, endpoint: str) -> bool:
        """Forget a subscription. Unknown endpoints are ignored."""
        removed = self.repository.remove_subscription_by_endpoint(user, endpoint)
        if removed:
            logger.info(f"Removed push subscription for user {user.id}")
        return removed

    def stats(self) -> PushStats:
        """Collect subscription totals."""
        return PushStats(
            total_users=self.repository.count_active_users(),
            users_with_subscriptions=self.repository.count_users_with_subscriptions(),
            total_subscriptions=self.repository.count_subscriptions(),
            configured=self.config.is_configured,
            vapid_public_key=self.config.public_key_prefix,
        )
