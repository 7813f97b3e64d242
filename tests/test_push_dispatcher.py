"""Tests for the push dispatcher."""

import json
from unittest.mock import MagicMock, patch

import pytest

from pwa_backend.models import PushSubscription
from pwa_backend.models.enums import DispatchStatus
from pwa_backend.services.errors import NotFoundError, ValidationFailedError
from pwa_backend.services.push_delivery import DeliveryClient, SubscriptionInfo
from pwa_backend.services.push_dispatcher import NotificationOptions, PushDispatcher
from pwa_backend.services.user_repository import UserRepository


def _endpoints(db, user_id):
    return [
        sub.endpoint
        for sub in db.query(PushSubscription)
        .filter(PushSubscription.user_id == user_id)
        .order_by(PushSubscription.id)
        .all()
    ]


@pytest.mark.parametrize("status_code", [404, 410])
def test_gone_subscription_is_pruned(db, make_user, dispatcher, delivery_client, status_code):
    """Subscriptions the push service reports as gone are removed."""
    user = make_user(
        "alice", endpoints=["https://push.example.com/dead", "https://push.example.com/ok"]
    )
    delivery_client.failures["https://push.example.com/dead"] = status_code

    result = dispatcher.send_to_user(user.id, "Hello")

    assert result.sent == 1
    assert result.failed == 1
    assert result.pruned == 1
    assert _endpoints(db, user.id) == ["https://push.example.com/ok"]


@pytest.mark.parametrize("status_code", [400, 403, 413, 429, 500, 503, None])
def test_other_failures_keep_subscription(db, make_user, dispatcher, delivery_client, status_code):
    """Other failures leave the subscription untouched for a later attempt."""
    user = make_user("alice", endpoints=["https://push.example.com/flaky"])
    before = db.query(PushSubscription).filter_by(user_id=user.id).one()
    keys_before = (before.p256dh_key, before.auth_key)
    delivery_client.failures["https://push.example.com/flaky"] = status_code

    result = dispatcher.send_to_user(user.id, "Hello")

    assert result.sent == 0
    assert result.failed == 1
    assert result.status == DispatchStatus.FAILED
    after = db.query(PushSubscription).filter_by(user_id=user.id).one()
    assert (after.p256dh_key, after.auth_key) == keys_before


def test_failure_does_not_stop_remaining_subscriptions(make_user, dispatcher, delivery_client):
    user = make_user(
        "alice",
        endpoints=[
            "https://push.example.com/one",
            "https://push.example.com/two",
            "https://push.example.com/three",
        ],
    )
    delivery_client.failures["https://push.example.com/one"] = 500

    result = dispatcher.send_to_user(user.id, "Hello")

    assert len(delivery_client.calls) == 3
    assert result.sent == 2
    assert result.failed == 1


def test_broadcast_all_delivered(make_user, dispatcher):
    """N users with M subscriptions each yields N*M sends."""
    for n in range(3):
        make_user(f"user{n}", endpoints=[f"https://push.example.com/u{n}-{m}" for m in range(2)])

    batch = dispatcher.broadcast("Hello")

    assert batch.sent == 6
    assert batch.failed == 0
    assert batch.total_users == 3
    assert batch.success is True


def test_broadcast_all_gone(db, make_user, dispatcher, delivery_client):
    for n in range(2):
        make_user(f"user{n}", endpoints=[f"https://push.example.com/u{n}-{m}" for m in range(3)])
    delivery_client.fail_all_with = 410

    batch = dispatcher.broadcast("Hello")

    assert batch.sent == 0
    assert batch.failed == 6
    assert batch.success is False
    assert db.query(PushSubscription).count() == 0


def test_broadcast_skips_inactive_and_unsubscribed_users(make_user, dispatcher, delivery_client):
    make_user("active", endpoints=["https://push.example.com/active"])
    make_user("inactive", endpoints=["https://push.example.com/inactive"], is_active=False)
    make_user("nosubs")

    batch = dispatcher.broadcast("Hello")

    assert batch.total_users == 1
    endpoints = [call[0].endpoint for call in delivery_client.calls]
    assert endpoints == ["https://push.example.com/active"]


def test_user_without_subscriptions(make_user, dispatcher, delivery_client):
    user = make_user("alice")

    result = dispatcher.send_to_user(user.id, "Hello")

    assert result.status == DispatchStatus.NO_SUBSCRIPTIONS
    assert result.success is False
    assert result.total_subscriptions == 0
    assert delivery_client.calls == []


def test_unknown_user(dispatcher):
    with pytest.raises(NotFoundError):
        dispatcher.send_to_user(12345, "Hello")


def test_send_to_users_filters_inactive(make_user, dispatcher):
    active = make_user("active", endpoints=["https://push.example.com/a"])
    inactive = make_user("inactive", endpoints=["https://push.example.com/i"], is_active=False)
    empty = make_user("empty")

    batch = dispatcher.send_to_users([active.id, inactive.id, empty.id], "Hello")

    assert batch.sent == 1
    assert batch.total_users == 2
    assert batch.not_found == [str(inactive.id)]
    statuses = {result.username: result.status for result in batch.user_results}
    assert statuses == {
        "active": DispatchStatus.DELIVERED,
        "empty": DispatchStatus.NO_SUBSCRIPTIONS,
    }


def test_send_to_emails_two_of_three(make_user, dispatcher):
    make_user("alice", email="alice@example.com", endpoints=["https://push.example.com/a"])
    make_user("bob", email="bob@example.com", endpoints=["https://push.example.com/b"])

    batch = dispatcher.send_to_emails(
        ["ALICE@example.com", "bob@example.com", "missing@example.com"], "Hello"
    )

    assert {result.username for result in batch.user_results} == {"alice", "bob"}
    assert batch.not_found == ["missing@example.com"]
    assert batch.sent == 2


def test_send_to_emails_requires_emails(dispatcher):
    with pytest.raises(ValidationFailedError):
        dispatcher.send_to_emails([], "Hello")


def test_send_to_emails_none_matching(dispatcher):
    with pytest.raises(NotFoundError):
        dispatcher.send_to_emails(["missing@example.com"], "Hello")


def test_send_to_email_ignores_inactive_user(make_user, dispatcher):
    make_user(
        "ghost",
        email="ghost@example.com",
        endpoints=["https://push.example.com/g"],
        is_active=False,
    )
    with pytest.raises(NotFoundError):
        dispatcher.send_to_email("ghost@example.com", "Hello")


def test_malformed_subscription_is_counted_but_not_sent(db, make_user, dispatcher, delivery_client):
    user = make_user("alice", endpoints=["https://push.example.com/ok"])
    db.add(
        PushSubscription(
            user_id=user.id, endpoint="https://push.example.com/bad", p256dh_key="", auth_key=""
        )
    )
    db.commit()

    result = dispatcher.send_to_user(user.id, "Hello")

    assert result.sent == 1
    assert result.failed == 1
    assert len(delivery_client.calls) == 1
    assert "https://push.example.com/bad" in _endpoints(db, user.id)


def test_undecodable_keys_do_not_stop_broadcast(db, make_user, browser_keys, vapid_push_config):
    bad = make_user("bad", endpoints=["https://push.example.com/bad"])
    good = make_user("good", endpoints=["https://push.example.com/good"], keys=browser_keys())
    dispatcher = PushDispatcher(
        UserRepository(db), DeliveryClient(vapid_push_config), vapid_push_config
    )
    accepted = MagicMock(status_code=201, text="", headers={})

    with patch("requests.post", return_value=accepted) as mock_post:
        batch = dispatcher.broadcast("Hello")

    assert batch.sent == 1
    assert batch.failed == 1
    assert batch.success is True
    per_user = {result.username: result for result in batch.user_results}
    assert per_user["good"].status == DispatchStatus.DELIVERED
    assert per_user["bad"].status == DispatchStatus.FAILED
    assert per_user["bad"].pruned == 0
    assert [call.args[0] for call in mock_post.call_args_list] == ["https://push.example.com/good"]
    assert _endpoints(db, bad.id) == ["https://push.example.com/bad"]
    assert _endpoints(db, good.id) == ["https://push.example.com/good"]


def test_save_subscription_rejects_undecodable_keys(db, make_user, dispatcher):
    user = make_user("alice")
    with pytest.raises(ValidationFailedError):
        dispatcher.save_subscription(
            user,
            SubscriptionInfo(
                endpoint="https://push.example.com/a", p256dh="p256dh-om/bad", auth="auth-secret"
            ),
        )
    assert _endpoints(db, user.id) == []


def test_save_subscription_stores_browser_keys(db, make_user, dispatcher, browser_keys):
    user = make_user("alice")
    p256dh, auth = browser_keys()
    stored = dispatcher.save_subscription(
        user, SubscriptionInfo(endpoint="https://push.example.com/a", p256dh=p256dh, auth=auth)
    )
    assert (stored.p256dh_key, stored.auth_key) == (p256dh, auth)


def test_payload_defaults(make_user, dispatcher, delivery_client):
    user = make_user("alice", endpoints=["https://push.example.com/a"])

    dispatcher.send_to_user(user.id, "Hello")

    _, payload, options = delivery_client.calls[0]
    data = json.loads(payload)
    assert data["title"] == "Hello"
    assert data["body"] == "You have a new notification"
    assert data["icon"] == "/icons/icon-192x192.png"
    assert data["badge"] == "/icons/icon-72x72.png"
    assert data["data"] == {"url": "/"}
    assert data["tag"] == "general"
    assert isinstance(data["timestamp"], int)
    assert options.ttl == 86400
    assert options.urgency == "normal"


def test_payload_custom_options(make_user, dispatcher, delivery_client):
    user = make_user("alice", endpoints=["https://push.example.com/a"])
    options = NotificationOptions(
        body="Body",
        icon="/custom.png",
        data={"orderId": 7},
        tag="orders",
        ttl=60,
        urgency="high",
        require_interaction=True,
    )

    dispatcher.send_to_user(user.id, "Order shipped", options)

    _, payload, delivery_options = delivery_client.calls[0]
    data = json.loads(payload)
    assert data["body"] == "Body"
    assert data["icon"] == "/custom.png"
    assert data["data"] == {"orderId": 7, "url": "/"}
    assert data["tag"] == "orders"
    assert data["requireInteraction"] is True
    assert delivery_options.ttl == 60
    assert delivery_options.urgency == "high"
