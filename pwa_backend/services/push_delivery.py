"""Web push delivery client backed by pywebpush."""

import base64
import binascii
import logging
from dataclasses import dataclass, field

import requests
from pywebpush import WebPushException, webpush

from pwa_backend.config import PushConfig
from pwa_backend.services.errors import PushNotConfiguredError, ValidationFailedError

logger = logging.getLogger(__name__)

URGENCY_LEVELS = ("very-low", "low", "normal", "high")

# Uncompressed P-256 point and the 16 byte auth secret browsers issue
P256DH_KEY_LENGTH = 65
AUTH_SECRET_LENGTH = 16


def decode_key(value: str) -> bytes:
    """Decode an unpadded base64url key as browsers serialize it."""
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


@dataclass(frozen=True)
class SubscriptionInfo:
    """A push endpoint plus the keys needed to encrypt a payload for it."""

    endpoint: str
    p256dh: str
    auth: str

    def validate(self) -> None:
        """Raise ValidationFailedError unless endpoint and both keys are present."""
        if not self.endpoint:
            raise ValidationFailedError("Subscription endpoint is required")
        if not self.p256dh or not self.auth:
            raise ValidationFailedError("Subscription keys p256dh and auth are required")

    def validate_keys(self) -> None:
        """Raise ValidationFailedError unless both keys decode to what a browser issues."""
        try:
            p256dh = decode_key(self.p256dh)
            auth = decode_key(self.auth)
        except ValueError as e:
            raise ValidationFailedError("Subscription keys must be base64url encoded") from e
        if len(p256dh) != P256DH_KEY_LENGTH or p256dh[0] != 0x04:
            raise ValidationFailedError("Subscription p256dh key is not a P-256 public key")
        if len(auth) != AUTH_SECRET_LENGTH:
            raise ValidationFailedError("Subscription auth secret must be 16 bytes")

    def as_dict(self) -> dict:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


@dataclass(frozen=True)
class DeliveryOptions:
    """Per-request hints passed to the push service."""

    ttl: int = 86400
    urgency: str = "normal"
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryResult:
    """A push service accepted the message."""

    status_code: int


class DeliveryError(Exception):
    """A push service rejected the message or could not be reached."""

    def __init__(self, status_code: int | None, body: str = ""):
        super().__init__(f"Push delivery failed (status={status_code})")
        self.status_code = status_code
        self.body = body

    @property
    def is_permanent(self) -> bool:
        """The endpoint is gone for good and should be forgotten."""
        return self.status_code in (404, 410)


class DeliveryClient:
    """Sends one encrypted payload to one subscription endpoint."""

    def __init__(self, config: PushConfig):
        self.config = config

    def send(
        self,
        subscription: SubscriptionInfo,
        payload: str,
        options: DeliveryOptions | None = None,
    ) -> DeliveryResult:
        """Deliver a serialized notification.

        Raises DeliveryError for any non-2xx answer from the push service.
        """
        if not self.config.is_configured:
            raise PushNotConfiguredError()
        subscription.validate()

        options = options or DeliveryOptions(
            ttl=self.config.default_ttl, urgency=self.config.default_urgency
        )
        if options.urgency not in URGENCY_LEVELS:
            raise ValidationFailedError(f"Unknown urgency level: {options.urgency}")

        headers = {"Urgency": options.urgency, **options.headers}

        try:
            response = webpush(
                subscription_info=subscription.as_dict(),
                data=payload,
                vapid_private_key=self.config.private_key,
                # pywebpush writes aud/exp into this dict; one per call
                vapid_claims={"sub": f"mailto:{self.config.contact_email}"},
                ttl=options.ttl,
                headers=headers,
            )
        except WebPushException as e:
            status_code, body = _extract_response(e)
            raise DeliveryError(status_code, body) from e
        except requests.RequestException as e:
            raise DeliveryError(None, str(e)) from e
        except (ValueError, TypeError, binascii.Error) as e:
            # Stored keys that cannot be decoded or are not a curve point
            raise DeliveryError(None, str(e)) from e

        status_code = getattr(response, "status_code", 201)
        if not 200 <= status_code < 300:
            raise DeliveryError(status_code, getattr(response, "text", ""))
        logger.debug(f"Push service accepted message with status {status_code}")
        return DeliveryResult(status_code=status_code)


def _extract_response(exc: WebPushException) -> tuple[int | None, str]:
    """Pull status code and body out of a pywebpush exception when available."""
    response = getattr(exc, "response", None)
    if response is None:
        return None, str(exc)

    status_code = getattr(response, "status_code", None)
    body = getattr(response, "text", "") or ""
    return (status_code if isinstance(status_code, int) else None), body
