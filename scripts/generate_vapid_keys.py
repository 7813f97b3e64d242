#!/usr/bin/env python3
"""Generate a new VAPID key pair for web push.

Prints the keys in the base64url form browsers (applicationServerKey) and
pywebpush expect. After rotating keys every client must subscribe again; see
scripts/clear_subscriptions.py.

Usage:
    python scripts/generate_vapid_keys.py
"""

from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid
from py_vapid.utils import b64urlencode


def generate_vapid_keys() -> tuple[str, str]:
    """Return (public_key, private_key) as base64url strings."""
    vapid = Vapid()
    vapid.generate_keys()

    public_key = vapid.public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    private_key = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")
    return b64urlencode(public_key), b64urlencode(private_key)


def main() -> None:
    public_key, private_key = generate_vapid_keys()
    print("VAPID_PUBLIC_KEY=" + public_key)
    print("VAPID_PRIVATE_KEY=" + private_key)
    print("VAPID_EMAIL=<contact address>")
    print()
    print("Use the same public key in the frontend. Existing subscriptions stop working.")


if __name__ == "__main__":
    main()
