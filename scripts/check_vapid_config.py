#!/usr/bin/env python3
"""Check the VAPID configuration the backend will load.

Usage:
    python scripts/check_vapid_config.py [FRONTEND_PUBLIC_KEY]

Pass the applicationServerKey the frontend subscribes with to confirm both
sides use the same key.
"""

import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pwa_backend.config import get_push_config  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("frontend_key", nargs="?", help="public key used by the frontend")
    args = parser.parse_args()

    config = get_push_config()
    print(f"Public key:  {config.public_key_prefix or 'missing'}")
    print(f"Private key: {'present' if config.private_key else 'missing'}")
    print(f"Contact:     {config.contact_email or 'missing'}")
    if config.public_key:
        # An uncompressed P-256 point is 65 bytes, 87 base64url characters
        print(f"Public key length: {len(config.public_key)} characters")

    if not config.is_configured:
        print("Push notifications are NOT configured")
        return 1

    if args.frontend_key is not None:
        if args.frontend_key != config.public_key:
            print("Frontend and backend public keys differ")
            return 1
        print("Frontend and backend public keys match")

    print("Push notifications are configured")
    return 0


if __name__ == "__main__":
    sys.exit(main())
