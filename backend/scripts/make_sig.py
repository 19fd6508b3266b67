#!/usr/bin/env python3

import json
import sys

from giftcard_webhooks.services.square_verify import SIGNATURE_HEADER, compute_signature

if __name__ == "__main__":
    if len(sys.argv) not in (3, 4):
        print("Usage: make_sig.py <signature_key> <payload> [notification_url]")
        sys.exit(1)

    key = sys.argv[1]
    payload = sys.argv[2]
    notification_url = sys.argv[3] if len(sys.argv) == 4 else ""

    # Validate payload is valid JSON
    try:
        json.loads(payload)
    except json.JSONDecodeError:
        print("Error: Payload must be valid JSON", file=sys.stderr)
        sys.exit(1)

    print(f"{SIGNATURE_HEADER}: {compute_signature(key, payload, notification_url)}")
