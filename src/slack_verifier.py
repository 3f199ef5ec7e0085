"""
Slack request signature verification.

This module implements HMAC SHA256 signature verification for Slack requests
to prevent unauthorized access and replay attacks.

Security Features:
- HMAC SHA256 signature verification
- Timestamp validation (requests older than 5 minutes are rejected)
- Timing-safe comparison to prevent timing attacks

Timestamps in the future are not rejected. Slack clocks are trusted in that
direction; tightening this is a hardening option, not current behaviour.

Reference: https://api.slack.com/authentication/verifying-requests-from-slack
"""

import hashlib
import hmac
import time
from typing import Optional, Union

# Maximum request age in seconds
MAX_REQUEST_AGE_SECONDS = 60 * 5


def _parse_timestamp(timestamp: Union[str, int, None]) -> Optional[int]:
    """Return the timestamp as int, or None when absent or not numeric."""
    if timestamp is None or timestamp == "":
        return None
    try:
        return int(timestamp)
    except (ValueError, TypeError):
        return None


def verify_signature(
    signing_secret: Optional[str],
    body: Optional[str],
    signature: Optional[str],
    timestamp: Union[str, int, None],
    now: Optional[float] = None,
) -> bool:
    """
    Verify Slack request signature using HMAC SHA256.

    1. Rejects a missing signature or timestamp
    2. Rejects timestamps older than 5 minutes (replay protection)
    3. Computes HMAC SHA256 of "{version}:{timestamp}:{body}" using the signing secret
    4. Compares the hex digest with the signature hash using timing-safe comparison

    The version is taken verbatim from the signature header (``v0=<hex>``)
    and is part of the signed string; its value is not validated.

    Args:
        signing_secret: Slack app signing secret
        body: Raw request body exactly as received
        signature: X-Slack-Signature header value (format: v0={hash})
        timestamp: X-Slack-Request-Timestamp header value (seconds since epoch)
        now: Current time in seconds; defaults to time.time()

    Returns:
        bool: True if signature is valid and timestamp is fresh, False otherwise
    """
    request_timestamp = _parse_timestamp(timestamp)
    if not signature or not request_timestamp:
        return False

    current_timestamp = int(now if now is not None else time.time())
    if request_timestamp < current_timestamp - MAX_REQUEST_AGE_SECONDS:
        return False

    version, _, request_hash = signature.partition("=")
    sig_basestring = f"{version}:{request_timestamp}:{body or ''}"

    computed_hash = hmac.new(
        (signing_secret or "").encode("utf-8"),
        sig_basestring.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    # hmac.compare_digest() runs in constant time regardless of input
    return hmac.compare_digest(computed_hash.encode("utf-8"), request_hash.encode("utf-8"))
