"""
Unit tests for Slack signature verification.

These tests validate HMAC SHA256 signature verification and the
five-minute replay window.
"""

import hashlib
import hmac
import json
import os
import sys
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from slack_verifier import verify_signature


SIGNING_SECRET = "test_signing_secret_12345"
VALID_BODY = json.dumps({"type": "event_callback", "event": {"type": "app_mention"}})


def _sign(timestamp, body, secret=SIGNING_SECRET, version="v0"):
    """Generate a Slack signature header value for testing."""
    sig_basestring = f"{version}:{timestamp}:{body}"
    digest = hmac.new(secret.encode(), sig_basestring.encode(), hashlib.sha256).hexdigest()
    return f"{version}={digest}"


class TestSlackSignatureVerification:
    """Test cases for Slack request signature verification."""

    def test_valid_signature_verification(self):
        timestamp = str(int(time.time()))
        signature = _sign(timestamp, VALID_BODY)

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, timestamp) is True

    def test_integer_timestamp_accepted(self):
        timestamp = int(time.time())
        signature = _sign(timestamp, VALID_BODY)

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, timestamp) is True

    def test_invalid_signature_rejection(self):
        timestamp = str(int(time.time()))

        result = verify_signature(SIGNING_SECRET, VALID_BODY, "v0=invalid_signature_hash_12345", timestamp)

        assert result is False

    def test_signature_with_modified_body(self):
        timestamp = str(int(time.time()))
        signature = _sign(timestamp, VALID_BODY)
        tampered_body = VALID_BODY.replace("app_mention", "message")

        assert verify_signature(SIGNING_SECRET, tampered_body, signature, timestamp) is False

    def test_signature_with_wrong_secret(self):
        timestamp = str(int(time.time()))
        signature = _sign(timestamp, VALID_BODY)

        assert verify_signature("wrong_secret_67890", VALID_BODY, signature, timestamp) is False

    def test_empty_body_signature(self):
        timestamp = str(int(time.time()))
        signature = _sign(timestamp, "")

        assert verify_signature(SIGNING_SECRET, "", signature, timestamp) is True

    def test_version_is_part_of_signed_string(self):
        """The version prefix is taken verbatim from the header and signed."""
        timestamp = str(int(time.time()))
        signature = _sign(timestamp, VALID_BODY, version="v1")

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, timestamp) is True
        forged = "v0=" + signature.split("=", 1)[1]
        assert verify_signature(SIGNING_SECRET, VALID_BODY, forged, timestamp) is False

    def test_deterministic_for_fixed_inputs(self):
        now = 1_700_000_000
        signature = _sign(now, VALID_BODY)

        results = {verify_signature(SIGNING_SECRET, VALID_BODY, signature, now, now=now) for _ in range(10)}

        assert results == {True}


class TestTimestampWindow:
    """Replay protection: requests older than five minutes are rejected."""

    def test_timestamp_within_window(self):
        timestamp = str(int(time.time()) - 120)
        signature = _sign(timestamp, VALID_BODY)

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, timestamp) is True

    def test_timestamp_exactly_at_boundary(self):
        now = 1_700_000_000
        timestamp = now - 300
        signature = _sign(timestamp, VALID_BODY)

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, timestamp, now=now) is True

    def test_timestamp_too_old_with_correct_hmac(self):
        now = 1_700_000_000
        timestamp = now - 301
        signature = _sign(timestamp, VALID_BODY)

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, timestamp, now=now) is False

    def test_future_timestamp_not_rejected(self):
        """No upper bound is enforced on the timestamp."""
        now = 1_700_000_000
        timestamp = now + 3600
        signature = _sign(timestamp, VALID_BODY)

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, timestamp, now=now) is True


class TestSlackVerifierEdgeCases:
    """Test edge cases and error conditions."""

    def test_missing_signature(self):
        timestamp = str(int(time.time()))

        assert verify_signature(SIGNING_SECRET, VALID_BODY, None, timestamp) is False
        assert verify_signature(SIGNING_SECRET, VALID_BODY, "", timestamp) is False

    def test_missing_timestamp(self):
        signature = _sign(int(time.time()), VALID_BODY)

        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, None) is False
        assert verify_signature(SIGNING_SECRET, VALID_BODY, signature, "") is False

    def test_non_numeric_timestamp(self):
        assert verify_signature(SIGNING_SECRET, VALID_BODY, "v0=dummy", "not_a_number") is False

    def test_signature_without_separator(self):
        timestamp = str(int(time.time()))

        assert verify_signature(SIGNING_SECRET, VALID_BODY, "no_separator_here", timestamp) is False

    def test_non_ascii_signature_does_not_raise(self):
        timestamp = str(int(time.time()))

        assert verify_signature(SIGNING_SECRET, VALID_BODY, "v0=ünïcødé", timestamp) is False
