"""
Request body decoding by declared content type.

Slash commands and interactive components arrive form-encoded, with the
interesting data JSON-encoded in a ``payload`` field. Events API requests
arrive as JSON. Anything else is parsed as JSON on a best-effort basis.
"""

import json
import logging
from enum import Enum
from typing import Any, Optional
from urllib.parse import parse_qs

from logger_util import get_logger, log
from receiver_errors import BodyParseError

_logger = get_logger("body_parser")


class ContentType(Enum):
    """Content types the receiver knows how to decode."""
    FORM = "application/x-www-form-urlencoded"
    JSON = "application/json"
    UNRECOGNIZED = ""

    @classmethod
    def from_header(cls, value: Optional[str]) -> "ContentType":
        """Match a Content-Type header value, ignoring parameters such as charset."""
        if not value:
            return cls.UNRECOGNIZED
        media_type = value.split(";", 1)[0].strip().lower()
        for member in (cls.FORM, cls.JSON):
            if member.value == media_type:
                return member
        return cls.UNRECOGNIZED


def _parse_form(raw_body: str) -> dict:
    """Parse form data; repeated keys keep every value as a list."""
    parsed = parse_qs(raw_body, keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


def _parse_json(raw_body: str, content_type: Optional[str]) -> Any:
    try:
        return json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise BodyParseError(content_type, str(e)) from e


def parse_request_body(
    raw_body: str,
    content_type: Optional[str],
    logger: Optional[logging.Logger] = None,
) -> Any:
    """
    Decode a raw request body according to its Content-Type.

    Args:
        raw_body: Request body exactly as received (after base64 decoding)
        content_type: Content-Type header value, may be None
        logger: Logger for warnings; defaults to the module logger

    Returns:
        Decoded body: the JSON ``payload`` value for form bodies that carry one,
        the form mapping otherwise, or the parsed JSON value

    Raises:
        BodyParseError: If the body is not valid for its content type, including
            the best-effort JSON parse of an unrecognized content type
    """
    logger = logger or _logger
    kind = ContentType.from_header(content_type)

    if kind is ContentType.FORM:
        parsed_body = _parse_form(raw_body)
        payload = parsed_body.get("payload")
        if isinstance(payload, str):
            return _parse_json(payload, content_type)
        return parsed_body

    if kind is ContentType.JSON:
        return _parse_json(raw_body, content_type)

    log(logger, "WARN", "unexpected_content_type", {"content_type": content_type})
    try:
        return _parse_json(raw_body, content_type)
    except BodyParseError as e:
        log(logger, "ERROR", "body_parse_failed", {
            "content_type": content_type,
            "reason": e.reason,
        })
        raise
