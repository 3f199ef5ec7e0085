"""
Lambda proxy response builders.
"""

import json
from typing import Any, Optional

JSON_HEADERS = {"Content-Type": "application/json"}


def to_json(value: Any) -> str:
    """Serialize compactly, matching Slack's own JSON encoding."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def empty_response(status_code: int) -> dict:
    return {"statusCode": status_code, "body": ""}


def json_response(value: Any, status_code: int = 200) -> dict:
    return {
        "statusCode": status_code,
        "headers": dict(JSON_HEADERS),
        "body": to_json(value),
    }


def challenge_response(challenge: Optional[str]) -> dict:
    """Response to an Events API url_verification request; a missing challenge is omitted."""
    if challenge is None:
        return json_response({})
    return json_response({"challenge": challenge})


def ack_response(stored_response: Any) -> dict:
    """
    Convert an acknowledged response into the Lambda proxy response.

    Strings are returned as the body verbatim; any other value is returned
    as JSON. An unacknowledged event (None) yields 404.
    """
    if stored_response is None:
        return empty_response(404)
    if isinstance(stored_response, str):
        return {"statusCode": 200, "body": stored_response}
    return json_response(stored_response)
