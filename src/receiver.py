"""
AWS Lambda receiver for Slack requests.

Turns an API Gateway proxy event into a ReceiverEvent for the dispatch layer
and the dispatch layer's acknowledgment back into a proxy response:

- Verifies the request signature (401 on failure)
- Decodes the body by Content-Type (400 when it cannot be decoded)
- Answers ssl_check and url_verification requests directly
- Dispatches everything else and maps the acknowledgment:
  string -> 200 text, other value -> 200 JSON, none -> 404, error -> 500
"""

import asyncio
import base64
import binascii
import logging
from typing import Any, Callable, Optional, Protocol

from ack_guard import AckGuard, ReceiverEvent
from body_parser import parse_request_body
from logger_util import log, new_instance_logger, reset_request_id, set_request_id
from receiver_errors import BodyParseError
from response_builder import ack_response, challenge_response, empty_response
from slack_verifier import verify_signature

SERVICE_NAME = "slack-lambda-receiver"

LambdaHandler = Callable[[dict, Any], dict]


class EventProcessor(Protocol):
    """The dispatch layer: invokes listeners, which may call event.ack once."""

    async def process_event(self, event: ReceiverEvent) -> None:
        ...


def get_header(aws_event: dict, name: str) -> Optional[str]:
    """
    Look up a request header case-insensitively.

    API Gateway preserves header case as sent while Function URLs lower-case
    them, so both are accepted. Falls back to the first multiValueHeaders value.
    """
    wanted = name.lower()
    for key, value in (aws_event.get("headers") or {}).items():
        if key.lower() == wanted:
            return value
    for key, values in (aws_event.get("multiValueHeaders") or {}).items():
        if key.lower() == wanted and values:
            return values[0]
    return None


def get_raw_body(aws_event: dict) -> str:
    """Return the request body as text, decoding base64 bodies."""
    body = aws_event.get("body") or ""
    if aws_event.get("isBase64Encoded") and body:
        return base64.b64decode(body).decode("utf-8")
    return body


class AwsLambdaReceiver:
    """Receiver that adapts Lambda proxy invocations to a dispatch layer."""

    def __init__(
        self,
        signing_secret: str = "",
        logger: Optional[logging.Logger] = None,
        log_level: str = "INFO",
    ):
        self._signing_secret = signing_secret
        self._app: Optional[EventProcessor] = None
        if logger is None:
            logger = new_instance_logger("receiver", log_level)
        self._logger = logger

    def init(self, app: EventProcessor) -> None:
        self._app = app

    async def start(self) -> LambdaHandler:
        return self.to_handler()

    async def stop(self) -> None:
        return None

    def to_handler(self) -> LambdaHandler:
        """Return a synchronous Lambda entry point running one event loop per invocation."""

        def handler(aws_event: dict, aws_context: Any = None) -> dict:
            return asyncio.run(self.handle(aws_event, aws_context))

        return handler

    def _log(self, level: str, event_type: str, data: dict) -> None:
        log(self._logger, level, event_type, data, service=SERVICE_NAME)

    async def handle(self, aws_event: dict, aws_context: Any = None) -> dict:
        """Process one Lambda proxy event and return the proxy response."""
        token = set_request_id(getattr(aws_context, "aws_request_id", None))
        try:
            return await self._handle(aws_event)
        finally:
            reset_request_id(token)

    async def _handle(self, aws_event: dict) -> dict:
        self._log("DEBUG", "aws_event_received", {
            "http_method": aws_event.get("httpMethod"),
            "path": aws_event.get("path"),
            "has_body": bool(aws_event.get("body")),
        })

        try:
            raw_body = get_raw_body(aws_event)
        except (binascii.Error, UnicodeDecodeError) as e:
            self._log("WARN", "request_body_rejected", {"reason": str(e)})
            return empty_response(400)

        signature = get_header(aws_event, "X-Slack-Signature")
        timestamp = get_header(aws_event, "X-Slack-Request-Timestamp")
        if not verify_signature(self._signing_secret, raw_body, signature, timestamp):
            self._log("WARN", "signature_verification_failed", {
                "has_signature": bool(signature),
                "has_timestamp": bool(timestamp),
            })
            return empty_response(401)

        content_type = get_header(aws_event, "Content-Type")
        try:
            body = parse_request_body(raw_body, content_type, self._logger)
        except BodyParseError as e:
            self._log("WARN", "request_body_rejected", {
                "content_type": content_type,
                "reason": e.reason,
            })
            return empty_response(400)

        if isinstance(body, dict):
            # ssl_check (for Slash Commands)
            if body.get("ssl_check"):
                return empty_response(200)
            # url_verification (Events API)
            if body.get("type") == "url_verification":
                return challenge_response(body.get("challenge"))

        if self._app is None:
            self._log("WARN", "receiver_not_initialized", {})
            return empty_response(404)

        guard = AckGuard(self._logger)
        guard.start_timer()
        event = ReceiverEvent(body=body, ack=guard.ack)
        try:
            await self._app.process_event(event)
            # Unserializable ack values fail here and take the 500 path
            return ack_response(guard.stored_response)
        except Exception as e:
            self._log("ERROR", "unhandled_dispatch_error", {
                "message": "An unhandled error occurred while processing an event",
                "error_type": type(e).__name__,
            })
            self._log("DEBUG", "unhandled_dispatch_error_details", {
                "error": str(e),
                "stored_response": guard.stored_response,
            })
            return empty_response(500)
        finally:
            guard.cancel_timer()
