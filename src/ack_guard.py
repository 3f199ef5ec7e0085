"""
Per-invocation acknowledgment state.

Each incoming event may be acknowledged exactly once. AckGuard holds that
state for one invocation, and schedules a diagnostic that fires if no
listener acknowledges the event within three seconds.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from logger_util import get_logger, log
from receiver_errors import ReceiverMultipleAckError

# Slack's ack deadline is 3 seconds; warn just after it
ACK_TIMEOUT_SECONDS = 3.001

ACK_TIMEOUT_MESSAGE = (
    "An incoming event was not acknowledged within 3 seconds. "
    "Ensure that the ack() argument is called in a listener."
)

_logger = get_logger("ack_guard")


class AckState(Enum):
    UNACKNOWLEDGED = "unacknowledged"
    ACKNOWLEDGED = "acknowledged"


class AckGuard:
    """Exactly-once acknowledgment slot for a single invocation."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or _logger
        self._state = AckState.UNACKNOWLEDGED
        self._response: Any = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def state(self) -> AckState:
        return self._state

    @property
    def is_acknowledged(self) -> bool:
        return self._state is AckState.ACKNOWLEDGED

    @property
    def stored_response(self) -> Any:
        """The acknowledged response, or None while unacknowledged."""
        return self._response

    async def ack(self, response: Any = None) -> None:
        """
        Acknowledge the event.

        Raises:
            ReceiverMultipleAckError: If the event was already acknowledged
        """
        if self._state is AckState.ACKNOWLEDGED:
            raise ReceiverMultipleAckError()
        self._state = AckState.ACKNOWLEDGED
        self._response = "" if response is None else response

    def start_timer(self, timeout: Optional[float] = None) -> None:
        """Schedule the not-acknowledged diagnostic on the running loop."""
        if timeout is None:
            timeout = ACK_TIMEOUT_SECONDS
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(timeout, self._warn_if_unacknowledged)

    def cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _warn_if_unacknowledged(self) -> None:
        self._timer = None
        if not self.is_acknowledged:
            log(self._logger, "ERROR", "ack_timeout", {"message": ACK_TIMEOUT_MESSAGE})


@dataclass(frozen=True)
class ReceiverEvent:
    """Normalized event handed to the dispatch layer."""
    body: Any
    ack: Callable[..., Awaitable[None]]
