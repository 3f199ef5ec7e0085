"""
Minimal dispatch layer for the bundled Lambda entry point.

Routes slash commands by ``command`` and Events API callbacks by
``event.type`` to registered async listeners. Listeners are called as
``await listener(body=body, ack=ack, context=context)``; unmatched requests
are left unacknowledged so the receiver answers 404.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from ack_guard import ReceiverEvent
from installation_store import AuthorizeResult, InstallationQuery
from logger_util import get_logger, log

Listener = Callable[..., Awaitable[None]]
Authorize = Callable[[InstallationQuery], AuthorizeResult]

_logger = get_logger("command_app")


def _log(level: str, event_type: str, data: dict) -> None:
    log(_logger, level, event_type, data, service="slack-lambda-receiver-app")


def installation_query_from_body(body: dict) -> InstallationQuery:
    """Build the installation lookup for a slash command or event body."""
    is_enterprise_install = body.get("is_enterprise_install")
    if isinstance(is_enterprise_install, str):
        is_enterprise_install = is_enterprise_install.lower() == "true"
    return InstallationQuery(
        enterprise_id=body.get("enterprise_id"),
        team_id=body.get("team_id"),
        is_enterprise_install=bool(is_enterprise_install),
    )


class App:
    def __init__(self, authorize: Optional[Authorize] = None, bot_token: Optional[str] = None):
        self._authorize = authorize
        self._bot_token = bot_token
        self._commands: dict[str, Listener] = {}
        self._events: dict[str, Listener] = {}

    def command(self, name: str) -> Callable[[Listener], Listener]:
        """Decorator: register a slash command listener."""
        def decorator(func: Listener) -> Listener:
            self._commands[name] = func
            return func
        return decorator

    def event(self, event_type: str) -> Callable[[Listener], Listener]:
        """Decorator: register an Events API listener."""
        def decorator(func: Listener) -> Listener:
            self._events[event_type] = func
            return func
        return decorator

    def _match(self, body: Any) -> Optional[Listener]:
        if not isinstance(body, dict):
            return None
        command = body.get("command")
        if command:
            return self._commands.get(command)
        if body.get("type") == "event_callback":
            return self._events.get((body.get("event") or {}).get("type"))
        return None

    async def _build_context(self, body: dict) -> AuthorizeResult:
        if self._authorize is not None:
            # Installation lookups block on S3; keep the loop free for the ack timer
            return await asyncio.to_thread(self._authorize, installation_query_from_body(body))
        return AuthorizeResult(
            team_id=body.get("team_id"),
            enterprise_id=body.get("enterprise_id"),
            bot_token=self._bot_token,
        )

    async def process_event(self, event: ReceiverEvent) -> None:
        listener = self._match(event.body)
        if listener is None:
            _log("INFO", "no_listener_matched", {
                "command": event.body.get("command") if isinstance(event.body, dict) else None,
            })
            return
        context = await self._build_context(event.body)
        await listener(body=event.body, ack=event.ack, context=context)
