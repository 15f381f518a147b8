# mcp_app_bridge/apps/router.py
"""NotificationRouter: dispatches inbound envelopes by method.

Responses (``id`` without ``method``) go to the RequestCorrelator.
Requests (``id`` and ``method``) must be answered; only
``ui/resource-teardown`` is understood, anything else gets a
method-not-found error.  Notifications (``method`` without ``id``) go
through the handler table; unknown ones fall back to best-effort
tool-result extraction.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Mapping

from pydantic import ValidationError

from mcp_app_bridge.apps.correlator import RequestCorrelator
from mcp_app_bridge.apps.hooks import HookRunner, RenderHooks
from mcp_app_bridge.apps.models import Envelope, Method
from mcp_app_bridge.apps.normalizer import Normalizer, is_empty

logger = logging.getLogger(__name__)

Handler = Callable[[Envelope], Awaitable[None]]
Listener = Callable[[Any], Any]
ReplyFn = Callable[[Envelope], Awaitable[None]]
TeardownFn = Callable[[str], Awaitable[None]]
ContextFn = Callable[[Any], None]

_METHOD_NOT_FOUND = -32601

DEFAULT_CANCEL_REASON = "Tool execution was cancelled"
DEFAULT_TEARDOWN_REASON = "Resource teardown requested"
DEFAULT_TOOL_ERROR = "Tool execution failed"


def decode_envelope(raw: str | bytes | Mapping[str, Any] | Any) -> Envelope | None:
    """Parse *raw* into an Envelope, or None when it is not one of ours."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Dropping non-JSON message: %s", raw[:200])
            return None
    if not isinstance(raw, Mapping):
        logger.debug("Dropping non-object message: %r", raw)
        return None
    try:
        return Envelope.model_validate(dict(raw))
    except ValidationError as e:
        logger.debug("Dropping invalid envelope: %s", e.errors()[:1])
        return None


def tool_payload(params: Any) -> Any:
    """``params.structuredContent`` when present, otherwise ``params``."""
    if isinstance(params, Mapping) and params.get("structuredContent") is not None:
        return params["structuredContent"]
    return params


def tool_error_text(params: Mapping[str, Any]) -> str:
    """Join the text blocks of an ``isError`` result."""
    content = params.get("content")
    texts: list[str] = []
    if isinstance(content, list):
        for block in content:
            if isinstance(block, Mapping) and block.get("text"):
                texts.append(str(block["text"]))
    return "\n".join(texts) or DEFAULT_TOOL_ERROR


class NotificationRouter:
    """Routes inbound envelopes to the correlator, handlers and hooks."""

    def __init__(
        self,
        correlator: RequestCorrelator,
        normalizer: Normalizer,
        reply: ReplyFn,
        hooks: RenderHooks | None = None,
        on_teardown: TeardownFn | None = None,
        on_host_context: ContextFn | None = None,
    ) -> None:
        self.correlator = correlator
        self.normalizer = normalizer
        self.hooks = hooks or RenderHooks()
        self.runner = HookRunner()
        self._reply = reply
        self._on_teardown = on_teardown
        self._on_host_context = on_host_context
        self._listeners: dict[str, list[Listener]] = {}
        self._handlers: dict[str, Handler] = {
            Method.TOOL_RESULT.value: self._handle_tool_result,
            Method.HOST_CONTEXT_CHANGED.value: self._handle_host_context_changed,
            Method.TOOL_INPUT.value: self._handle_tool_input,
            Method.TOOL_CANCELLED.value: self._handle_tool_cancelled,
            Method.INITIALIZED.value: self._handle_initialized,
        }
        self.last_tool_input: Any = None
        self.last_tool_result: Any = None

    # ------------------------------------------------------------------ #
    #  Registration                                                       #
    # ------------------------------------------------------------------ #

    @property
    def methods(self) -> list[str]:
        """Notification methods with a dedicated handler."""
        return list(self._handlers)

    def add_listener(self, method: str, listener: Listener) -> Callable[[], None]:
        """Observe *method*'s params alongside the built-in handling.

        Returns a function that removes the listener again.
        """
        key = method.value if isinstance(method, Method) else method
        self._listeners.setdefault(key, []).append(listener)

        def remove() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------ #
    #  Dispatch                                                           #
    # ------------------------------------------------------------------ #

    async def dispatch(self, envelope: Envelope) -> None:
        if envelope.is_response:
            self.correlator.handle_response(envelope)
            return

        if envelope.is_malformed:
            logger.debug("Dropping malformed envelope id=%r", envelope.id)
            return

        method = envelope.method or ""
        for listener in list(self._listeners.get(method, [])):
            self.runner.call(f"listener[{method}]", listener, envelope.params)

        if envelope.is_request:
            await self._dispatch_request(envelope)
            return

        handler = self._handlers.get(method, self._handle_unknown)
        await handler(envelope)

    async def _dispatch_request(self, envelope: Envelope) -> None:
        if envelope.method == Method.RESOURCE_TEARDOWN.value:
            await self._handle_resource_teardown(envelope)
            return

        logger.warning("Unknown request method %r", envelope.method)
        await self._reply(
            Envelope(
                jsonrpc=envelope.jsonrpc,
                id=envelope.id,
                error={
                    "code": _METHOD_NOT_FOUND,
                    "message": f"Unknown method: {envelope.method}",
                },
            )
        )

    # ------------------------------------------------------------------ #
    #  Handlers                                                           #
    # ------------------------------------------------------------------ #

    async def _handle_tool_result(self, envelope: Envelope) -> None:
        params = envelope.params
        self.last_tool_result = params

        if isinstance(params, Mapping) and params.get("isError"):
            message = tool_error_text(params)
            logger.warning("Tool execution failed: %s", message)
            self.runner.call("error", self.hooks.error, message)
            return

        self._render(tool_payload(params), source=envelope.method or "")

    async def _handle_host_context_changed(self, envelope: Envelope) -> None:
        if self._on_host_context is not None:
            self._on_host_context(envelope.params)

    async def _handle_tool_input(self, envelope: Envelope) -> None:
        params = envelope.params
        self.last_tool_input = params
        arguments = params.get("arguments") if isinstance(params, Mapping) else None
        logger.info("Tool input received: %s", arguments)
        self.runner.call("tool_input", self.hooks.tool_input, params)

    async def _handle_tool_cancelled(self, envelope: Envelope) -> None:
        params = envelope.params
        reason = None
        if isinstance(params, Mapping):
            reason = params.get("reason")
        reason = str(reason) if reason else DEFAULT_CANCEL_REASON
        logger.info("Tool cancelled: %s", reason)
        if not self.runner.call("cancelled", self.hooks.cancelled, reason):
            self.runner.call("error", self.hooks.error, reason)

    async def _handle_initialized(self, envelope: Envelope) -> None:
        logger.debug("Host acknowledged initialization")

    async def _handle_resource_teardown(self, envelope: Envelope) -> None:
        params = envelope.params
        reason = None
        if isinstance(params, Mapping):
            reason = params.get("reason")
        reason = str(reason) if reason else DEFAULT_TEARDOWN_REASON
        logger.info("Resource teardown requested: %s", reason)
        try:
            if self._on_teardown is not None:
                await self._on_teardown(reason)
        except Exception:
            logger.exception("Teardown cleanup failed")
        finally:
            # The host waits on this reply; it is sent even if cleanup failed
            await self._reply(Envelope.make_response(envelope.id, {}))

    async def _handle_unknown(self, envelope: Envelope) -> None:
        params = envelope.params
        if params is None:
            logger.debug("Ignoring unknown notification %r", envelope.method)
            return
        logger.warning(
            "Unknown method: %s - attempting to render data", envelope.method
        )
        self._render(tool_payload(params), source=envelope.method or "", fallback=True)

    # ------------------------------------------------------------------ #
    #  Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _render(self, data: Any, source: str, fallback: bool = False) -> None:
        payload = None if data is None else self.normalizer.normalize(data)
        if is_empty(payload):
            if fallback:
                logger.debug("No usable data in %s", source)
                return
            logger.warning("%s received but no data found", source)
            self.runner.call("empty", self.hooks.empty)
            return
        self.runner.call("render", self.hooks.render, payload)
