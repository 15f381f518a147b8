# mcp_app_bridge/apps/session.py
"""BridgeSession: one embedded app's connection to its host.

Owns the transport, the request correlator, the notification router,
the size reporter and the display-mode state.  Construct one per
embedded app; sessions share no module-level state.

Typical use::

    hooks = RenderHooks(render=draw_table, empty=show_empty)
    session = BridgeSession(transport, document=doc, hooks=hooks)
    await session.start()
    ...
    await session.handle_message(raw)   # for every inbound message
"""

from __future__ import annotations

import json
import logging
from collections import deque
from typing import Any, Callable, Mapping
from urllib.parse import urlparse

from mcp_app_bridge.apps.actions import ActionRegistry
from mcp_app_bridge.apps.correlator import RequestCorrelator
from mcp_app_bridge.apps.display import DisplayModeController
from mcp_app_bridge.apps.document import Document
from mcp_app_bridge.apps.errors import BridgeClosedError, BridgeError
from mcp_app_bridge.apps.hooks import RenderHooks
from mcp_app_bridge.apps.models import (
    AppInfo,
    AppState,
    DisplayMode,
    Envelope,
    HostContext,
    Method,
    SizeSample,
    Theme,
)
from mcp_app_bridge.apps.normalizer import Normalizer
from mcp_app_bridge.apps.router import (
    DEFAULT_TEARDOWN_REASON,
    Listener,
    NotificationRouter,
    decode_envelope,
)
from mcp_app_bridge.apps.size_reporter import SizeReporter
from mcp_app_bridge.apps.transport import Transport
from mcp_app_bridge.config.defaults import (
    MAX_PENDING_MESSAGES,
    MCP_LOG_LEVELS,
    OPEN_LINK_SCHEMES,
)
from mcp_app_bridge.config.enums import TimeoutType
from mcp_app_bridge.config.models import BridgeConfig

logger = logging.getLogger(__name__)


class BridgeSession:
    """App-side endpoint of the MCP Apps protocol."""

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        config: BridgeConfig | None = None,
        document: Document | None = None,
        app_info: AppInfo | None = None,
        normalizer: Normalizer | None = None,
        hooks: RenderHooks | None = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.document = document
        self.app_info = app_info or AppInfo(
            name=self.config.app_name, version=self.config.app_version
        )
        self.hooks = hooks or RenderHooks()
        self.normalizer = normalizer or Normalizer(
            string_policy=self.config.string_policy,
            max_depth=self.config.normalize_max_depth,
        )

        self._transport = transport
        self._pending_messages: deque[str] = deque(maxlen=MAX_PENDING_MESSAGES)

        self.state = AppState.PENDING
        self.degraded = False
        self.host_context = HostContext()
        self.host_capabilities: dict[str, Any] = {}

        self.correlator = RequestCorrelator(
            self._send_envelope, timeout=self.config.timeout(TimeoutType.REQUEST)
        )
        self.router = NotificationRouter(
            self.correlator,
            self.normalizer,
            reply=self._send_envelope,
            hooks=self.hooks,
            on_teardown=self.teardown,
            on_host_context=self._apply_host_context,
        )
        self.runner = self.router.runner
        self.size_reporter = SizeReporter(
            self._emit_size,
            debounce=self.config.timeout(TimeoutType.SIZE_DEBOUNCE),
            initial_delay=self.config.timeout(TimeoutType.INITIAL_SIZE),
        )
        self.display = DisplayModeController(
            self.size_reporter,
            on_layout=self._on_layout,
            settle_delay=self.config.timeout(TimeoutType.DISPLAY_MODE_SETTLE),
        )

        self.actions = ActionRegistry()
        self.actions.register("request-display-mode", self.request_display_mode)
        self.actions.register("toggle-fullscreen", self.toggle_fullscreen)

    # ------------------------------------------------------------------ #
    #  Properties                                                         #
    # ------------------------------------------------------------------ #

    @property
    def display_mode(self) -> DisplayMode:
        return self.display.mode

    @property
    def theme(self) -> Theme | None:
        return self.host_context.theme

    @property
    def pending_messages(self) -> int:
        """Outbound messages waiting for a transport."""
        return len(self._pending_messages)

    # ------------------------------------------------------------------ #
    #  Transport                                                          #
    # ------------------------------------------------------------------ #

    def set_transport(self, transport: Transport | None) -> None:
        """Attach *transport*. Call :meth:`drain_pending` to flush the backlog."""
        self._transport = transport
        logger.debug("Transport set: %s", type(transport).__name__)

    async def drain_pending(self) -> None:
        """Send queued messages that accumulated while no transport was attached."""
        while self._pending_messages and self._transport is not None:
            msg = self._pending_messages.popleft()
            try:
                await self._transport.send(msg)
            except Exception:
                self._pending_messages.appendleft(msg)
                break

    async def _send_envelope(self, envelope: Envelope) -> None:
        msg = json.dumps(envelope.to_wire())
        if self._transport is None:
            logger.debug("No transport; queued %s", envelope.method or envelope.id)
            self._pending_messages.append(msg)
            return
        try:
            await self._transport.send(msg)
        except Exception as e:
            logger.warning("Send failed, message queued: %s", e)
            self._pending_messages.append(msg)

    # ------------------------------------------------------------------ #
    #  Lifecycle                                                          #
    # ------------------------------------------------------------------ #

    async def start(self) -> None:
        """Begin size reporting and perform the handshake."""
        if self.state is not AppState.PENDING:
            logger.debug("start() ignored in state %s", self.state.value)
            return
        self.state = AppState.INITIALIZING
        await self.drain_pending()
        if self.document is not None:
            self.size_reporter.start(self.document)
        await self.initialize()

    async def initialize(self) -> None:
        """Run the ``ui/initialize`` handshake.

        A failed handshake leaves the session usable in degraded mode,
        with the theme taken from the document's colour-scheme
        preference when it has one.
        """
        info = self.app_info.model_dump()
        params = {
            "appCapabilities": {
                "availableDisplayModes": list(self.config.available_display_modes)
            },
            "appInfo": info,
            "clientInfo": info,
            "protocolVersion": self.config.protocol_version,
        }
        try:
            result = await self.request(Method.INITIALIZE, params)
        except BridgeClosedError:
            # The host may tear the resource down before answering
            logger.info("Session closed during handshake")
            return
        except BridgeError as e:
            logger.warning("Handshake failed (%s); continuing in degraded mode", e)
            self.degraded = True
            self._apply_scheme_fallback()
            self._mark_ready()
            return

        context: Any = result
        if isinstance(result, Mapping) and isinstance(
            result.get("hostContext"), Mapping
        ):
            context = result["hostContext"]

        capabilities = None
        if isinstance(result, Mapping):
            capabilities = result.get("hostCapabilities")
        if capabilities is None and isinstance(context, Mapping):
            capabilities = context.get("hostCapabilities")
        if isinstance(capabilities, Mapping):
            self.host_capabilities = dict(capabilities)

        await self.notify(Method.INITIALIZED, {})
        self._apply_host_context(context)
        self._mark_ready()
        logger.info(
            "Handshake complete (theme=%s, displayMode=%s)",
            self.theme.value if self.theme else None,
            self.display_mode.value,
        )

    async def teardown(self, reason: str | None = None) -> None:
        """Release every resource the session holds. Idempotent.

        Stops size reporting, fails outstanding requests with
        :class:`BridgeClosedError` and gives the rendering layer its
        ``teardown`` hook.
        """
        if self.state is AppState.CLOSED:
            return
        reason = reason or DEFAULT_TEARDOWN_REASON
        self.state = AppState.CLOSED
        self.size_reporter.stop()
        failed = self.correlator.cancel_all(BridgeClosedError())
        self.runner.cancel()
        self.runner.call("teardown", self.hooks.teardown, reason)
        logger.info("Session closed: %s (%d requests failed)", reason, failed)

    async def __aenter__(self) -> BridgeSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.teardown()

    # ------------------------------------------------------------------ #
    #  Inbound                                                            #
    # ------------------------------------------------------------------ #

    async def handle_message(self, raw: str | bytes | Mapping[str, Any]) -> None:
        """Feed one inbound message (JSON text or decoded mapping) to the bridge."""
        envelope = decode_envelope(raw)
        if envelope is None:
            return
        try:
            await self.router.dispatch(envelope)
        except Exception as e:
            logger.error("Error handling %s: %s", envelope.method or "response", e)

    def on_notification(
        self, method: Method | str, listener: Listener
    ) -> Callable[[], None]:
        """Call *listener(params)* for every *method* notification.

        Returns a function that removes the listener.
        """
        return self.router.add_listener(method, listener)

    # ------------------------------------------------------------------ #
    #  Outbound                                                           #
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: Method | str,
        params: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and await its result.

        Raises:
            BridgeClosedError: the session is (or gets) torn down.
            RequestTimeoutError: the host did not answer in time.
            RemoteError: the host answered with an error.
        """
        if self.state is AppState.CLOSED:
            raise BridgeClosedError()
        return await self.correlator.send(_method_name(method), params, timeout)

    async def notify(self, method: Method | str, params: Any = None) -> None:
        """Send a fire-and-forget notification."""
        name = _method_name(method)
        if self.state is AppState.CLOSED:
            logger.debug("Session closed; dropping %s", name)
            return
        await self._send_envelope(Envelope.make_notification(name, params))

    async def request_display_mode(self, mode: DisplayMode | str) -> DisplayMode:
        """Ask the host for *mode*; the granted mode is applied and returned."""
        requested = DisplayMode(mode)
        result = await self.request(
            Method.REQUEST_DISPLAY_MODE, {"mode": requested.value}
        )
        granted = result.get("mode") if isinstance(result, Mapping) else None
        if isinstance(granted, str) and self.display.apply(granted):
            self.host_context = self.host_context.merged({"displayMode": granted})
        return self.display.mode

    async def toggle_fullscreen(self) -> DisplayMode:
        return await self.request_display_mode(self.display.toggled())

    async def call_server_tool(
        self, name: str, arguments: Mapping[str, Any] | None = None
    ) -> Any:
        return await self.request(
            Method.TOOLS_CALL, {"name": name, "arguments": dict(arguments or {})}
        )

    async def send_message(self, text: str, role: str = "user") -> Any:
        """Post *text* into the host conversation."""
        return await self.request(
            Method.MESSAGE,
            {"role": role, "content": [{"type": "text", "text": text}]},
        )

    async def open_link(self, url: str) -> Any:
        """Ask the host to open *url*. Only http(s) URLs are forwarded.

        Raises:
            ValueError: *url* has another scheme.
        """
        scheme = urlparse(url).scheme.lower()
        if scheme not in OPEN_LINK_SCHEMES:
            raise ValueError(f"Refusing to open non-http(s) URL: {url!r}")
        return await self.request(Method.OPEN_LINK, {"url": url})

    async def request_data(self, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request(Method.REQUEST_DATA, dict(params or {}))

    async def send_log(
        self, level: str, data: Any, logger_name: str | None = None
    ) -> None:
        """Forward a log record to the host's log channel."""
        level = level.lower()
        if level not in MCP_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {level}")
        await self.notify(
            Method.LOG,
            {
                "level": level,
                "logger": logger_name or self.app_info.name,
                "data": data,
            },
        )

    # ------------------------------------------------------------------ #
    #  Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _mark_ready(self) -> None:
        if self.state is AppState.INITIALIZING:
            self.state = AppState.READY

    def _apply_host_context(self, update: Any) -> None:
        """Merge a host-context update and run its side effects."""
        if not isinstance(update, Mapping):
            logger.debug("Ignoring non-object host context: %r", update)
            return
        self.host_context = self.host_context.merged(update)
        if isinstance(update.get("displayMode"), str):
            self.display.apply(update["displayMode"])
        self.runner.call("host_context", self.hooks.host_context, self.host_context)

    def _apply_scheme_fallback(self) -> None:
        if self.document is None:
            return
        prefers_dark = getattr(self.document, "prefers_dark_scheme", None)
        dark = prefers_dark() if callable(prefers_dark) else None
        if dark is None:
            return
        theme = Theme.DARK if dark else Theme.LIGHT
        self._apply_host_context({"theme": theme.value})

    def _on_layout(self, mode: DisplayMode) -> None:
        self.runner.call("layout", self.hooks.layout, mode)

    def _emit_size(self, sample: SizeSample):
        return self.notify(Method.SIZE_CHANGED, sample.model_dump())


def _method_name(method: Method | str) -> str:
    return method.value if isinstance(method, Method) else method
