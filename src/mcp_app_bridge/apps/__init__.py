# mcp_app_bridge/apps/__init__.py
"""App side of the MCP Apps protocol.

The embedded app talks JSON-RPC 2.0 to its host: it performs the
``ui/initialize`` handshake, receives tool results and host-context
updates, reports its content size and answers ``ui/resource-teardown``.
Tool results are reconciled into one canonical shape by the
payload normalizer before they reach the rendering layer.
"""

from __future__ import annotations

from mcp_app_bridge.apps.actions import ActionRegistry
from mcp_app_bridge.apps.correlator import RequestCorrelator
from mcp_app_bridge.apps.document import Document, VirtualDocument
from mcp_app_bridge.apps.errors import (
    BridgeClosedError,
    BridgeError,
    RemoteError,
    RequestTimeoutError,
    UnknownActionError,
)
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
from mcp_app_bridge.apps.normalizer import (
    DEFAULT_RULES,
    EMPTY,
    NormalizeRule,
    Normalizer,
    is_empty,
    normalize,
)
from mcp_app_bridge.apps.router import NotificationRouter
from mcp_app_bridge.apps.session import BridgeSession
from mcp_app_bridge.apps.size_reporter import SizeReporter
from mcp_app_bridge.apps.transport import QueueTransport, Transport, WebSocketTransport

__all__ = [
    "ActionRegistry",
    "AppInfo",
    "AppState",
    "BridgeClosedError",
    "BridgeError",
    "BridgeSession",
    "DEFAULT_RULES",
    "DisplayMode",
    "Document",
    "EMPTY",
    "Envelope",
    "HostContext",
    "Method",
    "NormalizeRule",
    "Normalizer",
    "NotificationRouter",
    "QueueTransport",
    "RemoteError",
    "RenderHooks",
    "RequestCorrelator",
    "RequestTimeoutError",
    "SizeReporter",
    "SizeSample",
    "Theme",
    "Transport",
    "UnknownActionError",
    "VirtualDocument",
    "WebSocketTransport",
    "is_empty",
    "normalize",
]
