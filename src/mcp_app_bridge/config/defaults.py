"""Default configuration values for the MCP App bridge.

All tunables live here so the protocol code carries no magic numbers.
"""

from __future__ import annotations


# ================================================================
# Timing Defaults (in seconds)
# ================================================================

DEFAULT_REQUEST_TIMEOUT = 5.0
"""How long an outstanding request waits for its response."""

DEFAULT_SIZE_DEBOUNCE = 0.1
"""Quiet period after the last layout change before a size report."""

DEFAULT_DISPLAY_MODE_SETTLE_DELAY = 0.1
"""Delay between a display-mode transition and its size report."""

DEFAULT_INITIAL_SIZE_DELAY = 0.1
"""Delay before the first size report once observation starts."""


# ================================================================
# Protocol Defaults
# ================================================================

JSONRPC_VERSION = "2.0"
"""Value of the ``jsonrpc`` field on every envelope."""

DEFAULT_PROTOCOL_VERSION = "2026-01-26"
"""MCP Apps protocol version announced during ``ui/initialize``."""

DEFAULT_APP_NAME = "mcp-app"
"""Application name reported to the host."""

DEFAULT_APP_VERSION = "1.0.0"
"""Application version reported to the host."""

DISPLAY_MODE_INLINE = "inline"
DISPLAY_MODE_FULLSCREEN = "fullscreen"

DEFAULT_AVAILABLE_DISPLAY_MODES = [DISPLAY_MODE_INLINE, DISPLAY_MODE_FULLSCREEN]
"""Display modes the app announces it can handle."""

THEME_DARK = "dark"
THEME_LIGHT = "light"


# ================================================================
# Normalizer Defaults
# ================================================================

DEFAULT_STRING_POLICY = "parse"
"""How string payloads are treated (``parse`` or ``passthrough``)."""

DEFAULT_NORMALIZE_MAX_DEPTH = 32
"""Maximum wrapper nesting the normalizer will descend through."""


# ================================================================
# Transport Defaults
# ================================================================

DEFAULT_HOST_URL = "ws://localhost:9470/ws"
"""WebSocket endpoint of a local MCP Apps host."""

OPEN_LINK_SCHEMES = ("http", "https")
"""URL schemes ``open_link`` will forward to the host."""

MAX_PENDING_MESSAGES = 50
"""Outbound messages buffered while no transport is attached."""

MCP_LOG_LEVELS = (
    "debug",
    "info",
    "notice",
    "warning",
    "error",
    "critical",
    "alert",
    "emergency",
)
"""Levels accepted by the ``notifications/message`` log channel."""


# ================================================================
# Logging Defaults
# ================================================================

DEFAULT_LOG_LEVEL = "WARNING"
"""Default log level for the CLI."""

DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024
"""Rotate the log file after this many bytes."""

DEFAULT_LOG_BACKUP_COUNT = 3
"""Number of rotated log files to keep."""


# ================================================================
# Application Constants
# ================================================================

APP_NAME = "mcp-app-bridge"
"""Distribution / CLI name."""
