# src/mcp_app_bridge/__init__.py
"""mcp-app-bridge: app-side bridge and payload normalizer for MCP Apps."""

from __future__ import annotations

from mcp_app_bridge.apps import (
    BridgeSession,
    Normalizer,
    RenderHooks,
    normalize,
)
from mcp_app_bridge.config import BridgeConfig

__version__ = "0.1.0"

__all__ = [
    "BridgeConfig",
    "BridgeSession",
    "Normalizer",
    "RenderHooks",
    "normalize",
    "__version__",
]
