"""
Configuration for the MCP App bridge.

Pydantic-based, with environment overrides and centralized defaults.
"""

from mcp_app_bridge.config.enums import LogFormat, StringPolicy, TimeoutType
from mcp_app_bridge.config.env_vars import EnvVar
from mcp_app_bridge.config.logging import get_logger, setup_logging
from mcp_app_bridge.config.models import BridgeConfig, TimeoutConfig

__all__ = [
    "BridgeConfig",
    "TimeoutConfig",
    "LogFormat",
    "StringPolicy",
    "TimeoutType",
    "EnvVar",
    "setup_logging",
    "get_logger",
]
