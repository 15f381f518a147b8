"""Environment variable names - centralized, type-safe, no magic strings!

All environment variable access should go through this module.
"""

from __future__ import annotations

import os
from enum import Enum


class EnvVar(str, Enum):
    """All environment variable names read by the bridge."""

    # ================================================================
    # Timing
    # ================================================================
    REQUEST_TIMEOUT = "MCP_APP_REQUEST_TIMEOUT"
    SIZE_DEBOUNCE = "MCP_APP_SIZE_DEBOUNCE"

    # ================================================================
    # Protocol / Normalizer
    # ================================================================
    PROTOCOL_VERSION = "MCP_APP_PROTOCOL_VERSION"
    STRING_POLICY = "MCP_APP_STRING_POLICY"

    # ================================================================
    # Transport
    # ================================================================
    HOST_URL = "MCP_APP_HOST_URL"

    # ================================================================
    # Logging
    # ================================================================
    LOG_LEVEL = "MCP_APP_LOG_LEVEL"


def get_env(var: EnvVar, default: str | None = None) -> str | None:
    """Get environment variable value (type-safe).

    Example:
        >>> url = get_env(EnvVar.HOST_URL, "ws://localhost:9470/ws")
    """
    return os.getenv(var.value, default)


def set_env(var: EnvVar, value: str) -> None:
    """Set environment variable (type-safe)."""
    os.environ[var.value] = value


def unset_env(var: EnvVar) -> None:
    """Unset environment variable if it exists."""
    os.environ.pop(var.value, None)


def get_env_float(var: EnvVar, default: float | None = None) -> float | None:
    """Get environment variable as float.

    Unparseable values yield *default* rather than raising.

    Example:
        >>> timeout = get_env_float(EnvVar.REQUEST_TIMEOUT, 5.0)
    """
    value = get_env(var)
    if value is None:
        return default

    try:
        return float(value)
    except ValueError:
        return default
