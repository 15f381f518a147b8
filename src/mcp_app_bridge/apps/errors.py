# mcp_app_bridge/apps/errors.py
"""Exceptions surfaced by the bridge to its callers.

Only request-level failures become exceptions. Protocol-level problems
(malformed envelopes, unknown methods) are logged and dropped by the
session and never reach this hierarchy.
"""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base class for all bridge errors."""


class RequestTimeoutError(BridgeError):
    """A request outlived its timeout without a matching response."""

    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        super().__init__("Request timeout")
        self.method = method
        self.request_id = request_id
        self.timeout = timeout


class RemoteError(BridgeError):
    """The host answered a request with an ``error`` member."""

    DEFAULT_MESSAGE = "Unknown error"

    def __init__(
        self, message: str | None = None, code: int | None = None, data: Any = None
    ) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)
        self.code = code
        self.data = data


class BridgeClosedError(BridgeError):
    """The session was torn down before the request could complete."""

    def __init__(self, message: str = "Bridge session closed") -> None:
        super().__init__(message)


class UnknownActionError(BridgeError, KeyError):
    """No handler is registered under the requested action name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown action: {name!r}")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])
