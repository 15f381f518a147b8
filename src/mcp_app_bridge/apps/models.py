# mcp_app_bridge/apps/models.py
"""Pydantic models for the MCP Apps wire protocol (app side)."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from mcp_app_bridge.config.defaults import (
    DEFAULT_APP_NAME,
    DEFAULT_APP_VERSION,
    DISPLAY_MODE_FULLSCREEN,
    DISPLAY_MODE_INLINE,
    JSONRPC_VERSION,
    THEME_DARK,
    THEME_LIGHT,
)


class Method(str, Enum):
    """Every method name the bridge sends or understands."""

    # host -> app
    TOOL_RESULT = "ui/notifications/tool-result"
    HOST_CONTEXT_CHANGED = "ui/notifications/host-context-changed"
    TOOL_INPUT = "ui/notifications/tool-input"
    TOOL_CANCELLED = "ui/notifications/tool-cancelled"
    INITIALIZED = "ui/notifications/initialized"
    RESOURCE_TEARDOWN = "ui/resource-teardown"

    # app -> host
    INITIALIZE = "ui/initialize"
    SIZE_CHANGED = "ui/notifications/size-changed"
    REQUEST_DISPLAY_MODE = "ui/request-display-mode"
    TOOLS_CALL = "tools/call"
    MESSAGE = "ui/message"
    OPEN_LINK = "ui/open-link"
    REQUEST_DATA = "ui/request-data"
    LOG = "notifications/message"


class AppState(str, Enum):
    """Lifecycle states of a bridge session."""

    PENDING = "pending"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


class DisplayMode(str, Enum):
    """Presentation state of the embedded surface."""

    INLINE = DISPLAY_MODE_INLINE
    FULLSCREEN = DISPLAY_MODE_FULLSCREEN


class Theme(str, Enum):
    DARK = THEME_DARK
    LIGHT = THEME_LIGHT


class AppInfo(BaseModel):
    """Identity the app reports during the handshake."""

    name: str = DEFAULT_APP_NAME
    version: str = DEFAULT_APP_VERSION

    model_config = {"frozen": True}


# ────────────────────────────────────────────────────────────────────────────
#  Envelope
# ────────────────────────────────────────────────────────────────────────────


class ErrorObject(BaseModel):
    """The ``error`` member of a response envelope."""

    code: int | None = None
    message: str | None = None
    data: Any = None

    model_config = {"extra": "allow"}

    @classmethod
    def coerce(cls, value: Any) -> Any:
        # Some hosts send a bare string instead of an error object
        if isinstance(value, str):
            return {"message": value}
        return value


class Envelope(BaseModel):
    """One JSON-RPC 2.0 message exchanged with the host.

    Presence of ``id``, ``result`` and ``error`` is tracked through
    ``model_fields_set`` so that ``"result": 0`` or ``"result": null``
    still count as a result.
    """

    jsonrpc: str
    id: int | float | str | None = None
    method: str | None = None
    params: Any = None
    result: Any = None
    error: ErrorObject | None = None

    model_config = {"extra": "allow"}

    @field_validator("jsonrpc")
    @classmethod
    def validate_jsonrpc(cls, v: str) -> str:
        if v != JSONRPC_VERSION:
            raise ValueError(f"unsupported jsonrpc version: {v!r}")
        return v

    @field_validator("error", mode="before")
    @classmethod
    def coerce_error(cls, v: Any) -> Any:
        return ErrorObject.coerce(v)

    # -- presence -----------------------------------------------------------

    @property
    def has_id(self) -> bool:
        return "id" in self.model_fields_set

    @property
    def has_result(self) -> bool:
        return "result" in self.model_fields_set

    @property
    def has_error(self) -> bool:
        return "error" in self.model_fields_set and self.error is not None

    # -- classification -----------------------------------------------------

    @property
    def is_request(self) -> bool:
        """Carries both ``id`` and ``method``: the receiver must reply."""
        return self.has_id and self.method is not None

    @property
    def is_notification(self) -> bool:
        return not self.has_id and self.method is not None

    @property
    def is_response(self) -> bool:
        return (
            self.has_id and self.method is None and (self.has_result or self.has_error)
        )

    @property
    def is_malformed(self) -> bool:
        """Neither a request, a notification nor a response."""
        return not (self.is_request or self.is_notification or self.is_response)

    # -- construction -------------------------------------------------------

    @classmethod
    def make_request(
        cls, request_id: int | str, method: str, params: Any = None
    ) -> Envelope:
        return cls(jsonrpc=JSONRPC_VERSION, id=request_id, method=method, params=params)

    @classmethod
    def make_notification(cls, method: str, params: Any = None) -> Envelope:
        return cls(jsonrpc=JSONRPC_VERSION, method=method, params=params)

    @classmethod
    def make_response(
        cls, request_id: int | float | str | None, result: Any
    ) -> Envelope:
        return cls(jsonrpc=JSONRPC_VERSION, id=request_id, result=result)

    def to_wire(self) -> dict[str, Any]:
        """Dump only the members that were set, as plain JSON types."""
        return self.model_dump(mode="json", exclude_unset=True)


# ────────────────────────────────────────────────────────────────────────────
#  Host context
# ────────────────────────────────────────────────────────────────────────────


class ContainerDimensions(BaseModel):
    """Size constraints the host places on the embedded surface (pixels)."""

    width: float | None = None
    height: float | None = None
    max_width: float | None = Field(default=None, alias="maxWidth")
    max_height: float | None = Field(default=None, alias="maxHeight")

    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}


class HostContext(BaseModel):
    """Last-known state pushed by the host.

    Frozen: the session replaces it wholesale via :meth:`merged`, the
    rendering layer only reads it.
    """

    theme: Theme | None = None
    display_mode: DisplayMode = Field(default=DisplayMode.INLINE, alias="displayMode")
    container_dimensions: ContainerDimensions | None = Field(
        default=None, alias="containerDimensions"
    )
    styles: dict[str, Any] | None = None

    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}

    @property
    def style_variables(self) -> dict[str, Any] | None:
        if not self.styles:
            return None
        variables = self.styles.get("variables")
        return variables if isinstance(variables, dict) else None

    @property
    def fonts(self) -> Any:
        if not self.styles:
            return None
        css = self.styles.get("css")
        return css.get("fonts") if isinstance(css, dict) else None

    def merged(self, update: Mapping[str, Any] | None) -> HostContext:
        """Return a copy with the recognised keys of *update* applied.

        Unknown theme or display-mode values are ignored rather than
        rejected, so a partially valid update still lands.
        """
        if not isinstance(update, Mapping):
            return self

        changes: dict[str, Any] = {}

        theme = update.get("theme")
        if isinstance(theme, str) and theme in {t.value for t in Theme}:
            changes["theme"] = Theme(theme)

        mode = update.get("displayMode")
        if isinstance(mode, str) and mode in {m.value for m in DisplayMode}:
            changes["display_mode"] = DisplayMode(mode)

        dims = update.get("containerDimensions")
        if isinstance(dims, Mapping):
            try:
                changes["container_dimensions"] = ContainerDimensions.model_validate(
                    dict(dims)
                )
            except ValidationError:
                pass

        styles = update.get("styles")
        if isinstance(styles, Mapping):
            changes["styles"] = dict(styles)

        if not changes:
            return self
        return self.model_copy(update=changes)


class SizeSample(BaseModel):
    """Document scroll size at the moment of a size report."""

    width: int
    height: int

    model_config = {"frozen": True}
