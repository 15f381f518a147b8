"""Pydantic configuration models for the bridge - immutable, type safe."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from mcp_app_bridge.config.defaults import (
    DEFAULT_APP_NAME,
    DEFAULT_APP_VERSION,
    DEFAULT_AVAILABLE_DISPLAY_MODES,
    DEFAULT_DISPLAY_MODE_SETTLE_DELAY,
    DEFAULT_HOST_URL,
    DEFAULT_INITIAL_SIZE_DELAY,
    DEFAULT_NORMALIZE_MAX_DEPTH,
    DEFAULT_PROTOCOL_VERSION,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SIZE_DEBOUNCE,
    DEFAULT_STRING_POLICY,
)
from mcp_app_bridge.config.enums import StringPolicy, TimeoutType
from mcp_app_bridge.config.env_vars import EnvVar, get_env, get_env_float


class TimeoutConfig(BaseModel):
    """Timer configuration with proper defaults.

    All values in seconds. Immutable after creation.
    """

    request: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0,
        description="How long a request waits for its response",
    )
    size_debounce: float = Field(
        default=DEFAULT_SIZE_DEBOUNCE,
        gt=0,
        description="Quiet period before a size report is emitted",
    )
    display_mode_settle: float = Field(
        default=DEFAULT_DISPLAY_MODE_SETTLE_DELAY,
        ge=0,
        description="Delay between a display-mode change and its size report",
    )
    initial_size: float = Field(
        default=DEFAULT_INITIAL_SIZE_DELAY,
        ge=0,
        description="Delay before the first size report",
    )

    model_config = {"frozen": True}

    def get(self, timeout_type: TimeoutType) -> float:
        """Get timeout by enum (type-safe)."""
        return getattr(self, timeout_type.value)


class BridgeConfig(BaseModel):
    """Complete bridge configuration.

    Resolution order in :meth:`from_env`: explicit overrides, then
    environment variables, then the values in ``config.defaults``.
    """

    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    app_name: str = DEFAULT_APP_NAME
    app_version: str = DEFAULT_APP_VERSION
    available_display_modes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_AVAILABLE_DISPLAY_MODES)
    )
    string_policy: StringPolicy = StringPolicy(DEFAULT_STRING_POLICY)
    normalize_max_depth: int = Field(default=DEFAULT_NORMALIZE_MAX_DEPTH, gt=0)
    host_url: str = DEFAULT_HOST_URL

    model_config = {"frozen": True}

    @field_validator("available_display_modes")
    @classmethod
    def validate_display_modes(cls, v: list[str]) -> list[str]:
        """At least one display mode must be announced."""
        if not v:
            raise ValueError("available_display_modes must not be empty")
        return v

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Build a config from environment variables plus explicit overrides.

        Malformed environment values are ignored; malformed overrides raise
        ``pydantic.ValidationError``.
        """
        values: dict[str, Any] = {}

        timeouts: dict[str, float] = {}
        request = get_env_float(EnvVar.REQUEST_TIMEOUT)
        if request is not None and request > 0:
            timeouts[TimeoutType.REQUEST.value] = request
        debounce = get_env_float(EnvVar.SIZE_DEBOUNCE)
        if debounce is not None and debounce > 0:
            timeouts[TimeoutType.SIZE_DEBOUNCE.value] = debounce
        if timeouts:
            values["timeouts"] = TimeoutConfig(**timeouts)

        protocol_version = get_env(EnvVar.PROTOCOL_VERSION)
        if protocol_version:
            values["protocol_version"] = protocol_version

        policy = (get_env(EnvVar.STRING_POLICY) or "").strip().lower()
        if policy in {p.value for p in StringPolicy}:
            values["string_policy"] = StringPolicy(policy)

        host_url = get_env(EnvVar.HOST_URL)
        if host_url:
            values["host_url"] = host_url

        values.update(overrides)
        return cls.model_validate(values)

    def timeout(self, timeout_type: TimeoutType) -> float:
        """Shortcut for ``self.timeouts.get(timeout_type)``."""
        return self.timeouts.get(timeout_type)
