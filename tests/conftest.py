"""Common test fixtures for mcp-app-bridge tests."""

from __future__ import annotations

import logging

import pytest

from mcp_app_bridge.apps.transport import QueueTransport
from mcp_app_bridge.config.env_vars import EnvVar
from mcp_app_bridge.config.models import BridgeConfig, TimeoutConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Keep developer environment variables out of the tests."""
    for var in EnvVar:
        monkeypatch.delenv(var.value, raising=False)
    yield


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging() replaces root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    package_level = logging.getLogger("mcp_app_bridge").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("mcp_app_bridge").setLevel(package_level)


@pytest.fixture
def fast_config() -> BridgeConfig:
    """Config with timers short enough for tests."""
    return BridgeConfig(
        timeouts=TimeoutConfig(
            request=0.2,
            size_debounce=0.05,
            display_mode_settle=0.02,
            initial_size=0.02,
        )
    )


@pytest.fixture
def transport() -> QueueTransport:
    return QueueTransport()
