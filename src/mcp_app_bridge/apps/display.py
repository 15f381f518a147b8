# mcp_app_bridge/apps/display.py
"""Inline / fullscreen display-mode state."""

from __future__ import annotations

import logging
from typing import Any, Callable

from mcp_app_bridge.apps.models import DisplayMode
from mcp_app_bridge.apps.size_reporter import SizeReporter
from mcp_app_bridge.config.defaults import DEFAULT_DISPLAY_MODE_SETTLE_DELAY

logger = logging.getLogger(__name__)

LayoutCallback = Callable[[DisplayMode], Any]


class DisplayModeController:
    """Tracks the current display mode and drives its side effects.

    A transition hands the new mode to the layout callback (which owns
    the class toggles and max-width / padding overrides) and asks for a
    size report once the layout has had time to settle.
    """

    def __init__(
        self,
        size_reporter: SizeReporter | None = None,
        on_layout: LayoutCallback | None = None,
        settle_delay: float = DEFAULT_DISPLAY_MODE_SETTLE_DELAY,
    ) -> None:
        self.size_reporter = size_reporter
        self.on_layout = on_layout
        self.settle_delay = settle_delay
        self._mode = DisplayMode.INLINE

    @property
    def mode(self) -> DisplayMode:
        return self._mode

    @property
    def is_fullscreen(self) -> bool:
        return self._mode is DisplayMode.FULLSCREEN

    def apply(self, mode: DisplayMode | str) -> bool:
        """Enter *mode*. Returns False (and changes nothing) for unknown modes.

        Re-applying the current mode re-runs its side effects; the host
        may have resized the frame without changing the mode.
        """
        try:
            new_mode = DisplayMode(mode)
        except ValueError:
            logger.warning("Ignoring unknown display mode %r", mode)
            return False

        if new_mode is not self._mode:
            logger.info("Display mode %s -> %s", self._mode.value, new_mode.value)
        self._mode = new_mode

        if self.on_layout is not None:
            try:
                self.on_layout(new_mode)
            except Exception:
                logger.exception("Layout callback failed for %s", new_mode.value)

        if self.size_reporter is not None:
            self.size_reporter.report_later(self.settle_delay)
        return True

    def toggled(self) -> DisplayMode:
        """The mode a fullscreen toggle would switch to."""
        return DisplayMode.INLINE if self.is_fullscreen else DisplayMode.FULLSCREEN
