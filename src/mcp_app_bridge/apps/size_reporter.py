# mcp_app_bridge/apps/size_reporter.py
"""Debounced content-size reporting to the host.

Every observed layout change (re)arms a single debounce timer; only a
timer that survives the quiet period emits a ``size-changed`` sample.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from mcp_app_bridge.apps.document import DEFAULT_ATTRIBUTE_FILTER, Document, ObserverHandle
from mcp_app_bridge.apps.models import SizeSample
from mcp_app_bridge.config.defaults import (
    DEFAULT_INITIAL_SIZE_DELAY,
    DEFAULT_SIZE_DEBOUNCE,
)

logger = logging.getLogger(__name__)

SizeCallback = Callable[[SizeSample], Any]


class SizeReporter:
    """Observes a :class:`Document` and reports its scroll size."""

    def __init__(
        self,
        emit: SizeCallback,
        debounce: float = DEFAULT_SIZE_DEBOUNCE,
        initial_delay: float = DEFAULT_INITIAL_SIZE_DELAY,
    ) -> None:
        self._emit = emit
        self.debounce = debounce
        self.initial_delay = initial_delay
        self._document: Document | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._debounce_timer: asyncio.TimerHandle | None = None
        self._delayed: set[asyncio.TimerHandle] = set()
        self._observers: list[ObserverHandle] = []
        self._listening_resize = False
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def running(self) -> bool:
        return self._document is not None

    def start(self, document: Document) -> None:
        """Begin observing *document*. A second call while running is a no-op."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._document = document

        if getattr(document, "has_resize_observer", False):
            self._observers.append(document.observe_resize(self.schedule))
        else:
            # No native content observer: window resize plus DOM mutations
            document.add_resize_listener(self.schedule)
            self._listening_resize = True
            if getattr(document, "has_mutation_observer", False):
                self._observers.append(
                    document.observe_mutations(
                        self.schedule, attribute_filter=DEFAULT_ATTRIBUTE_FILTER
                    )
                )

        self.report_later(self.initial_delay)
        logger.debug("Size reporter started (%d observers)", len(self._observers))

    def stop(self) -> None:
        """Cancel pending timers and disconnect every observer. Idempotent."""
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
            self._debounce_timer = None
        for handle in self._delayed:
            handle.cancel()
        self._delayed.clear()

        for observer in self._observers:
            observer.disconnect()
        self._observers.clear()
        if self._listening_resize and self._document is not None:
            self._document.remove_resize_listener(self.schedule)
        self._listening_resize = False

        for task in list(self._tasks):
            if not task.done():
                task.cancel()

        if self._document is not None:
            logger.debug("Size reporter stopped")
        self._document = None

    def schedule(self) -> None:
        """Observer callback: restart the debounce window."""
        if not self.running or self._loop is None:
            return
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
        self._debounce_timer = self._loop.call_later(self.debounce, self._on_debounce)

    def report_later(self, delay: float) -> None:
        """Emit one sample after *delay*, independent of the debounce window."""
        if not self.running or self._loop is None:
            return
        handle: asyncio.TimerHandle

        def fire() -> None:
            self._delayed.discard(handle)
            self.report_now()

        handle = self._loop.call_later(delay, fire)
        self._delayed.add(handle)

    def report_now(self) -> SizeSample | None:
        """Read the document size and emit it immediately."""
        if self._document is None:
            return None
        sample = SizeSample(
            width=int(self._document.scroll_width),
            height=int(self._document.scroll_height),
        )
        result = self._emit(sample)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)
        return sample

    # ------------------------------------------------------------------ #
    #  Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _on_debounce(self) -> None:
        self._debounce_timer = None
        self.report_now()

    def _task_done(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Size report failed: %s", task.exception())
