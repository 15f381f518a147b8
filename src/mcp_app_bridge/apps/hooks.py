# mcp_app_bridge/apps/hooks.py
"""Callbacks the rendering layer hands to the bridge.

Hooks may be plain functions or coroutine functions.  Coroutines are
scheduled as tasks rather than awaited, so a hook that itself awaits a
bridge request cannot stall the inbound message loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

Hook = Callable[..., Any]


@dataclass
class RenderHooks:
    """Rendering-layer callbacks, all optional.

    * ``render(payload)`` - a normalized tool result is ready
    * ``empty()`` - a tool result arrived without usable data
    * ``error(message)`` - the tool reported ``isError``
    * ``cancelled(reason)`` - the tool was cancelled; falls back to ``error``
    * ``tool_input(params)`` - tool arguments, ahead of the result
    * ``host_context(context)`` - theme / dimensions / styles changed
    * ``layout(mode)`` - display mode transition (class toggles, overrides)
    * ``teardown(reason)`` - release template resources (charts, timers)
    """

    render: Hook | None = None
    empty: Hook | None = None
    error: Hook | None = None
    cancelled: Hook | None = None
    tool_input: Hook | None = None
    host_context: Hook | None = None
    layout: Hook | None = None
    teardown: Hook | None = None


class HookRunner:
    """Invokes hooks and keeps track of the tasks spawned for async ones."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Future[Any]] = set()

    def call(self, name: str, hook: Hook | None, *args: Any) -> bool:
        """Invoke *hook*; returns False when it is unset.

        Exceptions are logged, never propagated to the message loop.
        """
        if hook is None:
            return False
        try:
            result = hook(*args)
        except Exception:
            logger.exception("%s hook failed", name)
            return True
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(lambda t: self._task_done(name, t))
        return True

    async def drain(self) -> None:
        """Wait for every hook task spawned so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel(self) -> int:
        """Cancel outstanding hook tasks; returns how many were running."""
        count = 0
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
                count += 1
        return count

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _task_done(self, name: str, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s hook failed: %s", name, exc, exc_info=exc)
