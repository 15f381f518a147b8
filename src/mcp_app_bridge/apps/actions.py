# mcp_app_bridge/apps/actions.py
"""Named UI actions.

Templates register handlers under stable names ("toggle-fullscreen",
"export-csv", ...) instead of attaching closures to global state.  The
embedding UI dispatches by name.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from mcp_app_bridge.apps.errors import UnknownActionError

logger = logging.getLogger(__name__)

ActionHandler = Callable[..., Any]


class ActionRegistry:
    """Maps action names to handlers (sync or async)."""

    def __init__(self) -> None:
        self._actions: dict[str, ActionHandler] = {}

    # ------------------------------------------------------------------ #
    #  Registration                                                       #
    # ------------------------------------------------------------------ #

    def register(
        self, name: str, handler: ActionHandler, *, replace: bool = False
    ) -> None:
        """Register *handler* under *name*.

        Raises:
            ValueError: *name* is empty, or taken and ``replace`` is False.
        """
        if not name:
            raise ValueError("Action name must not be empty")
        if name in self._actions and not replace:
            raise ValueError(f"Action already registered: {name!r}")
        self._actions[name] = handler
        logger.debug("Registered action %s", name)

    def action(
        self, name: str, *, replace: bool = False
    ) -> Callable[[ActionHandler], ActionHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(func: ActionHandler) -> ActionHandler:
            self.register(name, func, replace=replace)
            return func

        return decorator

    def unregister(self, name: str) -> bool:
        return self._actions.pop(name, None) is not None

    # ------------------------------------------------------------------ #
    #  Dispatch                                                           #
    # ------------------------------------------------------------------ #

    async def dispatch(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Run the handler registered under *name* and return its result.

        Coroutine results are awaited.  Handler exceptions propagate.
        """
        handler = self._actions.get(name)
        if handler is None:
            raise UnknownActionError(name)
        logger.debug("Dispatching action %s", name)
        result = handler(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def names(self) -> list[str]:
        return sorted(self._actions)

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)
