# mcp_app_bridge/apps/document.py
"""The slice of a rendering surface the bridge observes.

A real embedding supplies its own :class:`Document`; the observers
(``observe_resize``, ``observe_mutations``) and the colour-scheme query
are optional and advertised through ``has_*`` flags, mirroring how a
browser may or may not provide ResizeObserver / MutationObserver /
matchMedia.

:class:`VirtualDocument` is an in-memory implementation for headless
sessions and tests: call :meth:`VirtualDocument.resize` or
:meth:`VirtualDocument.mutate` to fire observer callbacks.
"""

from __future__ import annotations

from typing import Callable, Iterable, Protocol, runtime_checkable


ChangeCallback = Callable[[], None]

DEFAULT_ATTRIBUTE_FILTER = ("style", "class")


@runtime_checkable
class ObserverHandle(Protocol):
    def disconnect(self) -> None: ...


@runtime_checkable
class Document(Protocol):
    """What the size reporter needs from the surface it measures."""

    @property
    def scroll_width(self) -> int: ...

    @property
    def scroll_height(self) -> int: ...

    has_resize_observer: bool
    has_mutation_observer: bool

    def observe_resize(self, callback: ChangeCallback) -> ObserverHandle: ...

    def observe_mutations(
        self,
        callback: ChangeCallback,
        attribute_filter: Iterable[str] = DEFAULT_ATTRIBUTE_FILTER,
    ) -> ObserverHandle: ...

    def add_resize_listener(self, callback: ChangeCallback) -> None: ...

    def remove_resize_listener(self, callback: ChangeCallback) -> None: ...

    def prefers_dark_scheme(self) -> bool | None: ...


class _Observer:
    """Handle returned by the ``observe_*`` methods of VirtualDocument."""

    def __init__(
        self,
        owner: list[_Observer],
        callback: ChangeCallback,
        attribute_filter: frozenset[str] = frozenset(),
    ) -> None:
        self._owner = owner
        self.callback = callback
        self.attribute_filter = attribute_filter
        self.connected = True

    def disconnect(self) -> None:
        if self.connected:
            self.connected = False
            self._owner.remove(self)


class VirtualDocument:
    """In-memory :class:`Document`."""

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        *,
        resize_observer: bool = True,
        mutation_observer: bool = True,
        dark_scheme: bool | None = None,
    ) -> None:
        self.scroll_width = width
        self.scroll_height = height
        self.has_resize_observer = resize_observer
        self.has_mutation_observer = mutation_observer
        self._dark_scheme = dark_scheme
        self._resize_observers: list[_Observer] = []
        self._mutation_observers: list[_Observer] = []
        self._resize_listeners: list[ChangeCallback] = []

    # -- Document protocol --------------------------------------------------

    def observe_resize(self, callback: ChangeCallback) -> ObserverHandle:
        if not self.has_resize_observer:
            raise NotImplementedError("resize observation is not available")
        observer = _Observer(self._resize_observers, callback)
        self._resize_observers.append(observer)
        return observer

    def observe_mutations(
        self,
        callback: ChangeCallback,
        attribute_filter: Iterable[str] = DEFAULT_ATTRIBUTE_FILTER,
    ) -> ObserverHandle:
        if not self.has_mutation_observer:
            raise NotImplementedError("mutation observation is not available")
        observer = _Observer(
            self._mutation_observers, callback, frozenset(attribute_filter)
        )
        self._mutation_observers.append(observer)
        return observer

    def add_resize_listener(self, callback: ChangeCallback) -> None:
        self._resize_listeners.append(callback)

    def remove_resize_listener(self, callback: ChangeCallback) -> None:
        if callback in self._resize_listeners:
            self._resize_listeners.remove(callback)

    def prefers_dark_scheme(self) -> bool | None:
        return self._dark_scheme

    # -- Event simulation ---------------------------------------------------

    def resize(self, width: int | None = None, height: int | None = None) -> None:
        """Change the content size and notify resize observers and listeners."""
        if width is not None:
            self.scroll_width = width
        if height is not None:
            self.scroll_height = height
        for observer in list(self._resize_observers):
            observer.callback()
        for listener in list(self._resize_listeners):
            listener()

    def mutate(self, kind: str = "childList", attribute: str | None = None) -> None:
        """Fire a DOM mutation.

        ``kind`` is ``"childList"`` or ``"attributes"``; attribute
        mutations only reach observers whose filter names *attribute*.
        """
        for observer in list(self._mutation_observers):
            if kind == "attributes" and attribute not in observer.attribute_filter:
                continue
            observer.callback()

    # -- Introspection ------------------------------------------------------

    @property
    def observer_count(self) -> int:
        """Connected observers plus registered resize listeners."""
        return (
            len(self._resize_observers)
            + len(self._mutation_observers)
            + len(self._resize_listeners)
        )
