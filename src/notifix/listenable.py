"""Notification sources — anything that can register a no-argument callback.

ChangeNotifier is the listener registry shared by every cell. MergedListenable
is a read-only union over several sources: a listener attached to the merge
fires whenever any member fires.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterable

Listener = Callable[[], None]


class NotifixError(Exception):
    """Base class for errors raised by notifix."""


class DisposedError(NotifixError):
    """A listener was added to a notifier after dispose()."""


class Listenable(ABC):
    """The single capability every notification source provides."""

    @abstractmethod
    def add_listener(self, listener: Listener) -> None: ...

    @abstractmethod
    def remove_listener(self, listener: Listener) -> None: ...


class ChangeNotifier(Listenable):
    """A listener registry that can notify on demand.

    Registration is immediate and never notifies. Adding the same callable
    twice registers it twice; remove_listener() drops one registration and
    ignores unknown listeners.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._disposed = False

    def add_listener(self, listener: Listener) -> None:
        if self._disposed:
            raise DisposedError(f"{self!r} was used after being disposed")
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass  # not registered

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    def notify_listeners(self) -> None:
        """Call every listener. Listeners may (un)register while this runs."""
        for listener in list(self._listeners):
            listener()

    def dispose(self) -> None:
        """Drop all listeners. The notifier must not be listened to again."""
        self._listeners.clear()
        self._disposed = True


class MergedListenable(Listenable):
    """Union of several notification sources.

    The merge attaches its relay to every member when its first listener is
    added and detaches when its last listener is removed, so an unobserved
    merge holds no subscriptions. Each member notification is relayed once to
    every listener; coalescing is left to the listener's ScheduledTask.
    """

    __slots__ = ("_sources", "_listeners", "_attached")

    def __init__(self, sources: Iterable[Listenable]) -> None:
        self._sources: tuple[Listenable, ...] = tuple(sources)
        self._listeners: list[Listener] = []
        self._attached = False

    @property
    def sources(self) -> tuple[Listenable, ...]:
        return self._sources

    @property
    def attached(self) -> bool:
        """True while the relay is subscribed to the members."""
        return self._attached

    def add_listener(self, listener: Listener) -> None:
        if not self._attached:
            attached: list[Listenable] = []
            try:
                for source in self._sources:
                    source.add_listener(self._relay)
                    attached.append(source)
            except BaseException:
                for source in attached:
                    source.remove_listener(self._relay)
                raise
            self._attached = True
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return
        if not self._listeners and self._attached:
            for source in self._sources:
                source.remove_listener(self._relay)
            self._attached = False

    def _relay(self) -> None:
        for listener in list(self._listeners):
            listener()

    def __repr__(self) -> str:
        return f"MergedListenable({list(self._sources)!r})"


def merge(sources: Iterable[Listenable]) -> MergedListenable:
    """Combine sources into one Listenable.

    Usage:
        a, b = Notifier(1), Notifier(2)
        both = merge([a, b])
        both.add_listener(one_call_task(render))
    """
    return MergedListenable(sources)
