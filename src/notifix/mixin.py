"""NotifierMixin — listener bookkeeping for objects with a teardown phase.

Mix into any class that owns listeners (a widget, a controller, a service)
and call dispose_listeners() from its own teardown.
"""

from __future__ import annotations

from typing import Callable, Iterable

from notifix.listenable import Listenable, merge
from notifix.task import ScheduledTask


class NotifierMixin:
    """Register coalesced listeners and teardown callbacks, release them together."""

    def _listener_store(self) -> list[tuple[Listenable, ScheduledTask]]:
        store = self.__dict__.get("_notifix_listeners")
        if store is None:
            store = self.__dict__["_notifix_listeners"] = []
        return store

    def _unload_store(self) -> dict[Callable[[], None], None]:
        store = self.__dict__.get("_notifix_before_unload")
        if store is None:
            store = self.__dict__["_notifix_before_unload"] = {}
        return store

    def listen_notifier(
        self, notifier: Listenable, listener: Callable[[], None], *, immediate: bool = False
    ) -> ScheduledTask:
        """Listen to one source; listener runs at most once per turn."""
        task = ScheduledTask(listener)
        if immediate:
            task()
        notifier.add_listener(task)
        self._listener_store().append((notifier, task))
        return task

    def listen_notifiers(
        self,
        notifiers: Iterable[Listenable],
        listener: Callable[[], None],
        *,
        immediate: bool = False,
    ) -> ScheduledTask:
        """Listen to several sources at once through their merge."""
        return self.listen_notifier(merge(notifiers), listener, immediate=immediate)

    def on_before_unload(self, callback: Callable[[], None]) -> None:
        """Register a callback to run at the start of dispose_listeners()."""
        self._unload_store()[callback] = None

    def dispose_listeners(self) -> None:
        """Run teardown callbacks, then remove every registered listener."""
        unload = self._unload_store()
        callbacks = list(unload)
        unload.clear()
        for callback in callbacks:
            callback()

        listeners = self._listener_store()
        pairs = list(listeners)
        listeners.clear()
        for notifier, task in pairs:
            notifier.remove_listener(task)
