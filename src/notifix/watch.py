"""watch() — run a callback once per turn in which any dependency changed.

Returns a WatchHandle for cleanup via .dispose() (or by calling it).
"""

from __future__ import annotations

from typing import Callable, Iterable

from notifix._turns import Scheduler
from notifix.listenable import Listenable, merge
from notifix.task import ScheduledTask


class WatchHandle:
    """Disposable handle for a watch() registration."""

    __slots__ = ("_listenable", "_task", "_disposed")

    def __init__(self, listenable: Listenable, task: ScheduledTask) -> None:
        self._listenable = listenable
        self._task = task
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop watching. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        self._listenable.remove_listener(self._task)

    __call__ = dispose


def watch(
    depends: Iterable[Listenable],
    callback: Callable[[], None],
    *,
    immediate: bool = False,
    scheduler: Scheduler | None = None,
) -> WatchHandle:
    """Call callback (coalesced) whenever any of depends notifies.

    With immediate=True the callback is also queued for the next turn right
    away. A run already queued when the handle is disposed still happens.

    Usage:
        count = Notifier(0)
        handle = watch([count], lambda: print(count.value))

        count.value = 1
        count.value = 2
        # prints 2 once, on the next turn

        handle.dispose()
    """
    listenable = merge(depends)
    task = ScheduledTask(callback, scheduler=scheduler)
    if immediate:
        task()
    listenable.add_listener(task)
    return WatchHandle(listenable, task)
