"""ScheduledTask — run a callback at most once per scheduling turn.

Every cell owns one of these. Repeated invocations within a turn collapse
into a single run on the next turn boundary, so the callback always sees the
state left by the last mutation of the burst.
"""

from __future__ import annotations

from typing import Callable

from notifix import _turns
from notifix._turns import Callback, Scheduler


class ScheduledTask:
    """Callable wrapper that queues `callback` once until it has run.

    The pending marker is cleared in a `finally`, so a callback that raises
    still lets the next invocation schedule a fresh turn. The exception itself
    goes to whoever runs the turn (the loop's exception handler, or the
    caller of TurnQueue.flush()).
    """

    __slots__ = ("_callback", "_scheduler", "_pending")

    def __init__(self, callback: Callback, *, scheduler: Scheduler | None = None) -> None:
        self._callback = callback
        self._scheduler = scheduler
        self._pending = False

    @property
    def pending(self) -> bool:
        """True while a run is queued and has not finished."""
        return self._pending

    def __call__(self) -> None:
        if self._pending:
            return
        self._pending = True
        scheduler = self._scheduler
        if scheduler is None:
            scheduler = _turns.get_scheduler()
        try:
            scheduler(self._run)
        except BaseException:
            self._pending = False
            raise

    def _run(self) -> None:
        try:
            self._callback()
        finally:
            self._pending = False

    def __repr__(self) -> str:
        name = getattr(self._callback, "__name__", repr(self._callback))
        state = "pending" if self._pending else "idle"
        return f"ScheduledTask({name}, {state})"


def one_call_task(
    callback: Callable[[], None], *, scheduler: Scheduler | None = None
) -> ScheduledTask:
    """Wrap callback so it runs at most once per scheduling turn.

    Usage:
        log = []
        task = one_call_task(lambda: log.append("ran"))
        task(); task(); task()
        # log == [] (queued, not run)
        flush()
        # log == ["ran"]
    """
    return ScheduledTask(callback, scheduler=scheduler)
