"""AsyncComputed — a computed value whose computation is awaited.

Each recompute sets `loading`, optionally installs a placeholder from
`before_update`, and runs `compute()` as an asyncio task on the running loop.
Success caches the result and notifies listeners. Failure is recorded in
`error` and handed to `on_error`; the cached value is kept and listeners are
not notified.

Recomputes are not cancelled. A slow earlier computation that finishes after
a faster later one overwrites the newer value, unless the cell was created
with discard_stale=True, in which case only the most recently started
computation may write.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar

from notifix._turns import Scheduler
from notifix.listenable import ChangeNotifier, Listenable, MergedListenable, merge
from notifix.task import ScheduledTask

logger = logging.getLogger("notifix.async_computed")

T = TypeVar("T")


class AsyncComputed(ChangeNotifier, Generic[T]):
    """A derived value computed by a coroutine, with loading/error state."""

    def __init__(
        self,
        compute: Callable[[], Awaitable[T]],
        *,
        depends: Iterable[Listenable],
        before_update: Callable[[], T | None] | None = None,
        on_error: Callable[[BaseException], Any] | None = None,
        discard_stale: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        super().__init__()
        self.compute = compute
        self.depends: tuple[Listenable, ...] = tuple(depends)
        self.before_update = before_update
        self.on_error = on_error
        self.discard_stale = discard_stale
        self._value: T | None = None
        self._error: BaseException | None = None
        self._loading = False
        self._initialized = False
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._listenable: MergedListenable | None = None
        self._on_change = ScheduledTask(self._begin, scheduler=scheduler)

    @property
    def value(self) -> T | None:
        """The last known value, or None before the first success.

        The first read starts the computation and returns immediately with
        the placeholder (if any). Must be first read inside a running loop.
        """
        if not self._initialized:
            listenable = merge(self.depends)
            listenable.add_listener(self._on_change)
            try:
                self._begin()
            except BaseException:
                listenable.remove_listener(self._on_change)
                raise
            self._listenable = listenable
            self._initialized = True
        return self._value

    @property
    def error(self) -> BaseException | None:
        """The failure of the last settled computation, if it failed."""
        return self._error

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _begin(self) -> None:
        loop = asyncio.get_running_loop()
        self._generation += 1
        self._loading = True
        if self.before_update is not None:
            self._value = self.before_update()
        task = loop.create_task(self._settle(self._generation))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        # Only listener or on_error failures escape _settle.
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Delivering computation result failed", exc_info=exc)

    def _is_stale(self, generation: int) -> bool:
        return self.discard_stale and generation != self._generation

    async def _settle(self, generation: int) -> None:
        try:
            result = await self.compute()
        except Exception as exc:
            if self._is_stale(generation):
                logger.debug("Dropping failure of stale computation %d", generation)
                return
            try:
                self._error = exc
                logger.debug("Computation %d failed: %r", generation, exc)
                if self.on_error is not None:
                    self.on_error(exc)
            finally:
                self._loading = False
            return

        if self._is_stale(generation):
            logger.debug("Dropping result of stale computation %d", generation)
            return
        try:
            self._value = result
            self._error = None
            self.notify_listeners()
        finally:
            self._loading = False

    def force_value(self, value: T) -> None:
        """Overwrite the cached value and notify now."""
        self._value = value
        self.notify_listeners()

    def dispose(self) -> None:
        """Detach from the dependencies and drop all listeners.

        Computations already running still settle into this cell.
        """
        if self._listenable is not None:
            self._listenable.remove_listener(self._on_change)
            self._listenable = None
        super().dispose()

    def __repr__(self) -> str:
        name = getattr(self.compute, "__name__", "compute")
        if self._loading:
            state = "loading"
        elif self._error is not None:
            state = f"error={self._error!r}"
        else:
            state = f"value={self._value!r}"
        return f"AsyncComputed({name}, {state})"


def async_computed(
    *,
    depends: Iterable[Listenable],
    before_update: Callable[[], T | None] | None = None,
    on_error: Callable[[BaseException], Any] | None = None,
    discard_stale: bool = False,
    scheduler: Scheduler | None = None,
) -> Callable[[Callable[[], Awaitable[T]]], AsyncComputed[T]]:
    """Decorator factory creating an AsyncComputed from a coroutine function.

    Usage:
        user_id = Notifier(1)

        @async_computed(depends=[user_id], before_update=lambda: None)
        async def profile():
            return await fetch_profile(user_id.value)
    """

    def decorator(fn: Callable[[], Awaitable[T]]) -> AsyncComputed[T]:
        return AsyncComputed(
            fn,
            depends=depends,
            before_update=before_update,
            on_error=on_error,
            discard_stale=discard_stale,
            scheduler=scheduler,
        )

    return decorator
