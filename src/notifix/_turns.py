"""Scheduling turns — the unit of coalescing granularity.

A turn-scheduling primitive is any callable `schedule(fn)` that runs `fn`
once the current synchronous stack has unwound. Every ScheduledTask hands its
runner to one of these.

The default primitive uses the running asyncio loop (`call_soon`). Code that
runs without an event loop gets a module-level TurnQueue instead, drained by
flush(). Tests install their own TurnQueue via set_scheduler() for
deterministic turns.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Callable

logger = logging.getLogger("notifix.turns")

Callback = Callable[[], None]
Scheduler = Callable[[Callback], None]
ErrorHandler = Callable[[BaseException], None]


def log_error(exc: BaseException) -> None:
    """Stock on_error handler: log the failure and keep draining."""
    logger.error("Scheduled callback failed", exc_info=exc)


class TurnQueue:
    """A manually drained queue of deferred callbacks.

    Calling the queue (or enqueue()) defers a callback; flush() runs one
    turn, which includes callbacks queued while it is running.

    If a callback raises and no on_error handler is set, the exception
    propagates out of flush() and the remaining callbacks stay queued.
    """

    def __init__(self, on_error: ErrorHandler | None = None) -> None:
        self._queue: deque[Callback] = deque()
        self._on_error = on_error

    def enqueue(self, fn: Callback) -> None:
        self._queue.append(fn)

    __call__ = enqueue

    def flush(self) -> int:
        """Drain the queue. Returns the number of callbacks run."""
        ran = 0
        while self._queue:
            fn = self._queue.popleft()
            ran += 1
            try:
                fn()
            except Exception as exc:
                if self._on_error is None:
                    raise
                self._on_error(exc)
        return ran

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"TurnQueue(pending={len(self._queue)})"


# Fallback queue for code running without an event loop.
_fallback = TurnQueue()


def default_schedule(fn: Callback) -> None:
    """Run fn on the next turn of the running loop, or queue it for flush()."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        _fallback.enqueue(fn)
    else:
        loop.call_soon(fn)


_scheduler: Scheduler = default_schedule


def set_scheduler(scheduler: Scheduler | None) -> None:
    """Install the global turn-scheduling primitive.

    Usage:
        queue = notifix.TurnQueue()
        notifix.set_scheduler(queue)
        ...
        queue.flush()

    Pass None to restore default_schedule.
    """
    global _scheduler
    _scheduler = scheduler if scheduler is not None else default_schedule
    logger.debug("Turn scheduler set to %r", _scheduler)


def get_scheduler() -> Scheduler:
    return _scheduler


def flush() -> int:
    """Drain callbacks deferred outside an event loop. Returns the count run."""
    return _fallback.flush()


def get_pending_count() -> int:
    """Number of callbacks waiting for flush(). Useful for testing."""
    return len(_fallback)
