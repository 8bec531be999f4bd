"""Notifier — a single mutable value that notifies listeners on change.

Writes are compared to the current value by equality; equal writes are
absorbed. A real change queues the cell's notify task, so any number of
writes within one turn produce exactly one notification, and listeners read
the final value.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from notifix._turns import Scheduler
from notifix.listenable import ChangeNotifier
from notifix.task import ScheduledTask

T = TypeVar("T")


class Notifier(ChangeNotifier, Generic[T]):
    """An observable value cell with coalesced notification."""

    def __init__(self, value: T, *, scheduler: Scheduler | None = None) -> None:
        super().__init__()
        self._value = value
        self._on_change = ScheduledTask(self.notify_listeners, scheduler=scheduler)

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        old = self._value
        if old is value or old == value:
            return
        self._value = value
        self._on_change()

    def __repr__(self) -> str:
        return f"Notifier({self._value!r})"
