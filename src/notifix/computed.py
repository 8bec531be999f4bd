"""Computed values — derived state recomputed when declared dependencies fire.

A Computed wraps a pure function and an explicit dependency list. Nothing is
evaluated until the value is first read; from then on the cell listens to
the merge of its dependencies and recomputes once per turn in which any of
them fired.
"""

from __future__ import annotations

from typing import Callable, Generic, Iterable, TypeVar

from notifix._turns import Scheduler
from notifix.listenable import ChangeNotifier, Listenable, MergedListenable, merge
from notifix.task import ScheduledTask

T = TypeVar("T")

_UNSET = object()


class Computed(ChangeNotifier, Generic[T]):
    """A lazily-initialized, memoized derived value."""

    def __init__(
        self,
        compute: Callable[[], T],
        *,
        depends: Iterable[Listenable],
        scheduler: Scheduler | None = None,
    ) -> None:
        super().__init__()
        self.compute = compute
        self.depends: tuple[Listenable, ...] = tuple(depends)
        self._value: object = _UNSET
        self._initialized = False
        self._listenable: MergedListenable | None = None
        self._on_change = ScheduledTask(self._recompute, scheduler=scheduler)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def value(self) -> T:
        """The cached value, computed on first read.

        If the first computation raises, the exception reaches the reader and
        the next read tries again. The same holds when subscribing to the
        dependencies fails (e.g. one of them was disposed).
        """
        if not self._initialized:
            value = self.compute()
            listenable = merge(self.depends)
            listenable.add_listener(self._on_change)
            self._value = value
            self._listenable = listenable
            self._initialized = True
        return self._value  # type: ignore[return-value]

    def _recompute(self) -> None:
        # A raising compute leaves the previous value and skips notification.
        self._value = self.compute()
        self.notify_listeners()

    def force_value(self, value: T) -> None:
        """Overwrite the cached value and notify now.

        The next dependency-triggered recompute replaces it.
        """
        self._value = value
        self.notify_listeners()

    def dispose(self) -> None:
        """Detach from the dependencies and drop all listeners."""
        if self._listenable is not None:
            self._listenable.remove_listener(self._on_change)
            self._listenable = None
        super().dispose()

    def __repr__(self) -> str:
        name = getattr(self.compute, "__name__", "compute")
        state = "uninitialized" if self._value is _UNSET else f"cached={self._value!r}"
        return f"Computed({name}, {state})"


def computed(
    *, depends: Iterable[Listenable], scheduler: Scheduler | None = None
) -> Callable[[Callable[[], T]], Computed[T]]:
    """Decorator factory creating a Computed from a function.

    Usage:
        a = Notifier(1)
        b = Notifier(2)

        @computed(depends=[a, b])
        def total():
            return a.value + b.value

        total.value  # 3
    """

    def decorator(fn: Callable[[], T]) -> Computed[T]:
        return Computed(fn, depends=depends, scheduler=scheduler)

    return decorator
