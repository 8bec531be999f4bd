"""Textual integration for notifix. Opt-in — requires textual.

Binds widget rendering to notifix sources: one coalesced render per turn in
which any dependency changed. Renders are skipped while the app is paused or
not running, NoMatches from widget queries is swallowed, and renders
triggered off the app thread are marshaled through call_from_thread.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterable, TypeVar

from textual.css.query import NoMatches

from notifix._turns import set_scheduler
from notifix.async_computed import AsyncComputed
from notifix.computed import Computed
from notifix.listenable import Listenable, merge
from notifix.task import ScheduledTask

logger = logging.getLogger("notifix.textual")

T = TypeVar("T")

# id(app) -> number of open pause() blocks; absent means not paused.
_pause_depth: dict[int, int] = {}


@contextmanager
def pause(app):
    """Hold guarded renders for app while the block runs. Blocks may nest."""
    key = id(app)
    _pause_depth[key] = _pause_depth.get(key, 0) + 1
    try:
        yield
    finally:
        remaining = _pause_depth[key] - 1
        if remaining:
            _pause_depth[key] = remaining
        else:
            del _pause_depth[key]


def is_safe(app) -> bool:
    """True when app runs and no pause() block for it is open."""
    if not app.is_running:
        return False
    return id(app) not in _pause_depth


def use_app_scheduler(app) -> None:
    """Run notifix turns on the app's message loop (via app.call_later)."""
    set_scheduler(app.call_later)


class WidgetBinding:
    """A render callback attached to the merge of a dependency list."""

    def __init__(
        self,
        app,
        depends: Iterable[Listenable],
        render: Callable[[], None],
        *,
        immediate: bool = True,
    ) -> None:
        self._app = app
        self._render = render
        self._main = threading.get_ident()
        self._task = ScheduledTask(self._guarded)
        self._listenable = merge(depends)
        self._disposed = False
        if immediate:
            self._task()
        self._listenable.add_listener(self._task)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _guarded(self) -> None:
        if self._disposed or not is_safe(self._app):
            return
        if threading.get_ident() != self._main:
            self._app.call_from_thread(self._safe)
        else:
            self._safe()

    def _safe(self) -> None:
        try:
            self._render()
        except NoMatches as exc:
            logger.debug("Render skipped, widget not mounted: %s", exc)

    def render_now(self) -> None:
        """Render synchronously, subject to the same guards."""
        self._guarded()

    def rebind(self, depends: Iterable[Listenable]) -> None:
        """Move the binding to a new dependency list."""
        self._listenable.remove_listener(self._task)
        self._listenable = merge(depends)
        self._listenable.add_listener(self._task)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._listenable.remove_listener(self._task)


def bind(app, depends: Iterable[Listenable], render: Callable[[], None], *, immediate=True):
    """Re-render whenever any of depends changes.

    Usage:
        from notifix import textual as ntx

        count = Notifier(0)
        ntx.bind(app, [count], lambda: app.query_one("#count").update(str(count.value)))
    """
    return WidgetBinding(app, depends, render, immediate=immediate)


def bind_computed(
    app, computed: Computed[T] | AsyncComputed[T], render: Callable[[T], None]
) -> WidgetBinding:
    """Render computed.value now and again after every notification.

    Reading the value here initializes the cell, so its dependencies are
    subscribed before the first change can happen, even if the app is not
    yet safe to render.
    """
    computed.value
    binding = WidgetBinding(
        app, [computed], lambda: render(computed.value), immediate=False
    )
    binding.render_now()
    return binding
