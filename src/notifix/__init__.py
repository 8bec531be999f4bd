"""notifix: coalesced change notification, computed values and async computed values."""

from importlib.metadata import version as _version

__version__ = _version("notifix")

from notifix._turns import (
    TurnQueue,
    default_schedule,
    flush,
    get_pending_count,
    get_scheduler,
    log_error,
    set_scheduler,
)
from notifix.task import ScheduledTask, one_call_task
from notifix.listenable import (
    ChangeNotifier,
    DisposedError,
    Listenable,
    MergedListenable,
    NotifixError,
    merge,
)
from notifix.notifier import Notifier
from notifix.computed import Computed, computed
from notifix.async_computed import AsyncComputed, async_computed
from notifix.watch import watch, WatchHandle
from notifix.mixin import NotifierMixin
# textual is opt-in, not imported here

__all__ = [
    "TurnQueue",
    "default_schedule",
    "flush",
    "get_pending_count",
    "get_scheduler",
    "log_error",
    "set_scheduler",
    "ScheduledTask",
    "one_call_task",
    "Listenable",
    "ChangeNotifier",
    "MergedListenable",
    "merge",
    "NotifixError",
    "DisposedError",
    "Notifier",
    "Computed",
    "computed",
    "AsyncComputed",
    "async_computed",
    "watch",
    "WatchHandle",
    "NotifierMixin",
]
