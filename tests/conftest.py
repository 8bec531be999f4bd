"""Shared fixtures: deterministic turns and loop helpers."""

import asyncio

import pytest

import notifix
from notifix import TurnQueue, set_scheduler


@pytest.fixture(autouse=True)
def _reset_scheduler():
    """Every test starts on the default scheduler with an empty fallback queue."""
    set_scheduler(None)
    notifix.flush()
    yield
    set_scheduler(None)
    notifix._turns._fallback._queue.clear()


@pytest.fixture
def turns():
    """Install a TurnQueue as the global scheduler; call turns.flush() to end a turn."""
    queue = TurnQueue()
    set_scheduler(queue)
    return queue


async def _settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Coroutine function letting the running loop work through call_soon chains."""
    return _settle
