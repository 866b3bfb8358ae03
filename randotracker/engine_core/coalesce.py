"""
Coalesced Observers - Collapse bursts of change notifications.

A composite observer (for example "is this whole dungeon completable")
listens to many facts. One user action may flip several of them, and each
flip notifies the observer synchronously. Rather than recompute on every
notification, a CoalescedObserver schedules a single deferred run and
absorbs every notification that arrives before it happens.

This sits on top of the environment; the environment itself always
notifies per fact, synchronously.

Schedulers:
- TurnScheduler: an explicit queue drained by run_pending()
- AsyncioScheduler: defers with loop.call_soon() to the end of the
  current event loop iteration
- ImmediateScheduler: runs the callback at once (no coalescing)
"""

from __future__ import annotations
from typing import Any, Callable, Protocol
import asyncio
import logging

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Something that can run a callback later in the same thread."""

    def call_soon(self, callback: Callable[[], None]) -> None:
        ...


class TurnScheduler:
    """
    Runs deferred callbacks when the owner says the turn is over.

    Usage:
        scheduler = TurnScheduler()
        observer = CoalescedObserver(scheduler, recompute)
        env.add_listener("a", observer.notify)
        env.add_listener("b", observer.notify)
        env.set("a", True)
        env.set("b", True)
        scheduler.run_pending()   # recompute runs once
    """

    def __init__(self):
        self._queue: list[Callable[[], None]] = []

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._queue.append(callback)

    def run_pending(self) -> int:
        """
        Run the callbacks queued so far.

        Callbacks scheduled while draining wait for the next call.
        Returns the number of callbacks run.
        """
        queue, self._queue = self._queue, []
        for callback in queue:
            try:
                callback()
            except Exception:
                logger.exception("Deferred callback failed")
        return len(queue)

    def clear(self) -> None:
        """Drop every queued callback without running it."""
        self._queue = []


class AsyncioScheduler:
    """Defers callbacks to the end of the current event loop iteration."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_soon(self, callback: Callable[[], None]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_soon(callback)


class CoalescedObserver:
    """
    Collapses any number of notifications into one deferred callback run.

    At most one run is pending at a time. notify() accepts and ignores any
    arguments, so the observer can be registered directly as an environment
    or entity listener.
    """

    def __init__(self, scheduler: Scheduler, callback: Callable[[], Any]):
        self._scheduler = scheduler
        self._callback = callback
        self._pending = False
        # Bumped on cancel so a stale scheduled run can tell it was dropped
        self._generation = 0

    @property
    def is_pending(self) -> bool:
        return self._pending

    def notify(self, *args: Any) -> None:
        """Schedule a run unless one is already pending."""
        if self._pending:
            return
        self._pending = True
        generation = self._generation
        self._scheduler.call_soon(lambda: self._run(generation))

    def cancel(self) -> None:
        """Drop the pending run, if any."""
        if self._pending:
            self._pending = False
            self._generation += 1

    def flush(self) -> None:
        """Run now if a run is pending; the scheduled run becomes a no-op."""
        if self._pending:
            self._generation += 1
            self._pending = False
            self._callback()

    def _run(self, generation: int) -> None:
        if generation != self._generation or not self._pending:
            return
        self._pending = False
        self._callback()


class ImmediateScheduler:
    """Runs callbacks right away; observers using it do not coalesce."""

    def call_soon(self, callback: Callable[[], None]) -> None:
        callback()
