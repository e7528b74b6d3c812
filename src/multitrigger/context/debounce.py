"""Trailing-edge debouncing on top of a pluggable scheduler.

A *scheduler* is any callable ``scheduler(delay, callback) -> handle`` where
*handle* exposes ``cancel()``.  :func:`asyncio_scheduler` uses the running
event loop (the one Textual runs on); :class:`ManualScheduler` is a virtual
clock advanced explicitly, handy for headless hosts and tests.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def asyncio_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule *callback* on the running asyncio loop after *delay* seconds."""
    return asyncio.get_running_loop().call_later(delay, callback)


@dataclass(order=True)
class _ManualTimer:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by an explicit virtual clock.

    Example::

        scheduler = ManualScheduler()
        scheduler(0.3, fire)
        scheduler.advance(0.3)   # fire() runs here
    """

    def __init__(self):
        self.now = 0.0
        self._timers: list[_ManualTimer] = []
        self._seq = 0

    def __call__(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        self._seq += 1
        timer = _ManualTimer(self.now + delay, self._seq, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while True:
            due = sorted(t for t in self._timers if not t.cancelled and t.due <= target + 1e-9)
            if not due:
                break
            timer = due[0]
            self._timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = target


class Debouncer:
    """Runs the last submitted callback once input has paused for *interval*.

    Only one timer is live at a time: :meth:`call` cancels the pending one
    before scheduling a new one.

    Args:
        interval: Quiet period in seconds.
        scheduler: See the module docstring.  Defaults to
            :func:`asyncio_scheduler`.
    """

    def __init__(self, interval: float, scheduler: Optional[Scheduler] = None):
        self.interval = interval
        self._scheduler = scheduler or asyncio_scheduler
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def call(self, callback: Callable[[], None]) -> None:
        self.cancel()

        def fire() -> None:
            self._handle = None
            callback()

        self._handle = self._scheduler(self.interval, fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
