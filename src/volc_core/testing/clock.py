"""MockClock: virtual time for time-dependent tests.

With ``auto_advance`` (the default) sleep() moves virtual time forward
immediately, so backoff delays cost nothing. With ``auto_advance=False``
sleep() blocks until a test calls advance() past its deadline, which lets a
test act (for example, abort a request) while a sleep is pending.

Example:
    >>> clock = MockClock()
    >>> await clock.sleep(300)
    >>> clock.elapsed_ms
    300
    >>> clock.sleeps
    [300]
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

DEFAULT_INITIAL_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@dataclass
class MockTimer:
    id: int
    callback: Callable[[], Any]
    due_ms: float


class MockClock:
    """Clock whose time only moves when told to.

    Attributes:
        sleeps: Durations (ms) passed to sleep(), in call order
    """

    def __init__(
        self, initial_time: datetime | None = None, auto_advance: bool = True
    ) -> None:
        self.initial_time = initial_time or DEFAULT_INITIAL_TIME
        self.auto_advance = auto_advance
        self._offset_ms: float = 0
        self._timers: list[MockTimer] = []
        self._ids = itertools.count(1)
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.initial_time + timedelta(milliseconds=self._offset_ms)

    def set_time(self, moment: datetime) -> None:
        """Jump to ``moment`` without firing timers."""
        self._offset_ms = (moment - self.initial_time) / timedelta(milliseconds=1)

    @property
    def elapsed_ms(self) -> float:
        return self._offset_ms

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def advance(self, ms: float) -> None:
        """Move time forward by ``ms`` and fire every timer that came due, earliest first."""
        self._offset_ms += ms
        due = sorted(
            (timer for timer in self._timers if timer.due_ms <= self._offset_ms),
            key=lambda timer: timer.due_ms,
        )
        for timer in due:
            if timer in self._timers:
                self._timers.remove(timer)
                timer.callback()

    def set_timeout(self, callback: Callable[[], Any], ms: float) -> int:
        timer = MockTimer(id=next(self._ids), callback=callback, due_ms=self._offset_ms + ms)
        self._timers.append(timer)
        return timer.id

    def clear_timeout(self, timer_id: int) -> None:
        self._timers = [timer for timer in self._timers if timer.id != timer_id]

    def clear_timers(self) -> None:
        self._timers.clear()

    async def sleep(self, ms: float) -> None:
        self.sleeps.append(ms)
        if self.auto_advance:
            self.advance(ms)
            # Still yield so sleeping callers interleave like real ones
            await asyncio.sleep(0)
            return

        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def wake() -> None:
            if not future.done():
                future.set_result(None)

        timer_id = self.set_timeout(wake, ms)
        try:
            await future
        finally:
            self.clear_timeout(timer_id)


__all__ = ["DEFAULT_INITIAL_TIME", "MockClock", "MockTimer"]
