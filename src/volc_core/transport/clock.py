"""Clock abstraction for time-dependent pipeline logic.

The retry stage sleeps through a Clock and the credential cache reads the
current time through one, so tests can substitute
volc_core.testing.MockClock and control time without real waiting.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Time source and timer facility.

    Durations are milliseconds throughout.
    """

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...

    async def sleep(self, ms: float) -> None:
        """Suspend the caller for ``ms`` milliseconds."""
        ...

    def set_timeout(self, callback: Callable[[], Any], ms: float) -> Any:
        """Schedule ``callback`` after ``ms`` milliseconds and return a timer id."""
        ...

    def clear_timeout(self, timer_id: Any) -> None:
        """Cancel a timer returned by set_timeout()."""
        ...


def now_ms(clock: Clock) -> int:
    """Return the clock's current time as epoch milliseconds."""
    return int(clock.now().timestamp() * 1000)


class RealClock:
    """Wall-clock implementation backed by the running event loop."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, ms: float) -> None:
        await asyncio.sleep(max(ms, 0) / 1000)

    def set_timeout(self, callback: Callable[[], Any], ms: float) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(ms, 0) / 1000, callback)

    def clear_timeout(self, timer_id: asyncio.TimerHandle) -> None:
        timer_id.cancel()


__all__ = ["Clock", "RealClock", "now_ms"]
