"""Cancellation tokens for in-flight requests.

A CancellationToken travels with a request descriptor. Firing it rejects the
pending dispatch call or backoff sleep with RequestCancelledError and stops
the retry loop from starting another attempt.

Example:
    >>> token = CancellationToken()
    >>> task = asyncio.create_task(client.send(command, SendOptions(cancellation_token=token)))
    >>> token.abort("user navigated away")
    >>> await task  # raises RequestCancelledError
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from volc_core.errors import RequestCancelledError

T = TypeVar("T")


class CancellationToken:
    """One-shot abort signal.

    Once aborted the token stays aborted; further abort() calls are no-ops.
    Callbacks registered with add_callback() run synchronously on abort.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._callbacks: list[Callable[[], Any]] = []

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def abort(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], Any]) -> None:
        """Run callback on abort, or immediately if already aborted."""
        if self.aborted:
            callback()
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[], Any]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_aborted(self) -> None:
        if self.aborted:
            raise RequestCancelledError(self._reason)


async def run_cancellable(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    When the token wins the race the awaitable is cancelled, allowed to
    unwind, and RequestCancelledError is raised. When the awaitable
    finishes first its result (or exception) is returned unchanged.

    Args:
        awaitable: Coroutine or future to run
        token: Optional cancellation token; None awaits directly

    Raises:
        RequestCancelledError: If the token is or becomes aborted first
    """
    if token is None:
        return await awaitable

    if token.aborted:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise RequestCancelledError(token.reason)

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise

    if task in done:
        waiter.cancel()
        return task.result()

    task.cancel()
    # Let the abandoned operation unwind; its outcome is superseded by the abort.
    await asyncio.gather(task, return_exceptions=True)
    raise RequestCancelledError(token.reason)
