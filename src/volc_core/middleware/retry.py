"""Retry stage and the executor behind it.

The retry stage sits in the finalizeRequest step above the HTTP stage and
re-invokes it until it succeeds, fails with an error the policy will not
retry, runs out of attempts, or the request is cancelled.

State machine for one call:

    ATTEMPTING(n) --success--------------------------------> SUCCEEDED
    ATTEMPTING(n) --retryable, n < max, sleep(delay(n))----> ATTEMPTING(n+1)
    ATTEMPTING(n) --not retryable, or n == max-------------> EXHAUSTED
    any state     --cancellation token fires---------------> CANCELLED

Each attempt yields a tagged AttemptOutcome; only the executor's public
run() raises, re-raising the final error unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from volc_core.errors import RequestCancelledError
from volc_core.middleware.priority import stage_options
from volc_core.middleware.stack import Handler, MiddlewareSpec
from volc_core.models.config import RetryStrategy
from volc_core.models.enums import RetryState
from volc_core.models.request import Args, MiddlewareContext
from volc_core.observability.logging import get_logger
from volc_core.observability.metrics import get_metrics
from volc_core.transport.cancellation import CancellationToken, run_cancellable
from volc_core.transport.clock import Clock
from volc_core.utils.retry import (
    RetryPolicy,
    calculate_retry_delay,
    resolve_retry_policy,
    should_retry,
)

logger = get_logger(__name__)

T = TypeVar("T")


class OutcomeKind(str, Enum):
    SUCCEEDED = "succeeded"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AttemptOutcome(Generic[T]):
    """Result of a single attempt."""

    kind: OutcomeKind
    value: T | None = None
    error: BaseException | None = None

    @classmethod
    def succeeded(cls, value: T) -> AttemptOutcome[T]:
        return cls(OutcomeKind.SUCCEEDED, value=value)

    @classmethod
    def retryable(cls, error: BaseException) -> AttemptOutcome[T]:
        return cls(OutcomeKind.RETRYABLE, error=error)

    @classmethod
    def fatal(cls, error: BaseException) -> AttemptOutcome[T]:
        return cls(OutcomeKind.FATAL, error=error)

    @classmethod
    def cancelled(cls, error: RequestCancelledError) -> AttemptOutcome[T]:
        return cls(OutcomeKind.CANCELLED, error=error)


class RetryExecutor:
    """Runs an operation under a RetryPolicy.

    Attributes:
        state: Current RetryState
        attempts: Attempts started so far
    """

    def __init__(
        self,
        clock: Clock,
        policy: RetryPolicy,
        cancellation_token: CancellationToken | None = None,
        labels: dict[str, str] | None = None,
    ) -> None:
        self.clock = clock
        self.policy = policy
        self.cancellation_token = cancellation_token
        self.labels = labels or {}
        self.state = RetryState.ATTEMPTING
        self.attempts = 0

    async def _attempt(self, operation: Callable[[], Awaitable[T]]) -> AttemptOutcome[T]:
        token = self.cancellation_token
        if token is not None and token.aborted:
            return AttemptOutcome.cancelled(RequestCancelledError(token.reason))

        self.attempts += 1
        try:
            value = await run_cancellable(operation(), token)
        except RequestCancelledError as e:
            return AttemptOutcome.cancelled(e)
        except Exception as e:
            if self.attempts < self.policy.max_attempts and self.policy.retry_if(e):
                return AttemptOutcome.retryable(e)
            return AttemptOutcome.fatal(e)
        return AttemptOutcome.succeeded(value)

    async def _backoff(self, delay_ms: float) -> None:
        if delay_ms > 0:
            await run_cancellable(self.clock.sleep(delay_ms), self.cancellation_token)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` until it succeeds or the policy gives up.

        Raises:
            RequestCancelledError: If the cancellation token fires before an
                attempt, during an attempt, or during a backoff sleep
            Exception: The last attempt's error, unchanged
        """
        while True:
            outcome = await self._attempt(operation)

            if outcome.kind is OutcomeKind.SUCCEEDED:
                self.state = RetryState.SUCCEEDED
                return outcome.value  # type: ignore[return-value]

            error = outcome.error
            assert error is not None

            if outcome.kind is OutcomeKind.CANCELLED:
                self.state = RetryState.CANCELLED
                logger.info("volc.retry.cancelled", attempts=self.attempts, labels=self.labels)
                raise error

            if outcome.kind is OutcomeKind.FATAL:
                self.state = RetryState.EXHAUSTED
                if self.attempts > 1:
                    logger.warning(
                        "volc.retry.exhausted",
                        attempts=self.attempts,
                        max_attempts=self.policy.max_attempts,
                        error=str(error)[:200],
                        error_type=type(error).__name__,
                        labels=self.labels,
                    )
                raise error

            delay_ms = self.policy.delay(self.attempts)
            get_metrics().increment_counter("volc_retries_total", self.labels)
            logger.warning(
                "volc.retry.attempt_failed",
                attempt=self.attempts,
                max_attempts=self.policy.max_attempts,
                delay_ms=delay_ms,
                error=str(error)[:200],
                error_type=type(error).__name__,
                labels=self.labels,
            )
            try:
                await self._backoff(delay_ms)
            except RequestCancelledError:
                self.state = RetryState.CANCELLED
                logger.info("volc.retry.cancelled", attempts=self.attempts, labels=self.labels)
                raise


def create_retry_middleware(
    clock: Clock,
    retry_predicate: Callable[[BaseException], bool] = should_retry,
    delay_calculator: Callable[[int, RetryStrategy | None], float] = calculate_retry_delay,
) -> MiddlewareSpec:
    """Build the retry stage.

    Args:
        clock: Clock used for backoff sleeps
        retry_predicate: Default retry predicate (a configured retry_if wins)
        delay_calculator: Default delay calculation (a configured delay wins)
    """

    def retry(next_handler: Handler, context: MiddlewareContext) -> Handler:
        async def handler(args: Args) -> Any:
            policy = resolve_retry_policy(context.client_config, retry_predicate, delay_calculator)
            executor = RetryExecutor(
                clock,
                policy,
                args.request.cancellation_token,
                labels={"service": args.request.service_name or "unknown"},
            )
            return await executor.run(lambda: next_handler(args))

        return handler

    return MiddlewareSpec(middleware=retry, options=stage_options("retryMiddleware"))


__all__ = [
    "AttemptOutcome",
    "OutcomeKind",
    "RetryExecutor",
    "create_retry_middleware",
]
