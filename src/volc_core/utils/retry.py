"""Retry predicates, backoff delays and per-call retry policy resolution.

The retry stage resolves one RetryPolicy per call from the client config:
how many attempts to make, which errors are worth another attempt, and how
long to wait before each retry.

Example:
    >>> policy = resolve_retry_policy(ClientConfig(max_retries=2))
    >>> policy.max_attempts
    3
    >>> calculate_retry_delay(3, RetryStrategy(strategy_name=StrategyName.EXPONENTIAL))
    1200
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, Callable

from volc_core.models.config import ClientConfig, RetryStrategy
from volc_core.models.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY_MS,
    DEFAULT_MIN_RETRY_DELAY_MS,
    RETRYABLE_ERROR_CODES,
    RETRYABLE_STATUS_CODES,
)
from volc_core.models.enums import StrategyName

RetryPredicate = Callable[[BaseException], bool]
DelayFunction = Callable[[int], float]


def resolve_max_attempts(config: ClientConfig | None) -> int:
    """Return the total number of attempts, first attempt included (always >= 1)."""
    if config is None:
        return DEFAULT_MAX_RETRIES + 1
    if config.auto_retry is False:
        return 1
    max_retries = DEFAULT_MAX_RETRIES if config.max_retries is None else config.max_retries
    return max(max_retries + 1, 1)


def should_retry(error: BaseException) -> bool:
    """Default retry predicate: transient network codes and 429/5xx statuses.

    Looks at the error itself and at the adapter error it wraps
    (``original_error``), so both pipeline errors and raw TransportErrors
    are recognised.
    """
    original: Any = getattr(error, "original_error", None)

    for candidate in (error, original):
        code = getattr(candidate, "code", None)
        if isinstance(code, str) and code in RETRYABLE_ERROR_CODES:
            return True

    status = getattr(error, "status", None) or getattr(original, "status", None)
    return isinstance(status, int) and status in RETRYABLE_STATUS_CODES


def _exponential_base(attempt: int, min_delay: float, max_delay: float) -> float:
    return min(min_delay * 2 ** (attempt - 1), max_delay)


def calculate_retry_delay(
    attempt: int,
    strategy: RetryStrategy | None = None,
    random_fn: Callable[[], float] = random.random,
) -> float:
    """Delay in milliseconds before the retry following attempt ``attempt`` (1-based).

    NO_BACKOFF waits 0; EXPONENTIAL waits min * 2^(attempt-1) capped at max;
    EXPONENTIAL_WITH_JITTER (default) adds up to one more base of random
    jitter, then caps at max and floors to whole milliseconds.
    """
    strategy_name = (
        strategy.strategy_name if strategy and strategy.strategy_name else None
    ) or StrategyName.EXPONENTIAL_WITH_JITTER
    min_delay = (
        strategy.min_retry_delay
        if strategy and strategy.min_retry_delay is not None
        else DEFAULT_MIN_RETRY_DELAY_MS
    )
    max_delay = (
        strategy.max_retry_delay
        if strategy and strategy.max_retry_delay is not None
        else DEFAULT_MAX_RETRY_DELAY_MS
    )

    if strategy_name == StrategyName.NO_BACKOFF:
        return 0

    base = _exponential_base(attempt, min_delay, max_delay)
    if strategy_name == StrategyName.EXPONENTIAL:
        return base

    return math.floor(min(max_delay, base + random_fn() * base))


class NoBackoff:
    """Retry immediately on retryable errors."""

    strategy_name = StrategyName.NO_BACKOFF

    def retry_if(self, error: BaseException) -> bool:
        return should_retry(error)

    def delay(self, attempt: int) -> float:
        return 0

    def to_retry_strategy(self) -> RetryStrategy:
        return RetryStrategy(strategy_name=self.strategy_name, retry_if=self.retry_if, delay=self.delay)


class Exponential(NoBackoff):
    """Doubling backoff starting at ``min_delay`` ms, capped at ``max_delay`` ms."""

    strategy_name = StrategyName.EXPONENTIAL

    def __init__(
        self,
        min_delay: float = DEFAULT_MIN_RETRY_DELAY_MS,
        max_delay: float = DEFAULT_MAX_RETRY_DELAY_MS,
    ) -> None:
        self.min_delay = min_delay
        self.max_delay = max_delay

    def delay(self, attempt: int) -> float:
        return _exponential_base(attempt, self.min_delay, self.max_delay)


class ExponentialWithJitter(Exponential):
    """Doubling backoff plus up to one extra base of random jitter."""

    strategy_name = StrategyName.EXPONENTIAL_WITH_JITTER

    def __init__(
        self,
        min_delay: float = DEFAULT_MIN_RETRY_DELAY_MS,
        max_delay: float = DEFAULT_MAX_RETRY_DELAY_MS,
        random_fn: Callable[[], float] = random.random,
    ) -> None:
        super().__init__(min_delay, max_delay)
        self._random = random_fn

    def delay(self, attempt: int) -> float:
        base = _exponential_base(attempt, self.min_delay, self.max_delay)
        return math.floor(min(self.max_delay, base + self._random() * base))


@dataclass(frozen=True)
class RetryPolicy:
    """Retry behaviour for a single call.

    Attributes:
        max_attempts: Total attempts including the first (>= 1)
        retry_if: Predicate deciding whether an error is worth another attempt
        delay: Milliseconds to wait after the given 1-based attempt fails
    """

    max_attempts: int
    retry_if: RetryPredicate
    delay: DelayFunction

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")


def resolve_retry_policy(
    config: ClientConfig | None,
    retry_predicate: RetryPredicate = should_retry,
    delay_calculator: Callable[[int, RetryStrategy | None], float] = calculate_retry_delay,
) -> RetryPolicy:
    """Build the RetryPolicy for one call.

    A caller-supplied ``retry_strategy.retry_if`` or ``retry_strategy.delay``
    replaces ``retry_predicate`` or ``delay_calculator`` respectively.
    """
    strategy = config.retry_strategy if config is not None else None

    retry_if: RetryPredicate = (
        strategy.retry_if if strategy is not None and strategy.retry_if else retry_predicate
    )
    if strategy is not None and strategy.delay:
        delay: DelayFunction = strategy.delay
    else:

        def delay(attempt: int) -> float:
            return delay_calculator(attempt, strategy)

    return RetryPolicy(
        max_attempts=resolve_max_attempts(config),
        retry_if=retry_if,
        delay=delay,
    )


__all__ = [
    "Exponential",
    "ExponentialWithJitter",
    "NoBackoff",
    "RetryPolicy",
    "calculate_retry_delay",
    "resolve_max_attempts",
    "resolve_retry_policy",
    "should_retry",
]
