"""Enumerations shared by configuration and pipeline modules."""

from enum import Enum


class Step(str, Enum):
    """Pipeline phases, executed in declaration order."""

    INITIALIZE = "initialize"
    SERIALIZE = "serialize"
    BUILD = "build"
    FINALIZE_REQUEST = "finalizeRequest"


STEP_ORDER: tuple[Step, ...] = (
    Step.INITIALIZE,
    Step.SERIALIZE,
    Step.BUILD,
    Step.FINALIZE_REQUEST,
)


class StrategyName(str, Enum):
    """Named backoff strategies for the retry stage.

    NO_BACKOFF: retry immediately
    EXPONENTIAL: min_delay * 2 ** (attempt - 1), capped at max_delay
    EXPONENTIAL_WITH_JITTER: exponential base plus up to one base of random jitter (default)
    """

    NO_BACKOFF = "NoBackoffStrategy"
    EXPONENTIAL = "ExponentialBackoffStrategy"
    EXPONENTIAL_WITH_JITTER = "ExponentialWithRandomJitterBackoffStrategy"


class RetryState(str, Enum):
    """States of a single call's retry loop.

    ATTEMPTING is the only non-terminal state.
    """

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self is not RetryState.ATTEMPTING
