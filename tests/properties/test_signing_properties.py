"""Property-based tests for request signing and retry delays.

Canonicalization must not depend on parameter insertion order, escaping
must only emit unreserved characters or percent triplets, and backoff
delays must stay inside their documented bounds.
"""

from __future__ import annotations

import re

from hypothesis import given
from hypothesis import strategies as st

from volc_core.crypto.signer import canonical_query_string, sign_request, uri_escape
from volc_core.models.config import RetryStrategy
from volc_core.models.enums import StrategyName
from volc_core.utils.retry import calculate_retry_delay

_ESCAPED = re.compile(r"^(?:[A-Za-z0-9\-_.~]|%[0-9A-F]{2})*$")

_keys = st.text(
    alphabet=st.characters(min_codepoint=0x21, max_codepoint=0x7E), min_size=1, max_size=12
)
_scalar_values = st.one_of(
    st.text(max_size=16),
    st.integers(min_value=-(10**6), max_value=10**6),
    st.booleans(),
)
_values = st.one_of(_scalar_values, st.lists(st.text(max_size=8), max_size=4))
_params = st.dictionaries(_keys, _values, max_size=8)


@st.composite
def params_and_permutation(draw: st.DrawFn) -> tuple[dict, dict]:
    params = draw(_params)
    shuffled = draw(st.permutations(list(params.items())))
    return params, dict(shuffled)


@given(st.text(max_size=40))
def test_uri_escape_emits_only_unreserved_or_percent_triplets(value: str) -> None:
    assert _ESCAPED.match(uri_escape(value))


@given(params_and_permutation())
def test_canonical_query_ignores_insertion_order(pair: tuple[dict, dict]) -> None:
    params, shuffled = pair
    assert canonical_query_string(params) == canonical_query_string(shuffled)


@given(params_and_permutation())
def test_signature_ignores_query_insertion_order(pair: tuple[dict, dict]) -> None:
    params, shuffled = pair
    common = {
        "region": "cn-beijing",
        "service_name": "ecs",
        "access_key_id": "AK",
        "secret_access_key": "SK",
        "host": "open.volcengineapi.com",
        "timestamp": "20240101T000000Z",
    }
    first = sign_request(query=params, **common)
    second = sign_request(query=shuffled, **common)
    assert first.signature == second.signature


@given(
    attempt=st.integers(min_value=1, max_value=40),
    min_delay=st.integers(min_value=0, max_value=10_000),
    max_delay=st.integers(min_value=0, max_value=600_000),
    jitter=st.floats(min_value=0.0, max_value=1.0, exclude_max=True),
)
def test_jitter_delay_bounds(attempt: int, min_delay: int, max_delay: int, jitter: float) -> None:
    strategy = RetryStrategy(min_retry_delay=min_delay, max_retry_delay=max_delay)
    base = min(min_delay * 2 ** (attempt - 1), max_delay)
    delay = calculate_retry_delay(attempt, strategy, random_fn=lambda: jitter)
    assert base <= delay <= min(max_delay, 2 * base)
    assert delay == int(delay)


@given(
    min_delay=st.integers(min_value=0, max_value=10_000),
    max_delay=st.integers(min_value=0, max_value=600_000),
)
def test_exponential_delay_is_monotonic_and_capped(min_delay: int, max_delay: int) -> None:
    strategy = RetryStrategy(
        strategy_name=StrategyName.EXPONENTIAL,
        min_retry_delay=min_delay,
        max_retry_delay=max_delay,
    )
    delays = [calculate_retry_delay(attempt, strategy) for attempt in range(1, 25)]
    assert delays == sorted(delays)
    assert all(delay <= max_delay for delay in delays)
