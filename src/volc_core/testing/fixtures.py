"""Pytest fixtures and context managers for Volc SDK tests.

Fixtures (use with pytest):
    mock_clock: MockClock with auto-advancing sleeps.
    mock_handler: MockRequestHandler driven by mock_clock.
    mock_client: Client wired to mock_handler and mock_clock (async).

Context managers:
    test_client(): Async context manager yielding a Client on a mock handler.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import pytest

from volc_core.client import Client
from volc_core.models.config import ClientConfig
from volc_core.testing.clock import MockClock
from volc_core.testing.mocks import MockRequestHandler

DEFAULT_TEST_HOST = "open.volcengineapi.com"
DEFAULT_TEST_ACCESS_KEY_ID = "AKTEST"
DEFAULT_TEST_SECRET_ACCESS_KEY = "test-secret"


def make_test_config(**overrides: object) -> ClientConfig:
    """ClientConfig with static test keys and a fixed host."""
    values: dict[str, object] = {
        "access_key_id": DEFAULT_TEST_ACCESS_KEY_ID,
        "secret_access_key": DEFAULT_TEST_SECRET_ACCESS_KEY,
        "host": DEFAULT_TEST_HOST,
        "region": "cn-beijing",
    }
    values.update(overrides)
    return ClientConfig(**values)  # type: ignore[arg-type]


@pytest.fixture
def mock_clock() -> MockClock:
    """Create a fresh MockClock starting at 2024-01-01T00:00:00Z."""
    return MockClock()


@pytest.fixture
def mock_handler(mock_clock: MockClock) -> MockRequestHandler:
    """Create an empty MockRequestHandler on the test's clock."""
    return MockRequestHandler(mock_clock)


@pytest.fixture
async def mock_client(
    mock_handler: MockRequestHandler, mock_clock: MockClock
) -> AsyncIterator[Client]:
    """Provide a Client that dispatches through mock_handler.

    Yields:
        Client with static test credentials and host DEFAULT_TEST_HOST.
    """
    async with Client(make_test_config(), request_handler=mock_handler, clock=mock_clock) as client:
        yield client


@asynccontextmanager
async def test_client(
    config: ClientConfig | None = None,
    handler: MockRequestHandler | None = None,
    clock: MockClock | None = None,
) -> AsyncIterator[Client]:
    """Async context manager that provides a Client on a mock handler.

    Example:
        >>> async with test_client() as client:
        ...     client.request_handler.mock(url, MockResponse(data={"Result": {}}))
        ...     await client.send(command)
    """
    clock = clock or MockClock()
    handler = handler or MockRequestHandler(clock)
    async with Client(config or make_test_config(), request_handler=handler, clock=clock) as client:
        yield client


__all__ = [
    "DEFAULT_TEST_ACCESS_KEY_ID",
    "DEFAULT_TEST_HOST",
    "DEFAULT_TEST_SECRET_ACCESS_KEY",
    "make_test_config",
    "mock_client",
    "mock_clock",
    "mock_handler",
    "test_client",
]
