"""Volc SDK testing utilities.

This package provides a virtual clock, a recording dispatch adapter and
pytest fixtures for testing clients and middleware without a network.

Modules:
    clock: MockClock, virtual time with optional auto-advancing sleeps.
    mocks: MockRequestHandler and MockResponse for canned responses and
           request recording.
    fixtures: Pytest fixtures (mock_clock, mock_handler, mock_client)
              and the test_client() context manager.

Example:
    >>> from volc_core.testing import MockClock, MockRequestHandler, MockResponse
    >>> from volc_core.testing.fixtures import mock_client, test_client
"""

from volc_core.testing.clock import MockClock
from volc_core.testing.mocks import MockRequestHandler, MockResponse

__all__ = [
    "MockClock",
    "MockRequestHandler",
    "MockResponse",
]
