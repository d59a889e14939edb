"""Shared pytest fixtures for Volc SDK core tests."""

from __future__ import annotations

import re
from collections.abc import Iterator

import pytest

from volc_core.observability.metrics import reset_metrics

# Load volc_core.testing fixtures (mock_clock, mock_handler, mock_client)
pytest_plugins = ["volc_core.testing.fixtures"]

ANY_URL = re.compile(r".*")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Keep host credentials, proxies and ~/.volc/config out of every test."""
    for name in (
        "VOLCSTACK_ACCESS_KEY_ID",
        "VOLCSTACK_ACCESS_KEY",
        "VOLCSTACK_SECRET_ACCESS_KEY",
        "VOLCSTACK_SECRET_KEY",
        "VOLCSTACK_SESSION_TOKEN",
        "VOLC_ENABLE_DUALSTACK",
        "VOLC_BOOTSTRAP_REGION_LIST_CONF",
        "VOLC_PROXY_PROTOCOL",
        "VOLC_PROXY_HOST",
        "VOLC_PROXY_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    yield


@pytest.fixture(autouse=True)
def _reset_metrics() -> Iterator[None]:
    reset_metrics()
    yield
    reset_metrics()
