"""Observability for the Volc SDK core.

Structured logging (structlog) and in-process Prometheus-style metrics for
the request pipeline.

Example:
    >>> from volc_core.observability import get_logger, get_metrics
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("volc.client.send", command="DescribeInstances")
    >>>
    >>> get_metrics().increment_counter("volc_send_total", {"service": "ecs"})
"""

from volc_core.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    is_debug_mode,
    sanitize_for_logging,
    unbind_context,
)
from volc_core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    reset_metrics,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_metrics",
    "is_debug_mode",
    "reset_metrics",
    "MetricsCollector",
    "sanitize_for_logging",
    "unbind_context",
]
