"""Volc SDK core models.

Configuration models (pydantic, immutable), the request envelope passed
between middleware stages, and shared enums and constants.
"""

# Base model
from volc_core.models.base import VolcBaseModel

# Configuration
from volc_core.models.config import (
    AssumeRoleParams,
    ClientConfig,
    Credentials,
    HttpOptions,
    PoolOptions,
    ProxyConfig,
    RequestConfig,
    RetryStrategy,
)

# Enums
from volc_core.models.enums import STEP_ORDER, RetryState, Step, StrategyName

# Request envelope
from volc_core.models.request import (
    Args,
    HttpRequestConfig,
    HttpResponse,
    MiddlewareContext,
    Request,
    SendOptions,
)

__all__ = [
    "Args",
    "AssumeRoleParams",
    "ClientConfig",
    "Credentials",
    "HttpOptions",
    "HttpRequestConfig",
    "HttpResponse",
    "MiddlewareContext",
    "PoolOptions",
    "ProxyConfig",
    "Request",
    "RequestConfig",
    "RetryState",
    "RetryStrategy",
    "STEP_ORDER",
    "SendOptions",
    "Step",
    "StrategyName",
    "VolcBaseModel",
]
