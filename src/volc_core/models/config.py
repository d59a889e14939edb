"""Configuration models for clients, commands and credentials.

ClientConfig enumerates every option the default pipeline reads. It is
frozen: stages read it through the MiddlewareContext and never write to it.

Example:
    >>> from volc_core.models.config import ClientConfig, RetryStrategy
    >>> from volc_core.models.enums import StrategyName
    >>>
    >>> config = ClientConfig(
    ...     region="cn-beijing",
    ...     access_key_id="AK",
    ...     secret_access_key="SK",
    ...     max_retries=5,
    ...     retry_strategy=RetryStrategy(strategy_name=StrategyName.EXPONENTIAL),
    ... )
"""

from __future__ import annotations

from typing import Any, Callable, Literal

from pydantic import Field

from volc_core.models.base import VolcBaseModel
from volc_core.models.enums import StrategyName


class Credentials(VolcBaseModel):
    """Access key pair plus optional STS session token."""

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None


class ProxyConfig(VolcBaseModel):
    """Forward proxy used by the default HTTP adapter."""

    protocol: Literal["http", "https"] = "http"
    host: str = "127.0.0.1"
    port: int

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"


class PoolOptions(VolcBaseModel):
    """Connection limits handed through to httpx.Limits."""

    max_connections: int | None = Field(default=None, ge=1)
    max_keepalive_connections: int | None = Field(default=None, ge=0)
    keepalive_expiry: float | None = Field(default=None, ge=0)


class HttpOptions(VolcBaseModel):
    """Options for the default dispatch adapter.

    Attributes:
        timeout: Client-level dispatch timeout in milliseconds
        proxy: Optional forward proxy
        ignore_ssl: Disable TLS certificate verification
        pool: Optional connection limits
    """

    timeout: int | None = Field(default=None, gt=0)
    proxy: ProxyConfig | None = None
    ignore_ssl: bool = False
    pool: PoolOptions | None = None


class RetryStrategy(VolcBaseModel):
    """Caller-facing retry tuning.

    ``retry_if`` and ``delay`` replace the default predicate and delay
    calculation when provided; otherwise ``strategy_name``,
    ``min_retry_delay`` and ``max_retry_delay`` drive the built-in
    calculation.
    """

    strategy_name: StrategyName | None = None
    min_retry_delay: int | None = Field(default=None, ge=0)
    max_retry_delay: int | None = Field(default=None, ge=0)
    retry_if: Callable[[BaseException], bool] | None = None
    delay: Callable[[int], float] | None = None


class AssumeRoleParams(VolcBaseModel):
    """Parameters for exchanging long-lived keys for role credentials via STS."""

    access_key_id: str
    secret_access_key: str
    role_name: str
    account_id: str
    host: str | None = None
    protocol: Literal["https", "http"] | None = None
    region: str | None = None
    duration_seconds: int | None = Field(default=None, gt=0)
    policy: str | None = None
    tags: list[dict[str, str]] | None = None


class ClientConfig(VolcBaseModel):
    """Explicit client configuration.

    Attributes:
        host: Fixed endpoint host; skips endpoint resolution when set
        region: Default region (falls back to cn-beijing)
        protocol: URL scheme for dispatch
        access_key_id: Access key; falls back to environment when unset
        secret_access_key: Secret key; falls back to environment when unset
        session_token: Optional STS session token
        auto_retry: False disables retries entirely
        max_retries: Retries after the first attempt (default 3)
        retry_strategy: Backoff tuning and caller predicate/delay overrides
        assume_role_params: Obtain credentials by assuming a role
        use_dual_stack: Resolve dual-stack endpoints (falls back to environment)
        custom_bootstrap_region: Extra regions to treat as bootstrap regions
        http_options: Options for the default dispatch adapter
    """

    host: str | None = None
    region: str | None = None
    protocol: Literal["https", "http"] | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    auto_retry: bool | None = None
    max_retries: int | None = None
    retry_strategy: RetryStrategy | None = None
    assume_role_params: AssumeRoleParams | None = None
    use_dual_stack: bool | None = None
    custom_bootstrap_region: dict[str, Any] | None = None
    http_options: HttpOptions | None = None


class RequestConfig(VolcBaseModel):
    """Per-command request description, usually built from a meta path."""

    params: dict[str, Any] | None = None
    method: str | None = None
    service_name: str | None = None
    pathname: str | None = None
    content_type: str | None = None
