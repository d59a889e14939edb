"""Request envelope and dispatch contract types.

Args is the mutable envelope threaded through every middleware stage: the
command input, the request descriptor being built, and eventually the raw
response. MiddlewareContext is the immutable per-call metadata handed to
every middleware factory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from volc_core.models.config import ClientConfig, Credentials, ProxyConfig
from volc_core.transport.cancellation import CancellationToken


@dataclass
class Request:
    """Request descriptor mutated by pipeline stages.

    Attributes:
        method: HTTP method
        pathname: URL path (defaults to "/")
        headers: Request headers
        params: Query parameters
        body: Request body (dict, str or bytes)
        host: Endpoint host, resolved by the endpoint stage when unset
        protocol: URL scheme
        region: Signing region
        service_name: Signing service name
        timeout: Per-call dispatch timeout in milliseconds
        cancellation_token: Abort signal for the call
        credentials: Credentials resolved by the credentials stage
    """

    method: str | None = None
    pathname: str | None = None
    headers: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    body: Any = None
    host: str | None = None
    protocol: str | None = None
    region: str | None = None
    service_name: str | None = None
    timeout: int | None = None
    cancellation_token: CancellationToken | None = None
    credentials: Credentials | None = None


@dataclass
class HttpResponse:
    """Normalized response returned by a dispatch adapter."""

    status: int
    status_text: str = ""
    headers: dict[str, Any] = field(default_factory=dict)
    body: Any = None


@dataclass
class Args:
    """Mutable envelope threaded through the resolved chain."""

    request: Request
    input: Any = None
    response: HttpResponse | None = None


@dataclass(frozen=True)
class MiddlewareContext:
    """Per-call metadata passed to every middleware factory.

    Attributes:
        client_name: Class name of the sending client
        command_name: Class name of the command being sent
        client_config: Client configuration (read-only)
        content_type: Content type negotiated for the command
    """

    client_name: str
    command_name: str
    client_config: ClientConfig
    content_type: str | None = None


@dataclass
class HttpRequestConfig:
    """Fully-resolved request handed to a dispatch adapter."""

    url: str
    method: str = "GET"
    headers: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    timeout_ms: int | None = None
    cancellation_token: CancellationToken | None = None
    proxy: ProxyConfig | None = None


@dataclass(frozen=True)
class SendOptions:
    """Per-call options for Client.send().

    Attributes:
        cancellation_token: Abort signal for the call
        timeout: Dispatch timeout in milliseconds, overriding http_options.timeout
    """

    cancellation_token: CancellationToken | None = None
    timeout: int | None = None
