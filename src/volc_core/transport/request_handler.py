"""Dispatch adapters: the pluggable HTTP layer under the pipeline.

The HTTP stage hands a fully-resolved HttpRequestConfig to a RequestHandler
and gets an HttpResponse back. Adapters raise TransportError for anything
other than a 2xx response; the HTTP stage classifies those errors.

HttpxRequestHandler is the default adapter, built on httpx.AsyncClient.
Tests inject an httpx.MockTransport through its ``transport`` argument, or
replace the adapter entirely with volc_core.testing.MockRequestHandler.
"""

from __future__ import annotations

import socket
import ssl
import time
from typing import Any, Iterator, Protocol, runtime_checkable

import httpx

from volc_core.crypto.signer import serialize_json_body
from volc_core.errors import TransportError
from volc_core.models.config import HttpOptions
from volc_core.models.constants import DEFAULT_TIMEOUT_MS
from volc_core.models.request import HttpRequestConfig, HttpResponse
from volc_core.observability.logging import get_logger
from volc_core.transport.cancellation import run_cancellable
from volc_core.utils.sanitization import sanitize_url

logger = get_logger(__name__)


@runtime_checkable
class RequestHandler(Protocol):
    """Contract every dispatch adapter satisfies."""

    async def request(self, config: HttpRequestConfig) -> HttpResponse:
        """Send one request.

        Raises:
            TransportError: For non-2xx responses and network failures
            RequestCancelledError: If config.cancellation_token fires first
        """
        ...


def encode_body(body: Any) -> bytes | None:
    """Encode a request body the same way the signer hashed it."""
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return serialize_json_body(body).encode("utf-8")


def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _is_ssl_failure(exc: BaseException) -> bool:
    return any(isinstance(cause, ssl.SSLError) for cause in _iter_causes(exc))


def _is_dns_failure(exc: BaseException) -> bool:
    return any(isinstance(cause, socket.gaierror) for cause in _iter_causes(exc))


def map_httpx_error(exc: httpx.HTTPError, timeout_ms: int) -> TransportError:
    """Translate an httpx exception into a TransportError with a network code."""
    if isinstance(exc, httpx.ConnectTimeout):
        return TransportError(f"connect timeout of {timeout_ms}ms exceeded", code="ETIMEDOUT")
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"timeout of {timeout_ms}ms exceeded", code="ECONNABORTED")
    if isinstance(exc, httpx.ConnectError):
        if _is_ssl_failure(exc):
            return TransportError(f"SSL handshake failed: {exc}")
        if _is_dns_failure(exc):
            return TransportError(f"getaddrinfo failed: {exc}", code="ENOTFOUND")
        return TransportError(f"connect failed: {exc}", code="ECONNREFUSED")
    if isinstance(exc, httpx.ProtocolError):
        return TransportError(f"protocol error: {exc}", code="EPROTO")
    if isinstance(exc, httpx.NetworkError):
        return TransportError(f"connection reset: {exc}", code="ECONNRESET")
    return TransportError(str(exc) or exc.__class__.__name__)


def decode_body(response: httpx.Response) -> Any:
    """Parse a JSON response body, falling back to text."""
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type.lower():
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


class HttpxRequestHandler:
    """Default dispatch adapter backed by a lazily created httpx.AsyncClient.

    Example:
        >>> handler = HttpxRequestHandler(HttpOptions(timeout=5000))
        >>> response = await handler.request(HttpRequestConfig(url="https://open.volcengineapi.com/"))
        >>> await handler.aclose()
    """

    def __init__(
        self,
        http_options: HttpOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            http_options: Proxy, TLS verification and pool options
            transport: Optional custom transport (e.g. httpx.MockTransport);
                the configured proxy is ignored when one is given
        """
        self.http_options = http_options or HttpOptions()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _build_client(self) -> httpx.AsyncClient:
        options = self.http_options
        kwargs: dict[str, Any] = {"verify": not options.ignore_ssl}
        if options.pool is not None:
            limits = options.pool.model_dump(exclude_none=True)
            if limits:
                kwargs["limits"] = httpx.Limits(**limits)
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif options.proxy is not None:
            kwargs["proxy"] = options.proxy.url
        return httpx.AsyncClient(**kwargs)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def request(self, config: HttpRequestConfig) -> HttpResponse:
        return await run_cancellable(self._dispatch(config), config.cancellation_token)

    async def _dispatch(self, config: HttpRequestConfig) -> HttpResponse:
        timeout_ms = config.timeout_ms or self.http_options.timeout or DEFAULT_TIMEOUT_MS
        headers = {key: str(value) for key, value in config.headers.items() if value is not None}
        start_time = time.perf_counter()

        try:
            response = await self.client.request(
                config.method or "GET",
                config.url,
                headers=headers,
                content=encode_body(config.body),
                timeout=timeout_ms / 1000,
            )
        except httpx.HTTPError as e:
            error = map_httpx_error(e, timeout_ms)
            logger.debug(
                "volc.http.dispatch_failed",
                method=config.method,
                url=sanitize_url(config.url),
                code=error.code,
                error=str(e)[:200],
            )
            raise error from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        body = decode_body(response)
        logger.debug(
            "volc.http.dispatch",
            method=config.method,
            url=sanitize_url(config.url),
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        if not response.is_success:
            raise TransportError(
                f"Request failed with status code {response.status_code}",
                status=response.status_code,
                status_text=response.reason_phrase,
                body=body,
                headers=dict(response.headers),
            )

        return HttpResponse(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            body=body,
        )

    async def aclose(self) -> None:
        """Close the underlying httpx client, if one was created."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = [
    "HttpxRequestHandler",
    "RequestHandler",
    "decode_body",
    "encode_body",
    "map_httpx_error",
]
