"""HTTP stage: dispatches the request and classifies failures.

Every failure leaves this stage as an HttpRequestError (or one of its
subclasses) so the retry predicate and callers see one error shape:

- 2xx body carrying ResponseMetadata.Error: ApiException with the status
- non-2xx status: ApiException "HTTP <status>: <status text>"
- network codes, or "timeout"/"network error" messages: NetworkError
- TLS/SSL failures: ApiException with status 0
- anything else: HttpRequestError of kind Exception

HttpRequestError and RequestCancelledError pass through unchanged.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from volc_core.crypto.signer import canonical_query_string
from volc_core.errors import (
    ApiException,
    ErrorKind,
    HttpRequestError,
    NetworkError,
    RequestCancelledError,
)
from volc_core.middleware.priority import stage_options
from volc_core.middleware.stack import Handler, MiddlewareSpec
from volc_core.models.constants import (
    DEFAULT_PROTOCOL,
    DEFAULT_TIMEOUT_MS,
    RETRYABLE_ERROR_CODES,
    TLS_ERROR_CODES,
)
from volc_core.models.request import Args, HttpRequestConfig, HttpResponse, MiddlewareContext
from volc_core.observability.logging import get_logger, is_debug_mode, sanitize_for_logging
from volc_core.observability.metrics import get_metrics
from volc_core.transport.request_handler import RequestHandler
from volc_core.utils.sanitization import sanitize_url

logger = get_logger(__name__)


def build_url(args: Args) -> str:
    request = args.request
    url = f"{request.protocol or DEFAULT_PROTOCOL}://{request.host}{request.pathname or '/'}".strip()
    query = canonical_query_string(request.params)
    if query:
        url += "?" + query
    return url


def error_envelope(response: HttpResponse) -> ApiException | None:
    """Return an ApiException for a response body carrying ResponseMetadata.Error."""
    body = response.body
    if not isinstance(body, dict):
        return None
    metadata = body.get("ResponseMetadata")
    if not isinstance(metadata, dict) or not metadata.get("Error"):
        return None
    error = metadata["Error"]
    return ApiException(
        f"[{error.get('Code')}] {error.get('Message')} (RequestId: {metadata.get('RequestId')})",
        status=response.status,
        data=body,
        original_error=response,
    )


def classify_error(error: Exception) -> HttpRequestError:
    """Map an adapter-level exception onto the HttpRequestError taxonomy."""
    message = str(error)
    lowered = message.lower()
    status = getattr(error, "status", None)
    data = getattr(error, "body", None)
    code = getattr(error, "code", None)

    if isinstance(status, int) and not 200 <= status <= 299:
        status_text = getattr(error, "status_text", None) or "Error"
        return ApiException(f"HTTP {status}: {status_text}", status, data, error)

    if code in RETRYABLE_ERROR_CODES or "timeout" in lowered or "network error" in lowered:
        return NetworkError(f"Network error: {message}", error)

    if code in TLS_ERROR_CODES or "ssl" in lowered:
        return ApiException(f"SSL Error: {message}", 0, None, error)

    return HttpRequestError(
        ErrorKind.EXCEPTION,
        f"HTTP request failed: {message or 'Unknown error'}",
        status,
        data,
        error,
    )


def create_http_request_middleware(request_handler: RequestHandler) -> MiddlewareSpec:
    """Build the HTTP stage around ``request_handler``."""

    def http_request(next_handler: Handler, context: MiddlewareContext) -> Handler:
        async def handler(args: Args) -> Any:
            request = args.request
            http_options = context.client_config.http_options
            config = HttpRequestConfig(
                url=build_url(args),
                method=request.method or "GET",
                headers=dict(request.headers or {}),
                body=request.body,
                timeout_ms=request.timeout
                or (http_options.timeout if http_options else None)
                or DEFAULT_TIMEOUT_MS,
                cancellation_token=request.cancellation_token,
                proxy=http_options.proxy if http_options else None,
            )

            get_metrics().increment_counter(
                "volc_dispatch_attempts_total", {"service": request.service_name or "unknown"}
            )
            logger.debug(
                "volc.http.request",
                method=config.method,
                url=sanitize_url(config.url),
                timeout_ms=config.timeout_ms,
                headers=config.headers if is_debug_mode() else sanitize_for_logging(config.headers),
            )

            try:
                response = await request_handler.request(config)
            except (HttpRequestError, RequestCancelledError):
                raise
            except Exception as e:
                raise classify_error(e) from e

            api_error = error_envelope(response)
            if api_error is not None:
                raise api_error

            return await next_handler(dataclasses.replace(args, response=response))

        return handler

    return MiddlewareSpec(middleware=http_request, options=stage_options("httpRequestMiddleware"))


__all__ = [
    "build_url",
    "classify_error",
    "create_http_request_middleware",
    "error_envelope",
]
