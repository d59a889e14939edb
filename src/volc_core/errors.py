"""Volc SDK core error taxonomy.

This module defines the error hierarchy raised by the request pipeline,
providing structured error handling with error codes and context
information.

Kinds surfaced to callers:
- NetworkError: transport-level failure (reset, timeout, refused, DNS)
- ApiException: non-2xx status, or a 2xx body carrying an error envelope
- SigningError: a signable header has no value (fatal, never retried)
- RequestCancelledError: the request's cancellation token fired
- HttpRequestError(kind=Exception): anything the HTTP stage cannot classify
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class VolcError(Exception):
    """Base exception for all SDK core errors.

    Attributes:
        code: Error code following the volc:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ErrorKind(str, Enum):
    """Classification carried by HttpRequestError."""

    EXCEPTION = "Exception"
    API_EXCEPTION = "ApiException"
    NETWORK_ERROR = "NetworkError"


class HttpRequestError(VolcError):
    """Raised when dispatching a request fails.

    The HTTP stage wraps every dispatch failure in this error (or one of its
    subclasses) so callers see one shape regardless of the adapter in use.

    Attributes:
        kind: ErrorKind classification
        status: HTTP status code, if one was received (0 for TLS failures)
        data: Response body, if one was received
        original_error: The adapter-level exception or response that caused this
    """

    def __init__(
        self,
        kind: ErrorKind | str,
        message: str,
        status: int | None = None,
        data: Any = None,
        original_error: Any = None,
    ) -> None:
        kind = ErrorKind(kind)
        super().__init__(
            code=f"volc:http/{kind.value}",
            message=message,
            details={"kind": kind.value, "status": status},
        )
        self.kind = kind
        self.status = status
        self.data = data
        self.original_error = original_error

    @property
    def name(self) -> str:
        return self.kind.value


class ApiException(HttpRequestError):
    """Non-2xx status, or a 2xx response carrying an application error envelope."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        data: Any = None,
        original_error: Any = None,
    ) -> None:
        super().__init__(ErrorKind.API_EXCEPTION, message, status, data, original_error)


class NetworkError(HttpRequestError):
    """Transport-level failure (connection reset/timeout/refused/DNS)."""

    def __init__(self, message: str, original_error: Any = None) -> None:
        super().__init__(ErrorKind.NETWORK_ERROR, message, None, None, original_error)


class SigningError(VolcError):
    """Raised when a request cannot be signed unambiguously.

    This occurs when a signable header carries no value. Signing errors
    abort the pipeline immediately and are never retried.

    Attributes:
        header: Name of the offending header
    """

    def __init__(self, header: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="volc:signing/invalid_header",
            message=f"Header {header} contains invalid value",
            details={"header": header, **(details or {})},
        )
        self.header = header


class RequestCancelledError(VolcError):
    """Raised when a request's cancellation token fires.

    Raised from the dispatch call or a pending backoff sleep; no further
    attempts are made once it is raised.
    """

    def __init__(self, reason: str | None = None, details: dict[str, Any] | None = None) -> None:
        message = "Request aborted" if not reason else f"Request aborted: {reason}"
        super().__init__(
            code="volc:request/cancelled",
            message=message,
            details={"reason": reason, **(details or {})},
        )
        self.reason = reason


class InvalidMetaPathError(VolcError):
    """Raised when a meta path does not have five segments."""

    def __init__(self, meta_path: str) -> None:
        super().__init__(
            code="volc:command/invalid_meta_path",
            message=(
                f"Invalid metaPath format: {meta_path}. "
                "Expected format: /Action/Version/serviceName/method/contentType/"
            ),
            details={"meta_path": meta_path},
        )
        self.meta_path = meta_path


class TransportError(Exception):
    """Raised by dispatch adapters when a request fails below the pipeline.

    This is the adapter-level error; the HTTP stage classifies it into
    NetworkError, ApiException or HttpRequestError.

    Attributes:
        message: Error description
        code: Symbolic network error code (e.g. ECONNRESET), if known
        status: HTTP status code for non-2xx responses
        status_text: HTTP reason phrase for non-2xx responses
        body: Response body for non-2xx responses
        headers: Response headers for non-2xx responses
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status: int | None = None,
        status_text: str | None = None,
        body: Any = None,
        headers: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.status_text = status_text
        self.body = body
        self.headers = headers or {}
