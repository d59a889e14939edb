"""Tests for the HTTP stage: URL building, dispatch and error classification."""

from __future__ import annotations

import re

import pytest

from volc_core.errors import (
    ApiException,
    ErrorKind,
    HttpRequestError,
    NetworkError,
    RequestCancelledError,
    TransportError,
)
from volc_core.middleware.http_request import (
    build_url,
    classify_error,
    create_http_request_middleware,
    error_envelope,
)
from volc_core.models.config import ClientConfig, HttpOptions
from volc_core.models.request import Args, HttpResponse, MiddlewareContext, Request
from volc_core.observability.metrics import get_metrics
from volc_core.testing.mocks import MockRequestHandler, MockResponse
from volc_core.transport.cancellation import CancellationToken

CONTEXT = MiddlewareContext(client_name="Client", command_name="Cmd", client_config=ClientConfig())


async def capture(args: Args) -> Args:
    return args


def make_request(**overrides: object) -> Request:
    values: dict[str, object] = {
        "method": "GET",
        "host": "open.volcengineapi.com",
        "protocol": "https",
        "service_name": "ecs",
        "params": {"Version": "2020-04-01", "Action": "DescribeInstances"},
    }
    values.update(overrides)
    return Request(**values)  # type: ignore[arg-type]


class TestBuildUrl:
    def test_query_is_canonical(self) -> None:
        url = build_url(Args(request=make_request()))
        assert url == (
            "https://open.volcengineapi.com/?Action=DescribeInstances&Version=2020-04-01"
        )

    def test_without_params(self) -> None:
        url = build_url(Args(request=make_request(params=None, pathname="/v1")))
        assert url == "https://open.volcengineapi.com/v1"


class TestClassifyError:
    """Tests for mapping adapter errors onto HttpRequestError kinds."""

    def test_non_2xx_status(self) -> None:
        original = TransportError("failed", status=502, status_text="Bad Gateway", body={"x": 1})
        error = classify_error(original)
        assert isinstance(error, ApiException)
        assert error.kind is ErrorKind.API_EXCEPTION
        assert error.status == 502
        assert error.data == {"x": 1}
        assert error.message == "HTTP 502: Bad Gateway"
        assert error.original_error is original

    def test_network_code(self) -> None:
        error = classify_error(TransportError("socket hang up", code="ECONNRESET"))
        assert isinstance(error, NetworkError)
        assert error.kind is ErrorKind.NETWORK_ERROR
        assert error.message == "Network error: socket hang up"

    def test_timeout_message(self) -> None:
        assert isinstance(classify_error(RuntimeError("read timeout")), NetworkError)

    def test_tls_failure(self) -> None:
        error = classify_error(TransportError("SSL handshake failed: bad cert"))
        assert isinstance(error, ApiException)
        assert error.status == 0

    def test_tls_code(self) -> None:
        error = classify_error(TransportError("bad", code="CERT_HAS_EXPIRED"))
        assert isinstance(error, ApiException)
        assert error.status == 0

    def test_unknown_error(self) -> None:
        error = classify_error(RuntimeError("boom"))
        assert type(error) is HttpRequestError
        assert error.kind is ErrorKind.EXCEPTION
        assert error.message == "HTTP request failed: boom"

    def test_empty_message(self) -> None:
        assert classify_error(RuntimeError()).message == "HTTP request failed: Unknown error"


class TestErrorEnvelope:
    def test_error_envelope_in_2xx_body(self) -> None:
        body = {
            "ResponseMetadata": {
                "RequestId": "req-1",
                "Error": {"Code": "InvalidParameter", "Message": "bad"},
            }
        }
        error = error_envelope(HttpResponse(status=200, body=body))
        assert error is not None
        assert error.status == 200
        assert error.message == "[InvalidParameter] bad (RequestId: req-1)"
        assert error.data == body

    def test_success_body(self) -> None:
        body = {"ResponseMetadata": {"RequestId": "req-1"}, "Result": {}}
        assert error_envelope(HttpResponse(status=200, body=body)) is None

    def test_non_dict_body(self) -> None:
        assert error_envelope(HttpResponse(status=200, body="text")) is None


class TestHttpStage:
    """Tests for dispatch through a MockRequestHandler."""

    @pytest.mark.asyncio
    async def test_attaches_response(self) -> None:
        handler = MockRequestHandler()
        handler.mock(re.compile("DescribeInstances"), MockResponse(data={"Result": {"Total": 0}}))
        stage = create_http_request_middleware(handler).middleware(capture, CONTEXT)

        args = await stage(Args(request=make_request()))
        assert args.response is not None
        assert args.response.body == {"Result": {"Total": 0}}
        assert handler.last_request is not None
        assert handler.last_request.method == "GET"
        assert get_metrics().get_counter("volc_dispatch_attempts_total", {"service": "ecs"}) == 1

    @pytest.mark.asyncio
    async def test_timeout_precedence(self) -> None:
        handler = MockRequestHandler()
        context = MiddlewareContext(
            client_name="Client",
            command_name="Cmd",
            client_config=ClientConfig(http_options=HttpOptions(timeout=5000)),
        )
        stage = create_http_request_middleware(handler).middleware(capture, context)

        await stage(Args(request=make_request()))
        await stage(Args(request=make_request(timeout=100)))
        assert [request.timeout_ms for request in handler.requests] == [5000, 100]

    @pytest.mark.asyncio
    async def test_status_error_is_classified(self) -> None:
        handler = MockRequestHandler()
        handler.mock(re.compile(".*"), MockResponse(status=503, status_text="Service Unavailable"))
        stage = create_http_request_middleware(handler).middleware(capture, CONTEXT)
        with pytest.raises(ApiException) as exc_info:
            await stage(Args(request=make_request()))
        assert exc_info.value.status == 503
        assert isinstance(exc_info.value.original_error, TransportError)

    @pytest.mark.asyncio
    async def test_error_envelope_raises(self) -> None:
        handler = MockRequestHandler()
        body = {"ResponseMetadata": {"RequestId": "r", "Error": {"Code": "E", "Message": "m"}}}
        handler.mock(re.compile(".*"), MockResponse(data=body))
        stage = create_http_request_middleware(handler).middleware(capture, CONTEXT)
        with pytest.raises(ApiException, match=r"\[E\] m"):
            await stage(Args(request=make_request()))

    @pytest.mark.asyncio
    async def test_cancellation_passes_through(self) -> None:
        token = CancellationToken()
        token.abort()
        stage = create_http_request_middleware(MockRequestHandler()).middleware(capture, CONTEXT)
        with pytest.raises(RequestCancelledError):
            await stage(Args(request=make_request(cancellation_token=token)))
