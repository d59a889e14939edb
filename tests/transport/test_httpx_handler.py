"""Tests for the httpx dispatch adapter using httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
import socket
import ssl

import httpx
import pytest

from volc_core.errors import RequestCancelledError, TransportError
from volc_core.models.config import HttpOptions, PoolOptions, ProxyConfig
from volc_core.models.request import HttpRequestConfig
from volc_core.transport.cancellation import CancellationToken
from volc_core.transport.request_handler import (
    HttpxRequestHandler,
    RequestHandler,
    decode_body,
    encode_body,
    map_httpx_error,
)

URL = "https://open.volcengineapi.com/?Action=DescribeInstances&Version=2020-04-01"


def make_handler(responder, http_options: HttpOptions | None = None) -> HttpxRequestHandler:
    return HttpxRequestHandler(http_options, transport=httpx.MockTransport(responder))


class TestEncodeBody:
    def test_none(self) -> None:
        assert encode_body(None) is None

    def test_bytes_pass_through(self) -> None:
        assert encode_body(b"raw") == b"raw"

    def test_str_is_utf8(self) -> None:
        assert encode_body("中") == "中".encode()

    def test_structured_body_is_compact_json(self) -> None:
        assert encode_body({"a": 1, "b": [1, 2]}) == b'{"a":1,"b":[1,2]}'


class TestDecodeBody:
    def test_json(self) -> None:
        response = httpx.Response(200, json={"Result": {}})
        assert decode_body(response) == {"Result": {}}

    def test_text(self) -> None:
        response = httpx.Response(200, text="plain", headers={"content-type": "text/plain"})
        assert decode_body(response) == "plain"

    def test_invalid_json_falls_back_to_text(self) -> None:
        response = httpx.Response(200, content=b"{oops", headers={"content-type": "application/json"})
        assert decode_body(response) == "{oops"

    def test_empty(self) -> None:
        assert decode_body(httpx.Response(204)) is None


class TestMapHttpxError:
    """Tests for translating httpx exceptions into network codes."""

    def test_connect_timeout(self) -> None:
        assert map_httpx_error(httpx.ConnectTimeout("t"), 1000).code == "ETIMEDOUT"

    def test_read_timeout(self) -> None:
        error = map_httpx_error(httpx.ReadTimeout("t"), 1500)
        assert error.code == "ECONNABORTED"
        assert error.message == "timeout of 1500ms exceeded"

    def test_connection_refused(self) -> None:
        assert map_httpx_error(httpx.ConnectError("refused"), 1000).code == "ECONNREFUSED"

    def test_dns_failure(self) -> None:
        exc = httpx.ConnectError("dns")
        exc.__cause__ = socket.gaierror("Name or service not known")
        assert map_httpx_error(exc, 1000).code == "ENOTFOUND"

    def test_ssl_failure_has_no_code(self) -> None:
        exc = httpx.ConnectError("ssl")
        exc.__cause__ = ssl.SSLError("certificate verify failed")
        error = map_httpx_error(exc, 1000)
        assert error.code is None
        assert "SSL" in error.message

    def test_protocol_error(self) -> None:
        assert map_httpx_error(httpx.RemoteProtocolError("bad"), 1000).code == "EPROTO"

    def test_read_error(self) -> None:
        assert map_httpx_error(httpx.ReadError("reset"), 1000).code == "ECONNRESET"


class TestHttpxRequestHandler:
    """Tests for HttpxRequestHandler.request."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(HttpxRequestHandler(), RequestHandler)

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        seen: list[httpx.Request] = []

        def responder(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Result": {"Total": 1}})

        handler = make_handler(responder)
        response = await handler.request(
            HttpRequestConfig(
                url=URL,
                method="POST",
                headers={"x-date": "20240101T000000Z", "x-empty": None, "x-num": 5},
                body={"Name": "vm"},
            )
        )
        await handler.aclose()

        assert response.status == 200
        assert response.status_text == "OK"
        assert response.body == {"Result": {"Total": 1}}
        (request,) = seen
        assert request.method == "POST"
        assert str(request.url) == URL
        assert request.headers["x-date"] == "20240101T000000Z"
        assert request.headers["x-num"] == "5"
        assert "x-empty" not in request.headers
        assert json.loads(request.content) == {"Name": "vm"}
        assert request.content == b'{"Name":"vm"}'

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"message": "upstream"})

        handler = make_handler(responder)
        with pytest.raises(TransportError) as exc_info:
            await handler.request(HttpRequestConfig(url=URL))
        await handler.aclose()

        error = exc_info.value
        assert error.status == 502
        assert error.status_text == "Bad Gateway"
        assert error.body == {"message": "upstream"}
        assert error.code is None

    @pytest.mark.asyncio
    async def test_network_failure_is_mapped(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        handler = make_handler(responder)
        with pytest.raises(TransportError) as exc_info:
            await handler.request(HttpRequestConfig(url=URL))
        await handler.aclose()
        assert exc_info.value.code == "ECONNREFUSED"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_pre_aborted_token(self) -> None:
        calls = 0

        def responder(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200)

        token = CancellationToken()
        token.abort("stop")
        handler = make_handler(responder)
        with pytest.raises(RequestCancelledError):
            await handler.request(HttpRequestConfig(url=URL, cancellation_token=token))
        await handler.aclose()
        assert calls == 0

    @pytest.mark.asyncio
    async def test_abort_in_flight(self) -> None:
        started = asyncio.Event()

        async def responder(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200)

        token = CancellationToken()
        handler = make_handler(responder)
        task = asyncio.create_task(
            handler.request(HttpRequestConfig(url=URL, cancellation_token=token))
        )
        await started.wait()
        token.abort()
        with pytest.raises(RequestCancelledError):
            await task
        await handler.aclose()

    @pytest.mark.asyncio
    async def test_client_is_lazy_and_reusable(self) -> None:
        handler = make_handler(lambda request: httpx.Response(200))
        assert handler._client is None
        first = handler.client
        assert handler.client is first
        await handler.aclose()
        assert handler._client is None

    def test_build_client_with_options(self) -> None:
        options = HttpOptions(
            timeout=1000,
            ignore_ssl=True,
            proxy=ProxyConfig(host="proxy.local", port=3128),
            pool=PoolOptions(max_connections=5),
        )
        handler = HttpxRequestHandler(options)
        client = handler._build_client()
        assert isinstance(client, httpx.AsyncClient)
        assert handler.http_options.proxy is not None
        assert handler.http_options.proxy.url == "http://proxy.local:3128"
