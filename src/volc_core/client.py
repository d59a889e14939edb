"""Client: sends Commands through the middleware pipeline.

The client owns the default stack, the dispatch adapter, the clock and the
credential cache. Each send() merges the client stack with the command's,
resolves it into one handler, and runs a fresh Args envelope through it.

Example:
    >>> from volc_core import Client, ClientConfig, Command
    >>>
    >>> class DescribeInstancesCommand(Command):
    ...     meta_path = "/DescribeInstances/2020-04-01/ecs/get/application_json/"
    >>>
    >>> async with Client(ClientConfig(region="cn-beijing")) as client:
    ...     result = await client.send(DescribeInstancesCommand({"MaxResults": 10}))
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from volc_core.command import Command
from volc_core.credentials.cache import CredentialCache
from volc_core.middleware.credentials import create_credentials_middleware
from volc_core.middleware.default_headers import default_headers_middleware
from volc_core.middleware.dotn import dot_n_middleware
from volc_core.middleware.endpoint import endpoint_middleware
from volc_core.middleware.http_request import create_http_request_middleware
from volc_core.middleware.retry import create_retry_middleware
from volc_core.middleware.signer import create_signer_middleware
from volc_core.middleware.stack import (
    Handler,
    MiddlewareFunction,
    MiddlewareOptions,
    MiddlewareStack,
)
from volc_core.models.config import ClientConfig
from volc_core.models.constants import DEFAULT_PROTOCOL, DEFAULT_REGION
from volc_core.models.enums import Step
from volc_core.models.request import Args, MiddlewareContext, Request, SendOptions
from volc_core.observability.logging import bind_context, get_logger, unbind_context
from volc_core.observability.metrics import get_metrics
from volc_core.transport.clock import Clock, RealClock
from volc_core.transport.request_handler import HttpxRequestHandler, RequestHandler
from volc_core.utils.proxy import resolve_http_options
from volc_core.utils.retry import calculate_retry_delay, should_retry

logger = get_logger(__name__)


async def _return_args(args: Args) -> Args:
    return args


class Client:
    """Base client for Volcengine OpenAPI services.

    Attributes:
        config: Client configuration (read-only to pipeline stages)
        middleware_stack: Client-level stack, built once at construction
        request_handler: Dispatch adapter used by the HTTP stage
        clock: Clock used for backoff sleeps, signing time and credential expiry
        credential_cache: Cache of assumed-role credentials
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        request_handler: RequestHandler | None = None,
        clock: Clock | None = None,
        credential_cache: CredentialCache | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration
            request_handler: Dispatch adapter; defaults to an HttpxRequestHandler
                built from ``config.http_options`` plus any VOLC_PROXY_* proxy
            clock: Time source; defaults to RealClock
            credential_cache: Cache for assumed-role credentials, shareable
                between clients; a private cache is created when None
        """
        self.config = config or ClientConfig()
        self.middleware_stack = MiddlewareStack()
        self._owns_request_handler = request_handler is None
        self.request_handler: RequestHandler = request_handler or HttpxRequestHandler(
            resolve_http_options(self.config)
        )
        self.clock: Clock = clock or RealClock()
        self.credential_cache = credential_cache or CredentialCache(self.clock)
        self._setup_default_middleware()

    def _setup_default_middleware(self) -> None:
        stack = self.middleware_stack
        stack.use(default_headers_middleware)
        stack.use(
            create_credentials_middleware(
                self.credential_cache, clock=self.clock, request_handler=self.request_handler
            )
        )
        stack.use(endpoint_middleware)
        stack.use(dot_n_middleware)
        stack.use(create_signer_middleware(self.clock))
        stack.use(create_http_request_middleware(self.request_handler))
        stack.use(create_retry_middleware(self.clock, should_retry, calculate_retry_delay))

    def _build_request(self, command: Command, options: SendOptions) -> Request:
        request = Request(
            host=self.config.host,
            protocol=self.config.protocol or DEFAULT_PROTOCOL,
            region=self.config.region or DEFAULT_REGION,
            cancellation_token=options.cancellation_token,
            timeout=options.timeout,
        )

        request_config = command.request_config
        if request_config is None:
            return request

        if request_config.params:
            request.params = dict(request_config.params)
        if request_config.method:
            request.method = request_config.method
        if request_config.service_name:
            request.service_name = request_config.service_name
        if request_config.pathname:
            request.pathname = request_config.pathname

        method = (request_config.method or "").upper()
        if method == "POST":
            request.body = command.input
        if method == "GET":
            input_params = command.input if isinstance(command.input, Mapping) else {}
            request.params = {**input_params, **(request.params or {})}
        return request

    async def send(self, command: Command, options: SendOptions | None = None) -> Any:
        """Send ``command`` and return the response body.

        Args:
            command: Operation to send
            options: Per-call cancellation token and timeout

        Returns:
            The response body (parsed JSON where the response is JSON)

        Raises:
            HttpRequestError: Dispatch failed after the retry policy gave up
            RequestCancelledError: The call's cancellation token fired
            SigningError: A signable header had no value
        """
        options = options or SendOptions()
        stack = self.middleware_stack.merge(command.middleware_stack)
        request_config = command.request_config
        context = MiddlewareContext(
            client_name=type(self).__name__,
            command_name=type(command).__name__,
            client_config=self.config,
            content_type=(request_config.content_type if request_config else None) or "",
        )
        handler = stack.resolve(_return_args, context)
        request = self._build_request(command, options)

        bind_context(command=context.command_name, service_name=request.service_name or "unknown")
        try:
            return await self._run(handler, Args(request=request, input=command.input), context)
        finally:
            unbind_context("command", "service_name")

    async def _run(self, handler: Handler, args: Args, context: MiddlewareContext) -> Any:
        request = args.request
        labels = {
            "service": request.service_name or "unknown",
            "command": context.command_name,
        }
        logger.info(
            "volc.client.send",
            client=context.client_name,
            command=context.command_name,
            service=request.service_name,
            region=request.region,
            method=request.method,
        )

        start_time = time.perf_counter()
        metrics = get_metrics()
        try:
            result = await handler(args)
        except Exception as e:
            duration_seconds = time.perf_counter() - start_time
            metrics.increment_counter("volc_send_errors_total", {**labels, "error": type(e).__name__})
            metrics.observe_histogram(
                "volc_send_duration_seconds", duration_seconds, {**labels, "status": "error"}
            )
            logger.warning(
                "volc.client.error",
                command=context.command_name,
                error=str(e)[:200],
                error_type=type(e).__name__,
                duration_ms=round(duration_seconds * 1000, 2),
            )
            raise

        duration_seconds = time.perf_counter() - start_time
        metrics.increment_counter("volc_send_total", {**labels, "status": "success"})
        metrics.observe_histogram(
            "volc_send_duration_seconds", duration_seconds, {**labels, "status": "success"}
        )
        logger.info(
            "volc.client.response",
            command=context.command_name,
            status=result.response.status if isinstance(result, Args) and result.response else None,
            duration_ms=round(duration_seconds * 1000, 2),
        )

        if isinstance(result, Args) and result.response is not None:
            return result.response.body
        return result

    def debug_middleware_stack(self, command: Command) -> str:
        """Render the merged client + command stack, in run order."""
        return str(self.middleware_stack.merge(command.middleware_stack))

    def add_middleware(
        self,
        middleware: MiddlewareFunction,
        options: MiddlewareOptions | None = None,
        *,
        step: Step | str | None = None,
        name: str | None = None,
        priority: int | None = None,
        override: bool | None = None,
    ) -> None:
        """Add a middleware to the client stack; applies to every later send()."""
        self.middleware_stack.add(
            middleware, options, step=step, name=name, priority=priority, override=override
        )

    async def aclose(self) -> None:
        """Release the dispatch adapter if this client created it."""
        if not self._owns_request_handler:
            return
        aclose = getattr(self.request_handler, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()


__all__ = ["Client", "Command"]
