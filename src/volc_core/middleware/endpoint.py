"""Endpoint stage: resolves the request host when none is configured."""

from __future__ import annotations

from typing import Any

from volc_core.middleware.priority import stage_options
from volc_core.middleware.stack import Handler, MiddlewareSpec
from volc_core.models.request import Args, MiddlewareContext
from volc_core.utils.endpoint import get_default_endpoint_by_service_info


def resolve_endpoint(next_handler: Handler, context: MiddlewareContext) -> Handler:
    async def handler(args: Args) -> Any:
        request = args.request
        if not request.host:
            config = context.client_config
            request.host = get_default_endpoint_by_service_info(
                request.service_name or "",
                request.region or "",
                config.custom_bootstrap_region,
                config.use_dual_stack,
            )
        return await next_handler(args)

    return handler


endpoint_middleware = MiddlewareSpec(
    middleware=resolve_endpoint,
    options=stage_options("endpointMiddleware"),
)

__all__ = ["endpoint_middleware", "resolve_endpoint"]
