"""Default headers stage: sets the request content type."""

from __future__ import annotations

from typing import Any

from volc_core.middleware.priority import stage_options
from volc_core.middleware.stack import Handler, MiddlewareSpec
from volc_core.models.constants import DEFAULT_CONTENT_TYPE
from volc_core.models.request import Args, MiddlewareContext


def default_headers(next_handler: Handler, context: MiddlewareContext) -> Handler:
    async def handler(args: Args) -> Any:
        request = args.request
        if request.headers is None:
            request.headers = {}
        request.headers["content-type"] = context.content_type or DEFAULT_CONTENT_TYPE
        return await next_handler(args)

    return handler


default_headers_middleware = MiddlewareSpec(
    middleware=default_headers,
    options=stage_options("defaultHeadersMiddleware"),
)

__all__ = ["default_headers", "default_headers_middleware"]
