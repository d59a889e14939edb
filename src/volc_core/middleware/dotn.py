"""DotN stage: flattens nested parameters into dotted keys.

Volcengine query APIs take nested structures as flat keys: nested objects
join with ``.`` and list items use 1-based indexes.

Example:
    >>> flat_dot_n({"A": {"B": 1}, "C": 2})
    {'A.B': 1, 'C': 2}
    >>> flat_dot_n({"Tags": [{"Key": "env", "Value": "prod"}]})
    {'Tags.1.Key': 'env', 'Tags.1.Value': 'prod'}
"""

from __future__ import annotations

from typing import Any, Collection, Mapping

from volc_core.middleware.priority import stage_options
from volc_core.middleware.stack import Handler, MiddlewareSpec
from volc_core.models.constants import FORM_CONTENT_TYPE
from volc_core.models.request import Args, MiddlewareContext


def flat_dot_n(obj: Any, params: Collection[str] | None = None) -> Any:
    """Return a flattened copy of ``obj``; ``obj`` itself is never modified.

    Args:
        obj: Mapping to flatten; anything falsy or non-mapping is returned as is
        params: Only flatten these top-level keys (default: all of them)
    """
    if not obj or not isinstance(obj, Mapping):
        return obj

    result: dict[str, Any] = {}

    def flatten(prefix: str, value: Any) -> None:
        if isinstance(value, Mapping):
            for key, item in value.items():
                flatten(f"{prefix}.{key}", item)
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value, start=1):
                flatten(f"{prefix}.{index}", item)
        else:
            result[prefix] = value

    for key, value in obj.items():
        if not params or key in params:
            flatten(key, value)
        else:
            result[key] = value
    return result


def dot_n(next_handler: Handler, context: MiddlewareContext) -> Handler:
    async def handler(args: Args) -> Any:
        request = args.request
        if context.content_type == FORM_CONTENT_TYPE and request.method == "POST":
            request.params = flat_dot_n(request.params)
            request.body = flat_dot_n(request.body)
        if request.method == "GET":
            request.params = flat_dot_n(request.params)
        return await next_handler(args)

    return handler


dot_n_middleware = MiddlewareSpec(
    middleware=dot_n,
    options=stage_options("dotNMiddleware"),
)

__all__ = ["dot_n", "dot_n_middleware", "flat_dot_n"]
