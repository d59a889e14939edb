"""Command: one API operation, its input and its own middleware.

Service packages subclass Command per API action, usually declaring a
``meta_path`` from which the request config is built.

Example:
    >>> class DescribeInstancesCommand(Command):
    ...     meta_path = "/DescribeInstances/2020-04-01/ecs/get/application_json/"
    >>> command = DescribeInstancesCommand({"MaxResults": 10})
    >>> command.request_config.params
    {'Action': 'DescribeInstances', 'Version': '2020-04-01'}
"""

from __future__ import annotations

from typing import Any, ClassVar

from volc_core.middleware.stack import MiddlewareStack
from volc_core.models.config import RequestConfig
from volc_core.utils.meta import build_request_config_from_meta_path


class Command:
    """An operation to be sent by a Client.

    Attributes:
        input: Operation input; query parameters for GET, body for POST
        middleware_stack: Command-specific middleware, merged after the client's
        request_config: Action, version, service, method and content type
    """

    meta_path: ClassVar[str | None] = None
    request_config: RequestConfig | None = None

    def __init__(self, input: Any = None, request_config: RequestConfig | None = None) -> None:
        self.input = input
        self.middleware_stack = MiddlewareStack()
        if request_config is not None:
            self.request_config = request_config
        elif self.request_config is None and self.meta_path:
            self.request_config = build_request_config_from_meta_path(self.meta_path)

    def debug_middleware_stack(self) -> str:
        """Render the command's own middleware, in run order."""
        return str(self.middleware_stack)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(input={self.input!r})"


__all__ = ["Command"]
