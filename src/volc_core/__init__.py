"""Volc SDK core: the request pipeline shared by Volcengine service clients.

Example:
    >>> from volc_core import Client, ClientConfig, Command
    >>>
    >>> class ListUsersCommand(Command):
    ...     meta_path = "/ListUsers/2018-01-01/iam/get//"
    >>>
    >>> async with Client(ClientConfig(region="cn-beijing")) as client:
    ...     users = await client.send(ListUsersCommand({"Limit": 10}))
"""

from volc_core.client import Client
from volc_core.command import Command
from volc_core.errors import (
    ApiException,
    ErrorKind,
    HttpRequestError,
    InvalidMetaPathError,
    NetworkError,
    RequestCancelledError,
    SigningError,
    TransportError,
    VolcError,
)
from volc_core.middleware.stack import MiddlewareOptions, MiddlewareStack
from volc_core.models import (
    AssumeRoleParams,
    ClientConfig,
    Credentials,
    HttpOptions,
    RequestConfig,
    RetryStrategy,
    SendOptions,
    Step,
    StrategyName,
)
from volc_core.transport.cancellation import CancellationToken

__version__ = "0.1.0"

__all__ = [
    "ApiException",
    "AssumeRoleParams",
    "CancellationToken",
    "Client",
    "ClientConfig",
    "Command",
    "Credentials",
    "ErrorKind",
    "HttpOptions",
    "HttpRequestError",
    "InvalidMetaPathError",
    "MiddlewareOptions",
    "MiddlewareStack",
    "NetworkError",
    "RequestCancelledError",
    "RequestConfig",
    "RetryStrategy",
    "SendOptions",
    "SigningError",
    "Step",
    "StrategyName",
    "TransportError",
    "VolcError",
    "__version__",
]
