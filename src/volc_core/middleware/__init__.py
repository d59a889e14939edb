"""Middleware stack and the built-in pipeline stages.

Default client stack, in run order:

    [initialize]       defaultHeadersMiddleware (150), credentialsMiddleware (100),
                       endpointMiddleware (50)
    [serialize]        dotNMiddleware (50)
    [build]            signerMiddleware (100)
    [finalizeRequest]  retryMiddleware (100), httpRequestMiddleware (50)

Example:
    >>> from volc_core.middleware import MiddlewareStack, Step
    >>> stack = MiddlewareStack()
    >>> stack.add(my_middleware, step=Step.BUILD, name="audit", priority=90)
"""

from volc_core.middleware.credentials import create_credentials_middleware
from volc_core.middleware.default_headers import default_headers_middleware
from volc_core.middleware.dotn import dot_n_middleware, flat_dot_n
from volc_core.middleware.endpoint import endpoint_middleware
from volc_core.middleware.http_request import create_http_request_middleware
from volc_core.middleware.priority import PRIORITY
from volc_core.middleware.retry import RetryExecutor, create_retry_middleware
from volc_core.middleware.signer import create_signer_middleware, signer_middleware
from volc_core.middleware.stack import (
    Handler,
    Middleware,
    MiddlewareFunction,
    MiddlewareOptions,
    MiddlewareSpec,
    MiddlewareStack,
)
from volc_core.models.enums import Step

__all__ = [
    "Handler",
    "Middleware",
    "MiddlewareFunction",
    "MiddlewareOptions",
    "MiddlewareSpec",
    "MiddlewareStack",
    "PRIORITY",
    "RetryExecutor",
    "Step",
    "create_credentials_middleware",
    "create_http_request_middleware",
    "create_retry_middleware",
    "create_signer_middleware",
    "default_headers_middleware",
    "dot_n_middleware",
    "endpoint_middleware",
    "flat_dot_n",
    "signer_middleware",
]
