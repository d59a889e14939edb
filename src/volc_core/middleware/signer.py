"""Signer stage: stamps the authenticated header set onto the request.

Runs in the build step, after every body and parameter transform, so the
signature covers exactly what is sent. Form-urlencoded dict bodies are
encoded here first. Requests without credentials go out unsigned.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlencode

from volc_core.crypto.signer import get_date_time, sign_request
from volc_core.middleware.priority import stage_options
from volc_core.middleware.stack import Handler, MiddlewareSpec
from volc_core.models.constants import DEFAULT_REGION, FORM_CONTENT_TYPE
from volc_core.models.request import Args, MiddlewareContext
from volc_core.transport.clock import Clock, RealClock


def _header_value(headers: Mapping[str, Any], name: str) -> Any:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_form_body(body: Mapping[str, Any]) -> str:
    """URL-encode a flat mapping, skipping None values."""
    return urlencode([(key, _form_value(value)) for key, value in body.items() if value is not None])


def create_signer_middleware(clock: Clock | None = None) -> MiddlewareSpec:
    """Build the signer stage; ``clock`` supplies the signing timestamp."""
    time_source = clock or RealClock()

    def signer(next_handler: Handler, context: MiddlewareContext) -> Handler:
        async def handler(args: Args) -> Any:
            request = args.request
            content_type = _header_value(request.headers or {}, "content-type")
            if (
                isinstance(content_type, str)
                and content_type.lower() == FORM_CONTENT_TYPE
                and isinstance(request.body, Mapping)
                and request.body
            ):
                # Encoded whether or not the request gets signed.
                request.body = encode_form_body(request.body)

            credentials = request.credentials
            if credentials is not None and credentials.access_key_id and credentials.secret_access_key:
                result = sign_request(
                    method=request.method or "GET",
                    uri=request.pathname or "/",
                    query=request.params,
                    headers=request.headers or {},
                    body=request.body,
                    region=request.region or context.client_config.region or DEFAULT_REGION,
                    service_name=request.service_name or "",
                    access_key_id=credentials.access_key_id,
                    secret_access_key=credentials.secret_access_key,
                    session_token=credentials.session_token,
                    host=request.host or "",
                    timestamp=get_date_time(time_source.now()),
                )
                request.headers = dict(result.headers)
            return await next_handler(args)

        return handler

    return MiddlewareSpec(middleware=signer, options=stage_options("signerMiddleware"))


signer_middleware = create_signer_middleware()

__all__ = ["create_signer_middleware", "encode_form_body", "signer_middleware"]
