"""Credentials stage: resolves the signing credentials for the call.

With ``assume_role_params`` the stage fetches role credentials from STS
through the client's CredentialCache. Otherwise it uses the configured
keys, filling any missing field from the environment. The result is stored
on ``request.credentials``; the client config is never modified.
"""

from __future__ import annotations

from typing import Any, Mapping

from volc_core.credentials.cache import CredentialCache, assume_role_cache_key
from volc_core.middleware.priority import stage_options
from volc_core.middleware.stack import Handler, MiddlewareSpec
from volc_core.models.config import ClientConfig, Credentials
from volc_core.models.request import Args, MiddlewareContext
from volc_core.transport.clock import Clock
from volc_core.transport.request_handler import RequestHandler
from volc_core.utils.env import load_env


def static_credentials(
    config: ClientConfig, environ: Mapping[str, str] | None = None
) -> Credentials | None:
    """Configured keys with per-field environment fallback; None without a key pair."""
    env_credentials = load_env(environ).credentials
    access_key_id = config.access_key_id or env_credentials.access_key_id
    secret_access_key = config.secret_access_key or env_credentials.secret_access_key
    session_token = config.session_token or env_credentials.session_token
    if not (access_key_id and secret_access_key):
        return None
    return Credentials(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
    )


def create_credentials_middleware(
    cache: CredentialCache,
    clock: Clock | None = None,
    request_handler: RequestHandler | None = None,
    environ: Mapping[str, str] | None = None,
) -> MiddlewareSpec:
    """Build the credentials stage.

    Args:
        cache: Cache for assumed-role credentials
        clock: Time source for credential expiry
        request_handler: Dispatch adapter for STS calls
        environ: Environment mapping (defaults to os.environ)
    """

    def credentials(next_handler: Handler, context: MiddlewareContext) -> Handler:
        async def handler(args: Args) -> Any:
            config = context.client_config
            params = config.assume_role_params
            if params is not None:
                # Deferred: the provider sends through a Client, which builds this stage
                from volc_core.credentials.assume_role import AssumeRoleProvider

                provider = AssumeRoleProvider(params, clock=clock, request_handler=request_handler)
                args.request.credentials = await cache.get_or_refresh(
                    assume_role_cache_key(params), provider.fetch
                )
            else:
                args.request.credentials = static_credentials(config, environ)
            return await next_handler(args)

        return handler

    return MiddlewareSpec(middleware=credentials, options=stage_options("credentialsMiddleware"))


__all__ = ["create_credentials_middleware", "static_credentials"]
