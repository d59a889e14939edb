"""Merge environment proxy settings into client HTTP options."""

from __future__ import annotations

from typing import Mapping

from volc_core.models.config import ClientConfig, HttpOptions
from volc_core.utils.env import load_env


def resolve_http_options(
    config: ClientConfig, environ: Mapping[str, str] | None = None
) -> HttpOptions | None:
    """Return the client's HTTP options with the environment proxy filled in.

    An explicit ``http_options.proxy`` wins over VOLC_PROXY_*; when the
    client sets no HTTP options and no proxy is configured, returns None.
    """
    explicit = config.http_options
    proxy = explicit.proxy if explicit is not None and explicit.proxy is not None else None
    if proxy is None:
        proxy = load_env(environ).proxy

    if explicit is not None:
        if proxy is None:
            return explicit
        return explicit.model_copy(update={"proxy": proxy})
    if proxy is not None:
        return HttpOptions(proxy=proxy)
    return None


__all__ = ["resolve_http_options"]
