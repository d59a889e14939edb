"""Environment configuration loading.

Supported variables:
    Credentials:
        VOLCSTACK_ACCESS_KEY_ID or VOLCSTACK_ACCESS_KEY
        VOLCSTACK_SECRET_ACCESS_KEY or VOLCSTACK_SECRET_KEY
        VOLCSTACK_SESSION_TOKEN (optional)
    Network:
        VOLC_ENABLE_DUALSTACK ("true" enables dual-stack endpoints)
        VOLC_BOOTSTRAP_REGION_LIST_CONF (path to a file of extra bootstrap regions)
        VOLC_PROXY_PROTOCOL (default "http"), VOLC_PROXY_HOST (default 127.0.0.1),
        VOLC_PROXY_PORT (default 443 for https, else 80)

Missing keys fall back to the legacy ``~/.volc/config`` JSON file
(``VOLC_ACCESSKEY`` / ``VOLC_SECRETKEY``).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from volc_core.models.config import ProxyConfig

ENV_ACCESS_KEY_ID = "VOLCSTACK_ACCESS_KEY_ID"
ENV_ACCESS_KEY = "VOLCSTACK_ACCESS_KEY"
ENV_SECRET_ACCESS_KEY = "VOLCSTACK_SECRET_ACCESS_KEY"
ENV_SECRET_KEY = "VOLCSTACK_SECRET_KEY"
ENV_SESSION_TOKEN = "VOLCSTACK_SESSION_TOKEN"
ENV_ENABLE_DUALSTACK = "VOLC_ENABLE_DUALSTACK"
ENV_BOOTSTRAP_REGION_LIST_CONF = "VOLC_BOOTSTRAP_REGION_LIST_CONF"
ENV_PROXY_PROTOCOL = "VOLC_PROXY_PROTOCOL"
ENV_PROXY_HOST = "VOLC_PROXY_HOST"
ENV_PROXY_PORT = "VOLC_PROXY_PORT"

HOME_CONFIG_PATH = Path(".volc") / "config"


@dataclass
class EnvCredentials:
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None


@dataclass
class EnvConfig:
    """Configuration read from the process environment."""

    credentials: EnvCredentials = field(default_factory=EnvCredentials)
    enable_dualstack: bool = False
    bootstrap_region_list_conf: str | None = None
    proxy: ProxyConfig | None = None


def _first(environ: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = environ.get(name)
        if value is not None:
            return value
    return None


def load_env_from_process(environ: Mapping[str, str] | None = None) -> EnvConfig:
    """Read credentials, dual-stack, bootstrap and proxy settings from the environment."""
    env = os.environ if environ is None else environ

    credentials = EnvCredentials(
        access_key_id=_first(env, ENV_ACCESS_KEY_ID, ENV_ACCESS_KEY),
        secret_access_key=_first(env, ENV_SECRET_ACCESS_KEY, ENV_SECRET_KEY),
        session_token=env.get(ENV_SESSION_TOKEN),
    )

    proxy: ProxyConfig | None = None
    proxy_protocol = env.get(ENV_PROXY_PROTOCOL) or "http"
    proxy_host = env.get(ENV_PROXY_HOST)
    proxy_port = env.get(ENV_PROXY_PORT)
    if proxy_host or proxy_port:
        default_port = 443 if proxy_protocol == "https" else 80
        proxy = ProxyConfig(
            protocol=proxy_protocol,
            host=proxy_host or "127.0.0.1",
            port=int(proxy_port) if proxy_port else default_port,
        )

    return EnvConfig(
        credentials=credentials,
        enable_dualstack=env.get(ENV_ENABLE_DUALSTACK) == "true",
        bootstrap_region_list_conf=env.get(ENV_BOOTSTRAP_REGION_LIST_CONF),
        proxy=proxy,
    )


def load_env(environ: Mapping[str, str] | None = None) -> EnvConfig:
    """Load environment config, filling missing keys from ``~/.volc/config``.

    The home config file is only consulted when HOME is set and either the
    access key or the secret key is missing from the environment.

    Raises:
        ValueError: If the home config file exists but is not valid JSON
    """
    env = os.environ if environ is None else environ
    config = load_env_from_process(env)
    creds = config.credentials

    home = env.get("HOME")
    if home and not (creds.access_key_id and creds.secret_access_key):
        home_config = Path(home) / HOME_CONFIG_PATH
        if home_config.is_file():
            data = json.loads(home_config.read_text(encoding="utf-8"))
            if not creds.access_key_id and data.get("VOLC_ACCESSKEY"):
                creds.access_key_id = data["VOLC_ACCESSKEY"]
            if not creds.secret_access_key and data.get("VOLC_SECRETKEY"):
                creds.secret_access_key = data["VOLC_SECRETKEY"]

    return config


__all__ = [
    "EnvConfig",
    "EnvCredentials",
    "load_env",
    "load_env_from_process",
]
