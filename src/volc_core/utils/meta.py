"""Meta-path parsing.

Service commands describe themselves with a meta path of the form
``/Action/Version/serviceName/method/contentType/``. Underscores in the
content type stand for slashes (``application_json`` is
``application/json``); a trailing ``//`` means no content type.
"""

from __future__ import annotations

from dataclasses import dataclass

from volc_core.errors import InvalidMetaPathError
from volc_core.models.config import RequestConfig


@dataclass(frozen=True)
class MetaPathInfo:
    action: str
    version: str
    service_name: str
    method: str
    content_type: str


def parse_meta_path(meta_path: str) -> MetaPathInfo:
    """Split a meta path into its five parts.

    Example:
        >>> parse_meta_path("/DescribeInstances/2020-04-01/ecs/get/application_json/")
        MetaPathInfo(action='DescribeInstances', version='2020-04-01', service_name='ecs', method='GET', content_type='application/json')

    Raises:
        InvalidMetaPathError: If the path does not have exactly five parts
    """
    has_empty_content_type = meta_path.endswith("//")
    parts = [part for part in meta_path.lstrip("/").split("/") if part]
    if has_empty_content_type and len(parts) == 4:
        parts.append("")

    if len(parts) != 5:
        raise InvalidMetaPathError(meta_path)

    action, version, service_name, method, content_type = parts
    return MetaPathInfo(
        action=action,
        version=version,
        service_name=service_name,
        method=method.upper(),
        content_type=content_type.replace("_", "/"),
    )


def build_request_config_from_meta(meta: MetaPathInfo) -> RequestConfig:
    return RequestConfig(
        params={"Action": meta.action, "Version": meta.version},
        method=meta.method,
        service_name=meta.service_name,
        content_type=meta.content_type,
    )


def build_request_config_from_meta_path(meta_path: str) -> RequestConfig:
    """Parse ``meta_path`` and build the command's RequestConfig from it."""
    return build_request_config_from_meta(parse_meta_path(meta_path))


__all__ = [
    "MetaPathInfo",
    "build_request_config_from_meta",
    "build_request_config_from_meta_path",
    "parse_meta_path",
]
