"""Default endpoint resolution for Volcengine services.

Regions outside the bootstrap set, and services without a registry entry,
resolve to the shared ``open.volcengineapi.com`` gateway. Inside a bootstrap
region a service gets its own host: ``<service>.volcengineapi.com`` for
global services, ``<service>.<region>.volcengineapi.com`` otherwise. Dual
stack swaps the suffix for ``volcengine-api.com``.

Example:
    >>> get_default_endpoint_by_service_info("ecs", "ap-southeast-2", use_dual_stack=False)
    'ecs.ap-southeast-2.volcengineapi.com'
    >>> get_default_endpoint_by_service_info("ecs", "cn-beijing", use_dual_stack=False)
    'open.volcengineapi.com'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from volc_core.observability.logging import get_logger
from volc_core.utils.env import load_env

logger = get_logger(__name__)

SEPARATOR = "."
OPEN_PREFIX = "open"
ENDPOINT_SUFFIX = SEPARATOR + "volcengineapi.com"
DUALSTACK_ENDPOINT_SUFFIX = SEPARATOR + "volcengine-api.com"
DEFAULT_ENDPOINT = OPEN_PREFIX + ENDPOINT_SUFFIX

BOOTSTRAP_REGIONS = frozenset(
    {
        "cn-beijing-autodriving",
        "ap-southeast-2",
        "ap-southeast-3",
        "cn-shanghai-autodriving",
        "cn-beijing-selfdrive",
    }
)


@dataclass(frozen=True)
class ServiceEndpointInfo:
    service: str
    is_global: bool
    region_endpoint_map: Mapping[str, str] = field(default_factory=dict)


# service code -> is_global
_SERVICE_SCOPES: dict[str, bool] = {
    "vpc": False,
    "ecs": False,
    "billing": True,
    "ark": False,
    "iam": True,
    "mcs": False,
    "rocketmq": False,
    "bytehouse": False,
    "dns": True,
    "autoscaling": False,
    "spark": False,
    "cloud_detect": False,
    "filenas": False,
    "escloud": False,
    "flink": False,
    "cp": False,
    "vefaas": False,
    "ml_platform": False,
    "edx": True,
    "dcdn": True,
    "cdn": True,
    "kafka": False,
    "certificate_service": True,
    "waf": True,
    "rds_mssql": False,
    "cloudtrail": False,
    "vei_api": True,
    "cen": True,
    "rabbitmq": False,
    "vmp": False,
    "volc_observe": False,
    "dataleap": False,
    "fw_center": True,
    "redis": False,
    "mcdn": True,
    "cloudidentity": False,
    "vedbm": False,
    "cv": True,
    "translate": True,
    "cloud_trail": False,
    "bio": False,
    "nta": True,
    "elasticmapreduce": False,
    "vepfs": False,
    "seccenter": True,
    "advdefence": True,
    "tis": True,
    "organization": True,
    "vke": False,
    "Redis": False,
    "privatelink": False,
    "RocketMQ": False,
    "Kafka": False,
    "rds_mysql": False,
    "rds_postgresql": False,
    "storage_ebs": False,
    "clb": False,
    "alb": False,
    "FileNAS": False,
    "configcenter": False,
    "cr": False,
    "sts": False,
    "mongodb": False,
    "transitrouter": False,
    "Volc_Observe": False,
    "dms": False,
    "auto_scaling": False,
    "directconnect": False,
    "kms": False,
    "dbw": False,
    "dts": False,
    "natgateway": False,
    "tos": False,
    "TLS": False,
    "vpn": False,
    "vod": False,
    "quota": True,
    "ecs_ops": True,
    "as_ops": True,
    "account_management": True,
    "account_management_byteplus": True,
    "bandwidthquota": True,
    "psa_manager": True,
    "dc_controller": False,
    "eps_platform_trade": False,
    "eps_platform_fund": False,
    "commercialization": True,
    "veecp_openapi": False,
    "orgnization": True,
    "coze": True,
    "sec_agent": True,
    "sec_intelligent_dev": True,
    "vegame": False,
    "acep": True,
    "private_zone": True,
    "sqs": False,
    "resourcecenter": True,
    "aiotvideo": True,
    "apig": False,
    "bmq": False,
    "bytehouse_ce": False,
    "cloudmonitor": False,
    "emr": False,
    "ga": True,
    "graph": False,
    "gtm": True,
    "hbase": False,
    "metakms": False,
    "na": True,
    "resource_share": True,
    "speech_saas_prod": True,
    "tag": True,
    "vefaas_dev": False,
    "vms": False,
    "eco_partner": True,
    "smc": True,
}

SERVICE_ENDPOINTS: dict[str, ServiceEndpointInfo] = {
    service: ServiceEndpointInfo(service=service, is_global=is_global)
    for service, is_global in _SERVICE_SCOPES.items()
}


def standardize_domain_service_code(service_code: str) -> str:
    return service_code.lower().replace("_", "-")


def _read_bootstrap_region_file(path: str) -> set[str]:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.debug("volc.endpoint.bootstrap_list_unreadable", path=path, error=str(e))
        return set()
    return {line.strip() for line in content.splitlines() if line.strip()}


def in_bootstrap_region_list(
    region_code: str,
    custom_bootstrap_region: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Return True if ``region_code`` gets per-service endpoints.

    Checks the file named by VOLC_BOOTSTRAP_REGION_LIST_CONF, the built-in
    bootstrap regions, then ``custom_bootstrap_region``.
    """
    region_code = region_code.strip()

    list_path = load_env(environ).bootstrap_region_list_conf
    if list_path and region_code in _read_bootstrap_region_file(list_path):
        return True

    if region_code in BOOTSTRAP_REGIONS:
        return True

    return bool(custom_bootstrap_region and custom_bootstrap_region.get(region_code) is not None)


def has_enable_dual_stack(
    use_dual_stack: bool | None, environ: Mapping[str, str] | None = None
) -> bool:
    if use_dual_stack is None:
        return load_env(environ).enable_dualstack
    return use_dual_stack


def get_default_endpoint_by_service_info(
    service: str,
    region_code: str,
    custom_bootstrap_region: Mapping[str, Any] | None = None,
    use_dual_stack: bool | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Resolve the default host for ``service`` in ``region_code``.

    Args:
        service: Service code as registered (e.g. "ecs", "rds_mysql")
        region_code: Region the request targets
        custom_bootstrap_region: Extra regions to treat as bootstrap regions
        use_dual_stack: Force dual stack on or off; None reads VOLC_ENABLE_DUALSTACK
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The endpoint host, never empty
    """
    if not in_bootstrap_region_list(region_code, custom_bootstrap_region, environ):
        return DEFAULT_ENDPOINT

    info = SERVICE_ENDPOINTS.get(service)
    if info is None:
        return DEFAULT_ENDPOINT

    suffix = ENDPOINT_SUFFIX
    if has_enable_dual_stack(use_dual_stack, environ):
        suffix = DUALSTACK_ENDPOINT_SUFFIX

    if info.is_global:
        return standardize_domain_service_code(service) + suffix

    region_endpoint = info.region_endpoint_map.get(region_code)
    if region_endpoint:
        return region_endpoint

    return standardize_domain_service_code(service) + SEPARATOR + region_code + suffix


__all__ = [
    "BOOTSTRAP_REGIONS",
    "DEFAULT_ENDPOINT",
    "SERVICE_ENDPOINTS",
    "ServiceEndpointInfo",
    "get_default_endpoint_by_service_info",
    "has_enable_dual_stack",
    "in_bootstrap_region_list",
    "standardize_domain_service_code",
]
