"""Role credentials via the STS AssumeRole API.

The provider exchanges long-lived keys for temporary role credentials by
sending an AssumeRole command through a nested Client. Results are cached
by CredentialCache until one minute before they expire.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from volc_core.command import Command
from volc_core.credentials.cache import CredentialCacheEntry
from volc_core.models.config import AssumeRoleParams, ClientConfig, Credentials, RequestConfig
from volc_core.models.constants import (
    CREDENTIAL_EXPIRY_BUFFER_MS,
    DEFAULT_ASSUME_ROLE_DURATION_SECONDS,
    DEFAULT_PROTOCOL,
    DEFAULT_REGION,
    DEFAULT_STS_HOST,
    STS_API_VERSION,
)
from volc_core.observability.logging import get_logger
from volc_core.observability.metrics import get_metrics
from volc_core.transport.clock import Clock, RealClock, now_ms
from volc_core.transport.request_handler import RequestHandler
from volc_core.utils.sanitization import sanitize_token

logger = get_logger(__name__)


def role_trn(account_id: str, role_name: str) -> str:
    return f"trn:iam::{account_id}:role/{role_name}"


def build_assume_role_input(params: AssumeRoleParams) -> dict[str, Any]:
    """Build the AssumeRole request input; optional fields are omitted when unset."""
    command_input: dict[str, Any] = {
        "DurationSeconds": params.duration_seconds or DEFAULT_ASSUME_ROLE_DURATION_SECONDS,
        "RoleTrn": role_trn(params.account_id, params.role_name),
        "RoleSessionName": str(uuid.uuid4()),
    }
    if params.policy is not None:
        command_input["Policy"] = params.policy
    if params.tags is not None:
        command_input["Tags"] = params.tags
    return command_input


def parse_expiry(expired_time: str | None, fetched_at_ms: int, duration_seconds: int) -> int:
    """Epoch-millisecond time after which cached credentials are treated as stale."""
    if expired_time:
        expires_at = datetime.fromisoformat(expired_time)
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        expires_ms = int(expires_at.timestamp() * 1000)
        return expires_ms - CREDENTIAL_EXPIRY_BUFFER_MS
    return fetched_at_ms + duration_seconds * 1000 - CREDENTIAL_EXPIRY_BUFFER_MS


class AssumeRoleProvider:
    """Fetches role credentials from STS.

    Attributes:
        params: Role, account and long-lived keys to assume with
    """

    def __init__(
        self,
        params: AssumeRoleParams,
        clock: Clock | None = None,
        request_handler: RequestHandler | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            params: Assume-role parameters
            clock: Time source for expiry calculation
            request_handler: Dispatch adapter shared with the STS client;
                a default httpx adapter is created when None
        """
        self.params = params
        self._clock = clock or RealClock()
        self._request_handler = request_handler

    def sts_config(self) -> ClientConfig:
        params = self.params
        return ClientConfig(
            region=params.region or DEFAULT_REGION,
            access_key_id=params.access_key_id,
            secret_access_key=params.secret_access_key,
            host=params.host or DEFAULT_STS_HOST,
            protocol=params.protocol or DEFAULT_PROTOCOL,
        )

    async def fetch(self) -> CredentialCacheEntry:
        """Call AssumeRole and return the credentials with their expiry."""
        # Imported here: Client's default stack depends on this module
        from volc_core.client import Client

        params = self.params
        fetched_at = now_ms(self._clock)
        command = AssumeRoleCommand(build_assume_role_input(params))

        try:
            async with Client(
                self.sts_config(), request_handler=self._request_handler, clock=self._clock
            ) as client:
                response = await client.send(command)
        except Exception as e:
            get_metrics().increment_counter("volc_credential_refresh_total", {"status": "error"})
            logger.warning(
                "volc.credentials.refresh_failed",
                role_trn=role_trn(params.account_id, params.role_name),
                error=str(e)[:200],
                error_type=type(e).__name__,
            )
            raise

        result = (response.get("Result") if isinstance(response, dict) else None) or {}
        sts_credentials = result.get("Credentials") or {}
        credentials = Credentials(
            access_key_id=sts_credentials.get("AccessKeyId") or "",
            secret_access_key=sts_credentials.get("SecretAccessKey") or "",
            session_token=sts_credentials.get("SessionToken") or "",
        )
        expires_at = parse_expiry(
            sts_credentials.get("ExpiredTime"),
            fetched_at,
            params.duration_seconds or DEFAULT_ASSUME_ROLE_DURATION_SECONDS,
        )

        get_metrics().increment_counter("volc_credential_refresh_total", {"status": "success"})
        logger.info(
            "volc.credentials.refresh",
            role_trn=role_trn(params.account_id, params.role_name),
            access_key_id=sanitize_token(credentials.access_key_id),
            expires_at=expires_at,
        )
        return CredentialCacheEntry(credentials=credentials, expires_at=expires_at)


class AssumeRoleCommand(Command):
    """STS AssumeRole (GET, query parameters)."""

    request_config = RequestConfig(
        params={"Action": "AssumeRole", "Version": STS_API_VERSION},
        method="GET",
        service_name="sts",
    )


__all__ = [
    "AssumeRoleCommand",
    "AssumeRoleProvider",
    "build_assume_role_input",
    "parse_expiry",
    "role_trn",
]
