"""HMAC-SHA256 request signing (Volcengine V4 scheme).

Every function here is pure. sign_request() is the entry point used by the
signer stage; the smaller functions are exposed so each step of the
canonical request can be checked on its own.

Wire format:
    Authorization: HMAC-SHA256 Credential=<AK>/<YYYYMMDD>/<region>/<service>/request,
    SignedHeaders=<h1;h2;...>, Signature=<hex>
"""

from __future__ import annotations

import hashlib
import hmac
import json
import re
from datetime import datetime, timezone
from typing import Any, Mapping
from urllib.parse import quote

from volc_core.crypto.models import SigningResult
from volc_core.errors import SigningError

ALGORITHM = "HMAC-SHA256"
V4_IDENTIFIER = "request"
DATE_HEADER = "x-date"
TOKEN_HEADER = "x-security-token"
CONTENT_SHA256_HEADER = "x-content-sha256"
K_DATE_PREFIX = ""

UNSIGNABLE_HEADERS = frozenset(
    {
        "authorization",
        "content-type",
        "content-length",
        "user-agent",
        "presigned-expires",
        "expect",
    }
)

_WHITESPACE_RUN = re.compile(r"\s+")


def calculate_sha256(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def calculate_hmac(key: str | bytes, data: str | bytes) -> bytes:
    if isinstance(key, str):
        key = key.encode("utf-8")
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hmac.new(key, data, hashlib.sha256).digest()


def serialize_json_body(body: Any) -> str:
    """Serialize a structured body to the compact JSON that is hashed and sent.

    The dispatch adapter sends exactly these bytes (UTF-8), so the payload
    hash in the signature always matches the wire body.
    """
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def has_body(body: Any) -> bool:
    return body is not None and body != "" and body != b""


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def uri_escape(value: Any) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters.

    Example:
        >>> uri_escape("a b*c")
        'a%20b%2Ac'
        >>> uri_escape(True)
        'true'
    """
    return quote(_stringify(value), safe="")


def get_date_time(moment: datetime | None = None) -> str:
    """Format ``moment`` (default: now) as a basic ISO-8601 UTC timestamp.

    Example:
        >>> get_date_time(datetime(2024, 1, 1, tzinfo=timezone.utc))
        '20240101T000000Z'
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y%m%dT%H%M%SZ")


def canonical_uri(path: str | None) -> str:
    if not path:
        return "/"
    return "/".join(uri_escape(segment) for segment in path.split("/"))


def canonical_query_string(params: Mapping[str, Any] | None) -> str:
    """Build the canonical query string.

    None values are dropped, keys are sorted, and list values are escaped,
    sorted, and emitted as repeated ``key=value`` pairs.

    Example:
        >>> canonical_query_string({"b": 2, "a": ["y", "x"], "c": None})
        'a=x&a=y&b=2'
    """
    if not params:
        return ""

    parts: list[str] = []
    for key in sorted(k for k, v in params.items() if v is not None):
        value = params[key]
        escaped_key = uri_escape(key)
        if not escaped_key:
            continue
        if isinstance(value, (list, tuple)):
            escaped_values = sorted(uri_escape(item) for item in value) or [""]
            parts.append("&".join(f"{escaped_key}={item}" for item in escaped_values))
        else:
            parts.append(f"{escaped_key}={uri_escape(value)}")
    return "&".join(parts)


def is_signable_header(key: str) -> bool:
    return key not in UNSIGNABLE_HEADERS


def canonical_header_values(value: str) -> str:
    return _WHITESPACE_RUN.sub(" ", value).strip()


def canonical_headers(headers: Mapping[str, Any]) -> str:
    """Render signable headers as ``name:value`` lines sorted by lower-cased name.

    Raises:
        SigningError: If a signable header has no value
    """
    parts: list[str] = []
    for key, value in sorted(headers.items(), key=lambda item: item[0].lower()):
        lower_key = key.lower()
        if not is_signable_header(lower_key):
            continue
        if value is None:
            raise SigningError(key)
        parts.append(f"{lower_key}:{canonical_header_values(_stringify(value))}")
    return "\n".join(parts)


def signed_headers(headers: Mapping[str, Any]) -> str:
    keys = sorted(key.lower() for key in headers if is_signable_header(key.lower()))
    return ";".join(keys)


def hex_encoded_body_hash(headers: Mapping[str, Any], body: Any = None) -> str:
    """Return the payload hash, reusing a caller-supplied x-content-sha256."""
    preset = headers.get(CONTENT_SHA256_HEADER)
    if preset:
        return str(preset)
    if isinstance(body, (str, bytes)):
        return calculate_sha256(body)
    if not has_body(body):
        return calculate_sha256("")
    return calculate_sha256(serialize_json_body(body))


def create_canonical_request(
    method: str,
    uri: str | None,
    query: Mapping[str, Any] | None,
    headers: Mapping[str, Any],
    payload_hash: str,
) -> str:
    return "\n".join(
        [
            method.upper(),
            canonical_uri(uri),
            canonical_query_string(query),
            f"{canonical_headers(headers)}\n",
            signed_headers(headers),
            payload_hash,
        ]
    )


def create_scope(date: str, region: str, service_name: str) -> str:
    return "/".join([date[:8], region, service_name, V4_IDENTIFIER])


def create_string_to_sign(
    timestamp: str, region: str, service_name: str, canonical_request: str
) -> str:
    credential_scope = create_scope(timestamp[:8], region, service_name)
    return "\n".join(
        [
            ALGORITHM,
            timestamp,
            credential_scope,
            calculate_sha256(canonical_request),
        ]
    )


def derive_signing_key(secret_access_key: str, date: str, region: str, service: str) -> bytes:
    k_date = calculate_hmac(f"{K_DATE_PREFIX}{secret_access_key}", date)
    k_region = calculate_hmac(k_date, region)
    k_service = calculate_hmac(k_region, service)
    return calculate_hmac(k_service, V4_IDENTIFIER)


def calculate_signature(signing_key: bytes, string_to_sign: str) -> str:
    return calculate_hmac(signing_key, string_to_sign).hex()


def create_authorization(
    access_key_id: str, credential_scope: str, signed_headers_str: str, signature: str
) -> str:
    return ", ".join(
        [
            f"{ALGORITHM} Credential={access_key_id}/{credential_scope}",
            f"SignedHeaders={signed_headers_str}",
            f"Signature={signature}",
        ]
    )


def add_required_headers(
    headers: Mapping[str, Any],
    timestamp: str,
    host: str,
    session_token: str | None = None,
    body: Any = None,
) -> dict[str, Any]:
    """Return a copy of ``headers`` with the headers every signed request carries.

    Adds x-date, x-security-token when a session token is given, host when
    absent, and x-content-sha256 when there is a body or a preset hash.
    """
    updated = dict(headers)
    updated[DATE_HEADER] = timestamp

    if session_token:
        updated[TOKEN_HEADER] = session_token

    if not updated.get("host"):
        updated["host"] = host

    if has_body(body) or updated.get(CONTENT_SHA256_HEADER):
        updated[CONTENT_SHA256_HEADER] = hex_encoded_body_hash(updated, body)

    return updated


def sign_request(
    *,
    region: str,
    service_name: str,
    access_key_id: str,
    secret_access_key: str,
    host: str,
    method: str = "GET",
    uri: str = "/",
    query: Mapping[str, Any] | None = None,
    headers: Mapping[str, Any] | None = None,
    body: Any = None,
    session_token: str | None = None,
    timestamp: str | None = None,
) -> SigningResult:
    """Sign a request and return the complete authenticated header set.

    Header names are lower-cased before signing so differently-cased
    duplicates cannot produce an ambiguous canonical request.

    Args:
        region: Signing region (e.g. cn-beijing)
        service_name: Signing service (e.g. ecs)
        access_key_id: Access key placed in the credential scope
        secret_access_key: Secret used to derive the signing key
        host: Value for the host header when none is present
        method: HTTP method
        uri: Request path
        query: Query parameters
        headers: Request headers
        body: Request body (str, bytes, or a JSON-serializable value)
        session_token: Optional STS session token
        timestamp: Signing time as YYYYMMDDTHHMMSSZ; defaults to now

    Returns:
        SigningResult with the headers (including Authorization), signature
        and authorization value

    Raises:
        SigningError: If a signable header has no value
    """
    datetime_str = timestamp or get_date_time()
    date = datetime_str[:8]

    lower_case_headers = {key.lower(): value for key, value in (headers or {}).items()}
    all_headers = add_required_headers(
        lower_case_headers, datetime_str, host, session_token, body
    )

    payload_hash = all_headers.get(CONTENT_SHA256_HEADER) or hex_encoded_body_hash(
        all_headers, None
    )
    canonical_request = create_canonical_request(
        method, uri, query or {}, all_headers, payload_hash
    )
    string_to_sign = create_string_to_sign(datetime_str, region, service_name, canonical_request)
    signing_key = derive_signing_key(secret_access_key, date, region, service_name)
    signature = calculate_signature(signing_key, string_to_sign)

    credential_scope = create_scope(date, region, service_name)
    authorization = create_authorization(
        access_key_id, credential_scope, signed_headers(all_headers), signature
    )

    return SigningResult(
        headers={**all_headers, "Authorization": authorization},
        signature=signature,
        authorization=authorization,
    )


def sort_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return ``params`` key-sorted with None values removed."""
    if not params:
        return {}
    return {key: params[key] for key in sorted(k for k, v in params.items() if v is not None)}


__all__ = [
    "ALGORITHM",
    "CONTENT_SHA256_HEADER",
    "DATE_HEADER",
    "TOKEN_HEADER",
    "UNSIGNABLE_HEADERS",
    "V4_IDENTIFIER",
    "add_required_headers",
    "calculate_hmac",
    "calculate_sha256",
    "calculate_signature",
    "canonical_headers",
    "canonical_query_string",
    "canonical_uri",
    "create_authorization",
    "create_canonical_request",
    "create_scope",
    "create_string_to_sign",
    "derive_signing_key",
    "get_date_time",
    "has_body",
    "hex_encoded_body_hash",
    "serialize_json_body",
    "sign_request",
    "signed_headers",
    "sort_params",
    "uri_escape",
]
