"""Constants for the Volc SDK core.

This module defines pipeline-wide defaults used across the codebase.
"""

# Request defaults
DEFAULT_REGION = "cn-beijing"
DEFAULT_PROTOCOL = "https"
DEFAULT_CONTENT_TYPE = "application/json; charset=utf-8"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

DEFAULT_TIMEOUT_MS = 30 * 1000
"""Dispatch timeout in milliseconds when neither the call nor the client sets one."""

# Retry and backoff constants
DEFAULT_MAX_RETRIES = 3
"""Retries after the first attempt; the default call makes four attempts."""

DEFAULT_MIN_RETRY_DELAY_MS = 300
"""Base delay in milliseconds for the first retry.

Subsequent retries double it: min_retry_delay * 2 ** (attempt - 1).
"""

DEFAULT_MAX_RETRY_DELAY_MS = 300 * 1000
"""Upper bound in milliseconds for any computed backoff delay."""

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
"""HTTP statuses retried by the default predicate.

429 is retried alongside 5xx; callers may depend on rate-limit retries.
"""

RETRYABLE_ERROR_CODES = frozenset(
    {
        "ECONNRESET",
        "ETIMEDOUT",
        "ECONNREFUSED",
        "ENOTFOUND",
        "EHOSTUNREACH",
        "EAI_AGAIN",
        "EPROTO",
        "ECONNABORTED",
        "ENETUNREACH",
        "EPIPE",
    }
)
"""Transient network error codes retried by the default predicate."""

TLS_ERROR_CODES = frozenset(
    {
        "UNABLE_TO_VERIFY_LEAF_SIGNATURE",
        "CERT_HAS_EXPIRED",
        "DEPTH_ZERO_SELF_SIGNED_CERT",
        "ERR_TLS_CERT_ALTNAME_INVALID",
    }
)

# Assume role
DEFAULT_STS_HOST = "sts.volcengineapi.com"
STS_API_VERSION = "2018-01-01"
DEFAULT_ASSUME_ROLE_DURATION_SECONDS = 3600
CREDENTIAL_EXPIRY_BUFFER_MS = 60 * 1000
"""Cached assumed-role credentials are treated as stale this long before expiry."""
