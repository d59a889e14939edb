"""Credential caching and role assumption.

Modules:
    cache: CredentialCache, a single-flight cache of expiring credentials
    assume_role: AssumeRoleProvider, which fetches role credentials from STS
"""

from volc_core.credentials.cache import (
    CredentialCache,
    CredentialCacheEntry,
    assume_role_cache_key,
)

__all__ = [
    "CredentialCache",
    "CredentialCacheEntry",
    "assume_role_cache_key",
]
