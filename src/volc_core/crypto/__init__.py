"""Request signing for the Volc SDK core.

This package implements the HMAC-SHA256 canonical-request signing scheme:
- Canonical URI, query string and header rendering
- Payload hashing shared with the dispatch adapter's body serializer
- Signing key derivation and Authorization header assembly

Public exports:
    signer: The signing functions and constants
    models: SigningResult
"""

from volc_core.crypto import signer
from volc_core.crypto.models import SigningResult
from volc_core.crypto.signer import sign_request

__all__ = [
    "signer",
    "SigningResult",
    "sign_request",
]
