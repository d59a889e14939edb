"""Pydantic models for request signing results."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from volc_core.models.base import VolcBaseModel

# Lower-case hex digest of an HMAC-SHA256 signature.
HEX_SHA256_PATTERN = r"^[0-9a-f]{64}$"


class SigningResult(VolcBaseModel):
    """Authenticated header set plus the signature that produced it."""

    headers: dict[str, Any] = Field(
        ...,
        description="Lower-cased request headers plus x-date, host, optional token/hash and Authorization.",
    )
    signature: Annotated[
        str,
        Field(..., description="Hex-encoded HMAC-SHA256 signature.", pattern=HEX_SHA256_PATTERN),
    ]
    authorization: str = Field(
        ...,
        description="Authorization header value: algorithm, credential scope, signed headers, signature.",
    )
