"""Base Pydantic model configuration for Volc SDK core models.

All configuration models inherit from VolcBaseModel to ensure consistent behavior:
- Immutability (frozen=True) so stages can share one config safely
- Strict validation (extra="forbid") to catch typos in option names
- Default validation so misconfigured defaults fail at import time
"""

from pydantic import BaseModel, ConfigDict


class VolcBaseModel(BaseModel):
    """Base model for all SDK configuration objects.

    Example:
        >>> class MyOptions(VolcBaseModel):
        ...     timeout: int = 1000
        >>>
        >>> opts = MyOptions(timeout=50)
        >>> opts.timeout = 10  # Raises ValidationError (frozen)
        Traceback (most recent call last):
        ...
        pydantic_core._pydantic_core.ValidationError: ...
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )
