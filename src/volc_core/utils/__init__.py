"""Utility modules for the Volc SDK core.

This package holds the helpers the default pipeline stages build on:
environment loading, endpoint resolution, meta-path parsing, proxy option
merging, retry predicates and delays, and log sanitization.
"""

__all__: list[str] = []
