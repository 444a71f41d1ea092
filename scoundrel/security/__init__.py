"""
Security Module - Anti-tamper layer between clients and the rules.

Nothing a client sends reaches the reducer without passing rate,
timestamp and sequence checks, and no stored state is trusted until its
checksum has been recomputed.
"""

from .integrity import SecurityService, canonical_json

__all__ = [
    "SecurityService",
    "canonical_json",
]
