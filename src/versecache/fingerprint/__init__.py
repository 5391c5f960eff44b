"""
Deterministic content fingerprinting for snapshots.
"""

from .canonical import (
    DIGEST_LENGTH,
    canonicalize,
    fingerprint,
    fingerprint_snapshot,
    verify_fingerprint,
)

__all__ = [
    "DIGEST_LENGTH",
    "canonicalize",
    "fingerprint",
    "fingerprint_snapshot",
    "verify_fingerprint",
]
