"""
Canonical JSON serialization and content fingerprinting.

Provides stable, platform-independent serialization for snapshot hashing.
The canonicalization ensures:
- Keys are sorted recursively
- Unicode is normalized (NFC)
- No insignificant whitespace
- Integral floats are written as integers (1.0 and 1 hash alike)
- Non-finite floats and non-JSON types are rejected
"""

import hashlib
import json
import math
import unicodedata
from typing import Any, Iterable

from ..core.errors import FingerprintError
from ..core.models import Book, snapshot_to_list


DIGEST_LENGTH = 64


def canonicalize(obj: Any) -> str:
    """
    Canonicalize a Python object to a stable JSON string.

    Args:
        obj: The object to canonicalize (JSON types, tuples allowed)

    Returns:
        Canonical JSON string

    Raises:
        FingerprintError: If the object contains a value JSON cannot represent
    """
    normalized = _normalize_for_canonical(obj)
    try:
        return json.dumps(
            normalized,
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise FingerprintError(f"Value is not canonically serializable: {e}") from e


def _normalize_for_canonical(obj: Any) -> Any:
    """
    Recursively normalize an object for canonical serialization.

    - Normalizes unicode strings (NFC)
    - Collapses integral floats to int
    - Recursively processes dicts and lists
    """
    if obj is None:
        return None

    if isinstance(obj, str):
        return unicodedata.normalize("NFC", obj)

    if isinstance(obj, bool):
        # Handle bool before int (bool is subclass of int)
        return obj

    if isinstance(obj, int):
        return obj

    if isinstance(obj, float):
        if not math.isfinite(obj):
            raise FingerprintError(f"Non-finite number cannot be fingerprinted: {obj!r}")
        if obj.is_integer():
            return int(obj)
        return obj

    if isinstance(obj, dict):
        normalized = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise FingerprintError(
                    f"Object keys must be strings, got {type(key).__name__}: {key!r}"
                )
            normalized[unicodedata.normalize("NFC", key)] = _normalize_for_canonical(value)
        return normalized

    if isinstance(obj, (list, tuple)):
        return [_normalize_for_canonical(item) for item in obj]

    raise FingerprintError(f"Unsupported type for fingerprinting: {type(obj).__name__}")


def fingerprint(value: Any) -> str:
    """
    Compute the SHA256 fingerprint of a JSON-serializable value.

    Logically equal values produce the same digest regardless of key order
    or how the value was constructed.

    Args:
        value: Any JSON-serializable value

    Returns:
        Hex-encoded SHA256 digest (64 characters)

    Raises:
        FingerprintError: If the value cannot be serialized
    """
    canonical_str = canonicalize(value)
    return hashlib.sha256(canonical_str.encode("utf-8")).hexdigest()


def fingerprint_snapshot(books: Iterable[Book]) -> str:
    """
    Fingerprint a snapshot through its canonical model form.

    Hashing the model form rather than the raw document means both wire
    spellings of the same corpus produce the same digest, and the digest
    of a stored snapshot can be recomputed from the stored rows.
    """
    return fingerprint(snapshot_to_list(books))


def verify_fingerprint(books: Iterable[Book], expected: str) -> bool:
    """
    Verify that a snapshot matches a stored fingerprint.

    Args:
        books: The snapshot to check
        expected: The fingerprint it should have

    Returns:
        True if the fingerprint matches, False otherwise
    """
    return fingerprint_snapshot(books) == expected
