"""
Exception taxonomy for the content cache.

Every failure a sync attempt can hit maps to one of these classes, so
callers can tell a network problem from a bad document or a broken
database without inspecting messages.
"""

from typing import Optional


class VerseCacheError(Exception):
    """Base class for all content cache errors."""

    kind = "error"


class FetchError(VerseCacheError):
    """
    The remote document could not be retrieved.

    Attributes:
        status_code: HTTP status code if a response was received
    """

    kind = "fetch"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(VerseCacheError):
    """The remote document is not a valid snapshot."""

    kind = "parse"


class FingerprintError(VerseCacheError):
    """A value could not be canonically serialized for hashing."""

    kind = "fingerprint"


class StorageError(VerseCacheError):
    """A durable-storage operation failed and was rolled back."""

    kind = "storage"


class SyncInProgressError(VerseCacheError):
    """Another sync attempt already holds the store."""

    kind = "busy"
