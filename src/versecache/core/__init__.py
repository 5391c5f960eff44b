"""
Core abstractions and models for the content cache.
"""

from .errors import (
    VerseCacheError, FetchError, ParseError, FingerprintError,
    StorageError, SyncInProgressError,
)
from .models import Book, Chapter, Verse, Snapshot, parse_snapshot, snapshot_to_list
from .content_store import ContentStore, FINGERPRINT_KEY
from .source import SnapshotSource

__all__ = [
    "VerseCacheError",
    "FetchError",
    "ParseError",
    "FingerprintError",
    "StorageError",
    "SyncInProgressError",
    "Book",
    "Chapter",
    "Verse",
    "Snapshot",
    "parse_snapshot",
    "snapshot_to_list",
    "ContentStore",
    "FINGERPRINT_KEY",
    "SnapshotSource",
]
