"""
Offline content cache for a book/chapter/verse corpus.

The cache keeps one committed snapshot of the corpus in a local SQLite
database, together with the fingerprint of that snapshot. A sync fetches
the published document, fingerprints it, and replaces the stored snapshot
in a single transaction only when the fingerprints differ.
"""

from .core import (
    Book, Chapter, Verse, Snapshot, ContentStore, SnapshotSource,
    VerseCacheError, FetchError, ParseError, FingerprintError,
    StorageError, SyncInProgressError,
)
from .fingerprint import fingerprint, fingerprint_snapshot
from .query import QueryFacade
from .store import SqliteContentStore, create_content_store
from .sync import SyncCoordinator, SyncOutcome, SyncReport, SyncState

__version__ = "0.1.0"

__all__ = [
    "Book",
    "Chapter",
    "Verse",
    "Snapshot",
    "ContentStore",
    "SnapshotSource",
    "VerseCacheError",
    "FetchError",
    "ParseError",
    "FingerprintError",
    "StorageError",
    "SyncInProgressError",
    "fingerprint",
    "fingerprint_snapshot",
    "QueryFacade",
    "SqliteContentStore",
    "create_content_store",
    "SyncCoordinator",
    "SyncOutcome",
    "SyncReport",
    "SyncState",
]
