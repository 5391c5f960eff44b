"""
Fingerprint-based sync between the remote document and the content store.
"""

from .coordinator import SyncCoordinator, SyncOutcome, SyncReport, SyncState

__all__ = [
    "SyncCoordinator",
    "SyncOutcome",
    "SyncReport",
    "SyncState",
]
