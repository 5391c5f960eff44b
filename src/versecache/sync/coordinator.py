"""
Sync coordinator for keeping the local cache consistent with the source.

Fetches the source-of-truth document, fingerprints it, compares it with the
fingerprint of the committed snapshot, and replaces the stored snapshot
atomically when they differ. A failed attempt never touches the store.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.content_store import ContentStore
from ..core.errors import ParseError, SyncInProgressError, VerseCacheError
from ..core.models import Snapshot
from ..core.source import SnapshotSource
from ..fingerprint import fingerprint_snapshot

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    """Result of a sync attempt."""
    REPLACED = "replaced"
    SKIPPED = "skipped"
    FAILED = "failed"


class SyncState(str, Enum):
    """States a single sync attempt passes through."""
    IDLE = "idle"
    FETCHING = "fetching"
    FINGERPRINTING = "fingerprinting"
    COMPARING = "comparing"
    COMMITTING = "committing"
    COMMITTED = "committed"
    SKIPPING = "skipping"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncReport:
    """Report of one ensure_fresh attempt."""
    source_url: str
    dry_run: bool
    started_at: datetime
    completed_at: Optional[datetime] = None
    outcome: Optional[SyncOutcome] = None
    states: List[SyncState] = field(default_factory=lambda: [SyncState.IDLE])

    local_fingerprint: Optional[str] = None
    remote_fingerprint: Optional[str] = None
    book_count: int = 0

    # Failure details
    failed_in: Optional[SyncState] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    error: Optional[VerseCacheError] = field(default=None, repr=False)

    @property
    def state(self) -> SyncState:
        return self.states[-1]

    @property
    def succeeded(self) -> bool:
        return self.outcome in (SyncOutcome.REPLACED, SyncOutcome.SKIPPED)

    def advance(self, state: SyncState) -> None:
        self.states.append(state)

    def fail(self, error: VerseCacheError) -> None:
        self.failed_in = self.state
        self.error = error
        self.error_kind = error.kind
        self.error_message = str(error)
        self.outcome = SyncOutcome.FAILED
        self.advance(SyncState.FAILED)

    def raise_for_failure(self) -> None:
        """Re-raise the original error if the attempt failed."""
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_url": self.source_url,
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "outcome": self.outcome.value if self.outcome else None,
            "states": [s.value for s in self.states],
            "local_fingerprint": self.local_fingerprint,
            "remote_fingerprint": self.remote_fingerprint,
            "book_count": self.book_count,
            "failed_in": self.failed_in.value if self.failed_in else None,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }

    def summary(self) -> str:
        """Get a human-readable summary."""
        outcome = self.outcome.value if self.outcome else "unknown"
        lines = [
            f"Sync Report ({self.source_url})",
            f"  Dry run: {self.dry_run}",
            f"  Outcome: {outcome}",
        ]
        if self.completed_at:
            lines.append(
                f"  Duration: {(self.completed_at - self.started_at).total_seconds():.1f}s"
            )
        lines.extend([
            f"  Books: {self.book_count}",
            f"  Local fingerprint: {self.local_fingerprint or '(none)'}",
            f"  Remote fingerprint: {self.remote_fingerprint or '(none)'}",
        ])
        if self.outcome == SyncOutcome.FAILED:
            lines.append(f"  Error ({self.error_kind}): {self.error_message}")
        return "\n".join(lines)


class SyncCoordinator:
    """
    Keeps a content store in step with a remote snapshot document.

    Only one attempt runs at a time per coordinator. A concurrent call
    either waits for the running attempt to finish or, with wait=False,
    is rejected with SyncInProgressError.
    """

    def __init__(
        self,
        store: ContentStore,
        source: SnapshotSource,
        min_books: int = 0,
    ):
        """
        Initialize the sync coordinator.

        Args:
            store: The content store to keep fresh
            source: Source used to fetch the remote document
            min_books: Reject fetched snapshots with fewer books than this.
                0 accepts any snapshot, including an empty one.
        """
        self.store = store
        self.source = source
        self.min_books = min_books
        self._lock = threading.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._lock.locked()

    def ensure_fresh(
        self,
        source_url: str,
        dry_run: bool = False,
        wait: bool = True,
    ) -> SyncReport:
        """
        Make sure the store holds the snapshot published at source_url.

        Args:
            source_url: Location of the remote document
            dry_run: If True, report what would be done without making changes.
                A dry run that would replace stops in the COMPARING state.
            wait: If False, reject instead of waiting for a running attempt

        Returns:
            SyncReport with the outcome; failures are reported, not raised

        Raises:
            SyncInProgressError: If wait is False and another attempt is running
        """
        if not self._lock.acquire(blocking=wait):
            logger.warning(f"Rejected sync of {source_url}: another sync is in progress")
            raise SyncInProgressError("A sync attempt is already in progress")

        try:
            report = SyncReport(
                source_url=source_url,
                dry_run=dry_run,
                started_at=datetime.now(timezone.utc),
            )
            self._run(report)
            report.completed_at = datetime.now(timezone.utc)
            return report
        finally:
            self._lock.release()

    def _run(self, report: SyncReport) -> None:
        try:
            report.advance(SyncState.FETCHING)
            books = self.source.fetch(report.source_url)
            self._check_min_books(books)
            report.book_count = len(books)

            report.advance(SyncState.FINGERPRINTING)
            remote = fingerprint_snapshot(books)
            report.remote_fingerprint = remote

            report.advance(SyncState.COMPARING)
            local = self.store.get_fingerprint()
            report.local_fingerprint = local

            if local is not None and local == remote:
                report.advance(SyncState.SKIPPING)
                report.advance(SyncState.SKIPPED)
                report.outcome = SyncOutcome.SKIPPED
                logger.info(f"Cache is current ({remote[:12]}...), nothing to do")
                return

            if report.dry_run:
                report.outcome = SyncOutcome.REPLACED
                logger.info(
                    f"Dry run: would replace {local[:12] + '...' if local else 'empty cache'} "
                    f"with {remote[:12]}... ({len(books)} books)"
                )
                return

            report.advance(SyncState.COMMITTING)
            self.store.replace_all(books, remote)
            report.advance(SyncState.COMMITTED)
            report.outcome = SyncOutcome.REPLACED
            logger.info(f"Replaced cached snapshot with {len(books)} books")

        except VerseCacheError as e:
            logger.error(f"Sync of {report.source_url} failed while {report.state.value}: {e}")
            report.fail(e)

    def _check_min_books(self, books: Snapshot) -> None:
        if len(books) < self.min_books:
            raise ParseError(
                f"Snapshot has {len(books)} books, fewer than the required {self.min_books}"
            )

    def status(self) -> Dict[str, Any]:
        """Get the current state of the cache."""
        return {
            "book_count": self.store.count(),
            "fingerprint": self.store.get_fingerprint(),
            "syncing": self.is_syncing,
        }
