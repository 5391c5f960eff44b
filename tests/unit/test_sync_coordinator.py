"""
Unit tests for the sync coordinator.

Tests:
- First sync loads an empty cache; an unchanged document is skipped
- Changed content replaces the cache and the fingerprint
- Fetch, parse, fingerprint and storage failures leave the cache untouched
- Dry run, minimum-book guard and concurrent-attempt handling
"""

import sqlite3
import threading
from unittest.mock import MagicMock, patch

import pytest

from versecache.core.errors import (
    FetchError, FingerprintError, ParseError, StorageError, SyncInProgressError,
)
from versecache.core.models import parse_snapshot
from versecache.fingerprint import fingerprint_snapshot
from versecache.query import QueryFacade
from versecache.sources import FileSnapshotSource
from versecache.store import SqliteContentStore
from versecache.sync import SyncCoordinator, SyncOutcome, SyncReport, SyncState

from conftest import JOHN_URL, FakeSource, full_document, john_document


class FailingInsertStore(SqliteContentStore):
    def _insert_books(self, cursor, books):
        raise sqlite3.OperationalError("disk full (simulated)")


@pytest.fixture
def coordinator(store, fake_source):
    return SyncCoordinator(store, fake_source)


class TestEnsureFresh:
    """Tests for the fetch/compare/replace protocol."""

    def test_empty_store_is_loaded(self, store):
        """An absent fingerprint always triggers a load."""
        source = FakeSource(document=full_document(book_count=66))
        coordinator = SyncCoordinator(store, source)
        assert store.count() == 0
        assert store.get_fingerprint() is None

        report = coordinator.ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.REPLACED
        assert store.count() == 66
        assert store.get_fingerprint() == report.remote_fingerprint
        assert report.local_fingerprint is None
        assert report.book_count == 66

    def test_unchanged_document_is_skipped(self, coordinator, store):
        first = coordinator.ensure_fresh(JOHN_URL)
        books_after_first = store.get_all_books()
        digest_after_first = store.get_fingerprint()

        second = coordinator.ensure_fresh(JOHN_URL)

        assert first.outcome == SyncOutcome.REPLACED
        assert second.outcome == SyncOutcome.SKIPPED
        assert store.get_all_books() == books_after_first
        assert store.get_fingerprint() == digest_after_first

    def test_skip_does_not_write(self, coordinator, store):
        coordinator.ensure_fresh(JOHN_URL)

        with patch.object(store, "replace_all") as replace_all:
            report = coordinator.ensure_fresh(JOHN_URL)

        replace_all.assert_not_called()
        assert report.outcome == SyncOutcome.SKIPPED

    def test_changed_verse_text_replaces(self, store, fake_source, coordinator):
        """Changing one verse produces a new fingerprint and a replace."""
        coordinator.ensure_fresh(JOHN_URL)
        h1 = store.get_fingerprint()

        fake_source.document = john_document("In the beginning was...")
        report = coordinator.ensure_fresh(JOHN_URL)
        h2 = store.get_fingerprint()

        assert report.outcome == SyncOutcome.REPLACED
        assert h2 != h1
        assert report.local_fingerprint == h1
        assert report.remote_fingerprint == h2
        verses = QueryFacade(store).list_verses(1, 1)
        assert [v.text for v in verses] == ["In the beginning was..."]

    def test_stored_fingerprint_describes_stored_books(self, coordinator, store):
        coordinator.ensure_fresh(JOHN_URL)

        assert store.get_fingerprint() == fingerprint_snapshot(store.get_all_books())

    def test_reordered_keys_do_not_trigger_reload(self, store):
        """The same corpus sent with different key order and spelling is current."""
        source = FakeSource(document=john_document())
        coordinator = SyncCoordinator(store, source)
        coordinator.ensure_fresh(JOHN_URL)

        books = parse_snapshot(john_document())
        source.document = [
            dict(reversed(list(book.to_dict().items()))) for book in books
        ]
        report = coordinator.ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.SKIPPED

    def test_empty_remote_replaces_by_default(self, coordinator, store, fake_source):
        coordinator.ensure_fresh(JOHN_URL)

        fake_source.document = []
        report = coordinator.ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.REPLACED
        assert store.count() == 0
        assert store.get_fingerprint() == fingerprint_snapshot(())

    def test_state_path_for_replace(self, coordinator):
        report = coordinator.ensure_fresh(JOHN_URL)

        assert report.states == [
            SyncState.IDLE,
            SyncState.FETCHING,
            SyncState.FINGERPRINTING,
            SyncState.COMPARING,
            SyncState.COMMITTING,
            SyncState.COMMITTED,
        ]

    def test_state_path_for_skip(self, coordinator):
        coordinator.ensure_fresh(JOHN_URL)
        report = coordinator.ensure_fresh(JOHN_URL)

        assert report.states[-3:] == [
            SyncState.COMPARING,
            SyncState.SKIPPING,
            SyncState.SKIPPED,
        ]

    def test_source_receives_url(self, coordinator, fake_source):
        coordinator.ensure_fresh("https://cdn.example.com/kjv.json")

        assert fake_source.requests == ["https://cdn.example.com/kjv.json"]


class TestFailures:
    """Failed attempts are reported and never change the store."""

    def _seed(self, store):
        books = parse_snapshot(john_document())
        digest = fingerprint_snapshot(books)
        store.replace_all(books, digest)
        return books, digest

    def test_http_500_is_fetch_failure(self, store):
        books, digest = self._seed(store)
        source = FakeSource(error=FetchError("GET returned HTTP 500", status_code=500))

        report = SyncCoordinator(store, source).ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.FAILED
        assert report.error_kind == "fetch"
        assert isinstance(report.error, FetchError)
        assert report.error.status_code == 500
        assert report.failed_in == SyncState.FETCHING
        assert store.get_fingerprint() == digest
        assert store.get_all_books() == books

    def test_malformed_document_is_parse_failure(self, store):
        books, digest = self._seed(store)
        source = FakeSource(document={"not": "a list"})

        report = SyncCoordinator(store, source).ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.FAILED
        assert report.error_kind == "parse"
        assert store.get_fingerprint() == digest

    def test_fingerprint_failure(self, store, fake_source):
        books, digest = self._seed(store)
        coordinator = SyncCoordinator(store, fake_source)

        with patch(
            "versecache.sync.coordinator.fingerprint_snapshot",
            side_effect=FingerprintError("unsupported type"),
        ):
            report = coordinator.ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.FAILED
        assert report.error_kind == "fingerprint"
        assert report.failed_in == SyncState.FINGERPRINTING
        assert store.get_fingerprint() == digest

    @pytest.mark.parametrize("payload", [
        b'[{"bookId": 1, "name": "\xff\xfe"}]',
        b"[" * 200000 + b"]" * 200000,
    ])
    def test_unreadable_document_is_parse_failure(self, store, tmp_path, payload):
        books, digest = self._seed(store)
        path = tmp_path / "bible.json"
        path.write_bytes(payload)

        report = SyncCoordinator(store, FileSnapshotSource()).ensure_fresh(str(path))

        assert report.outcome == SyncOutcome.FAILED
        assert report.error_kind == "parse"
        assert report.failed_in == SyncState.FETCHING
        assert store.get_fingerprint() == digest

    def test_storage_failure_keeps_old_snapshot(self, db_path):
        with SqliteContentStore(db_path) as seed:
            books, digest = self._seed(seed)

        store = FailingInsertStore(db_path)
        try:
            source = FakeSource(document=john_document("In the beginning was..."))
            report = SyncCoordinator(store, source).ensure_fresh(JOHN_URL)

            assert report.outcome == SyncOutcome.FAILED
            assert report.error_kind == "storage"
            assert report.failed_in == SyncState.COMMITTING
            assert store.get_all_books() == books
            assert store.get_fingerprint() == digest
            assert QueryFacade(store).list_verses(1, 1)[0].text == "In the beginning..."
        finally:
            store.close()

    def test_raise_for_failure(self, store):
        source = FakeSource(error=FetchError("connection refused"))
        report = SyncCoordinator(store, source).ensure_fresh(JOHN_URL)

        with pytest.raises(FetchError, match="connection refused"):
            report.raise_for_failure()

    def test_raise_for_failure_noop_on_success(self, coordinator):
        coordinator.ensure_fresh(JOHN_URL).raise_for_failure()

    def test_failure_report_dict(self, store):
        source = FakeSource(error=FetchError("timed out"))
        report = SyncCoordinator(store, source).ensure_fresh(JOHN_URL)

        data = report.to_dict()
        assert data["outcome"] == "failed"
        assert data["error_kind"] == "fetch"
        assert data["failed_in"] == "fetching"
        assert data["states"][-1] == "failed"
        assert "timed out" in report.summary()


class TestMinBooks:
    """Tests for the minimum-book guard."""

    def test_short_snapshot_rejected(self, store):
        source = FakeSource(document=full_document(book_count=66))
        coordinator = SyncCoordinator(store, source, min_books=60)
        coordinator.ensure_fresh(JOHN_URL)
        digest = store.get_fingerprint()

        source.document = full_document(book_count=3)
        report = coordinator.ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.FAILED
        assert isinstance(report.error, ParseError)
        assert store.count() == 66
        assert store.get_fingerprint() == digest

    def test_empty_snapshot_rejected(self, store):
        coordinator = SyncCoordinator(store, FakeSource(document=[]), min_books=1)

        report = coordinator.ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.FAILED
        assert store.get_fingerprint() is None


class TestDryRun:
    """Tests for dry-run mode."""

    def test_dry_run_reports_replace_without_writing(self, coordinator, store):
        report = coordinator.ensure_fresh(JOHN_URL, dry_run=True)

        assert report.dry_run is True
        assert report.outcome == SyncOutcome.REPLACED
        assert SyncState.COMMITTING not in report.states
        assert report.state == SyncState.COMPARING
        assert store.count() == 0
        assert store.get_fingerprint() is None

    def test_dry_run_reports_skip(self, coordinator):
        coordinator.ensure_fresh(JOHN_URL)

        report = coordinator.ensure_fresh(JOHN_URL, dry_run=True)

        assert report.outcome == SyncOutcome.SKIPPED


@pytest.mark.integration
class TestConcurrency:
    """Only one attempt runs at a time."""

    def _blocking_source(self):
        started = threading.Event()
        release = threading.Event()
        source = FakeSource(document=john_document())
        original_fetch = source.fetch

        def slow_fetch(location):
            started.set()
            release.wait(timeout=5)
            return original_fetch(location)

        source.fetch = slow_fetch
        return source, started, release

    def test_concurrent_call_rejected_without_wait(self, store):
        source, started, release = self._blocking_source()
        coordinator = SyncCoordinator(store, source)
        results = []

        worker = threading.Thread(target=lambda: results.append(coordinator.ensure_fresh(JOHN_URL)))
        worker.start()
        assert started.wait(timeout=5)

        assert coordinator.is_syncing
        with pytest.raises(SyncInProgressError):
            coordinator.ensure_fresh(JOHN_URL, wait=False)

        release.set()
        worker.join(timeout=5)
        assert results[0].outcome == SyncOutcome.REPLACED
        assert not coordinator.is_syncing

    def test_concurrent_calls_are_serialized(self, store):
        source, started, release = self._blocking_source()
        coordinator = SyncCoordinator(store, source)
        outcomes = []

        def run():
            outcomes.append(coordinator.ensure_fresh(JOHN_URL).outcome)

        workers = [threading.Thread(target=run) for _ in range(2)]
        for worker in workers:
            worker.start()
        assert started.wait(timeout=5)
        release.set()
        for worker in workers:
            worker.join(timeout=5)

        assert sorted(o.value for o in outcomes) == ["replaced", "skipped"]
        assert store.count() == 1


class TestStatus:
    def test_status(self, coordinator):
        assert coordinator.status() == {"book_count": 0, "fingerprint": None, "syncing": False}

        report = coordinator.ensure_fresh(JOHN_URL)

        status = coordinator.status()
        assert status["book_count"] == 1
        assert status["fingerprint"] == report.remote_fingerprint


class TestSyncReport:
    def test_success_summary(self, coordinator):
        report = coordinator.ensure_fresh(JOHN_URL)

        assert isinstance(report, SyncReport)
        assert report.succeeded
        assert report.completed_at >= report.started_at
        assert "Outcome: replaced" in report.summary()
        assert report.to_dict()["error_kind"] is None

    def test_store_read_failure_is_reported(self, fake_source):
        store = MagicMock()
        store.get_fingerprint.side_effect = StorageError("database is locked")

        report = SyncCoordinator(store, fake_source).ensure_fresh(JOHN_URL)

        assert report.outcome == SyncOutcome.FAILED
        assert report.error_kind == "storage"
        store.replace_all.assert_not_called()
