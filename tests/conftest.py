"""
Shared test fixtures and configuration for pytest.
"""

import copy
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from versecache.core.errors import VerseCacheError
from versecache.core.models import Snapshot, parse_snapshot
from versecache.core.source import SnapshotSource
from versecache.store import SqliteContentStore


logger = logging.getLogger(__name__)


JOHN_URL = "https://example.com/bible.json"


# ============================================================================
# Sample documents
# ============================================================================

def john_document(text: str = "In the beginning...") -> List[dict]:
    """A one-book document in the published PascalCase shape."""
    return [
        {
            "BookID": 1,
            "BookName": "John",
            "TotalChapters": 1,
            "Chapters": [
                {
                    "ChapterNumber": 1,
                    "Verses": [
                        {"VerseNumber": 1, "Text": text},
                    ],
                },
            ],
        },
    ]


def full_document(book_count: int = 66, chapters: int = 2, verses: int = 3) -> List[dict]:
    """A synthetic document with book_count books, in camelCase shape."""
    return [
        {
            "bookId": book_id,
            "name": f"Book {book_id}",
            "abbreviation": f"B{book_id:02d}",
            "totalChapters": chapters,
            "chapters": [
                {
                    "chapterNumber": c,
                    "verses": [
                        {"verseNumber": v, "text": f"Book {book_id} {c}:{v}"}
                        for v in range(1, verses + 1)
                    ],
                }
                for c in range(1, chapters + 1)
            ],
        }
        for book_id in range(1, book_count + 1)
    ]


class FakeSource(SnapshotSource):
    """
    In-memory snapshot source.

    Serves a copy of `document`, or raises `error` when it is set.
    """

    def __init__(self, document: Any = None, error: Optional[VerseCacheError] = None):
        self.document = document
        self.error = error
        self.requests: List[str] = []

    def fetch(self, location: str) -> Snapshot:
        self.requests.append(location)
        if self.error is not None:
            raise self.error
        return parse_snapshot(copy.deepcopy(self.document))

    def get_name(self) -> str:
        return "fake"


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (real files and databases)")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def db_path(tmp_path) -> Path:
    """Path to a fresh cache database file."""
    return tmp_path / "cache" / "bible.db"


@pytest.fixture
def store(db_path):
    """A file-backed SQLite content store, closed after the test."""
    store = SqliteContentStore(db_path)
    yield store
    store.close()


@pytest.fixture
def john_books() -> Snapshot:
    return parse_snapshot(john_document())


@pytest.fixture
def fake_source():
    return FakeSource(document=john_document())
