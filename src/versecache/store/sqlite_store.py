"""
SQLite-based content store for the cached corpus.

Two tables:
- books: one row per book, chapters stored as a JSON column
- metadata: key/value rows; the 'dataHash' row holds the snapshot fingerprint

Every mutation runs inside an explicit transaction and is committed with
synchronous=FULL before the call returns.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..core.content_store import ContentStore, FINGERPRINT_KEY
from ..core.errors import ParseError, StorageError
from ..core.models import Book, Chapter, Snapshot


logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class SqliteContentStore(ContentStore):
    """
    SQLite-based implementation of the content store.

    The connection is opened in autocommit mode so transactions are
    delimited explicitly with BEGIN IMMEDIATE / COMMIT / ROLLBACK. A
    re-entrant lock serializes all access, so a reader on another thread
    never sees a half-applied replace_all.
    """

    def __init__(self, db_path: Union[str, Path], auto_init: bool = True):
        """
        Initialize the SQLite content store.

        Args:
            db_path: Path to the SQLite database file, or ':memory:'
            auto_init: Whether to create tables automatically
        """
        self.db_path = db_path if str(db_path) == MEMORY_PATH else Path(db_path)
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._connect()

        if auto_init:
            self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,
            )
            self.conn.row_factory = sqlite3.Row

            if isinstance(self.db_path, Path):
                self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=FULL")
        except (sqlite3.Error, OSError) as e:
            self.close()
            raise StorageError(f"Cannot open content store {self.db_path}: {e}") from e

        logger.debug(f"Connected to SQLite content store: {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._lock:
            cursor = self.conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS books (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        book_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        abbreviation TEXT NOT NULL DEFAULT '',
                        total_chapters INTEGER NOT NULL,
                        chapters_json TEXT NOT NULL
                    )
                """)

                cursor.execute("""
                    CREATE UNIQUE INDEX IF NOT EXISTS ix_books_book_id
                    ON books (book_id)
                """)

                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS ix_books_name
                    ON books (name)
                """)

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS metadata (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)

                cursor.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(cursor)
                raise StorageError(f"Failed to initialize content store schema: {e}") from e

        logger.debug("Initialized content store schema")

    def count(self) -> int:
        with self._lock:
            row = self._query_one("SELECT COUNT(*) AS n FROM books")
            return row["n"]

    def get_all_books(self) -> Snapshot:
        with self._lock:
            rows = self._query_all("SELECT * FROM books ORDER BY id ASC")
            return tuple(self._row_to_book(row) for row in rows)

    def get_book(self, book_id: int) -> Optional[Book]:
        with self._lock:
            row = self._query_one("SELECT * FROM books WHERE book_id = ?", (book_id,))
            if row:
                return self._row_to_book(row)
            return None

    def get_fingerprint(self) -> Optional[str]:
        with self._lock:
            row = self._query_one(
                "SELECT value FROM metadata WHERE key = ?", (FINGERPRINT_KEY,)
            )
            return row["value"] if row else None

    def replace_all(self, books: Iterable[Book], fingerprint: str) -> None:
        """
        Replace every stored book and the fingerprint in one transaction.

        Args:
            books: The new snapshot
            fingerprint: Fingerprint of the new snapshot

        Raises:
            StorageError: If any step failed; the previous snapshot and
                fingerprint are left in place
        """
        books = tuple(books)

        with self._lock:
            cursor = self.conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")
                self._delete_all(cursor)
                self._insert_books(cursor, books)
                self._write_fingerprint(cursor, fingerprint)
                cursor.execute("COMMIT")
            except Exception as e:
                self._rollback(cursor)
                logger.error(f"Replace failed, rolled back: {e}")
                raise StorageError(f"Failed to replace stored snapshot: {e}") from e
            except BaseException:
                self._rollback(cursor)
                raise

        logger.info(f"Committed snapshot of {len(books)} books ({fingerprint[:12]}...)")

    def clear(self) -> None:
        with self._lock:
            cursor = self.conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")
                self._delete_all(cursor)
                cursor.execute("COMMIT")
            except Exception as e:
                self._rollback(cursor)
                raise StorageError(f"Failed to clear content store: {e}") from e
            except BaseException:
                self._rollback(cursor)
                raise

        logger.info("Cleared content store")

    def _delete_all(self, cursor: sqlite3.Cursor) -> None:
        cursor.execute("DELETE FROM books")
        cursor.execute("DELETE FROM metadata WHERE key = ?", (FINGERPRINT_KEY,))

    def _insert_books(self, cursor: sqlite3.Cursor, books: Sequence[Book]) -> None:
        cursor.executemany("""
            INSERT INTO books (book_id, name, abbreviation, total_chapters, chapters_json)
            VALUES (?, ?, ?, ?, ?)
        """, [
            (
                book.book_id,
                book.name,
                book.abbreviation,
                book.total_chapters,
                json.dumps([c.to_dict() for c in book.chapters], ensure_ascii=False),
            )
            for book in books
        ])

    def _write_fingerprint(self, cursor: sqlite3.Cursor, fingerprint: str) -> None:
        cursor.execute(
            "INSERT INTO metadata (key, value) VALUES (?, ?)",
            (FINGERPRINT_KEY, fingerprint),
        )

    def _rollback(self, cursor: sqlite3.Cursor) -> None:
        if not self.conn.in_transaction:
            return
        try:
            cursor.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.error(f"Rollback failed: {e}")

    def _query_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Content store read failed: {e}") from e

    def _query_all(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Content store read failed: {e}") from e

    def _row_to_book(self, row: sqlite3.Row) -> Book:
        """Convert a database row to a Book object."""
        try:
            chapters = tuple(
                Chapter.from_dict(item) for item in json.loads(row["chapters_json"])
            )
        except (ValueError, ParseError) as e:
            raise StorageError(f"Corrupt chapters for book {row['book_id']}: {e}") from e

        return Book(
            book_id=row["book_id"],
            name=row["name"],
            abbreviation=row["abbreviation"],
            total_chapters=row["total_chapters"],
            chapters=chapters,
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.debug("Closed SQLite content store connection")

    def __enter__(self) -> "SqliteContentStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
