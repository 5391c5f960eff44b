"""
Read-only query interface over the committed snapshot.

The facade holds no copies of its own; every call reads the store, so
results always reflect the most recently committed snapshot. It never
triggers a sync.
"""

import logging
from typing import List, Optional

from ..core.content_store import ContentStore
from ..core.models import Book, Verse


logger = logging.getLogger(__name__)


class QueryFacade:
    """
    Accessors used by view-state consumers.

    Example:
        >>> facade = QueryFacade(store)
        >>> [b.name for b in facade.list_books()][:2]
        ['Genesis', 'Exodus']
        >>> facade.list_chapters(43)[:3]
        [1, 2, 3]
    """

    def __init__(self, store: ContentStore):
        self.store = store

    def list_books(self) -> List[Book]:
        """Return every book in storage order."""
        return list(self.store.get_all_books())

    def list_chapters(self, book_id: int) -> List[int]:
        """
        Return the chapter numbers of a book, in document order.

        Unknown books yield an empty list.
        """
        book = self.store.get_book(book_id)
        if book is None:
            logger.debug(f"No book with id {book_id}")
            return []
        return [chapter.chapter_number for chapter in book.chapters]

    def list_verses(self, book_id: int, chapter_number: int) -> List[Verse]:
        """
        Return the verses of a chapter, in document order.

        Unknown books or chapters yield an empty list.
        """
        book = self.store.get_book(book_id)
        if book is None:
            return []
        chapter = book.get_chapter(chapter_number)
        if chapter is None:
            return []
        return list(chapter.verses)

    def get_verse(self, book_id: int, chapter_number: int, verse_number: int) -> Optional[Verse]:
        for verse in self.list_verses(book_id, chapter_number):
            if verse.verse_number == verse_number:
                return verse
        return None

    def find_book(self, name: str) -> Optional[Book]:
        """Find a book by name or abbreviation, ignoring case."""
        wanted = name.strip().casefold()
        for book in self.store.get_all_books():
            if book.name.casefold() == wanted or (
                book.abbreviation and book.abbreviation.casefold() == wanted
            ):
                return book
        return None
