"""
Content store interface for the persisted corpus and its fingerprint.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .models import Book, Snapshot


FINGERPRINT_KEY = "dataHash"


class ContentStore(ABC):
    """
    Abstract base class for content stores.

    A content store holds exactly one committed snapshot plus the
    fingerprint of that snapshot. The fingerprint, when present, always
    describes the books currently stored.
    """

    @abstractmethod
    def count(self) -> int:
        """Return the number of persisted books."""
        pass

    @abstractmethod
    def get_all_books(self) -> Snapshot:
        """
        Read every persisted book.

        Returns:
            Tuple of Book in storage order
        """
        pass

    @abstractmethod
    def get_book(self, book_id: int) -> Optional[Book]:
        """
        Get a single book by its identifier.

        Args:
            book_id: The book identifier

        Returns:
            Book if found, None otherwise
        """
        pass

    @abstractmethod
    def replace_all(self, books: Iterable[Book], fingerprint: str) -> None:
        """
        Replace the stored snapshot and fingerprint in one transaction.

        Either every old book and the old fingerprint are replaced, or
        nothing changes.

        Args:
            books: The new snapshot
            fingerprint: Fingerprint of the new snapshot

        Raises:
            StorageError: If the transaction failed (the store is unchanged)
        """
        pass

    @abstractmethod
    def get_fingerprint(self) -> Optional[str]:
        """
        Get the fingerprint of the stored snapshot.

        Returns:
            The digest string, or None if no snapshot has been committed
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every book and the fingerprint."""
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
