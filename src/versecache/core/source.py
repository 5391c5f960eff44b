"""
Snapshot source interface for fetching the source-of-truth document.
"""

from abc import ABC, abstractmethod

from .models import Snapshot


class SnapshotSource(ABC):
    """
    Abstract base class for snapshot sources.

    Sources retrieve the remote document and parse it into a Snapshot.
    They make a single attempt and report failures as exceptions.
    """

    @abstractmethod
    def fetch(self, location: str) -> Snapshot:
        """
        Fetch and parse the document at a location.

        Args:
            location: URL or path of the document

        Returns:
            The parsed snapshot

        Raises:
            FetchError: If the document could not be retrieved
            ParseError: If the document is not a valid snapshot
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return the source name."""
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
