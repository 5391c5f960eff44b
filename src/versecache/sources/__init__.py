"""
Snapshot sources for the remote corpus document.
"""

from typing import Optional

from ..core.source import SnapshotSource
from .file_source import FileSnapshotSource, location_to_path
from .http_source import HttpSnapshotSource


def create_source(
    location: str,
    timeout: int = 30,
    user_agent: Optional[str] = None,
) -> SnapshotSource:
    """
    Pick a source for a location.

    file:// URLs and existing local paths are read from disk; anything
    else is fetched over HTTP.
    """
    if location.startswith("file://") or location_to_path(location).is_file():
        return FileSnapshotSource()
    return HttpSnapshotSource(timeout=timeout, user_agent=user_agent)


__all__ = [
    "FileSnapshotSource",
    "HttpSnapshotSource",
    "create_source",
]
