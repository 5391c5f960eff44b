"""
Local file source, for seeding the cache from a bundled document.
"""

import json
import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

from ..core.errors import FetchError, ParseError
from ..core.models import Snapshot, parse_snapshot
from ..core.source import SnapshotSource


logger = logging.getLogger(__name__)


def location_to_path(location: str) -> Path:
    """Resolve a plain path or a file:// URL to a Path."""
    if location.startswith("file://"):
        return Path(unquote(urlparse(location).path))
    return Path(location)


class FileSnapshotSource(SnapshotSource):
    """Reads a snapshot document from the local filesystem."""

    def __init__(self, name: str = "file", encoding: str = "utf-8"):
        self.name = name
        self.encoding = encoding

    def fetch(self, location: str) -> Snapshot:
        path = location_to_path(location)

        try:
            with open(path, "rb") as f:
                raw = f.read()
        except OSError as e:
            raise FetchError(f"Cannot read snapshot file {path}: {e}") from e

        # UnicodeDecodeError is a ValueError; deep nesting raises RecursionError
        try:
            document = json.loads(raw.decode(self.encoding))
        except (ValueError, RecursionError) as e:
            raise ParseError(f"Snapshot file {path} is not valid JSON: {e}") from e

        logger.debug(f"Read snapshot document from {path}")
        return parse_snapshot(document)

    def get_name(self) -> str:
        return self.name
