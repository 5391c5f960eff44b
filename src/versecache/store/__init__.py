"""
Content store implementations.

The store is constructed once by the caller and passed explicitly to the
sync coordinator and the query facade.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..core.content_store import ContentStore
from .sqlite_store import SqliteContentStore, MEMORY_PATH


logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("local/versecache/bible.db")


def create_content_store(
    db_path: Optional[Union[str, Path]] = None,
    auto_init: bool = True,
) -> ContentStore:
    """
    Factory function to create the content store.

    Args:
        db_path: Path to the SQLite database file, or ':memory:'.
            Defaults to local/versecache/bible.db.
        auto_init: Auto-create tables

    Returns:
        ContentStore instance
    """
    if db_path is None:
        db_path = DEFAULT_DB_PATH

    logger.debug(f"Opening content store at {db_path}")
    return SqliteContentStore(db_path=db_path, auto_init=auto_init)


__all__ = ["SqliteContentStore", "MEMORY_PATH", "DEFAULT_DB_PATH", "create_content_store"]
