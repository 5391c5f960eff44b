"""
Persisted UI preferences: the reader's current selection.

Preferences live in their own JSON file, apart from the corpus database,
and carry no consistency guarantees. A missing or corrupt file silently
falls back to the defaults.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union


logger = logging.getLogger(__name__)

DEFAULT_PREFS_PATH = Path("local/versecache/preferences.json")


@dataclass
class UiPreferences:
    """
    The reader's selection state.

    Attributes:
        selected_book: Name of the selected book
        selected_chapter: Selected chapter number
        selected_verses: Texts of the selected verses
        is_sidebar_open: Whether the book sidebar is shown
    """
    selected_book: str = "John"
    selected_chapter: int = 1
    selected_verses: List[str] = field(default_factory=list)
    is_sidebar_open: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "selectedBook": self.selected_book,
            "selectedChapter": self.selected_chapter,
            "selectedVerses": list(self.selected_verses),
            "isSidebarOpen": self.is_sidebar_open,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UiPreferences":
        """
        Create from dictionary.

        Raises:
            ValueError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError("Preferences must be a JSON object")

        defaults = cls()
        book = data.get("selectedBook", defaults.selected_book)
        chapter = data.get("selectedChapter", defaults.selected_chapter)
        verses = data.get("selectedVerses", defaults.selected_verses)
        sidebar = data.get("isSidebarOpen", defaults.is_sidebar_open)

        if not isinstance(book, str):
            raise ValueError("selectedBook must be a string")
        if isinstance(chapter, bool) or not isinstance(chapter, int) or chapter < 1:
            raise ValueError("selectedChapter must be a positive integer")
        if not isinstance(verses, list) or not all(isinstance(v, str) for v in verses):
            raise ValueError("selectedVerses must be a list of strings")
        if not isinstance(sidebar, bool):
            raise ValueError("isSidebarOpen must be a boolean")

        return cls(
            selected_book=book,
            selected_chapter=chapter,
            selected_verses=list(verses),
            is_sidebar_open=sidebar,
        )


class PreferenceStore:
    """Loads and saves UiPreferences to a JSON file."""

    def __init__(self, path: Union[str, Path] = DEFAULT_PREFS_PATH):
        self.path = Path(path)

    def load(self) -> UiPreferences:
        """
        Load preferences, falling back to defaults.

        Never raises for a missing or unreadable file.
        """
        if not self.path.exists():
            return UiPreferences()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return UiPreferences.from_dict(data)
        except (OSError, ValueError) as e:
            logger.warning(f"Resetting corrupt preferences at {self.path}: {e}")
            return UiPreferences()

    def save(self, prefs: UiPreferences) -> None:
        """Save preferences, replacing the file in one step."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(prefs.to_dict(), f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

        logger.debug(f"Saved preferences to: {self.path}")

    def reset(self) -> UiPreferences:
        """Restore and persist the defaults."""
        prefs = UiPreferences()
        self.save(prefs)
        return prefs
