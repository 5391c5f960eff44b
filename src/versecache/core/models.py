"""
Core data models for the content cache.

A snapshot is an ordered tuple of books; each book owns its chapters and
each chapter owns its verses. Models are frozen so a snapshot cannot change
after it has been fingerprinted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import ParseError


# Field aliases: the canonical camelCase key first, then the spellings used
# by the published corpus documents.
_BOOK_ID_KEYS = ("bookId", "BookID")
_NAME_KEYS = ("name", "BookName")
_ABBREVIATION_KEYS = ("abbreviation", "Abbreviation")
_TOTAL_CHAPTERS_KEYS = ("totalChapters", "TotalChapters")
_CHAPTERS_KEYS = ("chapters", "Chapters")
_CHAPTER_NUMBER_KEYS = ("chapterNumber", "ChapterNumber")
_VERSES_KEYS = ("verses", "Verses")
_VERSE_NUMBER_KEYS = ("verseNumber", "VerseNumber")
_TEXT_KEYS = ("text", "Text")

_MISSING = object()


def _pick(data: Dict[str, Any], keys: Tuple[str, ...], default: Any = _MISSING) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    if default is _MISSING:
        raise ParseError(f"Missing required field '{keys[0]}'")
    return default


def _require_int(value: Any, name: str, positive: bool = False) -> int:
    # bool is a subclass of int but never a valid number here
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"Field '{name}' must be an integer, got {type(value).__name__}")
    if positive and value < 1:
        raise ParseError(f"Field '{name}' must be >= 1, got {value}")
    return value


def _require_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ParseError(f"Field '{name}' must be a string, got {type(value).__name__}")
    return value


def _require_list(value: Any, name: str) -> List[Any]:
    if not isinstance(value, list):
        raise ParseError(f"Field '{name}' must be an array, got {type(value).__name__}")
    return value


def _require_object(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ParseError(f"{name} must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Verse:
    """A single numbered verse."""
    verse_number: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"verseNumber": self.verse_number, "text": self.text}

    @classmethod
    def from_dict(cls, data: Any) -> "Verse":
        data = _require_object(data, "Verse")
        return cls(
            verse_number=_require_int(_pick(data, _VERSE_NUMBER_KEYS), "verseNumber", positive=True),
            text=_require_str(_pick(data, _TEXT_KEYS), "text"),
        )


@dataclass(frozen=True)
class Chapter:
    """A numbered chapter and its verses, in document order."""
    chapter_number: int
    verses: Tuple[Verse, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chapterNumber": self.chapter_number,
            "verses": [verse.to_dict() for verse in self.verses],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Chapter":
        data = _require_object(data, "Chapter")
        number = _require_int(_pick(data, _CHAPTER_NUMBER_KEYS), "chapterNumber", positive=True)
        raw_verses = _require_list(_pick(data, _VERSES_KEYS, []), "verses")

        verses = tuple(Verse.from_dict(item) for item in raw_verses)
        _reject_duplicates(
            (v.verse_number for v in verses),
            f"verseNumber in chapter {number}",
        )
        return cls(chapter_number=number, verses=verses)

    def get_verse(self, verse_number: int) -> Optional[Verse]:
        for verse in self.verses:
            if verse.verse_number == verse_number:
                return verse
        return None


@dataclass(frozen=True)
class Book:
    """
    A book of the corpus.

    Attributes:
        book_id: Identifier unique within a snapshot
        name: Display name (e.g., 'John')
        abbreviation: Short name (e.g., 'JHN'); may be empty
        total_chapters: Declared chapter count
        chapters: Chapters in document order
    """
    book_id: int
    name: str
    abbreviation: str = ""
    total_chapters: int = 0
    chapters: Tuple[Chapter, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the canonical camelCase dictionary."""
        return {
            "bookId": self.book_id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "totalChapters": self.total_chapters,
            "chapters": [chapter.to_dict() for chapter in self.chapters],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Book":
        """
        Create from a dictionary.

        Accepts both the camelCase keys produced by to_dict() and the
        PascalCase keys of the published corpus documents.

        Raises:
            ParseError: If a field is missing, mistyped or duplicated
        """
        data = _require_object(data, "Book")
        book_id = _require_int(_pick(data, _BOOK_ID_KEYS), "bookId")
        name = _require_str(_pick(data, _NAME_KEYS), "name")
        abbreviation = _require_str(_pick(data, _ABBREVIATION_KEYS, ""), "abbreviation")
        raw_chapters = _require_list(_pick(data, _CHAPTERS_KEYS, []), "chapters")

        chapters = tuple(Chapter.from_dict(item) for item in raw_chapters)
        _reject_duplicates(
            (c.chapter_number for c in chapters),
            f"chapterNumber in book {book_id}",
        )

        total = _pick(data, _TOTAL_CHAPTERS_KEYS, None)
        total_chapters = len(chapters) if total is None else _require_int(total, "totalChapters")

        return cls(
            book_id=book_id,
            name=name,
            abbreviation=abbreviation,
            total_chapters=total_chapters,
            chapters=chapters,
        )

    def get_chapter(self, chapter_number: int) -> Optional[Chapter]:
        for chapter in self.chapters:
            if chapter.chapter_number == chapter_number:
                return chapter
        return None

    def verse_count(self) -> int:
        return sum(len(chapter.verses) for chapter in self.chapters)


Snapshot = Tuple[Book, ...]


def _reject_duplicates(values: Iterable[int], label: str) -> None:
    seen = set()
    for value in values:
        if value in seen:
            raise ParseError(f"Duplicate {label}: {value}")
        seen.add(value)


def parse_snapshot(document: Any) -> Snapshot:
    """
    Parse a decoded JSON document into a Snapshot.

    Args:
        document: The decoded JSON value (expected: a list of books)

    Returns:
        Tuple of Book in document order

    Raises:
        ParseError: If the document is not a valid snapshot
    """
    books = tuple(Book.from_dict(item) for item in _require_list(document, "snapshot"))
    _reject_duplicates((b.book_id for b in books), "bookId")
    return books


def snapshot_to_list(books: Iterable[Book]) -> List[Dict[str, Any]]:
    """Convert a snapshot to its canonical list-of-dicts form."""
    return [book.to_dict() for book in books]
