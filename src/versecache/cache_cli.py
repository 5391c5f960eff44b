#!/usr/bin/env python3
"""
CLI for the offline content cache.

Usage:
    versecache sync https://example.com/bible.json [--dry-run] [--json]
    versecache status
    versecache books
    versecache chapters John
    versecache verses John 1
    versecache clear
    versecache prefs --book Romans --chapter 8
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import CacheConfig
from .core.content_store import ContentStore
from .core.errors import SyncInProgressError, VerseCacheError
from .preferences import PreferenceStore
from .query import QueryFacade
from .sources import create_source
from .store import create_content_store
from .sync import SyncCoordinator


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def open_store(args, config: CacheConfig) -> ContentStore:
    return create_content_store(args.db or config.db_path)


def resolve_book_id(facade: QueryFacade, ref: str) -> Optional[int]:
    """Resolve a book id or name to a book id."""
    if ref.isdigit():
        return int(ref)
    book = facade.find_book(ref)
    return book.book_id if book else None


def cmd_sync(args, config: CacheConfig) -> int:
    """Fetch the source document and refresh the cache if it changed."""
    url = args.url or config.source_url
    if not url:
        logger.error("No source URL given (pass URL or set VERSECACHE_SOURCE_URL)")
        return 1

    fetch_config = config.get_fetch_config()
    source = create_source(
        url,
        timeout=fetch_config.get("timeout", 30),
        user_agent=fetch_config.get("user_agent"),
    )
    store = None

    try:
        store = open_store(args, config)
        coordinator = SyncCoordinator(store, source, min_books=config.min_books)
        report = coordinator.ensure_fresh(url, dry_run=args.dry_run)

        print(report.summary())

        if args.json:
            print("\n" + json.dumps(report.to_dict(), indent=2))

        return 0 if report.succeeded else 1

    except SyncInProgressError as e:
        logger.error(str(e))
        return 1
    finally:
        source.close()
        if store is not None:
            store.close()


def cmd_status(args, config: CacheConfig) -> int:
    """Show the cached book count and fingerprint."""
    store = open_store(args, config)
    try:
        fingerprint = store.get_fingerprint()
        print(f"Books: {store.count()}")
        print(f"Fingerprint: {fingerprint or '(none)'}")
        return 0
    finally:
        store.close()


def cmd_books(args, config: CacheConfig) -> int:
    """List cached books."""
    store = open_store(args, config)
    try:
        for book in QueryFacade(store).list_books():
            abbreviation = f" ({book.abbreviation})" if book.abbreviation else ""
            print(f"{book.book_id:>3}  {book.name}{abbreviation}  [{book.total_chapters} chapters]")
        return 0
    finally:
        store.close()


def cmd_chapters(args, config: CacheConfig) -> int:
    """List the chapters of a book."""
    store = open_store(args, config)
    try:
        facade = QueryFacade(store)
        book_id = resolve_book_id(facade, args.book)
        chapters = facade.list_chapters(book_id) if book_id is not None else []
        if not chapters:
            logger.error(f"Unknown book: {args.book}")
            return 1
        print(" ".join(str(n) for n in chapters))
        return 0
    finally:
        store.close()


def cmd_verses(args, config: CacheConfig) -> int:
    """Print the verses of a chapter."""
    store = open_store(args, config)
    try:
        facade = QueryFacade(store)
        book_id = resolve_book_id(facade, args.book)
        verses = facade.list_verses(book_id, args.chapter) if book_id is not None else []
        if not verses:
            logger.error(f"Unknown book or chapter: {args.book} {args.chapter}")
            return 1
        for verse in verses:
            print(f"{verse.verse_number} {verse.text}")
        return 0
    finally:
        store.close()


def cmd_clear(args, config: CacheConfig) -> int:
    """Wipe the cached corpus and fingerprint."""
    store = open_store(args, config)
    try:
        store.clear()
        print("Cache cleared")
        return 0
    finally:
        store.close()


def cmd_prefs(args, config: CacheConfig) -> int:
    """Show or update the saved reader selection."""
    prefs_store = PreferenceStore(config.prefs_path)

    if args.chapter is not None and args.chapter < 1:
        logger.error(f"Chapter must be >= 1, got {args.chapter}")
        return 1

    if args.reset:
        prefs = prefs_store.reset()
    else:
        prefs = prefs_store.load()
        changed = False
        if args.book is not None:
            prefs.selected_book = args.book
            prefs.selected_verses = []
            changed = True
        if args.chapter is not None:
            prefs.selected_chapter = args.chapter
            prefs.selected_verses = []
            changed = True
        if args.sidebar is not None:
            prefs.is_sidebar_open = args.sidebar == "open"
            changed = True
        if changed:
            prefs_store.save(prefs)

    print(json.dumps(prefs.to_dict(), indent=2, ensure_ascii=False))
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Offline content cache CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--config", help="Path to configuration YAML file")
    parser.add_argument("--db", help="Path to the cache database (overrides config)")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    sync_parser = subparsers.add_parser("sync", help="Refresh the cache from the source document")
    sync_parser.add_argument("url", nargs="?", help="Source document URL or path")
    sync_parser.add_argument("--dry-run", action="store_true", help="Report without making changes")
    sync_parser.add_argument("--json", action="store_true", help="Output report as JSON")

    subparsers.add_parser("status", help="Show cache status")
    subparsers.add_parser("books", help="List cached books")

    chapters_parser = subparsers.add_parser("chapters", help="List chapters of a book")
    chapters_parser.add_argument("book", help="Book id or name")

    verses_parser = subparsers.add_parser("verses", help="Print verses of a chapter")
    verses_parser.add_argument("book", help="Book id or name")
    verses_parser.add_argument("chapter", type=int, help="Chapter number")

    subparsers.add_parser("clear", help="Wipe the cache")

    prefs_parser = subparsers.add_parser("prefs", help="Show or update the reader selection")
    prefs_parser.add_argument("--book", help="Select a book by name")
    prefs_parser.add_argument("--chapter", type=int, help="Select a chapter")
    prefs_parser.add_argument("--sidebar", choices=["open", "closed"], help="Sidebar state")
    prefs_parser.add_argument("--reset", action="store_true", help="Restore defaults")

    return parser.parse_args(argv)


COMMANDS = {
    "sync": cmd_sync,
    "status": cmd_status,
    "books": cmd_books,
    "chapters": cmd_chapters,
    "verses": cmd_verses,
    "clear": cmd_clear,
    "prefs": cmd_prefs,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(verbose=args.verbose)

    handler = COMMANDS.get(args.command)
    if handler is None:
        print("No command specified. Use --help for usage.", file=sys.stderr)
        return 1

    try:
        config = CacheConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    try:
        return handler(args, config)
    except VerseCacheError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
