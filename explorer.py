#!/usr/bin/env python3
"""Open Library lookup CLI - local cache in front of the Open Library API."""
import argparse
import csv
import sys
import json
from tabulate import tabulate
from olcache.authors import AuthorResolver
from olcache.client import OpenLibraryClient
from olcache.config import Config
from olcache.database import Database
from olcache.errors import InvalidArgument, DependencyFailure
from olcache.works import WorkResolver
import logging

logger = logging.getLogger(__name__)


def setup_database(config: Config) -> Database:
    """Initialize database."""
    db = Database(config.DATABASE_URL)
    db.init_schema()
    return db


def make_client(config: Config) -> OpenLibraryClient:
    """Build the upstream client from configuration."""
    return OpenLibraryClient(
        base_url=config.OPENLIBRARY_BASE_URL,
        timeout=config.DEFAULT_TIMEOUT,
        max_retries=config.DEFAULT_MAX_RETRIES,
        base_backoff=config.DEFAULT_BACKOFF
    )


def truncate(text, width: int) -> str:
    """Shorten text to width characters, adding an ellipsis."""
    text = text or ""
    return text[:width] + "..." if len(text) > width else text


def search_authors(args, config: Config):
    """Search authors by name."""
    db = setup_database(config)

    try:
        with make_client(config) as client:
            resolver = AuthorResolver(db, client)
            authors = resolver.search_authors(args.name)
            logger.info(f"Found {len(authors)} authors")
            display_authors(authors, args.format)
    finally:
        db.close()


def list_works(args, config: Config):
    """List works of an author."""
    db = setup_database(config)

    try:
        with make_client(config) as client:
            resolver = WorkResolver(db, client)
            if args.refresh:
                works = resolver.fetch_and_save_works(args.author_id)
            else:
                works = resolver.get_works_by_author(args.author_id)
            logger.info(f"Found {len(works)} works")
            display_works(works, args.format)
    finally:
        db.close()


def display_authors(authors, format_type: str):
    """Display author summaries in specified format."""
    if format_type == "table":
        rows = [[a.author_id, a.author_name or "Unknown"] for a in authors]
        print("\n" + tabulate(rows, headers=["Author ID", "Name"], tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([a.to_dict() for a in authors], indent=2))

    elif format_type == "compact":
        for i, author in enumerate(authors, 1):
            print(f"{i}. {author.author_name or 'Unknown'} ({author.author_id})")


def display_works(works, format_type: str):
    """Display work summaries in specified format."""
    if format_type == "table":
        headers = ["Work ID", "Title", "Authors", "Subjects", "Covers"]
        rows = [
            [
                work.work_id,
                truncate(work.title, 50),
                truncate(work.authors_str, 30),
                truncate(work.subjects_str, 30),
                len(work.covers)
            ]
            for work in works
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([w.to_dict() for w in works], indent=2))

    elif format_type == "compact":
        for i, work in enumerate(works, 1):
            print(f"{i}. {work.title} ({work.work_id})")


def show_stats(args, config: Config):
    """Show database statistics."""
    db = setup_database(config)

    try:
        stats = db.get_stats()

        print("\n" + "=" * 50)
        print("DATABASE STATISTICS")
        print("=" * 50)
        print(f"Authors stored: {stats['total_authors']}")
        print(f"Works stored: {stats['total_works']}")
        print(f"Author-work links: {stats['author_work_links']}")
        print("=" * 50 + "\n")

    finally:
        db.close()


def export_data(args, config: Config):
    """Export stored authors."""
    db = setup_database(config)

    try:
        authors = db.list_authors(limit=args.limit or 1000)

        if args.format == "json":
            data = [{"authorId": a.author_id, "authorName": a.author_name} for a in authors]

            if args.output:
                with open(args.output, 'w') as f:
                    json.dump(data, f, indent=2)
                logger.info(f"Exported {len(authors)} authors to {args.output}")
            else:
                print(json.dumps(data, indent=2))

        elif args.format == "csv":
            output_file = args.output or "authors_export.csv"
            with open(output_file, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(["Author ID", "Name"])
                for author in authors:
                    writer.writerow([author.author_id, author.author_name or ""])

            logger.info(f"Exported {len(authors)} authors to {output_file}")

    finally:
        db.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Open Library lookup CLI with a local PostgreSQL cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Find authors by name
  %(prog)s authors "tolkien"

  # Works of an author (any id shape)
  %(prog)s works OL26320A --format json

  # Export stored authors
  %(prog)s export --format csv --output authors.csv
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    authors_parser = subparsers.add_parser("authors", help="Search authors by name")
    authors_parser.add_argument("name", help="Name or part of a name")
    authors_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    works_parser = subparsers.add_parser("works", help="List works of an author")
    works_parser.add_argument("author_id", help="Author id: OL123A, authors/OL123A or /authors/OL123A")
    works_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    works_parser.add_argument("--refresh", action="store_true", help="Always fetch from Open Library and merge")

    subparsers.add_parser("stats", help="Show database statistics")

    export_parser = subparsers.add_parser("export", help="Export stored authors")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")
    export_parser.add_argument("--limit", type=int, help="Limit results")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    commands = {
        "authors": search_authors,
        "works": list_works,
        "stats": show_stats,
        "export": export_data,
    }

    try:
        commands[args.command](args, config)

    except InvalidArgument as e:
        logger.error(f"Invalid argument: {e}")
        sys.exit(2)
    except DependencyFailure as e:
        logger.error(f"Lookup failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
