"""Works-by-author lookup backed by the local store."""
from typing import List, Optional, Dict, Any
import logging

from olcache.cache import CacheAside
from olcache.errors import DegradedLookup, DependencyFailure, EntrySkipped
from olcache.identifiers import normalize_author_id
from olcache.models import Author, Work, WorkSummary, UNKNOWN_AUTHOR
from olcache.parse import (
    parse_work_entry,
    extract_entries,
    extract_author_name,
    deduplicate_works,
)

logger = logging.getLogger(__name__)


class WorkResolver:
    """List an author's works, querying Open Library on a local miss."""

    def __init__(self, store, client):
        """
        Args:
            store: Persistence gateway (see olcache.database.Database)
            client: Upstream client (see olcache.client.OpenLibraryClient)
        """
        self.store = store
        self.client = client
        self.cache = CacheAside(store)

    def get_works_by_author(self, raw_author_id: Optional[str]) -> List[WorkSummary]:
        """
        Works linked to an author, from the store or Open Library.

        Args:
            raw_author_id: ``OL123A``, ``authors/OL123A`` or ``/authors/OL123A``

        Returns:
            Work summaries (empty if the author has no works upstream)

        Raises:
            InvalidArgument: if the identifier is blank
            DependencyFailure: if the works list cannot be fetched or stored
        """
        author_id = normalize_author_id(raw_author_id)
        logger.info(f"Getting works for author: {author_id}")

        works = self.cache.resolve(
            author_id,
            lookup=self.store.find_works_by_author,
            fetch=self.client.get_author_works,
            persist=self._save_works
        )
        return [WorkSummary.from_work(w) for w in works]

    def fetch_and_save_works(self, raw_author_id: Optional[str]) -> List[WorkSummary]:
        """
        Fetch an author's works from Open Library and merge them into the store.

        Unlike get_works_by_author this always calls upstream; already stored
        works only gain a missing author link.
        """
        author_id = normalize_author_id(raw_author_id)
        works = self.cache.load(author_id, self.client.get_author_works, self._save_works)
        return [WorkSummary.from_work(w) for w in works]

    def _save_works(self, author_id: str, response: Optional[Dict[str, Any]]) -> List[Work]:
        if not response:
            logger.warning(f"No response received from Open Library for author: {author_id}")
            return []
        if not isinstance(response, dict):
            raise DependencyFailure(
                f"Unexpected works response for {author_id}: {type(response).__name__}"
            )

        author = self._get_or_create_author(author_id)

        entries = extract_entries(response)
        if not entries:
            logger.warning(f"No works found in Open Library for author: {author_id}")
            return []

        works = []
        for entry in entries:
            try:
                with self.store.savepoint("work_entry"):
                    works.append(self._process_entry(entry, author))
            except EntrySkipped as e:
                logger.warning(f"Skipping work entry: {e}")
            except Exception as e:
                logger.error(f"Error processing work entry: {e}", exc_info=True)

        works = deduplicate_works(works)
        logger.info(f"Fetched {len(works)} works from Open Library for author: {author_id}")
        return works

    def _process_entry(self, entry: Any, author: Author) -> Work:
        work = parse_work_entry(entry)

        existing = self.store.find_work(work.work_id)
        if existing is not None:
            if existing.link_author(author):
                logger.info(f"Linking {author.author_id} to existing work {existing.work_id}")
                return self.store.save_work(existing)
            return existing

        work.link_author(author)
        saved = self.store.save_work(work)
        logger.info(f"Saved work: {saved.work_id} - {saved.title}")
        return saved

    def _get_or_create_author(self, author_id: str) -> Author:
        author = self.store.find_author(author_id)
        if author is not None:
            return author

        logger.info(f"Author not found in local DB, fetching from Open Library: {author_id}")
        try:
            name = self._fetch_author_name(author_id)
        except DegradedLookup as e:
            logger.warning(f"{e.message} ({e.__cause__}); using {UNKNOWN_AUTHOR!r}")
            name = UNKNOWN_AUTHOR

        return self.store.save_author(Author(author_id, name))

    def _fetch_author_name(self, author_id: str) -> str:
        try:
            response = self.client.get_author(author_id)
        except Exception as e:
            raise DegradedLookup(f"Author details unavailable for {author_id}") from e
        return extract_author_name(response)
