"""Author search backed by the local store."""
from typing import List, Optional, Dict, Any
import logging

from olcache.cache import CacheAside
from olcache.models import Author, AuthorSummary
from olcache.parse import parse_author_docs

logger = logging.getLogger(__name__)


class AuthorResolver:
    """Find authors by name, querying Open Library on a local miss."""

    def __init__(self, store, client):
        """
        Args:
            store: Persistence gateway (see olcache.database.Database)
            client: Upstream client (see olcache.client.OpenLibraryClient)
        """
        self.store = store
        self.client = client
        self.cache = CacheAside(store)

    def search_authors(self, name: Optional[str]) -> List[AuthorSummary]:
        """
        Search authors whose name contains ``name`` (case-insensitive).

        Args:
            name: Free text; empty string matches every stored author

        Returns:
            Author summaries, in store order on a hit or upstream order on a miss

        Raises:
            DependencyFailure: if Open Library or the store fails on a miss
        """
        authors = self.cache.resolve(
            name or "",
            lookup=self.store.find_authors_by_name,
            fetch=self.client.search_authors,
            persist=self._save_search_results
        )
        return [AuthorSummary.from_author(a) for a in authors]

    def _save_search_results(self, name: str, response: Optional[Dict[str, Any]]) -> List[Author]:
        if not response or not response.get("numFound"):
            logger.warning(f"No authors found in Open Library for name: {name!r}")
            return []

        saved = [self.store.save_author(author) for author in parse_author_docs(response)]
        logger.info(f"Saved {len(saved)} authors from Open Library")
        return saved
