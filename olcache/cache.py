"""Cache-aside resolution over the local store."""
from typing import Any, Callable, List, TypeVar
import logging

from olcache.errors import DependencyFailure, InvalidArgument

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheAside:
    """
    Check the store, else fetch from upstream and persist.

    The store must provide ``transaction()``; the miss path (fetch and
    persist) runs inside one transaction per call.
    """

    def __init__(self, store):
        self.store = store

    def resolve(
        self,
        key: str,
        lookup: Callable[[str], List[T]],
        fetch: Callable[[str], Any],
        persist: Callable[[str, Any], List[T]]
    ) -> List[T]:
        """
        Resolve ``key`` through the store, falling back to upstream.

        Args:
            key: Lookup key (author name or normalized author id)
            lookup: Store query; a non-empty result is a hit
            fetch: Upstream call, run only on a miss
            persist: Writes the upstream payload and returns stored rows

        Returns:
            Stored rows for the key

        Raises:
            DependencyFailure: if the store lookup or the fetch fails, or
                persisting or committing fails
        """
        try:
            cached = lookup(key)
        except Exception as e:
            logger.error(f"Store lookup failed for {key!r}: {e}")
            raise DependencyFailure(f"Store lookup failed for {key!r}", e) from e

        if cached:
            logger.info(f"Cache hit: {key!r} ({len(cached)} rows)")
            return cached

        logger.info(f"Cache miss: {key!r} - fetching from Open Library")
        return self.load(key, fetch, persist)

    def load(
        self,
        key: str,
        fetch: Callable[[str], Any],
        persist: Callable[[str, Any], List[T]]
    ) -> List[T]:
        """Fetch from upstream and persist in one transaction, skipping the store lookup."""
        try:
            with self.store.transaction():
                try:
                    payload = fetch(key)
                except Exception as e:
                    logger.error(f"Upstream fetch failed for {key!r}: {e}")
                    raise DependencyFailure(f"Upstream fetch failed for {key!r}", e) from e

                return persist(key, payload)
        except (InvalidArgument, DependencyFailure):
            raise
        except Exception as e:
            # persist errors and a failed commit both land here
            logger.error(f"Persisting results for {key!r} failed: {e}")
            raise DependencyFailure(f"Persisting results for {key!r} failed", e) from e
