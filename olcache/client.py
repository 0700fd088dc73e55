"""HTTP client for the Open Library API."""
import time
import random
import requests
from typing import Optional, Dict, Any
from urllib.parse import quote
import logging

from olcache.errors import UpstreamError
from olcache.identifiers import normalize_author_id

logger = logging.getLogger(__name__)


class OpenLibraryClient:
    """Client for Open Library with timeouts and optional retries."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 10,
        max_retries: int = 1,
        base_backoff: float = 1.0
    ):
        """
        Initialize Open Library API client.

        Args:
            base_url: API root, e.g. https://openlibrary.org
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts per request
            base_backoff: Base delay for exponential backoff
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()

    def search_authors(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Search authors by name.

        Args:
            name: Free-text author name

        Returns:
            ``{"numFound": int, "docs": [...]}`` or None if not found
        """
        url = f"{self.base_url}/search/authors.json?q={quote(name or '', safe='')}"
        return self._get_json(url)

    def get_author_works(self, author_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the works list of an author.

        Args:
            author_id: Author identifier in any accepted shape

        Returns:
            ``{"entries": [...]}`` or None if the author is unknown
        """
        url = f"{self.base_url}{normalize_author_id(author_id)}/works.json"
        return self._get_json(url)

    def get_author(self, author_id: str) -> Optional[Dict[str, Any]]:
        """Fetch author details (``name`` among others)."""
        url = f"{self.base_url}{normalize_author_id(author_id)}.json"
        return self._get_json(url)

    def _get_json(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Make HTTP GET request with retry logic.

        Args:
            url: Request URL

        Returns:
            Response JSON, or None on 404

        Raises:
            UpstreamError: on client errors, malformed JSON, or when all
                attempts are exhausted
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(url, timeout=self.timeout)

                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise UpstreamError(f"Malformed JSON: {e}", url, response.status_code) from e

                elif response.status_code == 404:
                    logger.warning(f"Not found (404): {url}")
                    return None

                elif response.status_code == 429 or response.status_code >= 500:
                    # Rate limited or server error - retryable
                    logger.warning(f"Status {response.status_code} on attempt {attempt + 1}")
                    last_error = UpstreamError(
                        f"Upstream returned {response.status_code}", url, response.status_code
                    )

                else:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}): {response.text}")
                    raise UpstreamError(
                        f"Upstream returned {response.status_code}", url, response.status_code
                    )

            except requests.exceptions.Timeout as e:
                logger.warning(f"Timeout on attempt {attempt + 1}")
                last_error = UpstreamError(f"Timeout: {e}", url)

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                last_error = UpstreamError(f"Connection error: {e}", url)

            if attempt < self.max_retries - 1:
                self._backoff(attempt)

        logger.error(f"All {self.max_retries} attempts failed: {url}")
        raise last_error

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        delay = self.base_backoff * (2 ** attempt)
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
