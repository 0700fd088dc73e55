"""Canonical form for Open Library author identifiers."""
from typing import Optional

from olcache.errors import InvalidArgument

AUTHOR_PREFIX = "/authors/"


def normalize_author_id(raw: Optional[str]) -> str:
    """
    Canonicalize an author identifier to ``/authors/<ID>``.

    Accepts ``OL123A``, ``authors/OL123A`` and ``/authors/OL123A``.

    Args:
        raw: Author identifier as given by the caller

    Returns:
        Normalized identifier

    Raises:
        InvalidArgument: if the identifier is None, empty or blank
    """
    if raw is None or not raw.strip():
        raise InvalidArgument("Author ID cannot be null or empty")

    author_id = raw.strip()
    if author_id.startswith(AUTHOR_PREFIX):
        return author_id
    if author_id.startswith(AUTHOR_PREFIX[1:]):
        return "/" + author_id
    return AUTHOR_PREFIX + author_id


def author_path_id(author_id: str) -> str:
    """Bare ``OL123A`` part of an author identifier."""
    return normalize_author_id(author_id)[len(AUTHOR_PREFIX):]
