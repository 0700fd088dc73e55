"""Parse and normalize Open Library API responses."""
from typing import Dict, Any, List, Optional
import logging

from olcache.errors import EntrySkipped
from olcache.models import Author, Work, UNKNOWN_TITLE, UNKNOWN_AUTHOR

logger = logging.getLogger(__name__)


def extract_work_id(entry: Dict[str, Any]) -> Optional[str]:
    """Work key of an entry, or None when the entry has no key."""
    key = entry.get("key")
    if key is None:
        return None
    return str(key)


def extract_title(entry: Dict[str, Any]) -> str:
    """Title of an entry, falling back to a placeholder."""
    title = entry.get("title")
    if title is None:
        return UNKNOWN_TITLE
    return str(title)


def extract_description(entry: Dict[str, Any]) -> Optional[str]:
    """
    Plain-text description of an entry.

    Open Library sends either a string or ``{"type": ..., "value": ...}``.

    Args:
        entry: Single work entry

    Returns:
        Description text or None
    """
    desc = entry.get("description")
    if isinstance(desc, str):
        return desc
    if isinstance(desc, dict) and desc.get("value") is not None:
        return str(desc["value"])
    return None


def extract_subjects(entry: Dict[str, Any]) -> List[str]:
    """String subjects of an entry in upstream order."""
    subjects = entry.get("subjects")
    if not isinstance(subjects, list):
        return []
    return [s for s in subjects if isinstance(s, str)]


def extract_covers(entry: Dict[str, Any]) -> List[int]:
    """Numeric cover ids of an entry in upstream order."""
    covers = entry.get("covers")
    if not isinstance(covers, list):
        return []

    result = []
    for cover in covers:
        # bool is an int subclass
        if isinstance(cover, bool):
            continue
        if isinstance(cover, int):
            result.append(cover)
        elif isinstance(cover, float) and cover.is_integer():
            result.append(int(cover))
    return result


def parse_work_entry(entry: Any) -> Work:
    """
    Build an unsaved Work from one entry of ``/authors/{id}/works.json``.

    Args:
        entry: Single item of the ``entries`` array

    Returns:
        Work without author links

    Raises:
        EntrySkipped: if the entry is not an object or has no key
    """
    if not isinstance(entry, dict):
        raise EntrySkipped(f"Work entry is not an object: {entry!r}")

    work_id = extract_work_id(entry)
    if not work_id:
        raise EntrySkipped("No key found in work entry")

    return Work(
        work_id=work_id,
        title=extract_title(entry),
        description=extract_description(entry),
        subjects=extract_subjects(entry),
        covers=extract_covers(entry)
    )


def extract_entries(response_json: Optional[Dict[str, Any]]) -> List[Any]:
    """The ``entries`` array of a works response (empty if missing)."""
    if not isinstance(response_json, dict):
        return []
    entries = response_json.get("entries")
    if not isinstance(entries, list):
        return []
    return entries


def extract_author_name(response_json: Optional[Dict[str, Any]]) -> str:
    """Display name from ``/authors/{id}.json``, or a placeholder."""
    if isinstance(response_json, dict) and response_json.get("name") is not None:
        return str(response_json["name"])
    return UNKNOWN_AUTHOR


def parse_author_docs(response_json: Dict[str, Any]) -> List[Author]:
    """
    Parse the ``docs`` array of ``/search/authors.json``.

    Args:
        response_json: Complete API response JSON

    Returns:
        List of unsaved Author objects (docs without a key are dropped)
    """
    docs = response_json.get("docs") or []
    authors = []

    for doc in docs:
        if not isinstance(doc, dict) or not doc.get("key"):
            logger.warning(f"Skipping author doc without key: {doc!r}")
            continue
        authors.append(Author(author_id=str(doc["key"]), author_name=doc.get("name")))

    return authors


def deduplicate_works(works: List[Work]) -> List[Work]:
    """
    Remove duplicate works by ID.

    Args:
        works: List of Work objects

    Returns:
        Deduplicated list of works, first occurrence kept
    """
    seen_ids = set()
    unique_works = []

    for work in works:
        if work.work_id not in seen_ids:
            seen_ids.add(work.work_id)
            unique_works.append(work)

    return unique_works
