"""Tests for the author search resolver."""
import pytest

from olcache.authors import AuthorResolver
from olcache.errors import DependencyFailure, UpstreamError
from olcache.models import Author, AuthorSummary


def test_store_hit_skips_upstream(store, client):
    """Test that stored matches are returned without calling Open Library."""
    store.save_author(Author("/authors/OL1A", "Jane Austen"))
    store.save_author(Author("/authors/OL2A", "Austen Jones"))
    store.saved.clear()

    result = AuthorResolver(store, client).search_authors("AUSTEN")

    assert result == [
        AuthorSummary("/authors/OL1A", "Jane Austen"),
        AuthorSummary("/authors/OL2A", "Austen Jones"),
    ]
    assert client.calls == []
    assert store.saved == []


def test_empty_name_matches_stored_authors(store, client):
    """Test that an empty query is valid and matches every stored name."""
    store.save_author(Author("/authors/OL1A", "Jane Austen"))

    result = AuthorResolver(store, client).search_authors("")

    assert [a.author_id for a in result] == ["/authors/OL1A"]
    assert client.calls == []


def test_miss_with_no_upstream_matches(store, client):
    """Test numFound=0 yields an empty list and nothing is saved."""
    client.search_response = {"numFound": 0, "docs": []}

    result = AuthorResolver(store, client).search_authors("Nobody")

    assert result == []
    assert store.saved == []
    assert client.calls == [("search_authors", "Nobody")]


def test_miss_fetches_and_saves(store, client):
    """Test search against an empty store persists the upstream author."""
    client.search_response = {
        "numFound": 1,
        "docs": [{"key": "/authors/A1", "name": "Elbek Umarov"}]
    }

    result = AuthorResolver(store, client).search_authors("Elbek")

    assert [a.to_dict() for a in result] == [{"authorId": "/authors/A1", "authorName": "Elbek Umarov"}]
    assert len(store.saved) == 1
    assert store.commits == 1


def test_miss_keeps_upstream_order(store, client):
    """Test summaries come back in the order Open Library sent them."""
    client.search_response = {
        "numFound": 2,
        "docs": [
            {"key": "/authors/Z9", "name": "Zed"},
            {"key": "/authors/A1", "name": "Abe"},
        ]
    }

    result = AuthorResolver(store, client).search_authors("e")

    assert [a.author_id for a in result] == ["/authors/Z9", "/authors/A1"]


def test_second_search_served_from_store(store, client):
    """Test saved results satisfy the next identical search."""
    client.search_response = {"numFound": 1, "docs": [{"key": "/authors/A1", "name": "Elbek Umarov"}]}
    resolver = AuthorResolver(store, client)

    resolver.search_authors("Elbek")
    resolver.search_authors("elbek")

    assert client.calls == [("search_authors", "Elbek")]
    assert len(store.authors) == 1


def test_upstream_failure_is_dependency_failure(store, client):
    """Test an unreachable Open Library surfaces as DependencyFailure."""
    cause = UpstreamError("Connection error", "https://openlibrary.org/search/authors.json?q=x")
    client.search_response = cause

    with pytest.raises(DependencyFailure) as exc_info:
        AuthorResolver(store, client).search_authors("x")

    assert exc_info.value.cause is cause
    assert store.rollbacks == 1


def test_save_failure_fails_whole_search(store, client):
    """Test a failing insert aborts the search."""
    client.search_response = {"numFound": 1, "docs": [{"key": "/authors/A1", "name": "A"}]}
    store.fail_author_save = True

    with pytest.raises(DependencyFailure):
        AuthorResolver(store, client).search_authors("A")

    assert store.commits == 0
    assert store.rollbacks == 1
