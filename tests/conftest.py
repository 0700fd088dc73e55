"""Shared fakes for the store and the Open Library client."""
from contextlib import contextmanager

import pytest


class FakeStore:
    """In-memory stand-in for olcache.database.Database."""

    def __init__(self):
        self.authors = {}
        self.works = {}
        self.saved = []
        self.fail_work_ids = set()
        self.fail_author_save = False
        self.commits = 0
        self.rollbacks = 0

    def find_authors_by_name(self, substring):
        needle = substring.lower()
        return [
            a for a in self.authors.values()
            if a.author_name is not None and needle in a.author_name.lower()
        ]

    def find_author(self, author_id):
        return self.authors.get(author_id)

    def find_works_by_author(self, author_id):
        return [w for w in self.works.values() if w.has_author(author_id)]

    def find_work(self, work_id):
        return self.works.get(work_id)

    def save_author(self, author):
        self.saved.append(author)
        if self.fail_author_save:
            raise RuntimeError("insert into authors failed")
        self.authors[author.author_id] = author
        return author

    def save_work(self, work):
        self.saved.append(work)
        if work.work_id in self.fail_work_ids:
            raise RuntimeError(f"insert into works failed for {work.work_id}")
        self.works[work.work_id] = work
        return work

    @property
    def saved_works(self):
        return [e for e in self.saved if hasattr(e, "work_id")]

    @property
    def saved_authors(self):
        return [e for e in self.saved if not hasattr(e, "work_id")]

    @contextmanager
    def transaction(self):
        try:
            yield
            self.commits += 1
        except Exception:
            self.rollbacks += 1
            raise

    @contextmanager
    def savepoint(self, name="entry"):
        yield


class FakeClient:
    """Canned Open Library responses; an Exception value is raised instead."""

    def __init__(self, search=None, works=None, author=None):
        self.search_response = search
        self.works_response = works
        self.author_response = author
        self.calls = []

    def _answer(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    def search_authors(self, name):
        self.calls.append(("search_authors", name))
        return self._answer(self.search_response)

    def get_author_works(self, author_id):
        self.calls.append(("get_author_works", author_id))
        return self._answer(self.works_response)

    def get_author(self, author_id):
        self.calls.append(("get_author", author_id))
        return self._answer(self.author_response)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client():
    return FakeClient()
