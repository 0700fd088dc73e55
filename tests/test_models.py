"""Tests for models and result summaries."""
from olcache.models import Author, Work, AuthorSummary, WorkSummary


def test_link_author_is_append_only():
    """Test linking adds a missing author once and keeps order."""
    work = Work("/works/OL1W", "T", authors=[Author("/authors/OL1A", "A")])

    assert work.link_author(Author("/authors/OL2A", "B")) is True
    assert work.link_author(Author("/authors/OL1A", "A renamed")) is False
    assert [a.author_id for a in work.authors] == ["/authors/OL1A", "/authors/OL2A"]
    assert work.authors[0].author_name == "A"


def test_work_summary_to_dict():
    """Test the summary uses the camel-case response names."""
    work = Work(
        "/works/OL1W", "T", "D", ["S"], [1],
        authors=[Author("/authors/OL1A", None)]
    )

    assert WorkSummary.from_work(work).to_dict() == {
        "workId": "/works/OL1W",
        "title": "T",
        "description": "D",
        "subjects": ["S"],
        "covers": [1],
        "authors": [{"authorId": "/authors/OL1A", "authorName": None}]
    }


def test_summary_is_a_copy():
    """Test later changes to the entity don't leak into a summary."""
    work = Work("/works/OL1W", "T", subjects=["S"])
    summary = WorkSummary.from_work(work)

    work.subjects.append("Other")
    work.link_author(Author("/authors/OL1A", "A"))

    assert summary.subjects == ["S"]
    assert summary.authors == []


def test_author_summary_from_author():
    """Test author mapping keeps id and name."""
    assert AuthorSummary.from_author(Author("/authors/A1", "Elbek Umarov")) == AuthorSummary(
        "/authors/A1", "Elbek Umarov"
    )


def test_display_helpers():
    """Test comma-separated display strings on work summaries."""
    work = Work(
        "/works/OL1W", "T", subjects=["A", "B"],
        authors=[Author("/authors/OL1A", None), Author("/authors/OL2A", "Named")]
    )
    summary = WorkSummary.from_work(work)

    assert summary.subjects_str == "A, B"
    assert summary.authors_str == "OL1A, Named"
    assert WorkSummary.from_work(Work("/works/OL2W")).subjects_str == "None"
    assert WorkSummary.from_work(Work("/works/OL2W")).authors_str == "Unknown"
