"""Data models for authors and works."""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from olcache.identifiers import author_path_id

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"


@dataclass
class Author:
    """Author row keyed by the Open Library author key."""
    author_id: str
    author_name: Optional[str] = None


@dataclass
class Work:
    """Work row keyed by the Open Library work key."""
    work_id: str
    title: str = UNKNOWN_TITLE
    description: Optional[str] = None
    subjects: List[str] = field(default_factory=list)
    covers: List[int] = field(default_factory=list)
    authors: List[Author] = field(default_factory=list)

    def has_author(self, author_id: str) -> bool:
        """Check whether the author is already linked."""
        return any(a.author_id == author_id for a in self.authors)

    def link_author(self, author: Author) -> bool:
        """
        Append an author link if missing.

        Returns:
            True if the link was added
        """
        if self.has_author(author.author_id):
            return False
        self.authors.append(author)
        return True


@dataclass(frozen=True)
class AuthorSummary:
    """Author as returned to callers."""
    author_id: str
    author_name: Optional[str]

    @classmethod
    def from_author(cls, author: Author) -> "AuthorSummary":
        return cls(author_id=author.author_id, author_name=author.author_name)

    def to_dict(self) -> Dict[str, Any]:
        return {"authorId": self.author_id, "authorName": self.author_name}


@dataclass(frozen=True)
class WorkSummary:
    """Work as returned to callers."""
    work_id: str
    title: str
    description: Optional[str]
    subjects: List[str]
    covers: List[int]
    authors: List[AuthorSummary]

    @classmethod
    def from_work(cls, work: Work) -> "WorkSummary":
        return cls(
            work_id=work.work_id,
            title=work.title,
            description=work.description,
            subjects=list(work.subjects),
            covers=list(work.covers),
            authors=[AuthorSummary.from_author(a) for a in work.authors]
        )

    @property
    def subjects_str(self) -> str:
        """Format subjects as comma-separated string."""
        return ", ".join(self.subjects) if self.subjects else "None"

    @property
    def authors_str(self) -> str:
        """Format author names as comma-separated string, bare id when unnamed."""
        names = [a.author_name or author_path_id(a.author_id) for a in self.authors]
        return ", ".join(names) if names else "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workId": self.work_id,
            "title": self.title,
            "description": self.description,
            "subjects": self.subjects,
            "covers": self.covers,
            "authors": [a.to_dict() for a in self.authors]
        }
