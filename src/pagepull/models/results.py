"""Result types produced by the fetch, extract and link operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

# Value of one extracted field
FieldValue = Union[None, str, list[str]]


class SnapshotOutcome(str, Enum):
    """How the snapshot retry loop ended."""

    OK = "ok"
    EXHAUSTED = "exhausted"


@dataclass
class PageSnapshot:
    """
    Title and HTML read from a live page.

    Attributes:
        title: Document title ("Untitled" if it could not be read)
        html: Full serialized document, possibly empty
        outcome: Whether the read succeeded or retries ran out
        attempts: Number of attempts used
        late: True if taken after a navigation timeout
    """

    title: str = "Untitled"
    html: str = ""
    outcome: SnapshotOutcome = SnapshotOutcome.OK
    attempts: int = 0
    late: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.html or not self.html.strip()


@dataclass
class FetchResult:
    """Outcome of a fetch request."""

    success: bool
    content: str
    error: Optional[str] = None

    @classmethod
    def failure(cls, url: str, cause: str) -> "FetchResult":
        """Build a failed result with the standard error payload."""
        content = (
            f"Title: Error\nURL: {url}\nContent:\n\n"
            f"<error>Failed to retrieve web page content: {cause}</error>"
        )
        return cls(success=False, content=content, error=cause)


@dataclass(frozen=True)
class LinkRecord:
    """A harvested hyperlink."""

    url: str
    title: str = ""

    def to_dict(self) -> dict:
        return {"url": self.url, "title": self.title}


@dataclass
class PaginatedLinks:
    """
    One page of harvested links.

    ``count`` always equals ``len(links)``.
    """

    origin: str
    has_more: bool
    links: list[LinkRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.links)

    def to_dict(self) -> dict:
        """Convert to the JSON payload shape."""
        return {
            "origin": self.origin,
            "count": self.count,
            "has_more": self.has_more,
            "links": [link.to_dict() for link in self.links],
        }
