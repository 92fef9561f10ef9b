"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class CleanPage:
    """Readable, prompt-ready text extracted from one HTML document."""

    url: str
    title: str
    text: str


@dataclass(frozen=True)
class ScrapedPage:
    """One fetch attempt.

    ``success`` implies non-empty ``content``; a failed page always carries
    an ``error_message``.
    """

    url: str
    success: bool
    content: str = ""
    error_message: str = ""
    title: str = ""

    def __post_init__(self) -> None:
        if self.success and not self.content:
            raise ValueError(f"successful page {self.url!r} has no content")
        if not self.success and not self.error_message:
            raise ValueError(f"failed page {self.url!r} has no error message")

    @classmethod
    def failed(cls, url: str, reason: str) -> "ScrapedPage":
        return cls(url=url, success=False, error_message=reason)


@dataclass
class ScrapeResult:
    """All fetch attempts for one company, in attempt order."""

    pages: List[ScrapedPage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def successful_pages(self) -> List[ScrapedPage]:
        return [p for p in self.pages if p.success]

    @property
    def all_pages_failed(self) -> bool:
        """True when nothing usable came back (including an empty page list)."""
        return not self.successful_pages
