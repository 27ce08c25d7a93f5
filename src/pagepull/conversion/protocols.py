"""Structural interfaces for the HTML reduction stages."""

from typing import Protocol


class Sanitizer(Protocol):
    """Strips noise from raw page HTML. Must return the input unchanged on failure."""

    def clean(self, html: str, base_url: str) -> str: ...


class ContentExtractor(Protocol):
    """
    Picks the readable article out of a cleaned page.

    Returns "" when the page has nothing article-like, so callers can fall
    back to the whole document.
    """

    def extract(self, html: str, url: str) -> str: ...


class MarkdownConverter(Protocol):
    """Renders HTML as Markdown, with links made absolute against ``url``."""

    def convert(self, html: str, url: str) -> str: ...
