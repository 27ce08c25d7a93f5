"""Content conversion for pagepull (sanitizing, main content, Markdown)."""

from .extractor import MainContentExtractor
from .formatter import MIN_CONTENT_LENGTH, ContentFormatter
from .markdown import HtmlToMarkdown
from .protocols import ContentExtractor, MarkdownConverter, Sanitizer
from .sanitizer import EXCLUDE_SELECTORS, HtmlSanitizer

__all__ = [
    # Protocols
    "ContentExtractor",
    "MarkdownConverter",
    "Sanitizer",
    # Implementations
    "ContentFormatter",
    "HtmlSanitizer",
    "HtmlToMarkdown",
    "MainContentExtractor",
    # Constants
    "EXCLUDE_SELECTORS",
    "MIN_CONTENT_LENGTH",
]
