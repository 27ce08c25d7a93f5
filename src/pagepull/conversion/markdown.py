"""Markdown rendering with html2text."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

import html2text
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MARKDOWN_LINK = re.compile(r"(!?)\[([^\]]*)\]\(([^)\s]+)\)")
ABSOLUTE_PREFIXES = ("#", "http://", "https://", "mailto:", "tel:", "data:")


class HtmlToMarkdown:
    """
    Renders HTML fragments as Markdown.

    Lines are never wrapped and links stay inline, so one paragraph maps to
    one line and a line filter keeps whole sentences.

    Example:
        converter = HtmlToMarkdown()
        markdown = converter.convert("<p>Hi <a href='/x'>there</a></p>", "https://example.com/")
    """

    def __init__(
        self,
        body_width: int = 0,
        ignore_images: bool = False,
        ignore_tables: bool = False,
        mark_code: bool = True,
    ):
        self._body_width = body_width
        self._ignore_images = ignore_images
        self._ignore_tables = ignore_tables
        self._mark_code = mark_code

    def _make_converter(self, base_url: str) -> html2text.HTML2Text:
        # HTML2Text keeps parse state between handle() calls
        converter = html2text.HTML2Text(baseurl=base_url, bodywidth=self._body_width)
        converter.inline_links = True
        converter.wrap_links = False
        converter.protect_links = False
        converter.unicode_snob = True
        converter.escape_snob = True
        converter.ignore_images = self._ignore_images
        converter.ignore_tables = self._ignore_tables
        converter.mark_code = self._mark_code
        converter.default_image_alt = ""
        converter.single_line_break = False
        return converter

    @staticmethod
    def _tidy(markdown: str) -> str:
        """Drop trailing spaces and collapse runs of blank lines."""
        lines = [line.rstrip() for line in markdown.splitlines()]
        return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()

    @staticmethod
    def _absolutize(markdown: str, base_url: str) -> str:
        """Resolve relative link and image targets against the page URL."""

        def resolve(match: re.Match[str]) -> str:
            bang, label, target = match.groups()
            if target.startswith(ABSOLUTE_PREFIXES):
                return match.group(0)
            return f"{bang}[{label}]({urljoin(base_url, target)})"

        return MARKDOWN_LINK.sub(resolve, markdown)

    def convert(self, html: str, url: str) -> str:
        """
        Render ``html`` as Markdown.

        Falls back to the plain text of the document if html2text fails.
        """
        try:
            rendered = self._make_converter(url).handle(html)
        except Exception as e:
            logger.error(f"html2text failed on {url}, using plain text: {e}")
            return BeautifulSoup(html, "html.parser").get_text(separator="\n").strip()

        return self._absolutize(self._tidy(rendered), url)
