"""Main content extraction from full page HTML."""

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

logger = logging.getLogger(__name__)

# Extracted articles shorter than this (visible text) count as "nothing found"
MIN_ARTICLE_TEXT = 1


class MainContentExtractor:
    """
    Extracts the primary article subtree from an HTML document.

    Uses readability-lxml scoring, which needs the full document (head
    metadata included), so it should be fed the page HTML before any
    sanitizing.

    Example:
        extractor = MainContentExtractor()
        article_html = extractor.extract(page_html, "https://example.com/post")
        if not article_html:
            ...  # fall back to the cleaned page
    """

    def __init__(self, min_text_length: int = MIN_ARTICLE_TEXT, log_prefix: str = ""):
        """
        Initialize the content extractor.

        Args:
            min_text_length: Minimum visible text for an extraction to count
            log_prefix: Prefix for log messages
        """
        self._min_text_length = min_text_length
        self._log_prefix = log_prefix

    def _resolve_links(self, soup: BeautifulSoup, base_url: str) -> None:
        """Convert relative URLs to absolute URLs."""
        for tag in soup.find_all("a", href=True):
            href = tag["href"]
            if href.startswith("#"):
                continue  # Keep anchor links
            if not href.startswith(("http://", "https://", "//", "mailto:", "tel:")):
                tag["href"] = urljoin(base_url, href)

        for tag in soup.find_all(src=True):
            src = tag["src"]
            if not src.startswith(("http://", "https://", "//", "data:")):
                tag["src"] = urljoin(base_url, src)

    def _clean_whitespace(self, text: str) -> str:
        """Clean up excessive whitespace."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        text = re.sub(r"\n{3,}", "\n\n", text)
        text = "\n".join(line.rstrip() for line in text.split("\n"))
        return text.strip()

    def extract(self, html: str, url: str) -> str:
        """
        Extract main content from HTML.

        Args:
            html: Full page HTML
            url: Source URL for resolving relative links

        Returns:
            Article HTML, or an empty string if nothing could be extracted
        """
        if not html or not html.strip():
            return ""

        try:
            summary = Document(html, url=url).summary(html_partial=True)
        except Unparseable as e:
            logger.warning(f"{self._log_prefix} Could not extract main content for {url}: {e}")
            return ""

        soup = BeautifulSoup(summary, "html.parser")
        if len(soup.get_text(strip=True)) < self._min_text_length:
            logger.warning(f"{self._log_prefix} Main content extraction found no text for {url}")
            return ""

        self._resolve_links(soup, url)
        return self._clean_whitespace(str(soup))
