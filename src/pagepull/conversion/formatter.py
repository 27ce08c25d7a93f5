"""Turns settled page HTML into the requested output format."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional

from ..models.config import FetchOptions, OutputFormat
from .extractor import MainContentExtractor
from .markdown import HtmlToMarkdown
from .protocols import ContentExtractor, MarkdownConverter, Sanitizer
from .sanitizer import HtmlSanitizer

if TYPE_CHECKING:
    from ..core.stabilizer import PageStabilizer

logger = logging.getLogger(__name__)

# Cleaned content shorter than this probably hides behind an overlay
MIN_CONTENT_LENGTH = 100


class ContentFormatter:
    """
    Produces cleaned HTML or Markdown from a page snapshot.

    Steps:
    1. Sanitize (when ``main_content_only``). If the result is nearly
       empty and a live page is available, dismiss modals, re-read the
       page and sanitize again.
    2. For Markdown, extract the main article from the *original* HTML
       and convert it; fall back to the step-1 HTML if nothing was found.
    3. Filter Markdown lines by ``search``.
    4. Hard-truncate to ``max_length`` characters.

    Example:
        formatter = ContentFormatter(options)
        text = await formatter.format(snapshot.html, url, stabilizer)
    """

    def __init__(
        self,
        options: FetchOptions,
        sanitizer: Optional[Sanitizer] = None,
        extractor: Optional[ContentExtractor] = None,
        converter: Optional[MarkdownConverter] = None,
        log_prefix: str = "",
    ):
        """
        Initialize the formatter.

        Args:
            options: Request options
            sanitizer: HTML sanitizer (default HtmlSanitizer)
            extractor: Main content extractor (default MainContentExtractor)
            converter: Markdown converter (default HtmlToMarkdown)
            log_prefix: Prefix for log messages
        """
        self.options = options
        self._sanitizer = sanitizer or HtmlSanitizer(log_prefix=log_prefix)
        self._extractor = extractor or MainContentExtractor(log_prefix=log_prefix)
        self._converter = converter or HtmlToMarkdown()
        self._log_prefix = log_prefix

    async def format(
        self,
        html: str,
        base_url: str,
        stabilizer: Optional[PageStabilizer] = None,
    ) -> str:
        """
        Format page HTML according to the request options.

        Args:
            html: Settled page HTML
            base_url: Page URL
            stabilizer: Live page stabilizer, enables the modal-dismissal retry

        Returns:
            Formatted content
        """
        cleaned = html
        if self.options.main_content_only:
            cleaned = self._sanitizer.clean(html, base_url)

            if len(cleaned.strip()) < MIN_CONTENT_LENGTH and stabilizer is not None:
                logger.warning(
                    f"{self._log_prefix} Cleaned content is too small ({len(cleaned.strip())} chars), "
                    "attempting to dismiss modals and retry"
                )
                await stabilizer.dismiss_modals()
                fresh = await stabilizer.snapshot()

                if not fresh.is_empty:
                    logger.info(
                        f"{self._log_prefix} Re-extracted content after modal dismissal, length: {len(fresh.html)}"
                    )
                    html = fresh.html
                    cleaned = self._sanitizer.clean(html, base_url)
                    logger.info(f"{self._log_prefix} Re-cleaned content length: {len(cleaned)}")

        return self.render(html, cleaned, base_url)

    def render(self, html: str, cleaned: str, base_url: str) -> str:
        """
        Produce the final output from original and cleaned HTML.

        Args:
            html: Original page HTML (for main content extraction)
            cleaned: HTML after the optional sanitizing step
            base_url: Page URL

        Returns:
            Formatted, filtered and truncated content
        """
        content = cleaned

        if self.options.output_format == OutputFormat.MARKDOWN:
            content = self._to_markdown(html, cleaned, base_url)
            if self.options.search:
                content = self.filter_lines(content, self.options.search)

        return self.truncate(content, self.options.max_length)

    def _to_markdown(self, html: str, cleaned: str, base_url: str) -> str:
        logger.info(f"{self._log_prefix} Extracting main content")
        article = self._extractor.extract(html, base_url)
        if article:
            logger.info(f"{self._log_prefix} Successfully extracted main content, length: {len(article)}")
            source = article
        else:
            logger.warning(f"{self._log_prefix} Could not extract main content, will use full HTML")
            source = cleaned

        markdown = self._converter.convert(source, base_url)
        logger.info(f"{self._log_prefix} Converted to Markdown, length: {len(markdown)}")
        return markdown

    def filter_lines(self, markdown: str, pattern: str) -> str:
        """Keep only the lines matching ``pattern`` (case-insensitive)."""
        regex = re.compile(pattern, re.IGNORECASE)
        lines = markdown.split("\n")
        kept = [line for line in lines if regex.search(line)]
        logger.info(
            f"{self._log_prefix} Search filter applied: {len(lines)} lines → {len(kept)} lines matching pattern"
        )
        return "\n".join(kept)

    def truncate(self, content: str, max_length: int) -> str:
        """Cut content to ``max_length`` characters; 0 means no limit."""
        if max_length > 0 and len(content) > max_length:
            logger.info(f"{self._log_prefix} Content exceeds maximum length, truncating to {max_length} characters")
            return content[:max_length]
        return content
