"""Aggressive HTML cleaning: strip page chrome, hidden nodes and dead weight."""

import logging
import re
from collections.abc import Sequence

from bs4 import BeautifulSoup, Comment, Tag

logger = logging.getLogger(__name__)

# Elements that never carry renderable body content
STRIP_TAGS = ["script", "style", "meta", "noscript", "link", "head"]

# Page chrome and noise, removed in this order
EXCLUDE_SELECTORS = [
    "header",
    "footer",
    "nav",
    "aside",
    ".header",
    ".footer",
    ".sidebar",
    "#sidebar",
    ".sidebar-section",
    ".sidebar-content",
    ".sidebar-right",
    ".sidebar-wrapper",
    ".aside",
    ".widget",
    ".widget-area",
    ".modal",
    ".popup",
    ".overlay",
    "dialog",
    "p-dialog",
    "mat-dialog",
    "v-dialog",
    '[role="dialog"]',
    ".ad",
    ".ads",
    ".adsbygoogle",
    ".advertisement",
    ".banner",
    ".social",
    ".social-media",
    ".share",
    ".related",
    ".related-posts",
    ".comments",
    "#comments",
    ".cookie",
    ".cookie-banner",
    "#cookie-notice",
    ".gdpr",
    '[id*="cookie"]',
    '[id*="popup"]',
    '[id*="dialog"]',
    ".newsletter",
    ".subscription",
    ".search",
    "#search",
    ".menu",
    ".navigation",
    # Form controls (the form container itself is kept)
    "button",
    "input",
    "textarea",
    "select",
    # Pagination
    ".pager",
    ".pagination",
    '[role="navigation"]',
    # Icons
    'i[class*="icon-"]',
    ".fa",
    '[class*="material-icons"]',
    # Containers that are usually filled by scripts
    '[id*="messages"]',
    '[id*="promotions"]',
    # Social sharing
    ".tweet",
    ".facebook",
    ".twitter",
    # Inline vector graphics
    "svg",
]

# Containers dropped when they hold neither elements nor text
EMPTY_CONTAINER_TAGS = ["div", "span", "p", "section"]

HIDDEN_STYLES = ("display:none", "visibility:hidden")

COMMENT_PATTERN = re.compile(r"<!--[\s\S]*?-->")


class HtmlSanitizer:
    """
    Reduces raw page HTML to the markup that carries content.

    Removes scripts, styles, navigation, ads, dialogs, hidden elements,
    empty containers and inline base64 images, then collapses whitespace.
    Cleaning never raises: if anything goes wrong the input is returned
    unchanged.

    Empty containers are removed in a single pass per tag, so a wrapper
    whose only child was itself an empty container survives.

    Example:
        sanitizer = HtmlSanitizer()
        cleaned = sanitizer.clean(html, "https://example.com/article")
    """

    def __init__(
        self,
        exclude_selectors: Sequence[str] = EXCLUDE_SELECTORS,
        strip_data_images: bool = True,
        log_prefix: str = "",
    ):
        """
        Initialize the sanitizer.

        Args:
            exclude_selectors: Ordered CSS selectors for elements to remove
            strip_data_images: Remove <img> elements with a base64 data URI source
            log_prefix: Prefix for log messages (e.g. "[FetchURL]")
        """
        self._exclude_selectors = list(exclude_selectors)
        self._strip_data_images = strip_data_images
        self._log_prefix = log_prefix

    @property
    def exclude_selectors(self) -> list[str]:
        return list(self._exclude_selectors)

    def _remove_tags(self, soup: BeautifulSoup) -> None:
        for el in soup.find_all(STRIP_TAGS):
            if not el.decomposed:
                el.decompose()

    def _remove_excluded(self, soup: BeautifulSoup) -> None:
        for selector in self._exclude_selectors:
            try:
                matches = soup.select(selector)
            except Exception as e:
                logger.debug(f"{self._log_prefix} Skipping selector {selector!r}: {e}")
                continue
            for el in matches:
                if not el.decomposed:
                    el.decompose()

    def _is_hidden(self, el: Tag) -> bool:
        if el.get("aria-hidden", "").strip().lower() == "true":
            return True
        style = el.get("style", "")
        if not style:
            return False
        style = re.sub(r"\s+", "", style).lower()
        return any(hidden in style for hidden in HIDDEN_STYLES)

    def _remove_hidden(self, soup: BeautifulSoup) -> None:
        for el in soup.find_all(True):
            if not el.decomposed and self._is_hidden(el):
                el.decompose()

    def _remove_empty(self, soup: BeautifulSoup) -> None:
        for tag in EMPTY_CONTAINER_TAGS:
            for el in soup.find_all(tag):
                if el.decomposed:
                    continue
                if el.find(True) is None and not el.get_text(strip=True):
                    el.decompose()

    def _remove_data_images(self, soup: BeautifulSoup) -> None:
        for img in soup.find_all("img", src=True):
            if img["src"].strip().startswith("data:image"):
                img.decompose()

    def _serialize(self, soup: BeautifulSoup) -> str:
        body = soup.find("body")
        if isinstance(body, Tag):
            return body.decode_contents()
        return str(soup)

    def _normalize_whitespace(self, html: str) -> str:
        # Remove whitespace between tags
        html = re.sub(r">\s+<", "><", html)
        # Collapse blank lines
        html = re.sub(r"\n\s*\n", "\n", html)
        html = html.replace("\t", "")
        return html.strip()

    def clean(self, html: str, base_url: str) -> str:
        """
        Clean HTML.

        Args:
            html: Raw page HTML
            base_url: Page URL (used for diagnostics)

        Returns:
            Cleaned HTML string, or the original HTML if cleaning failed
        """
        try:
            size_before = len(html)
            text = COMMENT_PATTERN.sub("", html)

            soup = BeautifulSoup(text, "html.parser")
            # Leftover comment nodes (e.g. unterminated comments)
            for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
                comment.extract()

            self._remove_tags(soup)
            self._remove_excluded(soup)
            self._remove_hidden(soup)
            self._remove_empty(soup)
            if self._strip_data_images:
                self._remove_data_images(soup)

            cleaned = self._normalize_whitespace(self._serialize(soup))

            size_after = len(cleaned)
            reduction = round((1 - size_after / size_before) * 100) if size_before > 0 else 0
            logger.info(
                f"{self._log_prefix} HTML cleaned for {base_url}: "
                f"{size_before} → {size_after} chars ({reduction}% reduction)"
            )
            return cleaned

        except Exception as e:
            logger.warning(f"{self._log_prefix} HTML cleaning failed: {e}, using original HTML")
            return html
