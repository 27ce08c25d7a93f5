"""Link harvesting from rendered page HTML."""

import logging
import re
from collections.abc import Iterator
from typing import Optional

from bs4 import BeautifulSoup, Tag

from ..exceptions import InvalidRequestError
from ..models.results import LinkRecord, PaginatedLinks
from .filters import clean_href, is_asset_url, is_navigable_href, origin_of, resolve_href

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

# Literal navigation targets in onclick handlers; dynamic targets are not discoverable
ONCLICK_PATTERNS = [
    # window.open('/path')
    re.compile(r"window\.open\(\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
    # location = '/path', location.href = '/path'
    re.compile(r"location(?:\.href)?\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
]


def compile_search(search: Optional[str]) -> Optional[re.Pattern[str]]:
    """
    Compile a case-insensitive search pattern.

    Raises:
        InvalidRequestError: If the pattern does not compile
    """
    if search is None or not search.strip():
        return None
    try:
        return re.compile(search.strip(), re.IGNORECASE)
    except re.error as e:
        raise InvalidRequestError(f"Invalid search regex pattern: {e}") from e


def _element_title(el: Tag) -> str:
    text = clean_href(el.get_text(" "))
    if text:
        return text
    for attr in ("title", "aria-label", "alt"):
        value = clean_href(el.get(attr))
        if value:
            return value
    return ""


class LinkHarvester:
    """
    Collects navigable links from page HTML.

    Sources, in order: ``<a href>``, SVG anchors (``href`` or
    ``xlink:href``), image-map ``<area href>``, any ``[data-href]`` and
    ``[onclick]`` handlers with a literal ``window.open(...)`` or
    ``location(.href) = ...`` target.

    Links are resolved to absolute URLs, asset URLs (images, media,
    documents, fonts, code) are dropped and duplicates collapse onto the
    first occurrence, whose title is kept. Results stay in first-seen
    document order, so repeated fetches of a static page paginate the
    same way.

    Example:
        harvester = LinkHarvester()
        page = harvester.harvest(html, "https://example.com", offset=0, search="docs")
        print(page.to_dict())
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, log_prefix: str = ""):
        """
        Initialize the harvester.

        Args:
            page_size: Links per page
            log_prefix: Prefix for log messages
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self._log_prefix = log_prefix

    def _candidates(self, soup: BeautifulSoup) -> Iterator[tuple[str, Tag]]:
        """Yield (raw href, element) pairs from every source in order."""
        # 1) Standard anchors
        for el in soup.find_all("a", href=True):
            yield el["href"], el

        # 2) SVG anchors
        for el in soup.find_all("a"):
            if el.has_attr("xlink:href") or el.find_parent("svg") is not None:
                href = el.get("href") or el.get("xlink:href")
                if href:
                    yield href, el

        # 3) Image map areas
        for el in soup.find_all("area", href=True):
            yield el["href"], el

        # 4) Elements with data-href
        for el in soup.find_all(attrs={"data-href": True}):
            yield el["data-href"], el

        # 5) Elements with onclick that navigates
        for el in soup.find_all(onclick=True):
            target = self.onclick_target(el.get("onclick", ""))
            if target:
                yield target, el

    @staticmethod
    def onclick_target(script: str) -> Optional[str]:
        """Return the literal URL navigated to by an onclick snippet, if any."""
        for pattern in ONCLICK_PATTERNS:
            match = pattern.search(script or "")
            if match:
                return match.group(1)
        return None

    def collect(self, html: str, base_url: str) -> list[LinkRecord]:
        """
        Collect every qualifying link in document order.

        Args:
            html: Page HTML (unsanitized)
            base_url: Page URL for resolution

        Returns:
            Deduplicated, asset-free link records
        """
        soup = BeautifulSoup(html, "html.parser")
        seen: set[str] = set()
        records: list[LinkRecord] = []

        for raw_href, el in self._candidates(soup):
            href = clean_href(raw_href)
            if not is_navigable_href(href):
                continue

            url = resolve_href(href, base_url)
            if url in seen or is_asset_url(url):
                continue

            seen.add(url)
            records.append(LinkRecord(url=url, title=_element_title(el)))

        return records

    def harvest(
        self,
        html: str,
        base_url: str,
        offset: int = 0,
        search: Optional[str] = None,
    ) -> PaginatedLinks:
        """
        Harvest one page of links.

        Args:
            html: Page HTML (unsanitized)
            base_url: Page URL
            offset: Index of the first link to return
            search: Optional regex; links whose URL or title match are kept

        Returns:
            PaginatedLinks for ``[offset, offset + page_size)``

        Raises:
            InvalidRequestError: On a negative offset or invalid search pattern
        """
        if offset < 0:
            raise InvalidRequestError("offset must be zero or positive")
        pattern = compile_search(search)

        links = self.collect(html, base_url)
        logger.info(f"{self._log_prefix} Collected {len(links)} unique links")

        if pattern is not None:
            links = [link for link in links if pattern.search(link.url) or pattern.search(link.title)]
            logger.info(f"{self._log_prefix} Filter applied: {len(links)} links match the pattern")

        page = links[offset : offset + self.page_size]
        return PaginatedLinks(
            origin=origin_of(base_url),
            has_more=offset + self.page_size < len(links),
            links=page,
        )
