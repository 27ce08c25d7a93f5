"""Request layer for the fetch, extract and link operations."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Awaitable, Mapping
from typing import Any, Callable, TypeVar

from pydantic import ValidationError

from ..browser.session import BrowserSession
from ..conversion.formatter import ContentFormatter
from ..conversion.sanitizer import HtmlSanitizer
from ..discovery.links import DEFAULT_PAGE_SIZE, LinkHarvester, compile_search
from ..exceptions import EmptyContentError, InvalidRequestError
from ..extraction.fields import FieldExtractor
from ..models.config import FetchOptions, FieldSpec
from ..models.results import FetchResult, PageSnapshot
from .stabilizer import PageStabilizer

logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionFactory = Callable[[FetchOptions], BrowserSession]

_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def ensure_scheme(url: str) -> str:
    """Prefix ``https://`` to a URL without an http(s) scheme."""
    url = url.strip()
    return url if _SCHEME_PATTERN.match(url) else f"https://{url}"


def build_options(**kwargs: Any) -> FetchOptions:
    """
    Build FetchOptions, ignoring arguments passed as None.

    Raises:
        InvalidRequestError: If any option fails validation
    """
    try:
        return FetchOptions(**{key: value for key, value in kwargs.items() if value is not None})
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'options'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidRequestError(f"Invalid options: {details}") from e


def _require_url(url: str | None, log_prefix: str) -> str:
    url = (url or "").strip()
    if not url:
        logger.error(f"{log_prefix} URL parameter missing")
        raise InvalidRequestError("URL parameter is required")
    return url


def _json_result(data: Any) -> FetchResult:
    return FetchResult(success=True, content=json.dumps(data, indent=2, ensure_ascii=False))


def _error_result(url: str, cause: str) -> FetchResult:
    return FetchResult(success=False, content=json.dumps({"error": cause, "url": url}, indent=2), error=cause)


def _cause(error: Exception) -> str:
    return str(error) or type(error).__name__


class PagePuller:
    """
    Entry point for the three page operations.

    Each call validates its arguments before touching the browser, leases
    a fresh page from a new browser session, runs the settle protocol and
    hands the snapshot to one component:

    - ``fetch_url``: ContentFormatter, returns a FetchResult
    - ``extract_fields``: HtmlSanitizer + FieldExtractor, returns JSON
    - ``get_links``: LinkHarvester, returns JSON

    Invalid requests raise InvalidRequestError. Failures after navigation
    starts never raise; they come back as an error payload. The
    ``extract_fields_result`` and ``get_links_result`` variants return the
    JSON inside a FetchResult so callers can check ``success``.

    Example:
        puller = PagePuller()
        result = await puller.fetch_url("https://example.com", max_length=2000)
        print(result.content)

        data = await puller.extract_fields("example.com", {"title": {"selector": "h1"}})
    """

    def __init__(
        self,
        session_factory: SessionFactory = BrowserSession.for_options,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Initialize the request layer.

        Args:
            session_factory: Creates a browser session for the request options
            page_size: Links per page for get_links
        """
        self._session_factory = session_factory
        self._page_size = page_size

    async def _with_snapshot(
        self,
        url: str,
        options: FetchOptions,
        log_prefix: str,
        handler: Callable[[PageSnapshot, PageStabilizer], Awaitable[T]],
    ) -> T:
        """Load the page, check the snapshot and run the handler while the page is open."""
        async with self._session_factory(options) as session:
            async with session.page() as page:
                stabilizer = PageStabilizer(page, options, log_prefix=log_prefix)
                snapshot = await stabilizer.load(url)

                if snapshot.is_empty:
                    logger.warning(f"{log_prefix} Browser returned empty content")
                    raise EmptyContentError("Browser returned empty content")

                logger.info(f"{log_prefix} Successfully retrieved web page content, length: {len(snapshot.html)}")
                if snapshot.late:
                    logger.warning(f"{log_prefix} Using content read after a navigation timeout, the page may be incomplete")
                return await handler(snapshot, stabilizer)

    async def fetch_url(self, url: str, **kwargs: Any) -> FetchResult:
        """
        Fetch a page and reduce it to Markdown or cleaned HTML.

        Args:
            url: Page URL (used as given)
            **kwargs: FetchOptions fields (timeout, wait_until, output_format,
                max_length, wait_for_navigation, navigation_timeout,
                disable_media, debug, search)

        Returns:
            FetchResult; on failure ``content`` holds the error payload

        Raises:
            InvalidRequestError: On a missing URL or invalid options
        """
        log_prefix = "[FetchURL]"
        url = _require_url(url, log_prefix)
        options = build_options(**kwargs)
        if options.search:
            logger.info(f"{log_prefix} Using search filter: {options.search}")

        async def render(snapshot: PageSnapshot, stabilizer: PageStabilizer) -> str:
            formatter = ContentFormatter(options, log_prefix=log_prefix)
            return await formatter.format(snapshot.html, url, stabilizer)

        try:
            content = await self._with_snapshot(url, options, log_prefix, render)
        except Exception as e:
            logger.error(f"{log_prefix} Error: {_cause(e)}")
            return FetchResult.failure(url, _cause(e))

        return FetchResult(success=True, content=content)

    async def extract_fields(
        self,
        url: str,
        fields: Mapping[str, FieldSpec | Mapping[str, Any]],
        **kwargs: Any,
    ) -> str:
        """Extract named fields from a page and return the JSON payload."""
        result = await self.extract_fields_result(url, fields, **kwargs)
        return result.content

    async def extract_fields_result(
        self,
        url: str,
        fields: Mapping[str, FieldSpec | Mapping[str, Any]],
        **kwargs: Any,
    ) -> FetchResult:
        """
        Extract named fields from a page, keeping the success flag.

        Args:
            url: Page URL; ``https://`` is assumed without a scheme
            fields: Mapping of field name to FieldSpec or raw spec dict
            **kwargs: FetchOptions fields (timeout, wait_until, debug, ...)

        Returns:
            FetchResult whose ``content`` is a JSON object of field name to
            null, string or list of strings, or ``{"error", "url"}`` on failure

        Raises:
            InvalidRequestError: On a missing URL, missing fields or invalid options
        """
        log_prefix = "[Extract]"
        url = ensure_scheme(_require_url(url, log_prefix))
        if not isinstance(fields, Mapping) or not fields:
            logger.error(f"{log_prefix} fields parameter missing or empty")
            raise InvalidRequestError("fields parameter is required and must be a non-empty object")
        options = build_options(**kwargs)

        sanitizer = HtmlSanitizer(strip_data_images=False, log_prefix=log_prefix)
        extractor = FieldExtractor(log_prefix=log_prefix)

        async def extract(snapshot: PageSnapshot, stabilizer: PageStabilizer) -> dict:
            html = sanitizer.clean(snapshot.html, url)
            logger.info(f"{log_prefix} HTML cleaned before extraction")
            return extractor.extract(html, url, fields)

        try:
            result = await self._with_snapshot(url, options, log_prefix, extract)
        except Exception as e:
            logger.error(f"{log_prefix} Error: {_cause(e)}")
            return _error_result(url, _cause(e))

        return _json_result(result)

    async def get_links(
        self,
        url: str,
        offset: int = 0,
        search: str | None = None,
        **kwargs: Any,
    ) -> str:
        """List the navigable links of a page and return the JSON payload."""
        result = await self.get_links_result(url, offset=offset, search=search, **kwargs)
        return result.content

    async def get_links_result(
        self,
        url: str,
        offset: int = 0,
        search: str | None = None,
        **kwargs: Any,
    ) -> FetchResult:
        """
        List the navigable links of a page, 100 per page, keeping the success flag.

        Args:
            url: Page URL; ``https://`` is assumed without a scheme
            offset: Index of the first link to return
            search: Optional regex matched against link URL or title
            **kwargs: FetchOptions fields (timeout, debug, ...)

        Returns:
            FetchResult whose ``content`` is JSON ``{origin, count, has_more, links}``,
            or ``{"error", "url"}`` on failure

        Raises:
            InvalidRequestError: On a missing URL, negative offset, invalid
                search pattern or invalid options
        """
        log_prefix = "[GetLinks]"
        url = ensure_scheme(_require_url(url, log_prefix))
        if offset < 0:
            raise InvalidRequestError("offset must be zero or positive")
        if compile_search(search) is not None:
            logger.info(f"{log_prefix} Using search filter: {search}")
        options = build_options(**kwargs)

        harvester = LinkHarvester(page_size=self._page_size, log_prefix=log_prefix)

        async def harvest(snapshot: PageSnapshot, stabilizer: PageStabilizer) -> dict:
            return harvester.harvest(snapshot.html, url, offset=offset, search=search).to_dict()

        try:
            result = await self._with_snapshot(url, options, log_prefix, harvest)
        except Exception as e:
            logger.error(f"{log_prefix} Error: {_cause(e)}")
            return _error_result(url, _cause(e))

        return _json_result(result)
