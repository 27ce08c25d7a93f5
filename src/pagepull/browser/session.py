"""Browser session that hands out one isolated page per request."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from types import TracebackType
from typing import TYPE_CHECKING, Optional

from playwright.async_api import Route, async_playwright

from ..exceptions import BrowserUnavailableError
from ..models.config import FetchOptions
from .playwright_page import PlaywrightPage

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}

# Resource types dropped when media is disabled
BLOCKED_RESOURCE_TYPES = {"image", "media", "font", "stylesheet"}


class BrowserSession:
    """
    Chromium session for request-scoped page rendering.

    Every ``page()`` call creates its own browser context, so a page
    handle is never shared between two concurrent requests. A semaphore
    caps the number of open contexts.

    Example:
        async with BrowserSession.for_options(options) as session:
            async with session.page() as page:
                await page.goto(url, timeout=30, wait_until="networkidle")
                html = await page.content()
    """

    def __init__(
        self,
        headless: bool = True,
        user_agent: str | None = None,
        timeout: float = 30.0,
        disable_media: bool = True,
        max_contexts: int = 5,
    ) -> None:
        """
        Initialize the browser session.

        Args:
            headless: Run browser in headless mode
            user_agent: Custom user agent string
            timeout: Default timeout for page operations (seconds)
            disable_media: Abort image, media, font and stylesheet requests
            max_contexts: Maximum number of concurrently open contexts
        """
        self._headless = headless
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._timeout = timeout * 1000  # Convert to milliseconds
        self._disable_media = disable_media

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._semaphore = asyncio.Semaphore(max_contexts)

    @classmethod
    def for_options(cls, options: FetchOptions) -> BrowserSession:
        """Create a session configured from request options."""
        return cls(
            headless=not options.debug,
            timeout=options.timeout,
            disable_media=options.disable_media,
        )

    @property
    def headless(self) -> bool:
        return self._headless

    async def __aenter__(self) -> BrowserSession:
        """Start Playwright and launch the browser."""
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self._headless)
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            await self._shutdown()
            raise BrowserUnavailableError(f"Failed to launch browser: {e}") from e

        logger.debug(f"Browser launched (headless={self._headless})")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the browser and stop Playwright."""
        await self._shutdown()
        logger.debug("Browser session shut down")

    async def _shutdown(self) -> None:
        if self._browser:
            with contextlib.suppress(Exception):
                await self._browser.close()
            self._browser = None

        if self._playwright:
            with contextlib.suppress(Exception):
                await self._playwright.stop()
            self._playwright = None

    async def _block_media(self, route: Route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    async def _create_context(self) -> BrowserContext:
        """Create a new browser context."""
        if self._browser is None:
            raise RuntimeError("Browser not initialized. Use 'async with' context.")

        context = await self._browser.new_context(
            viewport=DEFAULT_VIEWPORT,  # type: ignore[arg-type]
            user_agent=self._user_agent,
            java_script_enabled=True,
            ignore_https_errors=True,
        )
        context.set_default_timeout(self._timeout)

        if self._disable_media:
            await context.route("**/*", self._block_media)

        return context

    def page(self) -> PageLease:
        """
        Lease a fresh page in its own context.

        Example:
            async with session.page() as page:
                ...
        """
        return PageLease(self)


class PageLease:
    """Context manager that owns one context and page for a request."""

    def __init__(self, session: BrowserSession) -> None:
        self._session = session
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> PlaywrightPage:
        """Create context and page."""
        await self._session._semaphore.acquire()
        try:
            self._context = await self._session._create_context()
            self._page = await self._context.new_page()
        except Exception:
            await self._release()
            raise
        return PlaywrightPage(self._page)

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close page and context."""
        await self._release()

    async def _release(self) -> None:
        if self._page:
            with contextlib.suppress(Exception):
                await self._page.close()
            self._page = None

        if self._context:
            with contextlib.suppress(Exception):
                await self._context.close()
            self._context = None

        self._session._semaphore.release()
