"""PageHandle implementation backed by a Playwright page."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Callable, TypeVar

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..exceptions import ExecutionContextInvalidatedError, NavigationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONTEXT_DESTROYED_MARKERS = (
    "Execution context was destroyed",
    "Cannot find context with specified id",
)

# wait_for_load_state() does not accept "commit"
LOAD_STATES = {"load", "domcontentloaded", "networkidle"}


def _is_context_destroyed(error: Exception) -> bool:
    message = str(error)
    return any(marker in message for marker in CONTEXT_DESTROYED_MARKERS)


def _is_timeout(error: Exception) -> bool:
    return isinstance(error, PlaywrightTimeoutError) or "timeout" in str(error).lower()


class PlaywrightPage:
    """
    Adapts ``playwright.async_api.Page`` to the PageHandle protocol.

    Example:
        async with session.page() as page:
            await page.goto("https://example.com", timeout=30, wait_until="load")
            html = await page.content()
    """

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def raw(self) -> Page:
        """The wrapped Playwright page."""
        return self._page

    async def goto(self, url: str, timeout: float, wait_until: str) -> None:
        try:
            await self._page.goto(url, timeout=timeout * 1000, wait_until=wait_until)  # type: ignore[arg-type]
        except PlaywrightError as e:
            if _is_timeout(e):
                raise NavigationTimeoutError(str(e)) from e
            raise

    async def _read(self, coro_factory: Callable[[], Awaitable[T]]) -> T:
        try:
            return await coro_factory()
        except PlaywrightError as e:
            if _is_context_destroyed(e):
                raise ExecutionContextInvalidatedError(str(e)) from e
            raise

    async def title(self) -> str:
        return await self._read(self._page.title)

    async def content(self) -> str:
        return await self._read(self._page.content)

    async def wait_for_ready_state(self, timeout: float) -> None:
        await self._read(
            lambda: self._page.wait_for_function(
                "() => document.readyState === 'complete'",
                timeout=timeout * 1000,
            )
        )

    async def press_key(self, key: str) -> None:
        await self._page.keyboard.press(key)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def race_navigation(self, timeout: float, wait_until: str) -> bool:
        main_frame = self._page.main_frame

        async def navigated() -> None:
            await self._page.wait_for_event(
                "framenavigated",
                predicate=lambda frame: frame == main_frame,  # type: ignore[arg-type]
                timeout=timeout * 1000,
            )
            if wait_until in LOAD_STATES:
                await self._page.wait_for_load_state(wait_until, timeout=timeout * 1000)  # type: ignore[arg-type]

        try:
            await asyncio.wait_for(navigated(), timeout=timeout)
            return True
        except (asyncio.TimeoutError, PlaywrightTimeoutError):
            logger.debug(f"No main-frame navigation within {timeout}s")
            return False

