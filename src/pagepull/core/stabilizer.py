"""Settled-snapshot protocol for pages whose DOM is still changing."""

from __future__ import annotations

import logging

from ..browser.protocols import PageHandle
from ..exceptions import ExecutionContextInvalidatedError, NavigationTimeoutError
from ..models.config import FetchOptions
from ..models.results import PageSnapshot, SnapshotOutcome

logger = logging.getLogger(__name__)

# Delay after readyState == "complete" to absorb late DOM mutations
SETTLE_DELAY = 0.5

# Delay before retrying a read after the execution context was destroyed
CONTEXT_RETRY_DELAY = 1.0

SNAPSHOT_RETRIES = 3

# Modal dismissal: Escape presses, delay between presses, final wait
MODAL_KEY = "Escape"
MODAL_PRESSES = 3
MODAL_PRESS_DELAY = 0.5
MODAL_SETTLE_DELAY = 1.0


class PageStabilizer:
    """
    Obtains a reliable (title, html) snapshot from a live page.

    The page may still be loading, or a client-side redirect may replace
    the execution context while it is being read. The stabilizer
    navigates, optionally waits for a further navigation, waits for the
    document to settle and then reads the page with a bounded retry loop.

    Example:
        stabilizer = PageStabilizer(page, options, log_prefix="[FetchURL]")
        snapshot = await stabilizer.load("https://example.com")
        if snapshot.is_empty:
            ...
    """

    def __init__(self, page: PageHandle, options: FetchOptions, log_prefix: str = ""):
        """
        Initialize the stabilizer.

        Args:
            page: Page handle owned by the current request
            options: Request options (timeouts, wait condition)
            log_prefix: Prefix for log messages
        """
        self.page = page
        self.options = options
        self._log_prefix = log_prefix

    async def navigate(self, url: str) -> PageSnapshot | None:
        """
        Navigate to the URL.

        Returns:
            None after a normal navigation, or a late snapshot when the
            navigation timed out but the page already had content

        Raises:
            NavigationTimeoutError: If navigation timed out and the DOM is empty
        """
        logger.info(f"{self._log_prefix} Navigating to URL: {url}")
        try:
            await self.page.goto(url, timeout=self.options.timeout, wait_until=self.options.wait_until.value)
            return None
        except NavigationTimeoutError as e:
            logger.warning(
                f"{self._log_prefix} Navigation timeout: {e}. Attempting to retrieve content anyway..."
            )
            try:
                snapshot = await self.snapshot()
            except Exception as retrieve_error:
                logger.error(f"{self._log_prefix} Failed to retrieve content after timeout: {retrieve_error}")
                raise e from retrieve_error

            if snapshot.is_empty:
                raise
            snapshot.late = True
            logger.info(
                f"{self._log_prefix} Retrieved content despite timeout, length: {len(snapshot.html)}"
            )
            return snapshot

    async def wait_for_extra_navigation(self) -> bool:
        """
        Wait for a further navigation (client-side redirect, bot check).

        A timeout here is not an error; the current DOM is used.

        Returns:
            True if a navigation happened
        """
        logger.info(f"{self._log_prefix} Waiting for possible navigation/redirection...")
        try:
            navigated = await self.page.race_navigation(
                self.options.navigation_timeout,
                self.options.wait_until.value,
            )
        except Exception as e:
            logger.error(f"{self._log_prefix} Error waiting for navigation: {e}")
            return False

        if navigated:
            logger.info(f"{self._log_prefix} Page navigated/redirected successfully")
        else:
            logger.warning(f"{self._log_prefix} No navigation occurred within {self.options.navigation_timeout}s")
        return navigated

    async def ensure_stability(self) -> bool:
        """
        Wait for readyState "complete" plus a short settle delay.

        Failure is logged, never raised.

        Returns:
            True if the page reached a complete ready state
        """
        try:
            await self.page.wait_for_ready_state(self.options.timeout)
            await self.page.sleep(SETTLE_DELAY)
            logger.info(f"{self._log_prefix} Page has stabilized")
            return True
        except Exception as e:
            logger.warning(f"{self._log_prefix} Error ensuring page stability: {e}")
            return False

    async def snapshot(self, retries: int = SNAPSHOT_RETRIES) -> PageSnapshot:
        """
        Read title and HTML, retrying when a navigation destroys the context.

        Any other failure propagates. If every attempt loses the context,
        the last known values are returned with outcome EXHAUSTED.

        Args:
            retries: Maximum number of attempts

        Returns:
            PageSnapshot (possibly with empty HTML)
        """
        snapshot = PageSnapshot()
        attempt = 0

        while attempt < retries:
            attempt += 1
            snapshot.attempts = attempt
            try:
                snapshot.title = await self.page.title()
                logger.info(f"{self._log_prefix} Page title: {snapshot.title}")
                snapshot.html = await self.page.content()
                snapshot.outcome = SnapshotOutcome.OK
                return snapshot
            except ExecutionContextInvalidatedError:
                logger.warning(
                    f"{self._log_prefix} Context destroyed, waiting for navigation to complete "
                    f"(attempt {attempt}/{retries})..."
                )
                if attempt < retries:
                    await self.page.sleep(CONTEXT_RETRY_DELAY)
                    await self.ensure_stability()

        logger.error(f"{self._log_prefix} Failed to get page info after {retries} attempts")
        snapshot.outcome = SnapshotOutcome.EXHAUSTED
        return snapshot

    async def dismiss_modals(self, presses: int = MODAL_PRESSES) -> None:
        """Press Escape a few times to close overlays; failures are logged only."""
        logger.info(f"{self._log_prefix} Attempting to dismiss any modals/dialogs")
        try:
            # Several presses for nested modals
            for _ in range(presses):
                await self.page.press_key(MODAL_KEY)
                await self.page.sleep(MODAL_PRESS_DELAY)

            await self.page.sleep(MODAL_SETTLE_DELAY)
            logger.info(f"{self._log_prefix} Modal dismissal attempt completed")
        except Exception as e:
            logger.warning(f"{self._log_prefix} Error dismissing modals: {e}")

    async def load(self, url: str) -> PageSnapshot:
        """
        Run the full protocol: navigate, extra navigation, settle, snapshot.

        Raises:
            NavigationTimeoutError: If navigation timed out with an empty DOM
        """
        late = await self.navigate(url)
        if late is not None:
            return late

        if self.options.wait_for_navigation:
            await self.wait_for_extra_navigation()

        await self.ensure_stability()
        return await self.snapshot()
