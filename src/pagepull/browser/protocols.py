"""Protocol for the live page handle driven by the stabilizer."""

from typing import Protocol


class PageHandle(Protocol):
    """
    A single browser page owned by one request.

    All timeouts are in seconds. Implementations translate browser
    failures into the pagepull exception types:

    - navigation timeouts raise ``NavigationTimeoutError``
    - reads interrupted by a navigation raise ``ExecutionContextInvalidatedError``
    """

    async def goto(self, url: str, timeout: float, wait_until: str) -> None:
        """Navigate to a URL and wait for the given load condition."""
        ...

    async def title(self) -> str:
        """Return the current document title."""
        ...

    async def content(self) -> str:
        """Return the full serialized HTML of the current document."""
        ...

    async def wait_for_ready_state(self, timeout: float) -> None:
        """Wait until ``document.readyState`` is ``"complete"``."""
        ...

    async def press_key(self, key: str) -> None:
        """Press a keyboard key on the page."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Yield to the event loop for a fixed delay."""
        ...

    async def race_navigation(self, timeout: float, wait_until: str) -> bool:
        """
        Wait for a further main-frame navigation.

        Returns:
            True if a navigation completed within the timeout, else False
        """
        ...
