"""Shared fakes for browser-facing tests."""

import contextlib
from typing import Optional, Union

import pytest

from pagepull.exceptions import ExecutionContextInvalidatedError


class FakePage:
    """In-memory PageHandle that records what the caller did."""

    def __init__(
        self,
        html: Union[str, list[str]] = "<html><body><p>Hello</p></body></html>",
        title: str = "Fake Page",
        goto_error: Optional[Exception] = None,
        context_losses: int = 0,
        navigates: bool = True,
    ):
        """
        Initialize the fake page.

        Args:
            html: Page content, or a sequence returned one per content() call
                (the last value repeats)
            title: Document title
            goto_error: Raised by goto()
            context_losses: Number of title() calls that fail with a destroyed context
            navigates: Result of race_navigation()
        """
        self._contents = list(html) if isinstance(html, list) else [html]
        self._title = title
        self.goto_error = goto_error
        self.context_losses = context_losses
        self.navigates = navigates
        self.ready_error: Optional[Exception] = None
        self.title_error: Optional[Exception] = None

        self.visited: list[tuple[str, float, str]] = []
        self.keys: list[str] = []
        self.sleeps: list[float] = []
        self.ready_checks = 0
        self.navigation_waits = 0

    async def goto(self, url: str, timeout: float, wait_until: str) -> None:
        self.visited.append((url, timeout, wait_until))
        if self.goto_error is not None:
            raise self.goto_error

    async def title(self) -> str:
        if self.title_error is not None:
            raise self.title_error
        if self.context_losses > 0:
            self.context_losses -= 1
            raise ExecutionContextInvalidatedError("Execution context was destroyed")
        return self._title

    async def content(self) -> str:
        if len(self._contents) > 1:
            return self._contents.pop(0)
        return self._contents[0]

    async def wait_for_ready_state(self, timeout: float) -> None:
        self.ready_checks += 1
        if self.ready_error is not None:
            raise self.ready_error

    async def press_key(self, key: str) -> None:
        self.keys.append(key)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    async def race_navigation(self, timeout: float, wait_until: str) -> bool:
        self.navigation_waits += 1
        return self.navigates


class FakeSession:
    """Browser session stand-in that always hands out the same FakePage."""

    def __init__(self, page: FakePage):
        self.fake_page = page
        self.entered = False
        self.closed = False

    async def __aenter__(self) -> "FakeSession":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.closed = True

    @contextlib.asynccontextmanager
    async def page(self):
        yield self.fake_page


@pytest.fixture
def fake_page_cls():
    return FakePage


@pytest.fixture
def fake_session_cls():
    return FakeSession
