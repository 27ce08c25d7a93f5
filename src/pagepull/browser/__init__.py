"""Browser collaborator: Playwright session and page handles."""

from .playwright_page import PlaywrightPage
from .protocols import PageHandle
from .session import BrowserSession, PageLease

__all__ = [
    "BrowserSession",
    "PageHandle",
    "PageLease",
    "PlaywrightPage",
]
