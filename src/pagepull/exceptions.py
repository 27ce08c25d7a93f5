"""Exception hierarchy for page fetching and content reduction."""

from __future__ import annotations


class PagepullError(Exception):
    """Base exception for all pagepull errors."""

    pass


class InvalidRequestError(PagepullError):
    """Raised when a request is rejected before any navigation happens."""

    pass


class NavigationTimeoutError(PagepullError):
    """Raised when page navigation does not finish within the timeout."""

    pass


class ExecutionContextInvalidatedError(PagepullError):
    """Raised when a navigation destroys the page's execution context mid-call."""

    pass


class EmptyContentError(PagepullError):
    """Raised when the settled page HTML is empty or whitespace only."""

    pass


class BrowserUnavailableError(PagepullError):
    """Raised when the browser cannot be launched."""

    pass
