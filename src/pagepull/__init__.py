"""
pagepull - Fetch rendered web pages and reduce them to Markdown, fields or links.

Usage:
    from pagepull import PagePuller

    puller = PagePuller()
    result = await puller.fetch_url("https://example.com", max_length=5000)
    print(result.content)

    fields = await puller.extract_fields(
        "https://shop.example.com/p/1",
        {"title": {"selector": "h1"}, "image": {"selector": "img.main", "attr": "src"}},
    )
    links = await puller.get_links("https://example.com", search="docs")
"""

__version__ = "1.0.0"

from .core.fetcher import PagePuller
from .core.stabilizer import PageStabilizer
from .conversion.formatter import ContentFormatter
from .conversion.sanitizer import HtmlSanitizer
from .discovery.links import LinkHarvester
from .exceptions import (
    BrowserUnavailableError,
    EmptyContentError,
    ExecutionContextInvalidatedError,
    InvalidRequestError,
    NavigationTimeoutError,
    PagepullError,
)
from .extraction.fields import FieldExtractor
from .models.config import FetchOptions, FieldSpec, OutputFormat, WaitCondition
from .models.results import FetchResult, LinkRecord, PaginatedLinks

__all__ = [
    "__version__",
    # Core
    "PagePuller",
    "PageStabilizer",
    # Components
    "HtmlSanitizer",
    "ContentFormatter",
    "FieldExtractor",
    "LinkHarvester",
    # Config
    "FetchOptions",
    "FieldSpec",
    "OutputFormat",
    "WaitCondition",
    # Results
    "FetchResult",
    "LinkRecord",
    "PaginatedLinks",
    # Errors
    "PagepullError",
    "InvalidRequestError",
    "NavigationTimeoutError",
    "ExecutionContextInvalidatedError",
    "EmptyContentError",
    "BrowserUnavailableError",
]
