"""Link discovery for pagepull."""

from .filters import (
    ASSET_EXTENSIONS,
    is_asset_url,
    is_navigable_href,
    normalize_url,
    resolve_href,
)
from .links import DEFAULT_PAGE_SIZE, LinkHarvester, compile_search

__all__ = [
    "LinkHarvester",
    "DEFAULT_PAGE_SIZE",
    "compile_search",
    # Filters
    "ASSET_EXTENSIONS",
    "is_asset_url",
    "is_navigable_href",
    "normalize_url",
    "resolve_href",
]
