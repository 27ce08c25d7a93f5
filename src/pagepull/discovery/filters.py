"""URL filtering and resolution helpers for link harvesting."""

import logging
import re
from urllib.parse import urljoin, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

# Hrefs with these prefixes never lead to a web page
SKIP_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")

IMAGE_EXTENSIONS = (
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg", ".webp", ".ico", ".tiff", ".tif", ".avif", ".heic",
)
VIDEO_EXTENSIONS = (".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mkv", ".m4v", ".mpg", ".mpeg", ".3gp")
AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac", ".wma")
DOCUMENT_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".zip", ".rar", ".7z", ".tar", ".gz",
)
FONT_EXTENSIONS = (".woff", ".woff2", ".ttf", ".eot", ".otf")
CODE_EXTENSIONS = (".css", ".js", ".map", ".json", ".xml")

ASSET_EXTENSIONS = (
    IMAGE_EXTENSIONS + VIDEO_EXTENSIONS + AUDIO_EXTENSIONS + DOCUMENT_EXTENSIONS + FONT_EXTENSIONS + CODE_EXTENSIONS
)


def clean_href(href: object) -> str:
    """Collapse internal whitespace and trim an attribute value."""
    if not isinstance(href, str):
        return ""
    return re.sub(r"\s+", " ", href).strip()


def is_navigable_href(href: str) -> bool:
    """
    Check if an href can point at a web page.

    Rejects empty values, bare/fragment-only anchors and non-navigational
    schemes (javascript:, mailto:, tel:, data:).
    """
    if not href:
        return False
    return not href.lower().startswith(SKIP_PREFIXES)


def is_asset_url(url: str) -> bool:
    """Check if a URL's path ends in a non-page asset extension (query and fragment ignored)."""
    path = url.lower().split("#", 1)[0].split("?", 1)[0]
    return path.endswith(ASSET_EXTENSIONS)


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` of a URL."""
    parsed = urlsplit(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def normalize_url(url: str) -> str:
    """
    Normalize an absolute URL for deduplication.

    Lower-cases scheme and host, gives an empty path "/" and drops the
    fragment. Non-http(s) URLs are returned unchanged.
    """
    parsed = urlsplit(url)
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        return url
    return urlunsplit(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path or "/",
            parsed.query,
            "",  # Remove fragment
        )
    )


def resolve_href(href: str, base_url: str) -> str:
    """
    Resolve an href against the page URL.

    Falls back to manual prefixing for protocol-relative and
    root-relative hrefs when resolution fails, else returns the href
    unchanged.
    """
    try:
        return normalize_url(urljoin(base_url, href))
    except ValueError as e:
        logger.debug(f"Could not resolve {href!r} against {base_url}: {e}")

    try:
        base = urlsplit(base_url)
    except ValueError:
        return href
    if href.startswith("//"):
        return f"{base.scheme}:{href}"
    if href.startswith("/"):
        return f"{base.scheme}://{base.netloc}{href}"
    return href
