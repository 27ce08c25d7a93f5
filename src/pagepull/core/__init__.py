"""Core request layer and page settle protocol."""

from .fetcher import PagePuller, build_options, ensure_scheme
from .stabilizer import PageStabilizer

__all__ = [
    "PagePuller",
    "PageStabilizer",
    "build_options",
    "ensure_scheme",
]
