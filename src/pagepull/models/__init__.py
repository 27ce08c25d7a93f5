"""Pagepull request and result models."""

from .config import FetchOptions, FieldSpec, OutputFormat, WaitCondition, load_field_specs
from .results import (
    FetchResult,
    FieldValue,
    LinkRecord,
    PageSnapshot,
    PaginatedLinks,
    SnapshotOutcome,
)

__all__ = [
    # Config
    "FetchOptions",
    "FieldSpec",
    "OutputFormat",
    "WaitCondition",
    "load_field_specs",
    # Results
    "FetchResult",
    "FieldValue",
    "LinkRecord",
    "PageSnapshot",
    "PaginatedLinks",
    "SnapshotOutcome",
]
