"""Structured field extraction."""

from .fields import FieldExtractor, apply_regex, compile_field_regex, first_srcset_url

__all__ = [
    "FieldExtractor",
    "apply_regex",
    "compile_field_regex",
    "first_srcset_url",
]
