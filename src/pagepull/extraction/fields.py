"""Selector-addressed field extraction from page HTML."""

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from ..models.config import FieldSpec
from ..models.results import FieldValue

logger = logging.getLogger(__name__)

# JavaScript-style regex flags understood in FieldSpec.regex_flags
REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}

# Accepted for compatibility, no Python equivalent needed
IGNORED_REGEX_FLAGS = {"g", "u", "y", "d"}

MEDIA_TAGS = {"video", "audio", "source"}


def compile_field_regex(pattern: str, flags: Optional[str] = None) -> re.Pattern[str]:
    """
    Compile a field regex with JavaScript-style flag letters.

    Raises:
        re.error: If the pattern is invalid
        ValueError: If a flag letter is unknown
    """
    compiled_flags = 0
    for letter in flags or "":
        if letter in REGEX_FLAGS:
            compiled_flags |= REGEX_FLAGS[letter]
        elif letter not in IGNORED_REGEX_FLAGS:
            raise ValueError(f"Unknown regex flag {letter!r}")
    return re.compile(pattern, compiled_flags)


def apply_regex(text: str, regex: re.Pattern[str]) -> Optional[str]:
    """Return the first capture group of the first match, else the full match."""
    match = regex.search(text)
    if match is None:
        return None
    if regex.groups and match.group(1) is not None:
        return match.group(1)
    return match.group(0)


def first_srcset_url(srcset: str) -> Optional[str]:
    """Return the URL of the first ``srcset`` candidate."""
    first = srcset.split(",")[0].strip()
    if not first:
        return None
    return first.split()[0]


class FieldExtractor:
    """
    Extracts named fields from HTML using CSS selectors.

    Each field is resolved independently; a bad selector or regex only
    nulls that field. Without ``attr`` the value is auto-detected from
    the element type: images give their source, links their href, media
    their src (all made absolute), anything else its trimmed text.

    With ``all_matches=False`` the first matched element (in document
    order) that yields a value wins, so a page's primary item is preferred
    over "related items" sharing the selector.

    Example:
        extractor = FieldExtractor()
        result = extractor.extract(html, "https://shop.example.com/p/1", {
            "title": {"selector": "h1"},
            "image": {"selector": "img.main", "attr": "src"},
            "tags": {"selector": ".tag", "allMatches": True},
        })
    """

    def __init__(self, log_prefix: str = ""):
        self._log_prefix = log_prefix

    def _image_source(self, el: Tag) -> Optional[str]:
        src = (el.get("src") or "").strip()
        if src.startswith("data:"):
            srcset = el.get("srcset") or ""
            return first_srcset_url(srcset)
        return src or None

    def _media_source(self, el: Tag) -> Optional[str]:
        src = (el.get("src") or "").strip()
        if src:
            return src
        source = el.find("source", src=True)
        if isinstance(source, Tag):
            return source["src"].strip() or None
        return None

    def _text(self, el: Tag) -> Optional[str]:
        text = el.get_text().strip()
        return text or None

    def _auto_value(self, el: Tag, base_url: str) -> Optional[str]:
        """Pick a value based on element type."""
        name = (el.name or "").lower()

        url: Optional[str]
        if name == "img":
            url = self._image_source(el)
        elif name == "a":
            url = (el.get("href") or "").strip() or None
            if url is None:
                return self._text(el)
        elif name in MEDIA_TAGS:
            url = self._media_source(el)
        else:
            return self._text(el)

        return urljoin(base_url, url) if url else None

    def _attribute_value(self, el: Tag, attr: str) -> Optional[str]:
        """Read an attribute verbatim (trimmed)."""
        value = el.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        value = (value or "").strip()

        # An inline placeholder image usually carries the real URL in srcset
        if attr.lower() == "src" and (el.name or "").lower() == "img" and value.startswith("data:"):
            return first_srcset_url(el.get("srcset") or "")

        return value or None

    def _element_value(
        self,
        el: Tag,
        spec: FieldSpec,
        base_url: str,
        regex: Optional[re.Pattern[str]],
    ) -> Optional[str]:
        if spec.attr:
            value = self._attribute_value(el, spec.attr)
        else:
            value = self._auto_value(el, base_url)

        if value is not None and regex is not None:
            return apply_regex(value, regex)
        return value

    def _coerce_spec(self, name: str, raw: Union[FieldSpec, Mapping[str, Any], Any]) -> Optional[FieldSpec]:
        if isinstance(raw, FieldSpec):
            return raw
        if not isinstance(raw, Mapping):
            logger.warning(
                f"{self._log_prefix} Invalid field config for '{name}': must be an object with 'selector' property"
            )
            return None
        try:
            return FieldSpec.model_validate(dict(raw))
        except ValidationError as e:
            logger.warning(f"{self._log_prefix} Invalid field config for '{name}': {e.errors()[0]['msg']}")
            return None

    def extract_field(self, soup: BeautifulSoup, name: str, spec: FieldSpec, base_url: str) -> FieldValue:
        """
        Resolve one field against a parsed document.

        Returns:
            None, a string, or a list of strings (``all_matches``)
        """
        regex: Optional[re.Pattern[str]] = None
        if spec.regex:
            try:
                regex = compile_field_regex(spec.regex, spec.regex_flags)
            except (re.error, ValueError) as e:
                logger.error(f"{self._log_prefix} Invalid regex pattern for field '{name}': {spec.regex} ({e})")
                return None

        try:
            matches = soup.select(spec.selector)
        except Exception as e:
            logger.error(
                f"{self._log_prefix} Error processing field '{name}' with selector '{spec.selector}': {e}"
            )
            return None

        if not matches:
            logger.warning(f"{self._log_prefix} No elements matched selector for field '{name}': {spec.selector}")
            return None

        method = f"attribute '{spec.attr}'" if spec.attr else "auto-detection"

        if spec.all_matches:
            values = [v for v in (self._element_value(el, spec, base_url, regex) for el in matches) if v is not None]
            logger.info(
                f"{self._log_prefix} Field '{name}': extracted from all {len(matches)} match(es) "
                f"using {method}, got {len(values)} values"
            )
            return values or None

        for el in matches:
            value = self._element_value(el, spec, base_url, regex)
            if value is not None:
                logger.info(
                    f"{self._log_prefix} Field '{name}': extracted from first of {len(matches)} match(es) using {method}"
                )
                return value

        logger.info(f"{self._log_prefix} Field '{name}': {len(matches)} match(es) but no value")
        return None

    def extract(
        self,
        html: str,
        base_url: str,
        fields: Mapping[str, Union[FieldSpec, Mapping[str, Any]]],
    ) -> dict[str, FieldValue]:
        """
        Extract every field from the HTML.

        Args:
            html: Page HTML (usually sanitized)
            base_url: Page URL for resolving relative URLs
            fields: Mapping of field name to FieldSpec (or raw spec dict)

        Returns:
            Mapping of field name to value, in the order of ``fields``
        """
        soup = BeautifulSoup(html, "html.parser")
        result: dict[str, FieldValue] = {}

        for name, raw in fields.items():
            spec = self._coerce_spec(name, raw)
            if spec is None:
                result[name] = None
                continue
            result[name] = self.extract_field(soup, name, spec, base_url)

        return result
