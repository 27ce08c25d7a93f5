"""Pydantic request models for pagepull."""

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class WaitCondition(str, Enum):
    """Browser events that mark navigation as complete."""

    LOAD = "load"
    DOMCONTENTLOADED = "domcontentloaded"
    NETWORKIDLE = "networkidle"
    COMMIT = "commit"


class OutputFormat(str, Enum):
    """Output formats for fetched page content."""

    HTML = "html"
    MARKDOWN = "markdown"


class FetchOptions(BaseModel):
    """
    Per-request options for fetching and reducing a page.

    Timeouts are in seconds. ``max_length=0`` disables truncation.

    Example:
        options = FetchOptions(
            output_format=OutputFormat.MARKDOWN,
            max_length=5000,
            search=r"price|stock",
        )
    """

    timeout: float = Field(30.0, gt=0, description="Page load timeout in seconds")
    wait_until: WaitCondition = Field(
        WaitCondition.NETWORKIDLE,
        description="When navigation is considered complete",
    )
    output_format: OutputFormat = Field(OutputFormat.MARKDOWN, description="Output format")
    main_content_only: bool = Field(True, description="Strip navigation, ads and other page chrome")
    max_length: int = Field(0, ge=0, description="Maximum output length in characters (0 = unlimited)")
    wait_for_navigation: bool = Field(
        False,
        description="Wait for a further navigation after load (client-side redirects, bot checks)",
    )
    navigation_timeout: float = Field(
        10.0,
        gt=0,
        description="Seconds to wait for the further navigation",
    )
    disable_media: bool = Field(True, description="Block images, stylesheets, fonts and media")
    debug: bool = Field(False, description="Show the browser window")
    search: Optional[str] = Field(
        None,
        description="Regex; only Markdown lines matching it are kept (case-insensitive)",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("search")
    @classmethod
    def _check_search(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        try:
            re.compile(value, re.IGNORECASE)
        except re.error as err:
            raise ValueError(f"Invalid search regex pattern: {err}") from err
        return value


class FieldSpec(BaseModel):
    """
    How to locate and read one named field on a page.

    Accepts both snake_case and the camelCase keys used by JSON callers
    (``regexFlags``, ``allMatches``).

    Example:
        FieldSpec(selector="img.main", attr="src")
        FieldSpec(selector=".tags", regex=r"#(\\w+)", all_matches=True)
    """

    selector: str = Field(..., min_length=1, description="CSS selector")
    attr: Optional[str] = Field(None, description="Attribute to read instead of auto-detection")
    regex: Optional[str] = Field(None, description="Regex applied to the extracted value")
    regex_flags: Optional[str] = Field(None, alias="regexFlags", description="Regex flags like 'i', 'm', 's'")
    all_matches: bool = Field(
        False,
        alias="allMatches",
        description="Return values from every matched element",
    )

    model_config = {"extra": "ignore", "frozen": True, "populate_by_name": True}

    @field_validator("all_matches", mode="before")
    @classmethod
    def _only_true_booleans(cls, value: Any) -> bool:
        # Anything but a real boolean counts as unset
        return value if isinstance(value, bool) else False

    @field_validator("selector")
    @classmethod
    def _check_selector(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("selector must not be blank")
        return value


def load_field_specs(source: str) -> dict[str, Any]:
    """
    Load a raw field specification map.

    Args:
        source: Inline JSON object, or a path to a ``.json``, ``.yaml`` or ``.yml`` file

    Returns:
        Mapping of field name to raw spec (validated later, per field)

    Raises:
        ValueError: If the source cannot be parsed or is not a mapping
    """
    path = Path(source)
    text = source
    is_yaml = False
    if not source.lstrip().startswith("{") and path.is_file():
        text = path.read_text(encoding="utf-8")
        is_yaml = path.suffix.lower() in (".yaml", ".yml")

    if is_yaml:
        import yaml

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as err:
            raise ValueError(f"Field specification is not valid YAML: {err}") from err
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as err:
            raise ValueError(f"Field specification is not valid JSON: {err}") from err

    if not isinstance(data, dict):
        raise ValueError("Field specification must be an object mapping names to specs")
    return data
