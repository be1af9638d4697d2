"""Type definitions for the attribute authoring core."""

from __future__ import annotations

from enum import Enum
from typing import Dict


class AttributeType(str, Enum):
    """Closed taxonomy of attribute data types."""

    # Basic
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"

    # Enumerable
    SELECT = "select"
    MULTISELECT = "multiselect"

    # File / media
    FILE = "file"
    IMAGE = "image"
    ATTACHMENT = "attachment"

    # Composite
    OBJECT = "object"
    ARRAY = "array"
    JSON = "json"
    FORMULA = "formula"
    EXPRESSION = "expression"

    # UI
    COLOR = "color"
    RICH_TEXT = "rich_text"
    RATING = "rating"
    BARCODE = "barcode"
    QR = "qr"

    # Special
    READONLY = "readonly"


class SubmissionPolicy(str, Enum):
    """How an empty rule set is treated when a draft is submitted."""

    HARD_REQUIRE_NONEMPTY = "hard_require_nonempty"
    SOFT_WARN_IF_EMPTY = "soft_warn_if_empty"
    OPTIONAL = "optional"


# language code -> text
LocalizedText = Dict[str, str]
