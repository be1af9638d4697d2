"""Typed rule-set variants, one per family of attribute types.

Each variant lists exactly the rule keys that are legal for its types, so a
constructed rule set can never carry a foreign key. Field names are
snake_case; the wire keys (``minLength``, ``isInteger``...) are the aliases.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ValidationRuleSet(BaseModel):
    """Sparse record of constraint values. Unset rules are ``None``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    @classmethod
    def legal_keys(cls) -> FrozenSet[str]:
        return frozenset(field.alias or name for name, field in cls.model_fields.items())

    @classmethod
    def field_name_for(cls, key: str) -> Optional[str]:
        for name, field in cls.model_fields.items():
            if key in (name, field.alias):
                return name
        return None

    def keys(self) -> FrozenSet[str]:
        return frozenset(self.to_payload().keys())

    def is_empty(self) -> bool:
        return not self.keys()

    def get(self, key: str) -> Any:
        name = self.field_name_for(key)
        return getattr(self, name) if name else None

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation with unset rules omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class NoRules(ValidationRuleSet):
    """Types without configurable rules."""


class TextRules(ValidationRuleSet):
    min_length: Optional[int] = Field(default=None, alias="minLength", ge=0)
    max_length: Optional[int] = Field(default=None, alias="maxLength", ge=0)
    pattern: Optional[str] = None
    placeholder: Optional[str] = None


class NumberRules(ValidationRuleSet):
    min: Optional[Union[int, float]] = None
    max: Optional[Union[int, float]] = None
    step: Optional[Union[int, float]] = Field(default=None, gt=0)
    is_integer: Optional[bool] = Field(default=None, alias="isInteger")
    is_positive: Optional[bool] = Field(default=None, alias="isPositive")
    is_negative: Optional[bool] = Field(default=None, alias="isNegative")
    is_zero: Optional[bool] = Field(default=None, alias="isZero")


class DateRules(ValidationRuleSet):
    min_date: Optional[date] = Field(default=None, alias="minDate")
    max_date: Optional[date] = Field(default=None, alias="maxDate")


class DateTimeRules(ValidationRuleSet):
    min_date: Optional[datetime] = Field(default=None, alias="minDate")
    max_date: Optional[datetime] = Field(default=None, alias="maxDate")


class SelectionRules(ValidationRuleSet):
    min_selections: Optional[int] = Field(default=None, alias="minSelections", ge=0)
    max_selections: Optional[int] = Field(default=None, alias="maxSelections", ge=0)


class FileRules(ValidationRuleSet):
    max_file_size: Optional[int] = Field(default=None, alias="maxFileSize", gt=0)  # bytes
    allowed_extensions: Optional[List[str]] = Field(default=None, alias="allowedExtensions")

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized


class ImageRules(FileRules):
    max_width: Optional[int] = Field(default=None, alias="maxWidth", gt=0)
    max_height: Optional[int] = Field(default=None, alias="maxHeight", gt=0)
    aspect_ratio: Optional[str] = Field(default=None, alias="aspectRatio", pattern=r"^\d+:\d+$")


class AttachmentRules(FileRules):
    max_files: Optional[int] = Field(default=None, alias="maxFiles", gt=0)


class RatingRules(ValidationRuleSet):
    min_rating: Optional[float] = Field(default=None, alias="minRating", ge=0)
    max_rating: Optional[float] = Field(default=None, alias="maxRating", ge=0)
    allow_half_stars: Optional[bool] = Field(default=None, alias="allowHalfStars")


class ArrayRules(ValidationRuleSet):
    min_items: Optional[int] = Field(default=None, alias="minItems", ge=0)
    max_items: Optional[int] = Field(default=None, alias="maxItems", ge=0)
    item_type: Optional[str] = Field(default=None, alias="itemType")
    unique_items: Optional[bool] = Field(default=None, alias="uniqueItems")
    allow_empty: Optional[bool] = Field(default=None, alias="allowEmpty")


class ColorRules(ValidationRuleSet):
    color_format: Optional[Literal["hex", "rgb", "hsl"]] = Field(default=None, alias="colorFormat")


class RichTextRules(ValidationRuleSet):
    allowed_tags: Optional[List[str]] = Field(default=None, alias="allowedTags")
    max_text_length: Optional[int] = Field(default=None, alias="maxTextLength", gt=0)


class FormulaRules(ValidationRuleSet):
    variables: Optional[List[str]] = None
    functions: Optional[List[str]] = None
    default_formula: Optional[str] = Field(default=None, alias="defaultFormula")
    require_valid_syntax: Optional[bool] = Field(default=None, alias="requireValidSyntax")
    allow_empty_formula: Optional[bool] = Field(default=None, alias="allowEmptyFormula")


class ObjectRules(ValidationRuleSet):
    required_properties: Optional[List[str]] = Field(default=None, alias="requiredProperties")
    json_schema: Optional[str] = Field(default=None, alias="jsonSchema")
    strict_mode: Optional[bool] = Field(default=None, alias="strictMode")
    allow_empty_object: Optional[bool] = Field(default=None, alias="allowEmptyObject")


class ReadonlyRules(ValidationRuleSet):
    default_value: Optional[Any] = Field(default=None, alias="defaultValue")


# (lower, upper) wire keys checked for lower <= upper
PAIRED_BOUNDS = (
    ("min", "max"),
    ("minLength", "maxLength"),
    ("minDate", "maxDate"),
    ("minSelections", "maxSelections"),
    ("minRating", "maxRating"),
    ("minItems", "maxItems"),
)


__all__ = [
    "ValidationRuleSet",
    "NoRules",
    "TextRules",
    "NumberRules",
    "DateRules",
    "DateTimeRules",
    "SelectionRules",
    "FileRules",
    "ImageRules",
    "AttachmentRules",
    "RatingRules",
    "ArrayRules",
    "ColorRules",
    "RichTextRules",
    "FormulaRules",
    "ObjectRules",
    "ReadonlyRules",
    "PAIRED_BOUNDS",
]
