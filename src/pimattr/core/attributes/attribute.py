from __future__ import annotations

from datetime import datetime
from math import ceil
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pimattr.core.types import AttributeType, LocalizedText

DEFAULT_LANGUAGE = "en"


def localized(text: LocalizedText, language: str, fallback: str = DEFAULT_LANGUAGE) -> str:
    """Pick ``language`` from a localized mapping, falling back sensibly."""
    if not text:
        return ""
    for lang in (language, fallback):
        value = text.get(lang)
        if value:
            return value
    return next((v for v in text.values() if v), "")


def _as_localized(value: Any) -> Any:
    if value is None:
        return {}
    if isinstance(value, str):
        return {DEFAULT_LANGUAGE: value}
    return value


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AttributeGroup(_WireModel):
    id: str
    code: str
    name: LocalizedText = Field(default_factory=dict)

    @field_validator("name", mode="before")
    @classmethod
    def _name_mapping(cls, v: Any) -> Any:
        return _as_localized(v)


class Attribute(_WireModel):
    """Persisted attribute record, as returned by the persistence service."""

    id: str
    code: str
    type: AttributeType
    name: LocalizedText = Field(default_factory=dict)
    description: LocalizedText = Field(default_factory=dict)
    is_required: bool = Field(default=False, alias="isRequired")
    options: List[str] = Field(default_factory=list)
    attribute_group: Optional[str] = Field(default=None, alias="attributeGroup")
    validations: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = Field(default=True, alias="isActive")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("name", "description", mode="before")
    @classmethod
    def _text_mapping(cls, v: Any) -> Any:
        return _as_localized(v)

    @field_validator("code")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("code must be non-empty")
        return v

    def display_name(self, language: str = DEFAULT_LANGUAGE) -> str:
        return localized(self.name, language) or self.code


class OptionCandidate(BaseModel):
    """Read-only projection of an attribute usable as a pick-list value."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    code: str

    @classmethod
    def from_attribute(cls, attribute: Attribute, language: str = DEFAULT_LANGUAGE) -> "OptionCandidate":
        return cls(id=attribute.id, display_name=attribute.display_name(language), code=attribute.code)


class AttributeQuery(BaseModel):
    """Filter accepted by the attribute lookup service."""

    model_config = ConfigDict(frozen=True)

    type: Optional[AttributeType] = None
    is_active: Optional[bool] = None
    group_id: Optional[str] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=500)

    @field_validator("search")
    @classmethod
    def _strip_search(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    def matches(self, attribute: Attribute) -> bool:
        if self.type is not None and attribute.type != self.type:
            return False
        if self.is_active is not None and attribute.is_active != self.is_active:
            return False
        if self.group_id is not None and attribute.attribute_group != self.group_id:
            return False
        if self.search:
            needle = self.search.lower()
            haystack = [attribute.code, *attribute.name.values()]
            if not any(needle in text.lower() for text in haystack):
                return False
        return True


class AttributePage(BaseModel):
    items: List[Attribute] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0


__all__ = [
    "DEFAULT_LANGUAGE",
    "localized",
    "AttributeGroup",
    "Attribute",
    "OptionCandidate",
    "AttributeQuery",
    "AttributePage",
]
