"""Static taxonomy of attribute types and their legal validation rules."""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Tuple, Type

from pydantic import BaseModel, ConfigDict

from pimattr.core.errors import FatalTypeError
from pimattr.core.types import AttributeType
from pimattr.core.validation.rule_sets import (
    ArrayRules,
    AttachmentRules,
    ColorRules,
    DateRules,
    DateTimeRules,
    FileRules,
    FormulaRules,
    ImageRules,
    NoRules,
    NumberRules,
    ObjectRules,
    RatingRules,
    ReadonlyRules,
    RichTextRules,
    SelectionRules,
    TextRules,
    ValidationRuleSet,
)

LABEL_NAMESPACE = "attribute_types"


class TypeTraits(BaseModel):
    """Per-type entry of the registry."""

    model_config = ConfigDict(frozen=True)

    rules: Type[ValidationRuleSet]
    enumerable: bool = False
    readonly_enumerant: bool = False


_TABLE: Dict[AttributeType, TypeTraits] = {
    AttributeType.TEXT: TypeTraits(rules=TextRules),
    AttributeType.NUMBER: TypeTraits(rules=NumberRules),
    AttributeType.BOOLEAN: TypeTraits(rules=NoRules),
    AttributeType.EMAIL: TypeTraits(rules=NoRules),
    AttributeType.PHONE: TypeTraits(rules=NoRules),
    AttributeType.URL: TypeTraits(rules=NoRules),
    AttributeType.DATE: TypeTraits(rules=DateRules),
    AttributeType.DATETIME: TypeTraits(rules=DateTimeRules),
    AttributeType.TIME: TypeTraits(rules=NoRules),
    AttributeType.SELECT: TypeTraits(rules=NoRules, enumerable=True),
    AttributeType.MULTISELECT: TypeTraits(rules=SelectionRules, enumerable=True),
    AttributeType.FILE: TypeTraits(rules=FileRules),
    AttributeType.IMAGE: TypeTraits(rules=ImageRules),
    AttributeType.ATTACHMENT: TypeTraits(rules=AttachmentRules),
    AttributeType.OBJECT: TypeTraits(rules=ObjectRules),
    AttributeType.ARRAY: TypeTraits(rules=ArrayRules),
    AttributeType.JSON: TypeTraits(rules=ObjectRules),
    AttributeType.FORMULA: TypeTraits(rules=FormulaRules),
    AttributeType.EXPRESSION: TypeTraits(rules=FormulaRules),
    AttributeType.COLOR: TypeTraits(rules=ColorRules),
    AttributeType.RICH_TEXT: TypeTraits(rules=RichTextRules),
    AttributeType.RATING: TypeTraits(rules=RatingRules),
    AttributeType.BARCODE: TypeTraits(rules=NoRules),
    AttributeType.QR: TypeTraits(rules=NoRules),
    AttributeType.READONLY: TypeTraits(rules=ReadonlyRules, readonly_enumerant=True),
}


def coerce_type(value: Any) -> AttributeType:
    """Turn a raw value into an AttributeType or fail hard."""
    if isinstance(value, AttributeType):
        return value
    try:
        return AttributeType(value)
    except (ValueError, TypeError):
        raise FatalTypeError(f"Unknown attribute type: {value!r}") from None


def _traits(attr_type: Any) -> TypeTraits:
    resolved = coerce_type(attr_type)
    try:
        return _TABLE[resolved]
    except KeyError:  # pragma: no cover - table covers the enum
        raise FatalTypeError(f"Attribute type not registered: {resolved.value}") from None


def rule_model_for(attr_type: Any) -> Type[ValidationRuleSet]:
    return _traits(attr_type).rules


def legal_rule_keys(attr_type: Any) -> FrozenSet[str]:
    return _traits(attr_type).rules.legal_keys()


def is_enumerable(attr_type: Any) -> bool:
    return _traits(attr_type).enumerable


def is_readonly_enumerant(attr_type: Any) -> bool:
    return _traits(attr_type).readonly_enumerant


def type_label_key(attr_type: Any) -> Tuple[str, str]:
    """(namespace, key) used to look up the display label of a type."""
    return LABEL_NAMESPACE, coerce_type(attr_type).value


def all_types() -> Tuple[AttributeType, ...]:
    return tuple(_TABLE.keys())


__all__ = [
    "TypeTraits",
    "coerce_type",
    "rule_model_for",
    "legal_rule_keys",
    "is_enumerable",
    "is_readonly_enumerant",
    "type_label_key",
    "all_types",
    "LABEL_NAMESPACE",
]
