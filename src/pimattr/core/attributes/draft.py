from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, SerializeAsAny, model_validator

from pimattr.core.attributes.attribute import DEFAULT_LANGUAGE, Attribute, localized
from pimattr.core.registries.type_registry import coerce_type, is_enumerable
from pimattr.core.types import AttributeType, LocalizedText
from pimattr.core.validation.rule_sets import TextRules, ValidationRuleSet
from pimattr.core.validation.rules import build_rule_set

CODE_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


class AttributeDraft(BaseModel):
    """In-progress attribute definition owned by one authoring session."""

    name: LocalizedText = Field(default_factory=dict)
    code: str = ""
    description: LocalizedText = Field(default_factory=dict)
    type: AttributeType = AttributeType.TEXT
    is_required: bool = False
    attribute_group: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    validations: SerializeAsAny[ValidationRuleSet] = Field(default_factory=TextRules)

    @model_validator(mode="before")
    @classmethod
    def _typed_validations(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw = data.get("validations")
        if isinstance(raw, ValidationRuleSet):
            return data
        attr_type = coerce_type(data.get("type", AttributeType.TEXT))
        return {**data, "validations": build_rule_set(attr_type, raw or {})}

    @classmethod
    def from_attribute(cls, attribute: Attribute) -> "AttributeDraft":
        """Seed a draft for editing an existing record."""
        return cls(
            name=dict(attribute.name),
            code=attribute.code,
            description=dict(attribute.description),
            type=attribute.type,
            is_required=attribute.is_required,
            attribute_group=attribute.attribute_group,
            options=list(attribute.options) if is_enumerable(attribute.type) else [],
            validations=build_rule_set(attribute.type, attribute.validations),
        )

    def current_name(self, language: str = DEFAULT_LANGUAGE) -> str:
        return self.name.get(language, "")

    def display_name(self, language: str = DEFAULT_LANGUAGE) -> str:
        return localized(self.name, language) or self.code

    def to_payload(self) -> Dict[str, Any]:
        """Create payload in the persistence service's wire format."""
        payload: Dict[str, Any] = {
            "name": {lang: text.strip() for lang, text in self.name.items() if text.strip()},
            "code": self.code.strip(),
            "type": self.type.value,
            "isRequired": self.is_required,
        }
        description = {lang: text.strip() for lang, text in self.description.items() if text.strip()}
        if description:
            payload["description"] = description
        rules = self.validations.to_payload()
        if rules:
            payload["validations"] = rules
        if is_enumerable(self.type):
            payload["options"] = list(self.options)
        if self.attribute_group:
            payload["attributeGroup"] = self.attribute_group
        return payload

    def changed_fields(self, original: Attribute) -> Dict[str, Any]:
        """Partial update payload: only the fields that differ from ``original``."""
        before = AttributeDraft.from_attribute(original).to_payload()
        after = self.to_payload()
        empty: Dict[str, Any] = {"validations": {}, "options": [], "description": {}, "attributeGroup": None}
        changed: Dict[str, Any] = {}
        for key in sorted(set(before) | set(after)):
            new_value = after.get(key, empty.get(key))
            if before.get(key, empty.get(key)) != new_value:
                changed[key] = new_value
        return changed


__all__ = ["AttributeDraft", "CODE_PATTERN"]
