from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field

from pimattr.core.attributes.attribute import Attribute, AttributeGroup

from .registry_base import KeyedRegistry


class AttributeRegistry(KeyedRegistry[Attribute]):
    def find_by_code(self, code: str) -> Optional[Attribute]:
        for attribute in self.items.values():
            if attribute.code == code:
                return attribute
        return None

    def register_attribute(self, attribute: Attribute) -> None:
        existing = self.find_by_code(attribute.code)
        if existing is not None and existing.id != attribute.id:
            raise ValueError(f"Duplicate attribute code: {attribute.code}")
        self.register(attribute.id, attribute)


class AttributeGroupRegistry(KeyedRegistry[AttributeGroup]):
    pass


class RegistryManager(BaseModel):
    """Central manager for the attribute catalog."""

    attributes: AttributeRegistry = Field(default_factory=AttributeRegistry)
    groups: AttributeGroupRegistry = Field(default_factory=AttributeGroupRegistry)

    model_config = {"arbitrary_types_allowed": True}

    def resolve_reference(self, ref: str) -> Optional[Attribute]:
        """Resolve an attribute by id, falling back to its code."""
        if ref in self.attributes:
            return self.attributes.get(ref)
        return self.attributes.find_by_code(ref)

    def code_index(self) -> Dict[str, str]:
        return {attribute.code: attribute.id for attribute in self.attributes.all()}

    def validate_references(self) -> None:
        """Cross-registry validation; raises with every problem listed."""
        from .validators import CatalogValidator  # local import to avoid cycles

        errors = CatalogValidator(self).validate_all()
        if errors:
            msg = "Catalog validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            raise RuntimeError(msg)
