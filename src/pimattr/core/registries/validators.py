from __future__ import annotations

from typing import List

from pimattr.core.attributes.attribute import Attribute
from pimattr.core.errors import FieldValidationError
from pimattr.core.registries.registry_manager import RegistryManager
from pimattr.core.registries.type_registry import is_enumerable, is_readonly_enumerant
from pimattr.core.validation.rules import build_rule_set, consistency_errors


class CatalogValidator:
    def __init__(self, registries: RegistryManager):
        self.registries = registries

    def validate_all(self) -> List[str]:
        """Return list of validation errors across the catalog."""
        errors: List[str] = []
        for attribute in self.registries.attributes.all():
            errors.extend(self.validate_attribute(attribute))
        return errors

    def validate_attribute(self, attribute: Attribute) -> List[str]:
        errors: List[str] = []
        errors.extend(self._validate_rules(attribute))
        errors.extend(self._validate_options(attribute))
        errors.extend(self._validate_group(attribute))
        return errors

    def _validate_rules(self, attribute: Attribute) -> List[str]:
        context = f"Attribute {attribute.code}"
        try:
            rule_set = build_rule_set(attribute.type, attribute.validations)
        except FieldValidationError as exc:
            return [f"{context} validation '{key}': {msg}" for key, msg in exc.errors.items()]
        return [f"{context} validation '{key}': {msg}" for key, msg in consistency_errors(rule_set).items()]

    def _validate_options(self, attribute: Attribute) -> List[str]:
        """Ensure options only appear on enumerable types and reference read-only enumerants."""
        context = f"Attribute {attribute.code}"
        if not is_enumerable(attribute.type):
            if attribute.options:
                return [f"{context}: type {attribute.type.value} cannot carry options"]
            return []

        errors: List[str] = []
        if not attribute.options:
            errors.append(f"{context}: {attribute.type.value} attribute has no options")
        seen = set()
        for ref in attribute.options:
            if ref in seen:
                errors.append(f"{context}: duplicate option '{ref}'")
                continue
            seen.add(ref)
            target = self.registries.resolve_reference(ref)
            if target is None:
                errors.append(f"{context}: option references unknown attribute '{ref}'")
            elif not is_readonly_enumerant(target.type):
                errors.append(
                    f"{context}: option '{target.code}' has type {target.type.value}, "
                    "only read-only attributes can be options"
                )
        return errors

    def _validate_group(self, attribute: Attribute) -> List[str]:
        if attribute.attribute_group is None or attribute.attribute_group in self.registries.groups:
            return []
        return [f"Attribute {attribute.code} references unknown attribute group: {attribute.attribute_group}"]
