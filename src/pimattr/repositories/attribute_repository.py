"""Attribute Repository: synchronous catalog access for reporting and the CLI."""

from __future__ import annotations

from typing import List, Optional

from pimattr.core.attributes.attribute import Attribute, AttributeGroup, AttributePage, AttributeQuery
from pimattr.core.registries.registry_manager import RegistryManager
from pimattr.core.registries.type_registry import is_readonly_enumerant


class AttributeRepository:
    """Repository for attribute access - clean abstraction over registry."""

    def __init__(self, registry_manager: RegistryManager):
        """
        Initialize attribute repository.

        Args:
            registry_manager: The registry manager containing the catalog
        """
        self.registry_manager = registry_manager

    def get_by_id(self, attribute_id: str) -> Attribute:
        """
        Get attribute by id.

        Raises:
            KeyError: If no attribute has that id
        """
        return self.registry_manager.attributes.get(attribute_id)

    def find(self, ref: str) -> Optional[Attribute]:
        """Find an attribute by id or code."""
        return self.registry_manager.resolve_reference(ref)

    def exists(self, ref: str) -> bool:
        return self.find(ref) is not None

    def list_all(self) -> List[str]:
        """
        List all attribute codes.

        Returns:
            Sorted list of codes
        """
        return sorted(attribute.code for attribute in self.registry_manager.attributes.all())

    def query(self, query: AttributeQuery) -> AttributePage:
        matching = [attribute for attribute in self.registry_manager.attributes.all() if query.matches(attribute)]
        start = (query.page - 1) * query.limit
        return AttributePage(items=matching[start : start + query.limit], total=len(matching), page=query.page, limit=query.limit)

    def option_targets(self, attribute: Attribute) -> List[Attribute]:
        """Resolve an attribute's option references, skipping dangling ones."""
        resolved = []
        for ref in attribute.options:
            target = self.find(ref)
            if target is not None and is_readonly_enumerant(target.type):
                resolved.append(target)
        return resolved

    def group(self, group_id: str) -> Optional[AttributeGroup]:
        if group_id not in self.registry_manager.groups:
            return None
        return self.registry_manager.groups.get(group_id)

    def list_groups(self) -> List[AttributeGroup]:
        return list(self.registry_manager.groups.all())


__all__ = ["AttributeRepository"]
