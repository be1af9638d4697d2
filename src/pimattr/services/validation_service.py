"""Validation Service: Validates catalog consistency and option references."""

from __future__ import annotations

from typing import List

from pimattr.core.registries.registry_manager import RegistryManager
from pimattr.core.registries.validators import CatalogValidator
from pimattr.repositories.attribute_repository import AttributeRepository


class ValidationService:
    """
    Service for validating the attribute catalog.

    Coordinates rule, option and group checks across the registries.
    """

    def __init__(self, registry_manager: RegistryManager, attribute_repository: AttributeRepository):
        """
        Initialize validation service.

        Args:
            registry_manager: Registry manager for validation
            attribute_repository: Attribute repository
        """
        self.registry_manager = registry_manager
        self.attribute_repo = attribute_repository
        self.validator = CatalogValidator(registry_manager)

    def validate_all(self) -> List[str]:
        """
        Validate the entire catalog.

        Returns:
            List of validation error messages (empty if valid)
        """
        return self.validator.validate_all()

    def validate_attribute(self, ref: str) -> List[str]:
        """
        Validate one attribute, looked up by id or code.

        Args:
            ref: Attribute id or code

        Returns:
            List of validation error messages
        """
        attribute = self.attribute_repo.find(ref)
        if attribute is None:
            return [f"Attribute '{ref}' not found"]
        return self.validator.validate_attribute(attribute)

    def get_validation_summary(self) -> dict:
        """
        Get a summary of the catalog validation state.

        Returns:
            Dict with validation statistics
        """
        all_errors = self.validate_all()

        return {
            "valid": len(all_errors) == 0,
            "error_count": len(all_errors),
            "errors": all_errors,
            "attribute_count": len(self.attribute_repo.list_all()),
            "group_count": len(self.attribute_repo.list_groups()),
        }


__all__ = ["ValidationService"]
