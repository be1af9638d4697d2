"""Service Layer: collaborators and session orchestration."""

from __future__ import annotations

from .authoring_service import AuthoringService, AuthoringSession
from .catalog_service import (
    AttributeLookupService,
    AttributeNotFoundError,
    AttributePersistenceService,
    DuplicateAttributeCodeError,
    InMemoryAttributeService,
)
from .validation_service import ValidationService

__all__ = [
    "AttributeLookupService",
    "AttributeNotFoundError",
    "AttributePersistenceService",
    "DuplicateAttributeCodeError",
    "AuthoringService",
    "AuthoringSession",
    "InMemoryAttributeService",
    "ValidationService",
]
