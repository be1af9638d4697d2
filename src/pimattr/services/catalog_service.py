"""Catalog Service: attribute lookup and persistence collaborators.

The authoring core depends only on the two abstract services below. The
in-memory implementation backs the CLI and the tests; it is seeded from the
YAML knowledge base and simulates latency and transport failures on demand.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pimattr.core.attributes.attribute import Attribute, AttributePage, AttributeQuery
from pimattr.core.errors import FieldValidationError, TransportError
from pimattr.core.registries.registry_manager import RegistryManager
from pimattr.repositories.attribute_repository import AttributeRepository
from pimattr.utils.logging import log_calls

logger = logging.getLogger(__name__)


class AttributeNotFoundError(KeyError):
    """No attribute with the requested id exists."""


class DuplicateAttributeCodeError(FieldValidationError):
    """Another attribute already uses the code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__({"code": f"Code '{code}' is already in use"})


class AttributeLookupService(ABC):
    @abstractmethod
    async def list_attributes(self, query: AttributeQuery) -> AttributePage:
        """Return one page of attributes matching ``query``."""

    @abstractmethod
    async def get_attribute_by_id(self, attribute_id: str) -> Attribute:
        """Return one attribute; raises AttributeNotFoundError when missing."""


class AttributePersistenceService(ABC):
    @abstractmethod
    async def create(self, payload: Mapping[str, Any]) -> Attribute:
        ...

    @abstractmethod
    async def update(self, attribute_id: str, payload: Mapping[str, Any]) -> Attribute:
        ...


class InMemoryAttributeService(AttributeLookupService, AttributePersistenceService):
    """Both collaborators over a RegistryManager.

    Args:
        registries: Catalog the service reads from and writes into
        latency: Seconds every call sleeps before answering
        id_prefix: Prefix for generated attribute ids
    """

    def __init__(self, registries: Optional[RegistryManager] = None, *, latency: float = 0.0, id_prefix: str = "attr"):
        self.registries = registries or RegistryManager()
        self.repository = AttributeRepository(self.registries)
        self.latency = latency
        self.id_prefix = id_prefix
        self.calls: List[Tuple[str, Any]] = []
        self._failures: List[Tuple[Optional[str], BaseException]] = []

    def fail_next(self, error: Optional[BaseException] = None, *, operation: Optional[str] = None) -> None:
        """Make the next call (optionally: the next call of ``operation``) fail."""
        self._failures.append((operation, error or ConnectionError("simulated outage")))

    async def _enter(self, operation: str, argument: Any) -> None:
        self.calls.append((operation, argument))
        if self.latency:
            await asyncio.sleep(self.latency)
        for index, (target, error) in enumerate(self._failures):
            if target is None or target == operation:
                del self._failures[index]
                raise TransportError(operation, cause=error) from error

    @log_calls()
    async def list_attributes(self, query: AttributeQuery) -> AttributePage:
        await self._enter("list_attributes", query)
        return self.repository.query(query)

    @log_calls()
    async def get_attribute_by_id(self, attribute_id: str) -> Attribute:
        await self._enter("get_attribute_by_id", attribute_id)
        if attribute_id not in self.registries.attributes:
            raise AttributeNotFoundError(attribute_id)
        return self.registries.attributes.get(attribute_id)

    @log_calls()
    async def create(self, payload: Mapping[str, Any]) -> Attribute:
        await self._enter("create", dict(payload))
        now = datetime.now(timezone.utc)
        attribute = Attribute.model_validate(
            {**payload, "id": self._next_id(), "createdAt": now, "updatedAt": now}
        )
        if self.registries.attributes.find_by_code(attribute.code) is not None:
            raise DuplicateAttributeCodeError(attribute.code)
        self.registries.attributes.register_attribute(attribute)
        logger.info("Created attribute %s (%s)", attribute.code, attribute.id)
        return attribute

    @log_calls()
    async def update(self, attribute_id: str, payload: Mapping[str, Any]) -> Attribute:
        await self._enter("update", (attribute_id, dict(payload)))
        if attribute_id not in self.registries.attributes:
            raise AttributeNotFoundError(attribute_id)
        current = self.registries.attributes.get(attribute_id)
        merged: Dict[str, Any] = {**current.model_dump(by_alias=True), **payload}
        merged["id"] = attribute_id
        merged["updatedAt"] = datetime.now(timezone.utc)
        attribute = Attribute.model_validate(merged)
        clash = self.registries.attributes.find_by_code(attribute.code)
        if clash is not None and clash.id != attribute_id:
            raise DuplicateAttributeCodeError(attribute.code)
        self.registries.attributes.replace(attribute_id, attribute)
        logger.info("Updated attribute %s (%s): %s", attribute.code, attribute_id, ", ".join(sorted(payload)))
        return attribute

    def _next_id(self) -> str:
        while True:
            candidate = f"{self.id_prefix}_{uuid.uuid4().hex[:12]}"
            if candidate not in self.registries.attributes:
                return candidate


__all__ = [
    "AttributeLookupService",
    "AttributePersistenceService",
    "AttributeNotFoundError",
    "DuplicateAttributeCodeError",
    "InMemoryAttributeService",
]
