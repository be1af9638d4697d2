"""Repository Layer: Clean abstractions for data access."""

from __future__ import annotations

from .attribute_repository import AttributeRepository

__all__ = ["AttributeRepository"]
