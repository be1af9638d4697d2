from .registry_base import KeyedRegistry
from .registry_manager import AttributeGroupRegistry, AttributeRegistry, RegistryManager

__all__ = [
    "AttributeGroupRegistry",
    "AttributeRegistry",
    "KeyedRegistry",
    "RegistryManager",
]
