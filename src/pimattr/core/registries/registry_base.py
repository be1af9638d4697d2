from __future__ import annotations

from typing import Dict, Generic, Iterable, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class KeyedRegistry(BaseModel, Generic[T]):
    """Insertion-ordered registry keyed by a string id."""

    items: Dict[str, T] = Field(default_factory=dict)

    def register(self, key: str, item: T) -> None:
        if key in self.items:
            raise ValueError(f"Duplicate registration: {key}")
        self.items[key] = item

    def replace(self, key: str, item: T) -> None:
        if key not in self.items:
            raise KeyError(f"Unknown: {key}")
        self.items[key] = item

    def get(self, key: str) -> T:
        if key not in self.items:
            available = ", ".join(sorted(self.items.keys()))
            raise KeyError(f"Unknown: {key}. Available: {available}")
        return self.items[key]

    def all(self) -> Iterable[T]:
        return self.items.values()

    def keys(self) -> Iterable[str]:
        return sorted(self.items.keys())

    def __contains__(self, key: object) -> bool:
        return key in self.items

    def __len__(self) -> int:
        return len(self.items)
