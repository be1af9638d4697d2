"""Label translation. Only user-facing labels go through here, never decisions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

Catalog = Dict[str, Dict[str, str]]


class Translator(ABC):
    @abstractmethod
    def translate(self, key: str, namespace: str) -> str:
        """Return the label for ``namespace.key``."""


class NullTranslator(Translator):
    """Hands keys back unchanged."""

    def translate(self, key: str, namespace: str) -> str:
        return key


class CatalogTranslator(Translator):
    """Looks labels up in per-language catalogs, falling back to the key.

    Args:
        catalogs: language -> namespace -> key -> label
        language: Preferred language
        fallback: Language tried when the preferred one has no label
    """

    def __init__(self, catalogs: Mapping[str, Catalog], language: str = "en", fallback: Optional[str] = "en"):
        self.catalogs = {lang: dict(catalog) for lang, catalog in catalogs.items()}
        self.language = language
        self.fallback = fallback

    @property
    def languages(self):
        return sorted(self.catalogs)

    def translate(self, key: str, namespace: str) -> str:
        for lang in (self.language, self.fallback):
            if lang is None:
                continue
            label = self.catalogs.get(lang, {}).get(namespace, {}).get(key)
            if label:
                return label
        return key

    def with_language(self, language: str) -> "CatalogTranslator":
        return CatalogTranslator(self.catalogs, language=language, fallback=self.fallback)


__all__ = ["Translator", "NullTranslator", "CatalogTranslator", "Catalog"]
