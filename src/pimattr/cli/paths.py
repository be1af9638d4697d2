from __future__ import annotations

"""Utilities for resolving knowledge-base paths."""

from pathlib import Path


def kb_attributes_path(path: str | None) -> str:
    return path or str(Path.cwd() / "kb" / "attributes")


def kb_locales_path(path: str | None) -> str:
    return path or str(Path.cwd() / "kb" / "locales")


def kb_settings_path(path: str | None) -> str:
    return path or str(Path.cwd() / "kb" / "settings.yaml")


__all__ = ["kb_attributes_path", "kb_locales_path", "kb_settings_path"]
