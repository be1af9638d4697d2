from __future__ import annotations

import glob
import os
from typing import Any, Dict, List

import yaml

from pimattr.io.loaders.errors import LoaderError


def read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise LoaderError(path, "Malformed YAML", cause=exc) from exc
    if not isinstance(data, dict):
        raise LoaderError(path, f"Expected a mapping at the top level, got {type(data).__name__}")
    return data


def yaml_files(path: str) -> List[str]:
    """All YAML files below ``path`` (or ``path`` itself), in a stable order."""
    if os.path.isfile(path):
        return [path]
    if not os.path.exists(path):
        return []
    found = glob.glob(os.path.join(path, "**", "*.yaml"), recursive=True)
    found += glob.glob(os.path.join(path, "**", "*.yml"), recursive=True)
    return sorted(found)
