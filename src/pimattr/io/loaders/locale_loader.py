from __future__ import annotations

import os
from typing import Dict

from pydantic import RootModel, ValidationError

from pimattr.core.i18n import Catalog
from pimattr.io.loaders.errors import LoaderError
from pimattr.io.loaders.yaml_io import read_yaml, yaml_files


class LocaleFileSpec(RootModel[Dict[str, Dict[str, str]]]):
    """namespace -> key -> label"""


def load_locales(path: str) -> Dict[str, Catalog]:
    """Load label catalogs; each file is named after its language (``en.yaml``)."""
    catalogs: Dict[str, Catalog] = {}
    for fp in yaml_files(path):
        language = os.path.splitext(os.path.basename(fp))[0]
        try:
            spec = LocaleFileSpec.model_validate(read_yaml(fp))
        except ValidationError as exc:
            raise LoaderError(fp, f"Invalid locale catalog '{language}'", cause=exc) from exc
        catalog = catalogs.setdefault(language, {})
        for namespace, labels in spec.root.items():
            catalog.setdefault(namespace, {}).update(labels)
    return catalogs
