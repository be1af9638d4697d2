from __future__ import annotations

import os

from pydantic import ValidationError

from pimattr.core.settings import AuthoringSettings
from pimattr.io.loaders.errors import LoaderError
from pimattr.io.loaders.yaml_io import read_yaml


def load_settings(path: str) -> AuthoringSettings:
    """Read authoring settings; a missing file yields the defaults."""
    if not os.path.isfile(path):
        return AuthoringSettings()
    data = read_yaml(path)
    try:
        return AuthoringSettings.model_validate(data.get("authoring", data))
    except ValidationError as exc:
        raise LoaderError(path, "Invalid authoring settings", cause=exc) from exc
