from __future__ import annotations

import logging
from typing import List, Tuple

from pydantic import ValidationError

from pimattr.core.attributes.attribute import Attribute
from pimattr.core.attributes.file_spec import AttributeFileSpec
from pimattr.core.errors import FatalTypeError, FieldValidationError
from pimattr.core.registries.registry_manager import RegistryManager
from pimattr.io.loaders.errors import LoaderError
from pimattr.io.loaders.yaml_io import read_yaml, yaml_files

logger = logging.getLogger(__name__)


def load_attributes(path: str, registries: RegistryManager) -> int:
    """Load attribute groups and attributes from YAML files in a directory tree.

    Expected format:
    groups:
      - id: appearance
        name: {en: Appearance}
    attributes:
      - id: color_red
        code: color_red
        type: readonly
        name: {en: Red}
      - code: color
        type: select
        options: [color_red]      # ids or codes
        attribute_group: appearance

    Returns the number of attributes registered.
    """
    loaded: List[Tuple[str, Attribute]] = []
    for fp in yaml_files(path):
        data = read_yaml(fp)
        try:
            spec = AttributeFileSpec.model_validate(data)
        except ValidationError as exc:
            raise LoaderError(fp, "Invalid attribute catalog definition", cause=exc) from exc

        for group_spec in spec.groups:
            try:
                registries.groups.register(group_spec.id, group_spec.build())
            except ValueError as exc:
                raise LoaderError(fp, f"Failed to register attribute group '{group_spec.id}'", cause=exc) from exc

        for entry in spec.attributes:
            try:
                attribute = entry.build()
            except FieldValidationError as exc:
                raise LoaderError(fp, f"Invalid validations for attribute '{entry.code}'", cause=exc) from exc
            except (ValidationError, FatalTypeError) as exc:
                raise LoaderError(fp, f"Invalid attribute '{entry.code}'", cause=exc) from exc
            try:
                registries.attributes.register_attribute(attribute)
            except ValueError as exc:
                raise LoaderError(fp, f"Failed to register attribute '{attribute.code}'", cause=exc) from exc
            loaded.append((fp, attribute))

    _resolve_option_codes(loaded, registries)
    logger.debug("Loaded %d attribute(s) from %s", len(loaded), path)
    return len(loaded)


def _resolve_option_codes(loaded: List[Tuple[str, Attribute]], registries: RegistryManager) -> None:
    """Rewrite option references given as codes to attribute ids.

    Unknown references are kept so the catalog validator can report them.
    """
    for _fp, attribute in loaded:
        if not attribute.options:
            continue
        resolved = []
        for ref in attribute.options:
            target = registries.resolve_reference(ref)
            resolved.append(target.id if target is not None else ref)
        if resolved != attribute.options:
            registries.attributes.replace(attribute.id, attribute.model_copy(update={"options": resolved}))
