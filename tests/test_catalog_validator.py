"""Tests for catalog validation and the validation service."""

import pytest

from pimattr.core.attributes.attribute import Attribute
from pimattr.core.registries.validators import CatalogValidator
from pimattr.repositories.attribute_repository import AttributeRepository
from pimattr.services.validation_service import ValidationService


def _add(registries, **fields):
    attribute = Attribute(**fields)
    registries.attributes.register_attribute(attribute)
    return attribute


def test_loaded_catalog_is_valid(registries):
    assert CatalogValidator(registries).validate_all() == []


def test_option_must_reference_readonly_attribute(registries):
    _add(registries, id="size", code="size", type="select", options=["weight", "ghost"])

    errors = CatalogValidator(registries).validate_all()

    assert any("option 'weight' has type number" in e for e in errors)
    assert any("unknown attribute 'ghost'" in e for e in errors)


def test_enumerable_without_options(registries):
    _add(registries, id="size", code="size", type="multiselect")

    errors = CatalogValidator(registries).validate_all()

    assert errors == ["Attribute size: multiselect attribute has no options"]


def test_options_on_non_enumerable_type(registries):
    _add(registries, id="label", code="label", type="text", options=["red"])

    errors = CatalogValidator(registries).validate_all()

    assert errors == ["Attribute label: type text cannot carry options"]


def test_inconsistent_and_illegal_rules(registries):
    _add(registries, id="depth", code="depth", type="number", validations={"min": 5, "max": 1})
    _add(registries, id="nickname", code="nickname", type="text", validations={"isInteger": True})

    errors = CatalogValidator(registries).validate_all()

    assert any(e.startswith("Attribute depth validation 'max'") for e in errors)
    assert any(e.startswith("Attribute nickname validation 'isInteger'") for e in errors)


def test_unknown_group(registries):
    _add(registries, id="finish", code="finish", type="text", attribute_group="missing")

    errors = CatalogValidator(registries).validate_all()

    assert errors == ["Attribute finish references unknown attribute group: missing"]


def test_validation_service_summary(registries):
    service = ValidationService(registries, AttributeRepository(registries))
    _add(registries, id="finish", code="finish", type="text", attribute_group="missing")

    summary = service.get_validation_summary()

    assert summary["valid"] is False
    assert summary["error_count"] == 1
    assert summary["attribute_count"] == 5
    assert summary["group_count"] == 1
    assert service.validate_attribute("color") == []
    assert service.validate_attribute("nope") == ["Attribute 'nope' not found"]


def test_validate_references_raises_with_every_problem(registries):
    _add(registries, id="size", code="size", type="select")

    with pytest.raises(RuntimeError, match="size: select attribute has no options"):
        registries.validate_references()
