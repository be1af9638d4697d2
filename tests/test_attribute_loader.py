"""
Tests for the YAML loaders.

Tests cover:
- catalog loading, including option references given as codes
- rejection of illegal rule keys, unknown types and malformed files
- locale catalogs and authoring settings
"""

import textwrap

import pytest

from pimattr.core.i18n import CatalogTranslator
from pimattr.core.registries import RegistryManager
from pimattr.io.loaders import LoaderError, load_attributes, load_locales, load_settings


def write_yaml(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")


def _load(tmp_path, content):
    write_yaml(tmp_path / "attributes" / "catalog.yaml", content)
    rm = RegistryManager()
    count = load_attributes(str(tmp_path / "attributes"), rm)
    return rm, count


def test_load_catalog(registries):
    assert len(registries.attributes) == 4
    assert "appearance" in registries.groups
    color = registries.attributes.get("color")
    assert color.attribute_group == "appearance"
    assert color.name == {"en": "Color"}
    assert registries.attributes.get("weight").validations == {"min": 0, "max": 100}


def test_option_codes_are_resolved_to_ids(tmp_path):
    rm, count = _load(
        tmp_path,
        """
        attributes:
          - id: opt_1
            code: small
            type: readonly
          - id: opt_2
            code: large
            type: readonly
          - code: size
            type: select
            options: [small, opt_2]
        """,
    )

    assert count == 3
    assert rm.attributes.get("size").options == ["opt_1", "opt_2"]


def test_localized_names_and_defaults(tmp_path):
    rm, _ = _load(
        tmp_path,
        """
        attributes:
          - code: title
            type: text
            name: {en: Title, tr: Baslik}
            description: Shown on the product page
        """,
    )

    title = rm.attributes.get("title")
    assert title.id == "title"
    assert title.name == {"en": "Title", "tr": "Baslik"}
    assert title.description == {"en": "Shown on the product page"}
    assert title.is_active is True
    assert title.is_required is False


def test_directory_with_several_files(tmp_path):
    write_yaml(tmp_path / "attributes" / "a.yaml", "attributes:\n  - {code: red, type: readonly}\n")
    write_yaml(tmp_path / "attributes" / "nested" / "b.yml", "attributes:\n  - {code: blue, type: readonly}\n")
    rm = RegistryManager()

    assert load_attributes(str(tmp_path / "attributes"), rm) == 2
    assert sorted(rm.attributes.keys()) == ["blue", "red"]


def test_illegal_rule_key_fails(tmp_path):
    with pytest.raises(LoaderError) as excinfo:
        _load(
            tmp_path,
            """
            attributes:
              - code: weight
                type: number
                validations:
                  maxLength: 4
            """,
        )

    message = str(excinfo.value)
    assert "Invalid validations for attribute 'weight'" in message
    assert "validations.maxLength" in message


def test_unknown_type_fails(tmp_path):
    with pytest.raises(LoaderError) as excinfo:
        _load(tmp_path, "attributes:\n  - {code: x, type: hologram}\n")

    assert "Invalid attribute 'x'" in str(excinfo.value)


def test_unknown_field_fails(tmp_path):
    with pytest.raises(LoaderError) as excinfo:
        _load(tmp_path, "attributes:\n  - {code: x, type: text, colour: red}\n")

    assert "Invalid attribute catalog definition" in str(excinfo.value)


def test_duplicate_code_fails(tmp_path):
    with pytest.raises(LoaderError) as excinfo:
        _load(
            tmp_path,
            """
            attributes:
              - {id: a, code: shared, type: text}
              - {id: b, code: shared, type: text}
            """,
        )

    assert "Failed to register attribute 'shared'" in str(excinfo.value)


def test_malformed_yaml_fails(tmp_path):
    with pytest.raises(LoaderError) as excinfo:
        _load(tmp_path, "attributes: [unclosed\n")

    assert "Malformed YAML" in str(excinfo.value)


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(LoaderError) as excinfo:
        _load(tmp_path, "- just\n- a list\n")

    assert "Expected a mapping" in str(excinfo.value)


def test_load_locales_and_translate(tmp_path):
    write_yaml(
        tmp_path / "locales" / "en.yaml",
        """
        attribute_types:
          number: Number
          select: Select
        """,
    )
    write_yaml(
        tmp_path / "locales" / "tr.yaml",
        """
        attribute_types:
          number: Sayi
        """,
    )

    catalogs = load_locales(str(tmp_path / "locales"))
    translator = CatalogTranslator(catalogs, language="tr")

    assert translator.languages == ["en", "tr"]
    assert translator.translate("number", "attribute_types") == "Sayi"
    assert translator.translate("select", "attribute_types") == "Select"
    assert translator.translate("hologram", "attribute_types") == "hologram"
    assert translator.with_language("en").translate("number", "attribute_types") == "Number"


def test_invalid_locale_file(tmp_path):
    write_yaml(tmp_path / "locales" / "en.yaml", "attribute_types: [number]\n")

    with pytest.raises(LoaderError):
        load_locales(str(tmp_path / "locales"))


def test_settings_defaults_when_missing(tmp_path):
    settings = load_settings(str(tmp_path / "settings.yaml"))

    assert settings.debounce_seconds == 0.5
    assert settings.min_interval_seconds == 1.0
    assert settings.language == "en"


def test_settings_from_file(tmp_path):
    path = tmp_path / "settings.yaml"
    write_yaml(
        path,
        """
        authoring:
          language: tr
          debounce_seconds: 0.2
          page_size: 5
        """,
    )

    settings = load_settings(str(path))

    assert settings.language == "tr"
    assert settings.debounce_seconds == 0.2
    assert settings.page_size == 5


def test_invalid_settings(tmp_path):
    path = tmp_path / "settings.yaml"
    write_yaml(path, "authoring:\n  page_size: 0\n")

    with pytest.raises(LoaderError) as excinfo:
        load_settings(str(path))

    assert "page_size" in str(excinfo.value)
