"""CLI tests: every command runs against a catalog written into tmp_path."""

from typer.testing import CliRunner

from pimattr.cli.app import app
from pimattr.cli.formatters import step_label
from pimattr.core.i18n import CatalogTranslator
from pimattr.core.workflow.steps import StepId

from conftest import write_yaml

runner = CliRunner()


def _invoke(args, catalog_dir, tmp_path, input=None, with_attrs=True):
    extra = ["--settings", str(tmp_path / "no-settings.yaml")]
    if with_attrs:
        extra += ["--attrs", str(catalog_dir)]
    return runner.invoke(app, [*args, *extra], input=input)


def test_validate_ok(catalog_dir):
    result = runner.invoke(app, ["validate", str(catalog_dir)])

    assert result.exit_code == 0, result.output
    assert "Loaded 4 attribute(s)" in result.output
    assert "All validations passed" in result.output


def test_validate_reports_problems(tmp_path):
    directory = tmp_path / "broken"
    write_yaml(
        directory / "catalog.yaml",
        """
        attributes:
          - code: size
            type: select
        """,
    )

    result = runner.invoke(app, ["validate", str(directory)])

    assert result.exit_code == 1
    assert "Validation errors detected" in result.output
    assert "select attribute has no options" in result.output


def test_validate_missing_path(tmp_path):
    result = runner.invoke(app, ["validate", str(tmp_path / "nowhere")])

    assert result.exit_code == 1
    assert "Path not found" in result.output


def test_validate_loader_error(tmp_path):
    directory = tmp_path / "bad"
    write_yaml(directory / "catalog.yaml", "attributes:\n  - {code: x, type: hologram}\n")

    result = runner.invoke(app, ["validate", str(directory)])

    assert result.exit_code == 1
    assert "Failed to load data" in result.output


def test_types_with_invalid_settings(tmp_path):
    settings = tmp_path / "settings.yaml"
    write_yaml(settings, "authoring:\n  page_size: 0\n")

    result = runner.invoke(app, ["types", "--settings", str(settings)])

    assert result.exit_code == 1
    assert "Failed to load data" in result.output


def test_types(catalog_dir, tmp_path):
    result = _invoke(["types"], catalog_dir, tmp_path, with_attrs=False)

    assert result.exit_code == 0, result.output
    assert "Attribute types" in result.output


def test_list_with_search(catalog_dir, tmp_path):
    result = _invoke(["list", "--search", "red"], catalog_dir, tmp_path)

    assert result.exit_code == 0, result.output
    assert "Page 1/1 (1 attribute(s))" in result.output


def test_list_pages(catalog_dir, tmp_path):
    result = _invoke(["list", "--limit", "3", "--page", "2"], catalog_dir, tmp_path)

    assert result.exit_code == 0, result.output
    assert "Page 2/2 (4 attribute(s))" in result.output


def test_list_unknown_type(catalog_dir, tmp_path):
    result = _invoke(["list", "--type", "hologram"], catalog_dir, tmp_path)

    assert result.exit_code == 2


def test_show(catalog_dir, tmp_path):
    result = _invoke(["show", "color"], catalog_dir, tmp_path)

    assert result.exit_code == 0, result.output
    assert "Color (color)" in result.output


def test_show_missing(catalog_dir, tmp_path):
    result = _invoke(["show", "ghost"], catalog_dir, tmp_path)

    assert result.exit_code == 2
    assert "Attribute not found" in result.output


def test_rules_consistent_number():
    result = runner.invoke(app, ["rules", "number", "min=0", "max=10"])

    assert result.exit_code == 0, result.output
    assert "Rules are consistent" in result.output
    assert "Submission policy satisfied" in result.output


def test_rules_inconsistent():
    result = runner.invoke(app, ["rules", "number", "min=5", "max=1"])

    assert result.exit_code == 1
    assert "Inconsistent rules" in result.output
    assert "max: max (1) must not be less than min (5)" in result.output


def test_rules_not_applicable():
    result = runner.invoke(app, ["rules", "number", "maxLength=3"])

    assert result.exit_code == 1
    assert "Rules not applicable" in result.output


def test_rules_policy_outcomes():
    blocked = runner.invoke(app, ["rules", "number"])
    warned = runner.invoke(app, ["rules", "text"])

    assert blocked.exit_code == 1
    assert "Submission blocked" in blocked.output
    assert warned.exit_code == 0
    assert "Needs confirmation" in warned.output


def test_rules_unknown_type():
    result = runner.invoke(app, ["rules", "hologram"])

    assert result.exit_code == 2


def test_create_text_attribute(catalog_dir, tmp_path):
    result = _invoke(
        ["create", "--name", "Finish", "--code", "finish", "--rule", "maxLength=40"],
        catalog_dir,
        tmp_path,
    )

    assert result.exit_code == 0, result.output
    assert "Created finish (attr_" in result.output
    assert '"maxLength": 40' in result.output


def test_create_declined_warning(catalog_dir, tmp_path):
    result = _invoke(["create", "--name", "Finish", "--code", "finish"], catalog_dir, tmp_path, input="n\n")

    assert result.exit_code == 1
    assert "Submission cancelled" in result.output


def test_create_accepts_warning_with_yes(catalog_dir, tmp_path):
    result = _invoke(["create", "--name", "Finish", "--code", "finish", "--yes"], catalog_dir, tmp_path)

    assert result.exit_code == 0, result.output
    assert "Created finish" in result.output


def test_create_number_without_rules_is_rejected(catalog_dir, tmp_path):
    result = _invoke(
        ["create", "--name", "Height", "--code", "height", "--type", "number", "--yes"],
        catalog_dir,
        tmp_path,
    )

    assert result.exit_code == 1
    assert "Submission rejected at step 'validation'" in result.output


def test_create_number_with_exact_digits(catalog_dir, tmp_path):
    result = _invoke(
        ["create", "--name", "Zip", "--code", "zip", "--type", "number", "--exact-digits", "5"],
        catalog_dir,
        tmp_path,
    )

    assert result.exit_code == 0, result.output
    assert '"max": 99999' in result.output


def test_create_multiselect(catalog_dir, tmp_path):
    result = _invoke(
        [
            "create",
            "--name", "Tags",
            "--code", "tags",
            "--type", "multiselect",
            "-o", "red",
            "-o", "blue",
            "-r", "maxSelections=2",
        ],
        catalog_dir,
        tmp_path,
    )

    assert result.exit_code == 0, result.output
    assert "Created tags" in result.output
    assert '"maxSelections": 2' in result.output


def test_create_with_ineligible_option(catalog_dir, tmp_path):
    result = _invoke(
        ["create", "--name", "Size", "--code", "size", "--type", "select", "-o", "weight"],
        catalog_dir,
        tmp_path,
    )

    assert result.exit_code == 1
    assert "Invalid options" in result.output


def test_create_with_bad_code(catalog_dir, tmp_path):
    result = _invoke(["create", "--name", "Finish", "--code", "has space"], catalog_dir, tmp_path)

    assert result.exit_code == 1
    assert "Step 'general' incomplete" in result.output


def test_create_with_inconsistent_rules(catalog_dir, tmp_path):
    result = _invoke(
        ["create", "--name", "Depth", "--code", "depth", "--type", "number", "-r", "min=5", "-r", "max=1"],
        catalog_dir,
        tmp_path,
    )

    assert result.exit_code == 1
    assert "Invalid validation rules" in result.output


def test_step_labels_come_from_locale_catalog():
    translator = CatalogTranslator({"en": {"steps": {"general": "General information"}}})

    assert step_label(StepId.GENERAL, translator) == "General information"
    assert step_label(StepId.REVIEW, translator) == "review"


def test_create_with_duplicate_code(catalog_dir, tmp_path):
    result = _invoke(
        ["create", "--name", "Weight", "--code", "weight", "-r", "maxLength=10"],
        catalog_dir,
        tmp_path,
    )

    assert result.exit_code == 1
    assert "Submission refused by the catalog" in result.output
    assert "code: Code 'weight' is already in use" in result.output
    assert isinstance(result.exception, SystemExit)
