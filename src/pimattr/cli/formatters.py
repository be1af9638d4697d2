"""Formatting helpers for CLI presentation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Mapping

from rich.table import Table

from pimattr.core.attributes.attribute import Attribute
from pimattr.core.i18n import Translator
from pimattr.core.registries.type_registry import (
    all_types,
    is_enumerable,
    is_readonly_enumerant,
    legal_rule_keys,
    type_label_key,
)
from pimattr.core.validation.rules import submission_policy
from pimattr.core.workflow.steps import StepId
from pimattr.utils.error_formatting import format_rule

STEP_LABEL_NAMESPACE = "steps"

if TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from pimattr.repositories.attribute_repository import AttributeRepository


def type_label(attr_type, translator: Translator) -> str:
    namespace, key = type_label_key(attr_type)
    return translator.translate(key, namespace)


def step_label(step: StepId, translator: Translator) -> str:
    return translator.translate(step.value, STEP_LABEL_NAMESPACE)


def format_rules(validations: Mapping[str, object]) -> str:
    if not validations:
        return "-"
    return ", ".join(format_rule(key, value) for key, value in validations.items())


def build_types_table(translator: Translator) -> Table:
    table = Table(title="Attribute types", show_header=True, header_style="bold blue")
    table.add_column("Type", style="cyan")
    table.add_column("Label")
    table.add_column("Rule keys")
    table.add_column("Enumerable", style="dim")
    table.add_column("Option source", style="dim")
    table.add_column("Policy", style="dim")
    for attr_type in all_types():
        table.add_row(
            attr_type.value,
            type_label(attr_type, translator),
            ", ".join(sorted(legal_rule_keys(attr_type))) or "-",
            "✓" if is_enumerable(attr_type) else "",
            "✓" if is_readonly_enumerant(attr_type) else "",
            submission_policy(attr_type).value,
        )
    return table


def build_attribute_list_table(
    attributes: Iterable[Attribute],
    translator: Translator,
    language: str,
    title: str = "Attributes",
) -> Table:
    table = Table(title=title)
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Group", style="dim")
    table.add_column("Required", style="dim")
    table.add_column("Options", style="dim")
    for attribute in attributes:
        table.add_row(
            attribute.code,
            attribute.display_name(language),
            type_label(attribute.type, translator),
            attribute.attribute_group or "",
            "✓" if attribute.is_required else "",
            str(len(attribute.options)) if attribute.options else "",
        )
    return table


def build_attribute_definition_table(
    attribute: Attribute,
    repository: "AttributeRepository",
    translator: Translator,
    language: str,
) -> Table:
    table = Table(title="Definition", show_header=True, header_style="bold blue")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("id", attribute.id)
    table.add_row("code", attribute.code)
    table.add_row("name", attribute.display_name(language))
    description = attribute.description.get(language) or next(iter(attribute.description.values()), "")
    if description:
        table.add_row("description", description)
    table.add_row("type", f"{type_label(attribute.type, translator)} ({attribute.type.value})")
    table.add_row("required", "✓" if attribute.is_required else "✗")
    table.add_row("active", "✓" if attribute.is_active else "✗")
    if attribute.attribute_group:
        group = repository.group(attribute.attribute_group)
        table.add_row("group", group.code if group is not None else f"{attribute.attribute_group} (missing)")
    table.add_row("validations", format_rules(attribute.validations))
    if is_enumerable(attribute.type):
        targets = repository.option_targets(attribute)
        labels = [f"{target.display_name(language)} ({target.code})" for target in targets]
        missing = len(attribute.options) - len(targets)
        if missing:
            labels.append(f"[red]{missing} unresolved[/red]")
        table.add_row("options", "\n".join(labels) or "-")
    return table


__all__ = [
    "type_label",
    "step_label",
    "format_rules",
    "build_types_table",
    "build_attribute_list_table",
    "build_attribute_definition_table",
]
