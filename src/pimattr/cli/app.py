"""
pim CLI: validate the attribute catalog, inspect types and attributes, and
author new attributes through the stepper workflow.

The catalog is read from kb/attributes (YAML); created attributes live in an
in-memory catalog service for the duration of the command.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from pimattr.cli.formatters import (
    build_attribute_definition_table,
    build_attribute_list_table,
    build_types_table,
    format_rules,
    step_label,
)
from pimattr.cli.load_helpers import load_catalog, load_session_settings, load_translator
from pimattr.cli.paths import kb_attributes_path, kb_locales_path, kb_settings_path
from pimattr.core.attributes.draft import AttributeDraft
from pimattr.core.errors import FatalTypeError, FieldValidationError, TransportError
from pimattr.core.fetch.coordinator import FetchCoordinator, FetchStatus
from pimattr.core.i18n import CatalogTranslator
from pimattr.core.registries import RegistryManager
from pimattr.core.registries.type_registry import coerce_type
from pimattr.core.selectors.paginated import PaginatedAttributeSelector
from pimattr.core.settings import AuthoringSettings
from pimattr.core.validation.rules import build_rule_set, check_submission_policy, consistency_errors
from pimattr.core.workflow.stepper import StepperWorkflow, SubmitResult, SubmitStatus
from pimattr.repositories.attribute_repository import AttributeRepository
from pimattr.services.authoring_service import AuthoringService
from pimattr.services.catalog_service import InMemoryAttributeService
from pimattr.services.validation_service import ValidationService
from pimattr.utils.error_formatting import format_field_errors, parse_rule_assignment

app = typer.Typer(help="pim: validate, inspect and author catalog attribute definitions.")
console = Console()


def setup_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"unknown log level: {level_name}")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)"),
) -> None:
    setup_logging(log_level)


def _load_registries(attrs: str | None, *, verbose_load: bool = False) -> RegistryManager:
    return load_catalog(kb_attributes_path(attrs), console, verbose_errors=verbose_load)


def _load_settings(settings_path: str | None) -> AuthoringSettings:
    return load_session_settings(kb_settings_path(settings_path), console)


def _translator(language: str, locales: str | None = None) -> CatalogTranslator:
    return load_translator(kb_locales_path(locales), language, console)


def _print_errors(title: str, errors) -> None:
    console.print(f"[red]{title}:[/red]")
    for line in format_field_errors(errors):
        console.print(f" - {line}")


@app.command()
def validate(
    attrs: str | None = typer.Argument(None, help="Path to kb/attributes folder"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """Validate the attribute catalog."""
    rm = _load_registries(attrs, verbose_load=verbose)
    service = ValidationService(rm, AttributeRepository(rm))
    summary = service.get_validation_summary()

    console.print(f"[green]OK[/green] Loaded {summary['attribute_count']} attribute(s)")
    console.print(f"[green]OK[/green] Loaded {summary['group_count']} attribute group(s)")

    if not summary["valid"]:
        console.print("[red]Validation errors detected:[/red]")
        for error in summary["errors"]:
            console.print(f" - {error}")
        raise typer.Exit(code=1)

    console.print("[green]All validations passed[/green]")


@app.command()
def types(
    lang: Optional[str] = typer.Option(None, "--lang", help="Label language"),
    settings_path: str | None = typer.Option(None, "--settings", help="Path to kb/settings.yaml"),
) -> None:
    """List attribute types with their rule keys and submission policy."""
    settings = _load_settings(settings_path)
    console.print(build_types_table(_translator(lang or settings.language)))


@app.command("list")
def list_attributes(
    attrs: str | None = typer.Option(None, "--attrs", help="Path to kb/attributes folder"),
    attr_type: Optional[str] = typer.Option(None, "--type", help="Only attributes of this type"),
    search: Optional[str] = typer.Option(None, "--search", help="Match code or name"),
    group: Optional[str] = typer.Option(None, "--group", help="Attribute group id"),
    page: int = typer.Option(1, "--page", min=1),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, max=500),
    lang: Optional[str] = typer.Option(None, "--lang", help="Label language"),
    settings_path: str | None = typer.Option(None, "--settings", help="Path to kb/settings.yaml"),
) -> None:
    """Paginated attribute listing."""
    rm = _load_registries(attrs)
    settings = _load_settings(settings_path)
    language = lang or settings.language
    try:
        resolved_type = coerce_type(attr_type) if attr_type else None
    except FatalTypeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2)

    service = InMemoryAttributeService(rm)
    coordinator = FetchCoordinator(service.list_attributes, operation="list_attributes")
    selector = PaginatedAttributeSelector(coordinator, page_size=limit or settings.page_size, attr_type=resolved_type)
    selector.search = search
    selector.group_id = group
    selector.page = page

    outcome = asyncio.run(selector.refresh())
    if outcome.status == FetchStatus.FAILED:
        console.print(f"[red]{outcome.error}[/red]")
        raise typer.Exit(code=1)

    data = outcome.data
    console.print(build_attribute_list_table(data.items, _translator(language), language))
    console.print(f"[dim]Page {data.page}/{max(data.total_pages, 1)} ({data.total} attribute(s))[/dim]")


@app.command()
def show(
    ref: str = typer.Argument(..., help="Attribute code or id"),
    attrs: str | None = typer.Option(None, "--attrs", help="Path to kb/attributes folder"),
    lang: Optional[str] = typer.Option(None, "--lang", help="Label language"),
    settings_path: str | None = typer.Option(None, "--settings", help="Path to kb/settings.yaml"),
) -> None:
    """Show one attribute's definition."""
    rm = _load_registries(attrs)
    settings = _load_settings(settings_path)
    language = lang or settings.language
    repository = AttributeRepository(rm)

    attribute = repository.find(ref)
    if attribute is None:
        console.print(f"[red]Attribute not found[/red]: {ref}")
        raise typer.Exit(code=2)

    console.print(f"[bold]{attribute.display_name(language)}[/bold] ({attribute.code})")
    console.print(build_attribute_definition_table(attribute, repository, _translator(language), language))


@app.command()
def rules(
    attr_type: str = typer.Argument(..., help="Attribute type"),
    assignments: List[str] = typer.Argument(None, help="Rules as key=value"),
) -> None:
    """Check a rule set against a type: applicability, consistency and submission policy."""
    try:
        resolved = coerce_type(attr_type)
    except FatalTypeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2)

    raw = {}
    for item in assignments or []:
        try:
            key, value = parse_rule_assignment(item)
        except ValueError as exc:
            console.print(f"[red]Bad rule[/red]: {exc}")
            raise typer.Exit(code=2)
        raw[key] = value

    try:
        rule_set = build_rule_set(resolved, raw)
    except FieldValidationError as exc:
        _print_errors("Rules not applicable", exc.errors)
        raise typer.Exit(code=1)

    console.print(f"[bold]{resolved.value}[/bold]: {format_rules(rule_set.to_payload())}")
    errors = consistency_errors(rule_set)
    if errors:
        _print_errors("Inconsistent rules", errors)
        raise typer.Exit(code=1)
    console.print("[green]Rules are consistent[/green]")

    check = check_submission_policy(resolved, rule_set)
    if check.blocking:
        console.print(f"[red]Submission blocked ({check.policy.value})[/red]: {check.message}")
        raise typer.Exit(code=1)
    if check.needs_confirmation:
        console.print(f"[yellow]Needs confirmation ({check.policy.value})[/yellow]: {check.message}")
    else:
        console.print(f"[green]Submission policy satisfied[/green] ({check.policy.value})")


@app.command()
def create(
    name: str = typer.Option(..., "--name", help="Attribute name in the session language"),
    code: str = typer.Option(..., "--code", help="Attribute code ([A-Za-z0-9_]+)"),
    attr_type: str = typer.Option("text", "--type", help="Attribute type"),
    description: Optional[str] = typer.Option(None, "--description"),
    group: Optional[str] = typer.Option(None, "--group", help="Attribute group id"),
    required: bool = typer.Option(False, "--required", help="Mark the attribute as required"),
    options: List[str] = typer.Option([], "--option", "-o", help="Option attribute (code or id); repeatable"),
    rule_items: List[str] = typer.Option([], "--rule", "-r", help="Validation rule as key=value; repeatable"),
    exact_digits: Optional[int] = typer.Option(None, "--exact-digits", help="Numeric: exactly N digits"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept soft validation warnings"),
    attrs: str | None = typer.Option(None, "--attrs", help="Path to kb/attributes folder"),
    lang: Optional[str] = typer.Option(None, "--lang", help="Session language"),
    settings_path: str | None = typer.Option(None, "--settings", help="Path to kb/settings.yaml"),
) -> None:
    """Author an attribute through every workflow step and print the created record."""
    rm = _load_registries(attrs)
    settings = _load_settings(settings_path)
    if lang:
        settings = settings.model_copy(update={"language": lang})
    translator = _translator(settings.language)

    rule_pairs = []
    for item in rule_items:
        try:
            rule_pairs.append(parse_rule_assignment(item))
        except ValueError as exc:
            console.print(f"[red]Bad --rule[/red]: {exc}")
            raise typer.Exit(code=2)

    def _confirm(check) -> bool:
        if yes:
            return True
        return typer.confirm(check.message or "Continue?", default=False)

    async def _author() -> SubmitResult:
        service = InMemoryAttributeService(rm)
        authoring = AuthoringService(service, service, settings)
        async with authoring.new_session(AttributeDraft()) as session:
            workflow = session.workflow

            workflow.set_general(name=name, code=code, description=description)
            workflow.set_group(group)
            _step(workflow, translator)

            await workflow.set_type(attr_type)
            for notice in workflow.notices:
                console.print(f"[yellow]{notice}[/yellow]")
            _step(workflow, translator)

            workflow.set_required(required)
            for ref in options:
                target = rm.resolve_reference(ref)
                workflow.toggle_option(target.id if target is not None else ref)
            if workflow.errors:
                _fail("Invalid options", workflow.errors)
            _step(workflow, translator)

            for key, value in rule_pairs:
                workflow.set_rule(key, value)
            if exact_digits is not None:
                workflow.apply_exact_digits(exact_digits)
            if workflow.errors:
                _fail("Invalid validation rules", workflow.errors)
            _step(workflow, translator)

            return await workflow.submit(confirm=_confirm)

    try:
        result = asyncio.run(_author())
    except FatalTypeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2)
    except TransportError as exc:
        console.print(f"[red]Service error[/red]: {exc}")
        raise typer.Exit(code=1)
    except FieldValidationError as exc:
        _fail("Submission refused by the catalog", exc.errors)

    if result.status == SubmitStatus.REJECTED:
        _fail(f"Submission rejected at step '{result.step.value}'", result.errors)
    if result.status == SubmitStatus.CANCELLED:
        console.print("[yellow]Submission cancelled[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]Created[/green] {result.attribute.code} ({result.attribute.id})")
    console.print_json(data=result.attribute.model_dump(mode="json", by_alias=True, exclude_none=True))


def _step(workflow: StepperWorkflow, translator: CatalogTranslator) -> None:
    step = workflow.current_step
    if not workflow.advance():
        _fail(f"Step '{step.value}' incomplete", workflow.errors)
    console.print(f"[dim]OK {step_label(step, translator)}[/dim]")


def _fail(title: str, errors) -> None:
    _print_errors(title, errors)
    raise typer.Exit(code=1)


__all__ = ["app"]
