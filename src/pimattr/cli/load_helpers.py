from __future__ import annotations

"""Knowledge-base loading for CLI commands: loader failures become exit codes."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from rich.console import Console

from pimattr.core.i18n import CatalogTranslator
from pimattr.core.registries import RegistryManager
from pimattr.core.settings import AuthoringSettings
from pimattr.io.loaders import LoaderError, load_attributes, load_locales, load_settings


@contextmanager
def exit_on_loader_error(console: Console, *, verbose_errors: bool = False) -> Iterator[None]:
    try:
        yield
    except LoaderError as err:
        if verbose_errors and err.cause:
            console.print(f"[red]Failed to load data:[/red] {err.message} ({err.file_path})\n{err.cause}")
        else:
            console.print(f"[red]Failed to load data:[/red] {err}")
        raise typer.Exit(code=1)


def load_catalog(path: str, console: Console, *, verbose_errors: bool = False) -> RegistryManager:
    """Load the attribute catalog; the path must exist."""
    if not Path(path).exists():
        console.print(f"[red]Path not found:[/red] {path}")
        raise typer.Exit(code=1)
    registries = RegistryManager()
    with exit_on_loader_error(console, verbose_errors=verbose_errors):
        load_attributes(path, registries)
    return registries


def load_session_settings(path: str, console: Console) -> AuthoringSettings:
    # a missing settings file means defaults
    with exit_on_loader_error(console):
        return load_settings(path)


def load_translator(path: str, language: str, console: Console) -> CatalogTranslator:
    """Label translator over the locale catalogs at ``path`` (possibly none)."""
    with exit_on_loader_error(console):
        catalogs = load_locales(path)
    return CatalogTranslator(catalogs, language=language)


__all__ = ["exit_on_loader_error", "load_catalog", "load_session_settings", "load_translator"]
