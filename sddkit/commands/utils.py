"""Shared helpers for CLI commands."""

import sys
from pathlib import Path

import click

from sddkit import is_debug
from sddkit.config import ConfigError
from sddkit.errors import SddkitError, format_error, format_suggestion
from sddkit.installer import UnifiedCommandsetInstaller
from sddkit.paths import TEMPLATES_ENV, get_templates_dir
from sddkit.storage import LocalStorage

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 2
EXIT_PROFILE_NOT_FOUND = 3
EXIT_CONFIG_ERROR = 4
EXIT_INSTALL_FAILED = 5

project_option = click.option(
    "--project",
    "-C",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project directory",
)

templates_option = click.option(
    "--templates",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Template bundle directory (default: ${TEMPLATES_ENV})",
)


def build_installer(
    templates: Path | None = None, require_templates: bool = False
) -> UnifiedCommandsetInstaller:
    """Build an installer over the local file system.

    Exits with EXIT_CONFIG_ERROR when the bundled data cannot be loaded, or
    when ``require_templates`` is set and no bundle directory is configured.
    """
    templates_dir = get_templates_dir(templates)
    if require_templates:
        if templates_dir is None:
            click.echo(
                format_suggestion(
                    "no template bundle configured",
                    f"pass --templates or set {TEMPLATES_ENV}",
                ),
                err=True,
            )
            sys.exit(EXIT_CONFIG_ERROR)
        if not templates_dir.is_dir():
            click.echo(format_error(f"template bundle not found: {templates_dir}"), err=True)
            sys.exit(EXIT_CONFIG_ERROR)
    try:
        return UnifiedCommandsetInstaller(LocalStorage(), templates_dir)
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_CONFIG_ERROR)


def fail(error: SddkitError, exit_code: int) -> None:
    click.echo(format_error(str(error)), err=True)
    if is_debug():
        click.echo(f"[DEBUG] {error.code}: {error.to_dict()}", err=True)
    sys.exit(exit_code)


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_INVALID_ARGS",
    "EXIT_PROFILE_NOT_FOUND",
    "EXIT_CONFIG_ERROR",
    "EXIT_INSTALL_FAILED",
    "project_option",
    "templates_option",
    "build_installer",
    "fail",
]
