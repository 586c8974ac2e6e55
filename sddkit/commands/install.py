"""Install command implementation."""

import logging
import sys
from pathlib import Path

import click

from sddkit import setup_logging
from sddkit.errors import UnknownCommandsetError, format_error
from sddkit.installer import InstallOptions, UnifiedCommandsetInstaller, UnifiedInstallResult
from sddkit.tui import select_profile_interactive

from .utils import (
    EXIT_INSTALL_FAILED,
    EXIT_INVALID_ARGS,
    EXIT_PROFILE_NOT_FOUND,
    EXIT_SUCCESS,
    build_installer,
    fail,
    project_option,
    templates_option,
)

_logging = logging.getLogger(__name__)


def _validate_install_options(profile: str | None, commandset: tuple[str, ...], install_all: bool) -> None:
    """Only one way of choosing commandsets may be used at a time.

    Raises:
        click.BadArgumentUsage: If options are combined
    """
    chosen = [bool(profile), bool(commandset), install_all]
    if sum(chosen) > 1:
        raise click.BadArgumentUsage(
            "--profile, --commandset and --all cannot be combined"
        )


def _print_result(result: UnifiedInstallResult) -> None:
    for name in result.order:
        value = result.commandsets[name]
        if name in result.errors:
            click.secho(f"❌ {name}: {result.errors[name]}", fg="red")
            continue
        click.echo(
            f"✅ {name}: {len(value.installed)} installed, "
            f"{len(value.overwritten)} overwritten, {len(value.skipped)} skipped"
        )

    if result.conflicts:
        click.echo(f"\n{len(result.conflicts)} shared settings file(s):")
        for conflict in result.conflicts:
            click.echo(
                f"  {conflict.file_path} ({', '.join(conflict.commandsets)}) "
                f"-> {conflict.recommended_strategy.value}"
            )
    if result.claude_md:
        click.echo(f"\nCLAUDE.md: {result.claude_md}")

    summary = result.summary
    click.echo(
        f"\nTotal: {summary.total_installed} installed, {summary.total_skipped} skipped, "
        f"{summary.total_failed} failed"
    )
    click.echo(f"Backup: {result.backup_id} (undo with 'sddkit rollback {result.backup_id}')")


def _select_profile_with_status(installer: UnifiedCommandsetInstaller, project: Path) -> str | None:
    """Offer built-in and custom profiles, marking those already installed."""
    profiles = installer.profiles.get_all_profiles()
    profiles += list(installer.profiles.load_custom_profiles(project).values())
    installed = {
        info.name
        for info in installer.versions.check_versions(project).commandsets
        if info.installed_version
    }
    return select_profile_interactive(profiles, installed)


@click.command()
@project_option
@templates_option
@click.option("--profile", "-p", default=None, help="Profile to install")
@click.option(
    "--commandset",
    "-c",
    multiple=True,
    help="Commandset to install (repeatable)",
)
@click.option("--all", "install_all", is_flag=True, help="Install every commandset of the full profile")
@click.option("--force", "-f", is_flag=True, help="Overwrite files that already exist")
@click.pass_context
def install(ctx, project, templates, profile, commandset, install_all, force):
    """Install commandsets into a project."""
    debug = ctx.obj.get("debug", False)
    setup_logging(debug)
    _validate_install_options(profile, commandset, install_all)

    installer = build_installer(templates, require_templates=True)

    if not (profile or commandset or install_all):
        if not sys.stdin.isatty():
            click.echo(
                format_error("one of --profile, --commandset or --all is required"),
                err=True,
            )
            sys.exit(EXIT_INVALID_ARGS)
        profile = _select_profile_with_status(installer, project)
        if profile is None:
            click.echo("Cancelled.")
            sys.exit(EXIT_SUCCESS)

    if profile:
        known = installer.profiles.is_built_in_profile(profile) or (
            profile in installer.profiles.load_custom_profiles(project)
        )
        if not known:
            click.echo(format_error(f"profile '{profile}' not found"), err=True)
            sys.exit(EXIT_PROFILE_NOT_FOUND)

    def progress(current: int, total: int, name: str) -> None:
        click.echo(f"[{current}/{total}] Installing {name}...")

    options = InstallOptions(force=force)
    if profile:
        _logging.debug(f"Installing profile {profile} into {project}")
        outcome = installer.install_by_profile(project, profile, options, progress)
    elif install_all:
        outcome = installer.install_all(project, options, progress)
    else:
        outcome = installer.install_commandsets(project, list(commandset), options, progress)

    if not outcome.ok:
        if isinstance(outcome.error, UnknownCommandsetError):
            fail(outcome.error, EXIT_INVALID_ARGS)
        fail(outcome.error, EXIT_INSTALL_FAILED)

    result = outcome.value
    _print_result(result)
    if result.summary.total_failed:
        sys.exit(EXIT_INSTALL_FAILED)
