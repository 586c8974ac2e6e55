"""Read-only commands: install status, version drift and settings conflicts."""

import sys

import click

from sddkit import setup_logging
from sddkit.errors import format_error

from .utils import EXIT_INVALID_ARGS, EXIT_PROFILE_NOT_FOUND, build_installer, project_option


@click.command()
@project_option
@click.pass_context
def status(ctx, project):
    """Show how complete the installed workflows are."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()
    report = installer.check_all_install_status(project)

    for name, entry in report.commandsets.items():
        click.echo(f"{name:<15} {len(entry.installed)}/{entry.total} files")
    click.echo(f"\nCompleteness: {report.completeness_score}%")
    if report.is_minimal_setup_complete:
        click.secho("Minimal setup complete", fg="green")
    else:
        click.secho("Minimal setup incomplete", fg="yellow")

    if report.missing_components and ctx.obj.get("debug", False):
        click.echo("\nMissing:")
        for path in report.missing_components:
            click.echo(f"  {path}")


@click.command()
@project_option
@click.pass_context
def versions(ctx, project):
    """Compare installed commandset versions with the bundle."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()
    result = installer.versions.check_versions(project)

    if result.legacy_project:
        click.echo("No commandset versions recorded for this project.")

    for info in result.commandsets:
        installed = info.installed_version or "-"
        line = f"{info.name:<16} {installed:<12} {info.bundle_version:<12}"
        if info.update_required:
            click.secho(f"{line} update available", fg="yellow")
        else:
            click.echo(line)

    if result.any_update_required:
        click.echo("\nRun 'sddkit install --force' to update.")


@click.command()
@click.argument("commandsets", nargs=-1)
@click.option("--profile", "-p", default=None, help="Check the commandsets of a profile")
@click.pass_context
def conflicts(ctx, commandsets, profile):
    """List settings files shared by several commandsets."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()

    if profile and commandsets:
        raise click.BadArgumentUsage("pass either COMMANDSETS or --profile, not both")
    if profile:
        if not installer.profiles.is_built_in_profile(profile):
            click.echo(format_error(f"profile '{profile}' not found"), err=True)
            sys.exit(EXIT_PROFILE_NOT_FOUND)
        names = installer.profiles.get_commandsets_for_profile(profile)
    else:
        names = list(commandsets)
    for name in names:
        if not installer.definitions.is_known(name):
            click.echo(format_error(f"unknown commandset '{name}'"), err=True)
            sys.exit(EXIT_INVALID_ARGS)

    found = installer.settings.detect_conflicts(names)
    if not found:
        click.echo("No conflicts.")
        return
    for conflict in found:
        click.echo(
            f"{conflict.file_path:<40} {', '.join(conflict.commandsets):<30} "
            f"{conflict.recommended_strategy.value}"
        )
