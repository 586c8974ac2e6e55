"""Backup history and rollback commands."""

import sys

import click

from sddkit import setup_logging
from sddkit.errors import BackupNotFoundError, format_error, format_suggestion

from .utils import EXIT_CONFIG_ERROR, EXIT_INSTALL_FAILED, build_installer, project_option


@click.command()
@project_option
@click.pass_context
def history(ctx, project):
    """List install backups, most recent first."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()
    entries = installer.rollback.get_history(project)
    if not entries:
        click.echo("No backups recorded.")
        return
    for entry in entries:
        click.echo(
            f"{entry.id}  {entry.timestamp}  {', '.join(entry.commandsets) or '-'}  "
            f"({len(entry.files)} files)"
        )


@click.command()
@project_option
@click.argument("backup_id", required=False)
@click.pass_context
def rollback(ctx, project, backup_id):
    """Restore files from a backup (default: the most recent one)."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()

    if backup_id is None:
        entries = installer.rollback.get_history(project)
        if not entries:
            click.echo(format_error("no backups recorded for this project"), err=True)
            sys.exit(EXIT_CONFIG_ERROR)
        backup_id = entries[0].id

    outcome = installer.rollback.rollback(project, backup_id)
    if not outcome.ok:
        if isinstance(outcome.error, BackupNotFoundError):
            click.echo(
                format_suggestion(str(outcome.error), "run 'sddkit history' to list backups"),
                err=True,
            )
            sys.exit(EXIT_CONFIG_ERROR)
        click.echo(format_error(str(outcome.error)), err=True)
        sys.exit(EXIT_INSTALL_FAILED)

    result = outcome.value
    click.echo(f"Restored {len(result.restored_files)} file(s) from {backup_id}")
    for path in result.failed_files:
        click.secho(f"  failed: {path}", fg="red")
    if result.failed_files:
        sys.exit(EXIT_INSTALL_FAILED)
