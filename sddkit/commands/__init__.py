"""CLI command definitions for sddkit."""

import click

from sddkit import __version__
from sddkit.commands.history import history, rollback
from sddkit.commands.install import install
from sddkit.commands.profiles import profiles
from sddkit.commands.status import conflicts, status, versions


@click.group()
@click.version_option(__version__, prog_name="sddkit")
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.pass_context
def cli(ctx, debug):
    """Install and manage spec-driven development commandsets."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(install)
cli.add_command(status)
cli.add_command(versions)
cli.add_command(conflicts)
cli.add_command(history)
cli.add_command(rollback)
cli.add_command(profiles)

__all__ = [
    "cli",
]


if __name__ == "__main__":
    cli()
