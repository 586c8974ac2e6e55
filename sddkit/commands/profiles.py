"""Profile listing and custom profile management."""

import click

from sddkit import setup_logging
from sddkit.installer import Profile

from .utils import EXIT_INVALID_ARGS, EXIT_PROFILE_NOT_FOUND, build_installer, fail, project_option


@click.group()
def profiles():
    """List and manage profiles."""


@profiles.command(name="list")
@project_option
@click.pass_context
def list_profiles(ctx, project):
    """List built-in and project custom profiles."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()
    for profile in installer.profiles.get_all_profiles():
        click.echo(f"{profile.name:<26} {', '.join(profile.commandsets)}")
    custom = installer.profiles.load_custom_profiles(project)
    if custom:
        click.echo("\nCustom:")
        for profile in custom.values():
            click.echo(f"{profile.name:<26} {', '.join(profile.commandsets)}")


@profiles.command()
@project_option
@click.argument("name")
@click.option("--commandset", "-c", multiple=True, required=True, help="Commandset to include (repeatable)")
@click.option("--description", "-d", default="", help="Profile description")
@click.pass_context
def save(ctx, project, name, commandset, description):
    """Save a custom profile for this project."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()
    profile = Profile(
        name=name,
        description=description,
        commandsets=list(commandset),
        is_custom=True,
    )
    outcome = installer.profiles.save_custom_profile(project, profile)
    if not outcome.ok:
        fail(outcome.error, EXIT_INVALID_ARGS)
    click.echo(f"Saved profile '{name}'")


@profiles.command()
@project_option
@click.argument("name")
@click.pass_context
def delete(ctx, project, name):
    """Delete a custom profile from this project."""
    setup_logging(ctx.obj.get("debug", False))
    installer = build_installer()
    outcome = installer.profiles.delete_custom_profile(project, name)
    if not outcome.ok:
        built_in = installer.profiles.is_built_in_profile(name)
        fail(outcome.error, EXIT_INVALID_ARGS if built_in else EXIT_PROFILE_NOT_FOUND)
    click.echo(f"Deleted profile '{name}'")
