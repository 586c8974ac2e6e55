"""Interactive prompts for the CLI.

questionary drives the prompts when a TTY is available. Callers check
``sys.stdin.isatty()`` first and fall back to explicit CLI options.
"""

import sys

import questionary

from sddkit.installer import Profile


def format_profile_choice(profile: Profile, installed: set[str] | None = None) -> str:
    """Format a profile for the selection list.

    Profiles whose commandsets are all installed already get a check mark.

    Examples:
        >>> format_profile_choice(Profile("minimal", "Specs only", ["cc-sdd"]))
        '   minimal         - Specs only (cc-sdd)'
    """
    icon = "  "
    if installed is not None and set(profile.commandsets) <= installed:
        icon = "✅"
    label = f"{icon} {profile.name:<15} - {profile.description}"
    if profile.is_custom:
        label += " [custom]"
    return f"{label} ({', '.join(profile.commandsets)})"


def select_profile_interactive(
    profiles: list[Profile],
    installed: set[str] | None = None,
    default: str = "standard",
) -> str | None:
    """Let the user pick a profile.

    Returns:
        The selected profile name, or None if the user cancels.

    Raises:
        RuntimeError: If stdin is not a TTY.
    """
    if not sys.stdin.isatty():
        raise RuntimeError("Interactive profile selection requires a TTY")

    choices = [
        questionary.Choice(title=format_profile_choice(p, installed), value=p.name)
        for p in profiles
    ]
    default_choice = next((c for c in choices if c.value == default), None)

    try:
        return questionary.select(
            "Select a profile to install:",
            choices=choices,
            default=default_choice,
        ).ask()
    except KeyboardInterrupt:
        return None


__all__ = [
    "format_profile_choice",
    "select_profile_interactive",
]
