"""Path helpers for bundles and project-local layout."""

import os
from pathlib import Path, PurePosixPath

KIRO_DIR = ".kiro"
CLAUDE_DIR = ".claude"
CLAUDE_MD = "CLAUDE.md"

BACKUPS_DIR = PurePosixPath(KIRO_DIR, ".backups")
HISTORY_FILE = PurePosixPath(KIRO_DIR, ".install-history.json")
HISTORY_LOCK_FILE = PurePosixPath(KIRO_DIR, ".install-history.lock")
PROFILES_FILE = PurePosixPath(KIRO_DIR, "settings", "profiles.json")
PROJECT_CONFIG_FILE = PurePosixPath(KIRO_DIR, "sdd-orchestrator.json")
SETTINGS_ROOT = PurePosixPath(KIRO_DIR, "settings")

# Directories every installed project is expected to have
PROJECT_DIRS = (
    PurePosixPath(KIRO_DIR, "steering"),
    PurePosixPath(KIRO_DIR, "specs"),
    PurePosixPath(KIRO_DIR, "bugs"),
)

TEMPLATES_ENV = "SDDKIT_TEMPLATES"


def get_templates_dir(override: Path | str | None = None) -> Path | None:
    """Return the template bundle root.

    Priority:
    1. Explicit override (e.g. the --templates CLI option)
    2. SDDKIT_TEMPLATES environment variable

    Returns:
        Path to the bundle root, or None when neither is set
    """
    if override:
        return Path(override).expanduser()
    if os.environ.get(TEMPLATES_ENV):
        return Path(os.environ[TEMPLATES_ENV]).expanduser()
    return None


def category_of(declared: str) -> str:
    """Return the category of a bundle-relative file path.

    ``commands/bug/bug-fix.md`` is a command, ``agents/kiro/x.md`` an agent,
    ``settings/templates/...`` a template and any other ``settings/`` path a
    setting.
    """
    parts = PurePosixPath(declared).parts
    if not parts:
        raise ValueError("Empty file path")
    head = parts[0]
    if head == "commands":
        return "commands"
    if head == "agents":
        return "agents"
    if head == "settings":
        if len(parts) > 1 and parts[1] == "templates":
            return "templates"
        return "settings"
    raise ValueError(f"Unsupported bundle path: {declared}")


def target_for(declared: str) -> PurePosixPath:
    """Map a bundle-relative file path to its project-relative target.

    Examples:
        >>> target_for("commands/cc-sdd/spec-init.md")
        PurePosixPath('.claude/commands/kiro/spec-init.md')
        >>> target_for("settings/rules/ears-format.md")
        PurePosixPath('.kiro/settings/rules/ears-format.md')
    """
    path = PurePosixPath(declared)
    category = category_of(declared)
    if category == "commands":
        return PurePosixPath(CLAUDE_DIR, "commands", "kiro", path.name)
    if category == "agents":
        return PurePosixPath(CLAUDE_DIR, "agents", "kiro", path.name)
    return SETTINGS_ROOT.joinpath(*path.parts[1:])


def settings_relative(declared: str) -> str | None:
    """Strip the ``settings/`` prefix, or return None for non-settings paths."""
    parts = PurePosixPath(declared).parts
    if len(parts) > 1 and parts[0] == "settings":
        return PurePosixPath(*parts[1:]).as_posix()
    return None


def project_path(project: Path | str, relative: PurePosixPath | str) -> Path:
    return Path(project).joinpath(*PurePosixPath(relative).parts)


__all__ = [
    "KIRO_DIR",
    "CLAUDE_DIR",
    "CLAUDE_MD",
    "BACKUPS_DIR",
    "HISTORY_FILE",
    "HISTORY_LOCK_FILE",
    "PROFILES_FILE",
    "PROJECT_CONFIG_FILE",
    "SETTINGS_ROOT",
    "PROJECT_DIRS",
    "TEMPLATES_ENV",
    "get_templates_dir",
    "category_of",
    "target_for",
    "settings_relative",
    "project_path",
]
