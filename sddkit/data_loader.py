"""Data loader for bundled commandset and profile files.

This module provides cached access to commandset definitions and built-in
profiles loaded from JSON files in the bundled data directory.

Caching Strategy:
- Data is loaded once on first access and cached in module-level variables
- Caches persist for the lifetime of the program; the data is read-only
- Use clear_cache() to force a reload of all or specific caches

Testing:
- Tests use clear_cache() to prevent state pollution between tests
"""

from pathlib import Path

from sddkit.config import ConfigError, load_config
from sddkit.errors import format_field_error
from sddkit.installer.models import CommandsetDefinition, Profile

_commandsets_cache: dict[str, CommandsetDefinition] | None = None
_profiles_cache: dict[str, Profile] | None = None


def _get_data_dir() -> Path:
    """Get path to bundled data directory."""
    return Path(__file__).parent / "data"


def _load_json_file(path: Path) -> dict:
    """Load and parse a bundled JSON file.

    Raises:
        ConfigError: If file cannot be read or contains invalid JSON
    """
    if not path.is_file():
        raise ConfigError(f"Data file not found: {path}")
    try:
        return load_config(path)
    except ConfigError as e:
        raise ConfigError(f"Failed to load data file {path}: {e}") from e


def _require_str_field(data: dict, field: str, entity_name: str) -> None:
    """Validate required string field.

    Raises:
        ConfigError: If field missing, not str, or empty
    """
    if field not in data:
        raise ConfigError(f"{entity_name} missing required field: {field}")
    if not isinstance(data[field], str) or not data[field].strip():
        raise ConfigError(format_field_error(entity_name, field, "must be a non-empty string"))


def _validate_string_list(data: dict, field: str, entity_name: str) -> None:
    """Validate an optional list of non-empty strings."""
    if field in data:
        if not isinstance(data[field], list):
            raise ConfigError(format_field_error(entity_name, field, "must be an array"))
        for i, item in enumerate(data[field]):
            if not isinstance(item, str) or not item.strip():
                raise ConfigError(f"{entity_name} {field}[{i}] must be a non-empty string")


def _section(raw_data: dict, key: str, file_name: str) -> dict:
    if key not in raw_data:
        raise ConfigError(f"Invalid {file_name} data file: missing top-level '{key}' key")
    if not isinstance(raw_data[key], dict):
        raise ConfigError(f"Invalid {file_name} data file: '{key}' must be an object")
    return raw_data[key]


def _validate_commandset_data(data: dict, name: str) -> None:
    entity = f"Commandset '{name}'"
    for field in ("description", "category", "version"):
        _require_str_field(data, field, entity)
    if "files" not in data:
        raise ConfigError(f"{entity} missing required field: files")
    _validate_string_list(data, "files", entity)
    _validate_string_list(data, "dependencies", entity)


def _validate_profile_data(data: dict, name: str) -> None:
    entity = f"Profile '{name}'"
    _require_str_field(data, "description", entity)
    if "commandsets" not in data:
        raise ConfigError(f"{entity} missing required field: commandsets")
    _validate_string_list(data, "commandsets", entity)


def get_commandset_definitions() -> dict[str, CommandsetDefinition]:
    """Load all commandset definitions from the bundled data file.

    Returns:
        Dictionary mapping commandset name to CommandsetDefinition

    Raises:
        ConfigError: If file cannot be loaded or data is invalid
    """
    global _commandsets_cache

    if _commandsets_cache is not None:
        return _commandsets_cache

    raw_data = _load_json_file(_get_data_dir() / "commandsets.json")
    definitions = {}
    for name, data in _section(raw_data, "commandsets", "commandsets").items():
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid commandsets data file: '{name}' must be an object")
        _validate_commandset_data(data, name)
        definitions[name] = CommandsetDefinition(
            name=name,
            description=data["description"],
            category=data["category"],
            version=data["version"],
            files=tuple(data["files"]),
            dependencies=tuple(data.get("dependencies", [])),
        )

    _commandsets_cache = definitions
    return definitions


def get_builtin_profiles() -> dict[str, Profile]:
    """Load the built-in profiles from the bundled data file.

    Raises:
        ConfigError: If file cannot be loaded or data is invalid
    """
    global _profiles_cache

    if _profiles_cache is not None:
        return _profiles_cache

    raw_data = _load_json_file(_get_data_dir() / "profiles.json")
    profiles = {}
    for name, data in _section(raw_data, "profiles", "profiles").items():
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid profiles data file: '{name}' must be an object")
        _validate_profile_data(data, name)
        profiles[name] = Profile(
            name=name,
            description=data["description"],
            commandsets=list(data["commandsets"]),
        )

    _profiles_cache = profiles
    return profiles


def clear_cache(cache_type: str | None = None) -> None:
    """Clear cached data to force reload on next access.

    Args:
        cache_type: 'commandsets', 'profiles', or None to clear both

    Raises:
        ValueError: If cache_type is not one of the valid values
    """
    global _commandsets_cache, _profiles_cache

    valid_cache_types = {"commandsets", "profiles"}
    if cache_type is not None and cache_type not in valid_cache_types:
        raise ValueError(
            f"Invalid cache_type '{cache_type}'. "
            f"Must be one of: {', '.join(sorted(valid_cache_types))}"
        )
    if cache_type in (None, "commandsets"):
        _commandsets_cache = None
    if cache_type in (None, "profiles"):
        _profiles_cache = None


__all__ = [
    "get_commandset_definitions",
    "get_builtin_profiles",
    "clear_cache",
]
