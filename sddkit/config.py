"""Configuration loading, JSON preprocessing and the project config store."""

import json
import logging
from pathlib import Path

from sddkit.errors import SddkitError
from sddkit.paths import PROJECT_CONFIG_FILE, project_path
from sddkit.storage import Storage

_logging = logging.getLogger(__name__)


class ConfigError(SddkitError):
    """Raised when config loading or parsing fails.

    Syntax errors carry the line number, column position and a caret
    pointing at the offending character.
    """

    code = "CONFIG_ERROR"


def _skip_trivia(text: str, start: int) -> int:
    """Return the index of the next character that is not whitespace or comment."""
    n = len(text)
    j = start
    while j < n:
        if text[j] in " \t\r\n":
            j += 1
        elif text.startswith("//", j):
            j += 2
            while j < n and text[j] != "\n":
                j += 1
        else:
            break
    return j


def preprocess_jsonish(text: str) -> str:
    """
    Preprocess JSON-ish text into strict JSON.

    Handles:
    - // line comments
    - Trailing commas before ] or }
    - Strings, so '//' or ',' inside a value is left alone

    Stripped characters are replaced with spaces so line and column numbers
    in later json errors still match the original text.
    """
    out = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        char = text[i]

        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
        elif text.startswith("//", i):
            end = text.find("\n", i)
            if end == -1:
                end = n
            out.append(" " * (end - i))
            i = end
            continue
        elif char == ",":
            j = _skip_trivia(text, i + 1)
            out.append(" " if j < n and text[j] in "]}" else char)
        else:
            out.append(char)
        i += 1

    return "".join(out)


def _format_syntax_error(original_text: str, error: json.JSONDecodeError) -> str:
    """Format a JSON syntax error with line, caret, and context."""
    lines = original_text.split("\n")
    parts = [f"Config syntax error at line {error.lineno}, col {error.colno}: {error.msg}"]
    if 1 <= error.lineno <= len(lines):
        parts.append(lines[error.lineno - 1])
        parts.append(" " * (error.colno - 1) + "^")
    return "\n".join(parts)


def load_config(path_or_text: Path | str) -> dict:
    """Load and parse a JSON-ish document.

    Accepts either a file path or raw text. Trailing commas and // line
    comments are tolerated.

    Args:
        path_or_text: Either a Path to a JSON file, or a string containing
            JSON or JSON-ish text

    Returns:
        A dict containing the parsed data

    Raises:
        ConfigError: If the file cannot be read, contains syntax errors or
            is not a JSON object.
        TypeError: If path_or_text is neither Path nor str.
    """
    if isinstance(path_or_text, Path):
        try:
            original_text = path_or_text.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {path_or_text}")
        except PermissionError:
            raise ConfigError(f"Permission denied reading config file: {path_or_text}")
        except UnicodeDecodeError:
            raise ConfigError(f"Config file is not valid UTF-8: {path_or_text}")
        except OSError as e:
            raise ConfigError(f"Error reading config file {path_or_text}: {e}")
    elif isinstance(path_or_text, str):
        original_text = path_or_text
    else:
        raise TypeError(
            f"path_or_text must be Path or str, got {type(path_or_text).__name__}"
        )

    try:
        result = json.loads(preprocess_jsonish(original_text))
    except json.JSONDecodeError as e:
        raise ConfigError(_format_syntax_error(original_text, e)) from e

    if not isinstance(result, dict):
        raise ConfigError(f"Config must be a JSON object, got {type(result).__name__}")

    return result


def load_json_document(storage: Storage, path: Path) -> dict | None:
    """Read a JSON-ish object from storage.

    Returns None when the file does not exist. Raises ConfigError when it
    exists but cannot be decoded or parsed.
    """
    if not storage.exists(path):
        return None
    try:
        text = storage.read_text(path)
    except UnicodeDecodeError:
        raise ConfigError(f"Config file is not valid UTF-8: {path}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")
    return load_config(text)


def dump_json_document(storage: Storage, path: Path, data: dict) -> None:
    storage.write_text(path, json.dumps(data, indent=2) + "\n")


class ProjectConfigStore:
    """Reads and writes ``.kiro/sdd-orchestrator.json`` in a project.

    Layout::

        {
          "commandsets": {"cc-sdd": {"version": "1.0.0", "installedAt": "..."}},
          "profile": {"name": "standard", "installedAt": "..."}
        }

    Keys the store does not know about are preserved on every write.
    """

    def __init__(self, storage: Storage):
        self.storage = storage

    def path_for(self, project: Path) -> Path:
        return project_path(project, PROJECT_CONFIG_FILE)

    def load(self, project: Path) -> dict:
        """Return the parsed document, or {} when the project has none.

        Raises:
            ConfigError: If the document exists but is unreadable.
        """
        data = load_json_document(self.storage, self.path_for(project))
        return data if data is not None else {}

    def get_commandset_versions(self, project: Path) -> dict[str, dict]:
        """Return recorded ``{name: {"version", "installedAt"}}`` entries.

        A corrupt document or malformed entries are treated as absent.
        """
        try:
            data = self.load(project)
        except ConfigError as e:
            _logging.warning(f"Ignoring unreadable project config: {e}")
            return {}
        recorded = data.get("commandsets")
        if not isinstance(recorded, dict):
            return {}
        versions = {}
        for name, entry in recorded.items():
            if isinstance(entry, dict) and isinstance(entry.get("version"), str):
                versions[name] = entry
            else:
                _logging.debug(f"Skipping malformed version record for {name}")
        return versions

    def record_commandset_versions(
        self, project: Path, versions: dict[str, str], installed_at: str
    ) -> None:
        """Record the installed version of each commandset in ``versions``."""
        if not versions:
            return
        data = self.load(project)
        recorded = data.get("commandsets")
        if not isinstance(recorded, dict):
            recorded = {}
        for name, version in versions.items():
            recorded[name] = {"version": version, "installedAt": installed_at}
        data["commandsets"] = recorded
        dump_json_document(self.storage, self.path_for(project), data)

    def get_profile(self, project: Path) -> dict | None:
        try:
            profile = self.load(project).get("profile")
        except ConfigError:
            return None
        return profile if isinstance(profile, dict) else None

    def save_profile(self, project: Path, name: str, installed_at: str) -> None:
        data = self.load(project)
        data["profile"] = {"name": name, "installedAt": installed_at}
        dump_json_document(self.storage, self.path_for(project), data)


__all__ = [
    "ConfigError",
    "preprocess_jsonish",
    "load_config",
    "load_json_document",
    "dump_json_document",
    "ProjectConfigStore",
]
