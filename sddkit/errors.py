"""Error types and formatting utilities for consistent error messages.

Every engine failure maps to a subclass of SddkitError carrying a stable
``code`` string (e.g. ``CIRCULAR_DEPENDENCY``) and structured attributes.
Public engine operations return a Result instead of raising, so front ends
can switch on ``result.ok`` and ``result.error.code``.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Use present tense: 'must be', 'is required'
- Include actionable hints where helpful
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class SddkitError(Exception):
    """Base class for all sddkit domain failures."""

    code = "SDDKIT_ERROR"

    def to_dict(self) -> dict:
        data = {"type": self.code, "message": str(self)}
        for key, value in vars(self).items():
            if not key.startswith("_") and key != "partial":
                data[key] = value
        return data


class DefinitionError(SddkitError):
    """Raised when a commandset definition fails validation."""

    code = "INVALID_DEFINITION"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ProfileError(SddkitError):
    """Raised when a profile fails validation or would shadow a built-in."""

    code = "INVALID_PROFILE"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UnknownCommandsetError(SddkitError):
    code = "UNKNOWN_COMMANDSET"

    def __init__(self, commandset: str):
        super().__init__(f"Unknown commandset: {commandset}")
        self.commandset = commandset


class DependencyError(SddkitError):
    """Base class for dependency resolution failures."""


class MissingDependencyError(DependencyError):
    code = "MISSING_DEPENDENCY"

    def __init__(self, commandset: str, required: str):
        super().__init__(
            f"Commandset '{commandset}' requires '{required}', "
            "which is not in the requested set"
        )
        self.commandset = commandset
        self.required = required


class CircularDependencyError(DependencyError):
    code = "CIRCULAR_DEPENDENCY"

    def __init__(self, cycle: list[str]):
        super().__init__(f"Circular dependency: {' -> '.join(cycle)}")
        self.cycle = list(cycle)


class InstallError(SddkitError):
    """Base class for file installation failures.

    ``partial`` holds the InstallResult audit gathered before the failure
    was reported, when one exists.
    """

    partial = None


class TemplateNotFoundError(InstallError):
    code = "TEMPLATE_NOT_FOUND"

    def __init__(self, path: str):
        super().__init__(f"Template not found: {path}")
        self.path = path


class WriteError(InstallError):
    code = "WRITE_ERROR"

    def __init__(self, path: str, message: str):
        super().__init__(f"Failed to write {path}: {message}")
        self.path = path
        self.message = message


class PermissionDeniedError(InstallError):
    code = "PERMISSION_DENIED"

    def __init__(self, path: str):
        super().__init__(f"Permission denied: {path}")
        self.path = path


class BackupError(SddkitError):
    """Base class for backup and restore failures."""


class BackupCreationError(BackupError):
    code = "BACKUP_CREATION_FAILED"

    def __init__(self, message: str):
        super().__init__(f"Backup creation failed: {message}")
        self.message = message


class BackupNotFoundError(BackupError):
    code = "BACKUP_NOT_FOUND"

    def __init__(self, backup_id: str):
        super().__init__(f"Backup not found: {backup_id}")
        self.id = backup_id


class RestoreFailedError(BackupError):
    code = "RESTORE_FAILED"

    def __init__(self, files: list[str]):
        super().__init__(f"Failed to restore {len(files)} file(s)")
        self.files = list(files)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Two-variant outcome of an engine operation.

    Either ``ok`` is True and ``value`` holds the payload, or ``ok`` is
    False and ``error`` holds the SddkitError describing the failure.
    """

    ok: bool
    value: T | None = None
    error: SddkitError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: SddkitError) -> "Result[T]":
        return cls(ok=False, error=error)

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if not self.ok:
            assert self.error is not None
            raise self.error
        return self.value  # type: ignore[return-value]


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Args:
        message: The error message to format

    Returns:
        Formatted error message with 'Error: ' prefix

    Examples:
        >>> format_error("backup not found")
        'Error: backup not found'
    """
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """Format a field validation error with structured format.

    Args:
        entity: Name of the entity being validated (e.g., "Commandset 'bug'")
        field: Name of the field that failed validation
        issue: Description of the issue (e.g., "must be a non-empty string")

    Returns:
        Formatted field error message

    Examples:
        >>> format_field_error("Commandset 'bug'", "version", "must be a semantic version")
        "Commandset 'bug' field 'version' must be a semantic version"
    """
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("backup 'x' not found", "run 'sddkit history' to list backups")
        "Error: backup 'x' not found. Hint: run 'sddkit history' to list backups"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "SddkitError",
    "DefinitionError",
    "ProfileError",
    "UnknownCommandsetError",
    "DependencyError",
    "MissingDependencyError",
    "CircularDependencyError",
    "InstallError",
    "TemplateNotFoundError",
    "WriteError",
    "PermissionDeniedError",
    "BackupError",
    "BackupCreationError",
    "BackupNotFoundError",
    "RestoreFailedError",
    "Result",
    "format_error",
    "format_field_error",
    "format_suggestion",
]
