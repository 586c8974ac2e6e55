"""Data models for the commandset installer."""

from dataclasses import dataclass, field
from enum import Enum


class CommandsetCategory(Enum):
    WORKFLOW = "workflow"
    UTILITY = "utility"


class MergeStrategy(Enum):
    SKIP = "skip"
    OVERWRITE = "overwrite"
    MERGE = "merge"
    NEWER_VERSION = "newer-version"


class FileCategory(Enum):
    COMMANDS = "commands"
    AGENTS = "agents"
    SETTINGS = "settings"
    TEMPLATES = "templates"


@dataclass(frozen=True)
class CommandsetDefinition:
    name: str
    description: str
    category: str
    version: str
    files: tuple[str, ...]
    dependencies: tuple[str, ...] = ()


@dataclass
class Profile:
    name: str
    description: str
    commandsets: list[str]
    is_custom: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "commandsets": list(self.commandsets),
        }


@dataclass
class FileFailure:
    path: str
    code: str
    message: str


@dataclass
class InstallResult:
    """Audit of one copy run. The four path lists are disjoint."""

    installed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    overwritten: list[str] = field(default_factory=list)
    failed: list[FileFailure] = field(default_factory=list)
    categories: tuple["CategoryResult", ...] = ()

    @property
    def changed(self) -> int:
        return len(self.installed) + len(self.overwritten)

    def extend(self, other: "InstallResult") -> None:
        self.installed.extend(other.installed)
        self.skipped.extend(other.skipped)
        self.overwritten.extend(other.overwritten)
        self.failed.extend(other.failed)


@dataclass(frozen=True)
class CategoryResult:
    category: FileCategory
    result: InstallResult


@dataclass
class InstallOptions:
    force: bool = False


@dataclass
class SettingsConflict:
    file_path: str
    commandsets: list[str]
    recommended_strategy: MergeStrategy


@dataclass
class MergeResult:
    merged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass
class SettingsValidation:
    existing_files: list[str]
    missing_files: list[str]

    @property
    def is_valid(self) -> bool:
        return not self.missing_files


@dataclass
class InstallHistory:
    id: str
    timestamp: str
    commandsets: list[str]
    files: list[str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "commandsets": list(self.commandsets),
            "files": list(self.files),
        }


@dataclass
class RollbackResult:
    restored_files: list[str] = field(default_factory=list)
    failed_files: list[str] = field(default_factory=list)


@dataclass
class CommandsetVersionInfo:
    name: str
    bundle_version: str
    installed_version: str | None
    installed_at: str | None
    update_required: bool


@dataclass
class VersionCheckResult:
    project_path: str
    commandsets: list[CommandsetVersionInfo]
    any_update_required: bool
    has_commandsets: bool
    legacy_project: bool


@dataclass
class CommandsetStatus:
    name: str
    installed: list[str]
    missing: list[str]

    @property
    def total(self) -> int:
        return len(self.installed) + len(self.missing)

    @property
    def ratio(self) -> float:
        return len(self.installed) / self.total if self.total else 0.0


@dataclass
class UnifiedInstallStatus:
    commandsets: dict[str, CommandsetStatus]
    completeness_score: int
    is_minimal_setup_complete: bool
    missing_components: list[str]


@dataclass
class InstallSummary:
    total_installed: int = 0
    total_skipped: int = 0
    total_failed: int = 0


@dataclass
class UnifiedInstallResult:
    commandsets: dict[str, InstallResult]
    summary: InstallSummary
    order: list[str]
    backup_id: str | None = None
    conflicts: list[SettingsConflict] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    claude_md: str | None = None


__all__ = [
    "CommandsetCategory",
    "MergeStrategy",
    "FileCategory",
    "CommandsetDefinition",
    "Profile",
    "FileFailure",
    "InstallResult",
    "CategoryResult",
    "InstallOptions",
    "SettingsConflict",
    "MergeResult",
    "SettingsValidation",
    "InstallHistory",
    "RollbackResult",
    "CommandsetVersionInfo",
    "VersionCheckResult",
    "CommandsetStatus",
    "UnifiedInstallStatus",
    "InstallSummary",
    "UnifiedInstallResult",
]
