"""Settings file ownership, conflict classification and validation."""

import logging
from pathlib import Path, PurePosixPath

from sddkit.errors import Result
from sddkit.paths import SETTINGS_ROOT, project_path
from sddkit.storage import Storage

from .definitions import CommandsetDefinitionManager
from .models import MergeResult, MergeStrategy, SettingsConflict, SettingsValidation

_logging = logging.getLogger(__name__)

PRIMARY_WORKFLOW = "cc-sdd"
AUXILIARY_WORKFLOW = "bug"


def get_merge_strategy_for_file(path: str) -> MergeStrategy:
    """Classify a settings path. The first matching rule wins.

    Examples:
        >>> get_merge_strategy_for_file("rules/ears-format.md")
        <MergeStrategy.SKIP: 'skip'>
        >>> get_merge_strategy_for_file("templates/specs/init.json")
        <MergeStrategy.NEWER_VERSION: 'newer-version'>
    """
    parts = PurePosixPath(path).parts
    if "rules" in parts:
        return MergeStrategy.SKIP
    if "templates" in parts:
        return MergeStrategy.NEWER_VERSION
    if path.endswith(".json"):
        return MergeStrategy.MERGE
    return MergeStrategy.NEWER_VERSION


class SettingsFileManager:
    def __init__(self, storage: Storage, definitions: CommandsetDefinitionManager):
        self.storage = storage
        self.definitions = definitions

    def get_merge_strategy_for_file(self, path: str) -> MergeStrategy:
        return get_merge_strategy_for_file(path)

    def detect_conflicts(self, commandsets: list[str]) -> list[SettingsConflict]:
        """Report every settings file declared by two or more commandsets."""
        owners: dict[str, list[str]] = {}
        for name in dict.fromkeys(commandsets):
            for path in self.definitions.get_settings_files(name):
                owners.setdefault(path, [])
                if name not in owners[path]:
                    owners[path].append(name)

        conflicts = [
            SettingsConflict(
                file_path=path,
                commandsets=names,
                recommended_strategy=get_merge_strategy_for_file(path),
            )
            for path, names in owners.items()
            if len(names) > 1
        ]
        _logging.debug(f"Detected {len(conflicts)} settings conflict(s) for {commandsets}")
        return conflicts

    def merge_settings(
        self,
        project: Path,
        conflicts: list[SettingsConflict],
        strategy: MergeStrategy,
    ) -> Result[MergeResult]:
        """Decide which conflicting files would be applied.

        ``newer-version`` defers to each conflict's own recommendation and
        ``skip`` leaves files alone; any other strategy applies the file.
        File contents are never touched here.
        """
        result = MergeResult()
        for conflict in conflicts:
            effective = strategy
            if strategy is MergeStrategy.NEWER_VERSION:
                effective = conflict.recommended_strategy
            if effective is MergeStrategy.SKIP:
                result.skipped.append(conflict.file_path)
            else:
                result.merged.append(conflict.file_path)
        return Result.success(result)

    def get_required_files(self, commandsets: list[str]) -> list[str]:
        files: dict[str, None] = {}
        for name in commandsets:
            for path in self.definitions.get_settings_files(name):
                files[path] = None
        return list(files)

    def validate_settings(self, project: Path) -> SettingsValidation:
        """Check the settings files the primary and auxiliary workflows need."""
        existing = []
        missing = []
        for path in self.get_required_files([PRIMARY_WORKFLOW, AUXILIARY_WORKFLOW]):
            target = project_path(project, SETTINGS_ROOT / path)
            if self.storage.exists(target):
                existing.append(path)
            else:
                missing.append(path)
        return SettingsValidation(existing_files=existing, missing_files=missing)


__all__ = [
    "PRIMARY_WORKFLOW",
    "AUXILIARY_WORKFLOW",
    "get_merge_strategy_for_file",
    "SettingsFileManager",
]
