"""Single entry point for installing commandsets into a project.

A batch install resolves the order first, reports settings conflicts,
takes a backup and then installs each commandset in turn. A commandset that
fails is counted and skipped; the batch carries on with the rest.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from sddkit.clock import Clock, SystemClock, isoformat
from sddkit.config import ConfigError, ProjectConfigStore
from sddkit.errors import Result, TemplateNotFoundError, UnknownCommandsetError
from sddkit.paths import PROJECT_DIRS, project_path, target_for
from sddkit.storage import Storage

from .definitions import CommandsetDefinitionManager
from .dependencies import DependencyResolver
from .models import (
    CommandsetStatus,
    InstallOptions,
    InstallResult,
    InstallSummary,
    UnifiedInstallResult,
    UnifiedInstallStatus,
)
from .profiles import ProfileManager
from .rollback import RollbackManager
from .settings import AUXILIARY_WORKFLOW, PRIMARY_WORKFLOW, SettingsFileManager
from .version_check import CommandsetVersionService
from .workflows import SPEC_WORKFLOWS, SpecWorkflowInstaller, installer_for

_logging = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

FULL_PROFILE = "full"
TRACKED_COMMANDSETS = (PRIMARY_WORKFLOW, AUXILIARY_WORKFLOW)
MINIMAL_SETUP_THRESHOLD = 0.8


class UnifiedCommandsetInstaller:
    """Wires the installer components together for one template bundle.

    Every collaborator can be injected; anything left out is built from
    ``storage`` and the bundled data.

    Read-only operations such as status checks work without a
    ``templates_dir``; installs fail with TEMPLATE_NOT_FOUND.
    """

    def __init__(
        self,
        storage: Storage,
        templates_dir: Path | None = None,
        definitions: CommandsetDefinitionManager | None = None,
        profiles: ProfileManager | None = None,
        rollback: RollbackManager | None = None,
        clock: Clock | None = None,
    ):
        self.storage = storage
        self.templates_dir = Path(templates_dir) if templates_dir is not None else None
        self.clock = clock or SystemClock()
        self.definitions = definitions or CommandsetDefinitionManager()
        self.resolver = DependencyResolver(self.definitions)
        self.profiles = profiles or ProfileManager(storage, self.definitions)
        self.settings = SettingsFileManager(storage, self.definitions)
        self.rollback = rollback or RollbackManager(storage, self.definitions, self.clock)
        self.config = ProjectConfigStore(storage)
        self.versions = CommandsetVersionService(self.definitions, self.config)

    def install_commandset(
        self, project: Path, name: str, options: InstallOptions | None = None
    ) -> Result[InstallResult]:
        if not self.definitions.is_known(name):
            return Result.failure(UnknownCommandsetError(name))
        if self.templates_dir is None:
            return Result.failure(TemplateNotFoundError("templates directory is not configured"))
        installer = installer_for(name, self.storage, self.definitions, self.templates_dir)
        return installer.install(project, options)

    def install_commandsets(
        self,
        project: Path,
        names: list[str],
        options: InstallOptions | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[UnifiedInstallResult]:
        """Install ``names`` in dependency order.

        Unknown names and dependency errors fail the call before anything is
        written. So does a failed backup.
        """
        for name in names:
            if not self.definitions.is_known(name):
                return Result.failure(UnknownCommandsetError(name))
        if self.templates_dir is None:
            return Result.failure(TemplateNotFoundError("templates directory is not configured"))

        resolved = self.resolver.resolve_install_order(names)
        if not resolved.ok:
            return Result.failure(resolved.error)
        order = resolved.value

        conflicts = self.settings.detect_conflicts(order)
        for conflict in conflicts:
            _logging.debug(
                f"Settings conflict {conflict.file_path} between {conflict.commandsets}: "
                f"{conflict.recommended_strategy.value}"
            )

        backup = self.rollback.create_backup(project, order)
        if not backup.ok:
            return Result.failure(backup.error)

        result = UnifiedInstallResult(
            commandsets={},
            summary=InstallSummary(),
            order=list(order),
            backup_id=backup.value,
            conflicts=conflicts,
        )
        changed = []
        total = len(order)
        for current, name in enumerate(order, start=1):
            if progress_callback is not None:
                progress_callback(current, total, name)

            outcome = self.install_commandset(project, name, options)
            if outcome.ok:
                value = outcome.value
                result.commandsets[name] = value
                result.summary.total_installed += len(value.installed)
                result.summary.total_skipped += len(value.skipped)
                if value.changed:
                    changed.append(name)
            else:
                _logging.warning(f"Commandset {name} failed: {outcome.error}")
                result.summary.total_failed += 1
                result.commandsets[name] = InstallResult()
                result.errors[name] = str(outcome.error)

        self._update_claude_md(project, result)
        self._record_versions(project, changed)
        self._ensure_project_dirs(project)
        return Result.success(result)

    def _update_claude_md(self, project: Path, result: UnifiedInstallResult) -> None:
        spec_workflows = [
            name for name in result.order if name in SPEC_WORKFLOWS and name not in result.errors
        ]
        if not spec_workflows:
            return
        installer = SpecWorkflowInstaller(
            spec_workflows[0], self.storage, self.definitions, self.templates_dir
        )
        outcome = installer.update_claude_md(project)
        if outcome.ok:
            result.claude_md = outcome.value
        else:
            _logging.warning(f"Could not update CLAUDE.md: {outcome.error}")
            result.errors["CLAUDE.md"] = str(outcome.error)

    def _record_versions(self, project: Path, names: list[str]) -> None:
        if not names:
            return
        versions = {name: self.definitions.get_version(name) for name in names}
        try:
            self.config.record_commandset_versions(project, versions, isoformat(self.clock.now()))
        except (OSError, ConfigError) as e:
            _logging.warning(f"Failed to record commandset versions: {e}")

    def _ensure_project_dirs(self, project: Path) -> None:
        for directory in PROJECT_DIRS:
            try:
                self.storage.make_dirs(project_path(project, directory))
            except OSError as e:
                _logging.warning(f"Could not create {directory}: {e}")

    def install_by_profile(
        self,
        project: Path,
        profile_name: str,
        options: InstallOptions | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[UnifiedInstallResult]:
        profile = self.profiles.resolve_profile(project, profile_name)
        result = self.install_commandsets(
            project, profile.commandsets, options, progress_callback
        )
        if result.ok:
            try:
                self.config.save_profile(project, profile.name, isoformat(self.clock.now()))
            except (OSError, ConfigError) as e:
                _logging.warning(f"Failed to save profile configuration: {e}")
        return result

    def install_all(
        self,
        project: Path,
        options: InstallOptions | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[UnifiedInstallResult]:
        names = self.profiles.get_commandsets_for_profile(FULL_PROFILE)
        return self.install_commandsets(project, names, options, progress_callback)

    def get_commandset_status(self, project: Path, name: str) -> CommandsetStatus:
        installed = []
        missing = []
        for declared in self.definitions.get_files(name):
            if self.storage.exists(project_path(project, target_for(declared))):
                installed.append(declared)
            else:
                missing.append(declared)
        return CommandsetStatus(name=name, installed=installed, missing=missing)

    def check_all_install_status(self, project: Path) -> UnifiedInstallStatus:
        statuses = {name: self.get_commandset_status(project, name) for name in TRACKED_COMMANDSETS}

        total_installed = sum(len(s.installed) for s in statuses.values())
        total_declared = sum(s.total for s in statuses.values())
        score = int(100 * total_installed / total_declared + 0.5) if total_declared else 0

        missing_components = []
        for status in statuses.values():
            for declared in status.missing:
                target = target_for(declared).as_posix()
                if target not in missing_components:
                    missing_components.append(target)

        primary = statuses[PRIMARY_WORKFLOW]
        return UnifiedInstallStatus(
            commandsets=statuses,
            completeness_score=score,
            is_minimal_setup_complete=primary.total > 0
            and primary.ratio >= MINIMAL_SETUP_THRESHOLD,
            missing_components=missing_components,
        )

    def is_minimal_setup_complete(self, project: Path) -> bool:
        return self.check_all_install_status(project).is_minimal_setup_complete


__all__ = [
    "ProgressCallback",
    "FULL_PROFILE",
    "TRACKED_COMMANDSETS",
    "MINIMAL_SETUP_THRESHOLD",
    "UnifiedCommandsetInstaller",
]
