"""Detect version drift between installed commandsets and the bundle."""

from pathlib import Path

from sddkit.config import ProjectConfigStore
from sddkit.versions import compare_versions, is_valid_version

from .definitions import CommandsetDefinitionManager
from .models import CommandsetVersionInfo, VersionCheckResult


def update_required(installed: str | None, bundle: str) -> bool:
    """Decide whether an installed commandset should be updated.

    Never-installed commandsets do not need an update. An installed version
    that does not parse always does, unless the bundle version is unusable too.
    """
    if not installed or not is_valid_version(bundle):
        return False
    if not is_valid_version(installed):
        return True
    return compare_versions(installed, bundle) < 0


class CommandsetVersionService:
    def __init__(self, definitions: CommandsetDefinitionManager, config: ProjectConfigStore):
        self.definitions = definitions
        self.config = config

    def check_versions(self, project: Path) -> VersionCheckResult:
        recorded = self.config.get_commandset_versions(project)
        infos = []
        for name, bundle_version in self.definitions.get_all_versions().items():
            entry = recorded.get(name) or {}
            installed = entry.get("version")
            installed_at = entry.get("installedAt")
            infos.append(
                CommandsetVersionInfo(
                    name=name,
                    bundle_version=bundle_version,
                    installed_version=installed,
                    installed_at=installed_at if isinstance(installed_at, str) else None,
                    update_required=update_required(installed, bundle_version),
                )
            )

        return VersionCheckResult(
            project_path=str(project),
            commandsets=infos,
            any_update_required=any(i.update_required for i in infos),
            has_commandsets=bool(recorded),
            legacy_project=not recorded,
        )


__all__ = [
    "update_required",
    "CommandsetVersionService",
]
