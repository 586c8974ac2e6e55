"""Installer engine for commandset installation, dependency ordering and rollback."""

from .models import (
    CategoryResult,
    CommandsetCategory,
    CommandsetDefinition,
    CommandsetStatus,
    CommandsetVersionInfo,
    FileCategory,
    FileFailure,
    InstallHistory,
    InstallOptions,
    InstallResult,
    InstallSummary,
    MergeResult,
    MergeStrategy,
    Profile,
    RollbackResult,
    SettingsConflict,
    SettingsValidation,
    UnifiedInstallResult,
    UnifiedInstallStatus,
    VersionCheckResult,
)
from .definitions import CommandsetDefinitionManager
from .dependencies import DependencyResolver
from .profiles import ProfileManager
from .settings import SettingsFileManager, get_merge_strategy_for_file
from .version_check import CommandsetVersionService
from .rollback import MAX_HISTORY, RollbackManager
from .workflows import SpecWorkflowInstaller, WorkflowInstaller, copy_files, installer_for
from .unified import UnifiedCommandsetInstaller

__all__ = [
    "CategoryResult",
    "CommandsetCategory",
    "CommandsetDefinition",
    "CommandsetStatus",
    "CommandsetVersionInfo",
    "FileCategory",
    "FileFailure",
    "InstallHistory",
    "InstallOptions",
    "InstallResult",
    "InstallSummary",
    "MergeResult",
    "MergeStrategy",
    "Profile",
    "RollbackResult",
    "SettingsConflict",
    "SettingsValidation",
    "UnifiedInstallResult",
    "UnifiedInstallStatus",
    "VersionCheckResult",
    "CommandsetDefinitionManager",
    "DependencyResolver",
    "ProfileManager",
    "SettingsFileManager",
    "get_merge_strategy_for_file",
    "CommandsetVersionService",
    "MAX_HISTORY",
    "RollbackManager",
    "WorkflowInstaller",
    "SpecWorkflowInstaller",
    "copy_files",
    "installer_for",
    "UnifiedCommandsetInstaller",
]
