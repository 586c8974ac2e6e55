"""Per-commandset installers that copy bundle files into a project.

Every declared file is copied independently. A missing template or a
failed write is recorded in ``InstallResult.failed`` and the loop moves on,
so callers always get a complete audit of what happened.
"""

import errno
import logging
from pathlib import Path

from sddkit.errors import (
    InstallError,
    PermissionDeniedError,
    Result,
    TemplateNotFoundError,
    WriteError,
)
from sddkit.paths import CLAUDE_MD, category_of, project_path, target_for
from sddkit.storage import Storage

from .definitions import CommandsetDefinitionManager
from .models import (
    CategoryResult,
    FileCategory,
    FileFailure,
    InstallOptions,
    InstallResult,
)

_logging = logging.getLogger(__name__)

SPEC_WORKFLOWS = ("cc-sdd", "cc-sdd-agent", "spec-manager")

CATEGORY_ORDER = (
    FileCategory.COMMANDS,
    FileCategory.AGENTS,
    FileCategory.SETTINGS,
    FileCategory.TEMPLATES,
)

WORKFLOW_SECTION = """## Minimal Workflow

### Feature Development (Full SDD)

- Phase 0 (optional): `/kiro:steering`, `/kiro:steering-custom`
- Phase 1 (Specification):
  - `/kiro:spec-init "description"`
  - `/kiro:spec-requirements {feature}`
  - `/kiro:validate-gap {feature}` (optional: for existing codebase)
  - `/kiro:spec-design {feature} [-y]`
  - `/kiro:validate-design {feature}` (optional: design review)
  - `/kiro:spec-tasks {feature} [-y]`
- Phase 2 (Implementation): `/kiro:spec-impl {feature} [tasks]`
  - `/kiro:validate-impl {feature}` (optional: after implementation)
- Progress check: `/kiro:spec-status {feature}` (use anytime)

### Bug Fix (Lightweight Workflow)

Small fixes do not need the full spec process:

```
Report -> Analyze -> Fix -> Verify
```

| Command | Purpose |
|---------|---------|
| `/kiro:bug-create <name> "description"` | Write the bug report |
| `/kiro:bug-analyze [name]` | Find the root cause |
| `/kiro:bug-fix [name]` | Implement the fix |
| `/kiro:bug-verify [name]` | Verify the fix |
| `/kiro:bug-status [name]` | Check progress |
"""

CLAUDE_MD_HEADER = "# AI-DLC and Spec-Driven Development\n\n"


def classify_os_error(path: str, error: OSError) -> InstallError:
    """Map an OS error to PERMISSION_DENIED or WRITE_ERROR."""
    if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
        return PermissionDeniedError(path)
    return WriteError(path, error.strerror or str(error))


def error_for_failure(failure: FileFailure) -> InstallError:
    if failure.code == TemplateNotFoundError.code:
        return TemplateNotFoundError(failure.path)
    if failure.code == PermissionDeniedError.code:
        return PermissionDeniedError(failure.path)
    return WriteError(failure.path, failure.message)


def copy_files(
    storage: Storage,
    templates_dir: Path,
    project: Path,
    declared_files: list[str],
    force: bool = False,
) -> InstallResult:
    """Copy declared bundle files into the project.

    Existing targets are skipped unless ``force`` is set, in which case they
    are overwritten.
    """
    result = InstallResult()
    for declared in declared_files:
        source = project_path(templates_dir, declared)
        target = project_path(project, target_for(declared))

        if not storage.exists(source):
            _logging.warning(f"Template not found: {source}")
            result.failed.append(
                FileFailure(declared, TemplateNotFoundError.code, f"Template not found: {source}")
            )
            continue

        existed = storage.exists(target)
        if existed and not force:
            result.skipped.append(declared)
            continue

        try:
            storage.copy_file(source, target)
        except OSError as e:
            error = classify_os_error(str(target), e)
            _logging.warning(f"Could not install {declared}: {error}")
            result.failed.append(FileFailure(declared, error.code, str(error)))
            continue

        if existed:
            result.overwritten.append(declared)
        else:
            result.installed.append(declared)
    return result


class WorkflowInstaller:
    """Installs one commandset, category by category."""

    def __init__(
        self,
        name: str,
        storage: Storage,
        definitions: CommandsetDefinitionManager,
        templates_dir: Path,
    ):
        self.name = name
        self.storage = storage
        self.definitions = definitions
        self.templates_dir = Path(templates_dir)

    def files_by_category(self) -> dict[FileCategory, list[str]]:
        grouped: dict[FileCategory, list[str]] = {}
        for declared in self.definitions.get_files(self.name):
            category = FileCategory(category_of(declared))
            grouped.setdefault(category, []).append(declared)
        return grouped

    def install_category(
        self, project: Path, category: FileCategory, options: InstallOptions
    ) -> CategoryResult:
        files = self.files_by_category().get(category, [])
        result = copy_files(self.storage, self.templates_dir, project, files, options.force)
        return CategoryResult(category=category, result=result)

    def install(self, project: Path, options: InstallOptions | None = None) -> Result[InstallResult]:
        """Install every category and flatten the results.

        Any failed file fails the commandset; the error carries the full
        audit as ``partial``.
        """
        options = options or InstallOptions()
        grouped = self.files_by_category()
        categories = tuple(
            self.install_category(project, category, options)
            for category in CATEGORY_ORDER
            if category in grouped
        )

        flattened = InstallResult()
        for category_result in categories:
            flattened.extend(category_result.result)
        flattened.categories = categories

        if flattened.failed:
            error = error_for_failure(flattened.failed[0])
            error.partial = flattened
            return Result.failure(error)
        _logging.debug(
            f"Installed {self.name}: {len(flattened.installed)} new, "
            f"{len(flattened.overwritten)} overwritten, {len(flattened.skipped)} skipped"
        )
        return Result.success(flattened)


def has_workflow_section(content: str) -> bool:
    return "Feature Development (Full SDD)" in content or (
        "/kiro:spec-init" in content and "/kiro:spec-requirements" in content
    )


def merge_workflow_section(content: str) -> str:
    """Insert the workflow section after an existing Workflow section, or append it."""
    lines = content.split("\n")
    in_workflow = False
    insert_at = -1
    for i, line in enumerate(lines):
        if "Minimal Workflow" in line or "## Workflow" in line:
            in_workflow = True
        elif in_workflow and line.startswith("## ") and "Workflow" not in line:
            insert_at = i
            in_workflow = False

    if insert_at == -1:
        return "\n".join(lines + ["", WORKFLOW_SECTION])
    merged = lines[:insert_at] + ["", WORKFLOW_SECTION] + lines[insert_at:]
    return "\n".join(merged)


class SpecWorkflowInstaller(WorkflowInstaller):
    """Spec workflows also describe themselves in the project's CLAUDE.md."""

    def update_claude_md(self, project: Path) -> Result[str]:
        """Create or extend CLAUDE.md.

        Returns the action taken: ``created``, ``merged`` or ``skipped``.
        """
        target = project_path(project, CLAUDE_MD)
        template = project_path(self.templates_dir, CLAUDE_MD)
        try:
            if not self.storage.exists(target):
                if self.storage.exists(template):
                    self.storage.copy_file(template, target)
                else:
                    self.storage.write_text(target, CLAUDE_MD_HEADER + WORKFLOW_SECTION)
                return Result.success("created")

            existing = self.storage.read_text(target)
            if has_workflow_section(existing):
                return Result.success("skipped")
            self.storage.write_text(target, merge_workflow_section(existing))
            return Result.success("merged")
        except OSError as e:
            return Result.failure(classify_os_error(str(target), e))


def installer_for(
    name: str,
    storage: Storage,
    definitions: CommandsetDefinitionManager,
    templates_dir: Path,
) -> WorkflowInstaller:
    cls = SpecWorkflowInstaller if name in SPEC_WORKFLOWS else WorkflowInstaller
    return cls(name, storage, definitions, templates_dir)


__all__ = [
    "SPEC_WORKFLOWS",
    "WORKFLOW_SECTION",
    "classify_os_error",
    "copy_files",
    "WorkflowInstaller",
    "SpecWorkflowInstaller",
    "has_workflow_section",
    "merge_workflow_section",
    "installer_for",
]
