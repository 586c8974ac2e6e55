"""Tests for UnifiedCommandsetInstaller."""

import json
from pathlib import Path

import pytest

from sddkit.data_loader import get_commandset_definitions
from sddkit.installer import (
    CommandsetDefinitionManager,
    InstallOptions,
    Profile,
    UnifiedCommandsetInstaller,
)
from sddkit.storage import MemoryStorage

from tests.conftest import SteppingClock, build_bundle, make_definition, template_content

SPEC_INIT = Path(".claude/commands/kiro/spec-init.md")


def read_config(project: Path) -> dict:
    return json.loads((project / ".kiro" / "sdd-orchestrator.json").read_text())


class TestInstallCommandset:
    def test_first_install(self, installer, project):
        result = installer.install_commandset(project, "cc-sdd")
        assert result.ok
        assert len(result.value.installed) == 24
        assert result.value.skipped == []

    def test_repeat_is_skipped(self, installer, project):
        installer.install_commandset(project, "cc-sdd")
        result = installer.install_commandset(project, "cc-sdd")
        assert len(result.value.skipped) == 24
        assert result.value.installed == []

    def test_force_overwrites(self, installer, project):
        installer.install_commandset(project, "cc-sdd")
        result = installer.install_commandset(project, "cc-sdd", InstallOptions(force=True))
        assert len(result.value.overwritten) == 24

    def test_unknown(self, installer, project):
        result = installer.install_commandset(project, "nope")
        assert not result.ok
        assert result.error.code == "UNKNOWN_COMMANDSET"

    def test_without_templates(self, local_storage, project):
        result = UnifiedCommandsetInstaller(local_storage).install_commandset(project, "bug")
        assert not result.ok
        assert result.error.code == "TEMPLATE_NOT_FOUND"

    def test_permission_denied(self, definitions):
        storage = MemoryStorage(
            {
                f"/bundle/{declared}": template_content(declared)
                for declared in definitions.get_files("cc-sdd")
            }
        )
        storage.protect(Path("/project/.claude"))
        installer = UnifiedCommandsetInstaller(storage, Path("/bundle"), clock=SteppingClock())

        result = installer.install_commandset(Path("/project"), "cc-sdd")
        assert not result.ok
        assert result.error.code == "PERMISSION_DENIED"
        assert len(result.error.partial.installed) == 12
        assert len(result.error.partial.failed) == 12


class TestInstallCommandsets:
    def test_batch(self, installer, project):
        result = installer.install_commandsets(project, ["cc-sdd", "bug"])
        assert result.ok
        value = result.value
        assert value.order == ["cc-sdd", "bug"]
        assert value.summary.total_installed == 24 + 5
        assert value.summary.total_skipped == 4
        assert value.summary.total_failed == 0
        assert {c.file_path for c in value.conflicts} == {
            "templates/bugs/report.md",
            "templates/bugs/analysis.md",
            "templates/bugs/fix.md",
            "templates/bugs/verification.md",
        }

    def test_progress_callback(self, installer, project):
        calls = []
        installer.install_commandsets(
            project, ["cc-sdd", "bug"], progress_callback=lambda *args: calls.append(args)
        )
        assert calls == [(1, 2, "cc-sdd"), (2, 2, "bug")]

    def test_unknown_writes_nothing(self, installer, project):
        result = installer.install_commandsets(project, ["bug", "nope"])
        assert not result.ok
        assert result.error.code == "UNKNOWN_COMMANDSET"
        assert list(project.iterdir()) == []

    def test_failed_commandset_does_not_stop_batch(self, installer, bundle, project):
        (bundle / "commands" / "bug" / "bug-fix.md").unlink()
        result = installer.install_commandsets(project, ["bug", "document-review"])
        assert result.ok
        value = result.value
        assert value.summary.total_failed == 1
        assert "bug" in value.errors
        assert value.commandsets["bug"].installed == []
        assert len(value.commandsets["document-review"].installed) == 2
        # Files copied before the failure stay on disk
        assert (project / ".claude" / "commands" / "kiro" / "bug-create.md").exists()

    def test_backup_recorded(self, installer, project):
        result = installer.install_commandsets(project, ["bug"])
        history = installer.rollback.get_history(project)
        assert [entry.id for entry in history] == [result.value.backup_id]
        assert history[0].commandsets == ["bug"]

    def test_rollback_restores_pre_install_state(self, installer, project):
        target = project / SPEC_INIT
        target.parent.mkdir(parents=True)
        target.write_text("my own command")

        result = installer.install_commandsets(project, ["cc-sdd"], InstallOptions(force=True))
        assert target.read_text() == template_content("commands/cc-sdd/spec-init.md")

        assert installer.rollback.rollback(project, result.value.backup_id).ok
        assert target.read_text() == "my own command"

    def test_claude_md(self, installer, project):
        result = installer.install_commandsets(project, ["cc-sdd"])
        assert result.value.claude_md == "created"
        assert (project / "CLAUDE.md").exists()

        again = installer.install_commandsets(project, ["cc-sdd"])
        assert again.value.claude_md == "skipped"

    def test_no_claude_md_without_spec_workflow(self, installer, project):
        result = installer.install_commandsets(project, ["bug"])
        assert result.value.claude_md is None
        assert not (project / "CLAUDE.md").exists()

    def test_project_dirs_created(self, installer, project):
        installer.install_commandsets(project, ["document-review"])
        for name in ["steering", "specs", "bugs"]:
            assert (project / ".kiro" / name).is_dir()

    def test_versions_recorded(self, installer, project):
        installer.install_commandsets(project, ["bug"])
        recorded = read_config(project)["commandsets"]
        assert recorded["bug"]["version"] == "1.0.0"
        first_installed_at = recorded["bug"]["installedAt"]

        installer.install_commandsets(project, ["bug"])
        assert read_config(project)["commandsets"]["bug"]["installedAt"] == first_installed_at

        installer.install_commandsets(project, ["bug"], InstallOptions(force=True))
        assert read_config(project)["commandsets"]["bug"]["installedAt"] != first_installed_at

    def test_versions_preserve_other_keys(self, installer, project):
        config = project / ".kiro" / "sdd-orchestrator.json"
        config.parent.mkdir(parents=True)
        config.write_text(json.dumps({"orchestrator": {"mode": "auto"}}))

        installer.install_commandsets(project, ["bug"])
        data = read_config(project)
        assert data["orchestrator"] == {"mode": "auto"}
        assert "bug" in data["commandsets"]

    def test_version_check_after_install(self, installer, project):
        assert installer.versions.check_versions(project).legacy_project
        installer.install_commandsets(project, ["cc-sdd"])
        check = installer.versions.check_versions(project)
        assert not check.legacy_project
        assert not check.any_update_required


class TestDeclaredDependencies:
    @pytest.fixture
    def custom(self, local_storage, temp_dir, clock):
        definitions = {
            "core": make_definition("core"),
            "app": make_definition("app", dependencies=["core"]),
            "loop-a": make_definition("loop-a", dependencies=["loop-b"]),
            "loop-b": make_definition("loop-b", dependencies=["loop-a"]),
        }
        bundle = build_bundle(temp_dir / "custom-bundle", definitions)
        return UnifiedCommandsetInstaller(
            local_storage,
            bundle,
            definitions=CommandsetDefinitionManager(definitions),
            clock=clock,
        )

    def test_dependencies_installed_first(self, custom, project):
        calls = []
        result = custom.install_commandsets(
            project, ["app", "core"], progress_callback=lambda *args: calls.append(args[2])
        )
        assert result.value.order == ["core", "app"]
        assert calls == ["core", "app"]

    def test_missing_dependency(self, custom, project):
        result = custom.install_commandsets(project, ["app"])
        assert result.error.code == "MISSING_DEPENDENCY"
        assert list(project.iterdir()) == []

    def test_cycle(self, custom, project):
        result = custom.install_commandsets(project, ["loop-a", "loop-b"])
        assert result.error.code == "CIRCULAR_DEPENDENCY"
        assert custom.rollback.get_history(project) == []


class TestProfiles:
    def test_install_by_profile(self, installer, project):
        result = installer.install_by_profile(project, "standard")
        assert result.ok
        assert result.value.order == ["cc-sdd", "bug"]
        assert read_config(project)["profile"]["name"] == "standard"

    def test_unknown_profile_falls_back(self, installer, project):
        result = installer.install_by_profile(project, "ghost")
        assert result.value.order == ["cc-sdd"]
        assert read_config(project)["profile"]["name"] == "minimal"

    def test_custom_profile(self, installer, project):
        installer.profiles.save_custom_profile(project, Profile("docs", "", ["document-review"]))
        result = installer.install_by_profile(project, "docs")
        assert result.value.order == ["document-review"]

    def test_install_all(self, installer, project):
        result = installer.install_all(project)
        assert result.ok
        assert result.value.order == ["cc-sdd-agent", "bug", "document-review"]
        assert result.value.summary.total_failed == 0
        assert result.value.commandsets["cc-sdd-agent"].skipped == []

        content = (project / SPEC_INIT).read_text()
        assert content == template_content("commands/cc-sdd-agent/spec-init.md")
        assert (project / ".claude" / "agents" / "kiro" / "spec-design.md").exists()


class TestStatus:
    def test_fresh_project(self, installer, project):
        status = installer.check_all_install_status(project)
        assert status.completeness_score == 0
        assert not status.is_minimal_setup_complete
        assert SPEC_INIT.as_posix() in status.missing_components
        assert not installer.is_minimal_setup_complete(project)

    def test_after_standard_install(self, installer, project):
        installer.install_by_profile(project, "standard")
        status = installer.check_all_install_status(project)
        assert status.completeness_score == 100
        assert status.is_minimal_setup_complete
        assert status.missing_components == []

    def test_bug_only(self, installer, project):
        installer.install_commandsets(project, ["bug"])
        status = installer.check_all_install_status(project)
        # bug's own 9 files plus the 4 shared bug templates counted for cc-sdd
        assert status.completeness_score == 39
        assert not status.is_minimal_setup_complete
        assert status.commandsets["bug"].ratio == 1.0

    def test_minimal_threshold(self, installer, project):
        installer.install_commandsets(project, ["cc-sdd"])
        for name in ["spec-init.md", "spec-design.md", "spec-tasks.md"]:
            (project / ".claude" / "commands" / "kiro" / name).unlink()
        # 21 of 24 files is above the threshold
        assert installer.is_minimal_setup_complete(project)

        for name in ["spec-impl.md", "spec-status.md"]:
            (project / ".claude" / "commands" / "kiro" / name).unlink()
        assert not installer.is_minimal_setup_complete(project)

    def test_commandset_status(self, installer, project):
        installer.install_commandsets(project, ["document-review"])
        status = installer.get_commandset_status(project, "document-review")
        assert status.total == 2
        assert status.missing == []


def test_bundled_definitions_all_installable(installer, project):
    names = list(get_commandset_definitions())
    result = installer.install_commandsets(project, names)
    assert result.ok
    assert result.value.summary.total_failed == 0
