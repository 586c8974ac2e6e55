"""Pytest fixtures and utilities for sddkit tests."""

import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from sddkit.data_loader import get_commandset_definitions
from sddkit.installer import (
    CommandsetDefinition,
    CommandsetDefinitionManager,
    RollbackManager,
    UnifiedCommandsetInstaller,
)
from sddkit.storage import LocalStorage, MemoryStorage


@dataclass
class SteppingClock:
    """Clock that moves forward one second on every call."""

    current: datetime = field(
        default_factory=lambda: datetime(2025, 1, 1, tzinfo=timezone.utc)
    )

    def now(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def template_content(declared: str) -> str:
    return f"# template {declared}\n"


def build_bundle(root: Path, definitions: dict[str, CommandsetDefinition]) -> Path:
    """Write every declared file of ``definitions`` below ``root``."""
    for definition in definitions.values():
        for declared in definition.files:
            path = root / declared
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(template_content(declared), encoding="utf-8")
    return root


def make_definition(name: str, files=None, dependencies=(), version="1.0.0", category="workflow"):
    return CommandsetDefinition(
        name=name,
        description=f"{name} commandset",
        category=category,
        version=version,
        files=tuple(files or (f"commands/{name}/{name}.md",)),
        dependencies=tuple(dependencies),
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project(temp_dir: Path) -> Path:
    path = temp_dir / "project"
    path.mkdir()
    return path


@pytest.fixture
def bundle(temp_dir: Path) -> Path:
    """Template bundle containing every file of the bundled commandsets."""
    return build_bundle(temp_dir / "bundle", get_commandset_definitions())


@pytest.fixture
def definitions() -> CommandsetDefinitionManager:
    return CommandsetDefinitionManager()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def local_storage() -> LocalStorage:
    return LocalStorage()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def rollback_manager(local_storage, definitions, clock) -> RollbackManager:
    return RollbackManager(local_storage, definitions, clock)


@pytest.fixture
def installer(local_storage, bundle, clock) -> UnifiedCommandsetInstaller:
    return UnifiedCommandsetInstaller(local_storage, bundle, clock=clock)


@pytest.fixture
def mock_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return True."""
    with patch("sys.stdin.isatty", return_value=True):
        yield


@pytest.fixture
def mock_no_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return False."""
    with patch("sys.stdin.isatty", return_value=False):
        yield
