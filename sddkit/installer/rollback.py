"""Backups taken before each install, the history index and restore.

Each backup is a folder ``.kiro/.backups/<id>/`` holding copies of every
file found under the owned roots of the commandsets being installed (plus
``CLAUDE.md``), laid out relative to the project root. The history index
``.kiro/.install-history.json`` is a JSON array with one entry per backup.
At most MAX_HISTORY entries are kept; evicting an entry deletes its folder.

Updates to the index hold the lock file ``.kiro/.install-history.lock``,
created exclusively, so managers in other threads or processes working on
the same project wait for each other.
"""

import json
import logging
import os
import platform
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from sddkit.clock import Clock, SystemClock, isoformat
from sddkit.errors import (
    BackupCreationError,
    BackupNotFoundError,
    RestoreFailedError,
    Result,
)
from sddkit.paths import (
    BACKUPS_DIR,
    CLAUDE_MD,
    HISTORY_FILE,
    HISTORY_LOCK_FILE,
    project_path,
    target_for,
)
from sddkit.storage import Storage

from .definitions import CommandsetDefinitionManager
from .models import InstallHistory, RollbackResult

_logging = logging.getLogger(__name__)

MAX_HISTORY = 10
LOCK_TIMEOUT = 10.0
LOCK_POLL_INTERVAL = 0.02


def _parse_timestamp(value: str) -> datetime:
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _entry_from_dict(data) -> InstallHistory | None:
    if not isinstance(data, dict):
        return None
    backup_id = data.get("id")
    timestamp = data.get("timestamp")
    if not isinstance(backup_id, str) or not isinstance(timestamp, str):
        return None
    commandsets = data.get("commandsets")
    files = data.get("files")
    return InstallHistory(
        id=backup_id,
        timestamp=timestamp,
        commandsets=list(commandsets) if isinstance(commandsets, list) else [],
        files=list(files) if isinstance(files, list) else [],
    )


def sort_history(entries: list[InstallHistory]) -> list[InstallHistory]:
    """Most recent first. Equal timestamps keep the later-recorded entry first."""
    indexed = list(enumerate(entries))
    indexed.sort(key=lambda item: (_parse_timestamp(item[1].timestamp), item[0]), reverse=True)
    return [entry for _, entry in indexed]


def is_valid_backup_id(backup_id: str) -> bool:
    """A backup id names exactly one folder below ``.kiro/.backups``."""
    if not backup_id or backup_id in (".", "..") or "\\" in backup_id:
        return False
    return PurePosixPath(backup_id).name == backup_id


class RollbackManager:
    def __init__(
        self,
        storage: Storage,
        definitions: CommandsetDefinitionManager,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
        lock_timeout: float = LOCK_TIMEOUT,
    ):
        self.storage = storage
        self.definitions = definitions
        self.clock = clock or SystemClock()
        self.lock_timeout = lock_timeout
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def backup_dir(self, project: Path, backup_id: str) -> Path:
        return project_path(project, BACKUPS_DIR / backup_id)

    def owned_roots(self, commandsets: list[str]) -> list[PurePosixPath]:
        """Project-relative directories that receive a commandset's files."""
        roots: dict[PurePosixPath, None] = {}
        for name in commandsets:
            for declared in self.definitions.get_files(name):
                roots[target_for(declared).parent] = None
        return list(roots)

    def _collect_files(self, project: Path, commandsets: list[str]) -> list[str]:
        project = Path(project)
        found: dict[str, None] = {}
        for root in self.owned_roots(commandsets):
            for path in self.storage.list_files(project_path(project, root)):
                found[path.relative_to(project).as_posix()] = None
        if self.storage.exists(project / CLAUDE_MD) and not self.storage.is_dir(
            project / CLAUDE_MD
        ):
            found[CLAUDE_MD] = None
        return list(found)

    def create_backup(self, project: Path, commandsets: list[str]) -> Result[str]:
        """Snapshot the files the given commandsets would touch.

        A history entry is recorded even when no files exist yet, so every
        install attempt can be rolled back. On failure the partly written
        backup folder is removed again.
        """
        backup_id = self._id_factory()
        backup_root = self.backup_dir(project, backup_id)
        try:
            files = self._collect_files(project, commandsets)
            self.storage.make_dirs(backup_root)
            for relative in files:
                self.storage.copy_file(
                    project_path(project, relative), project_path(backup_root, relative)
                )
            entry = InstallHistory(
                id=backup_id,
                timestamp=isoformat(self.clock.now()),
                commandsets=list(commandsets),
                files=files,
            )
            self._record(project, entry)
        except OSError as e:
            _logging.warning(f"Backup {backup_id} failed: {e}")
            self._discard(backup_root)
            return Result.failure(BackupCreationError(str(e)))

        _logging.debug(f"Created backup {backup_id} with {len(files)} file(s)")
        return Result.success(backup_id)

    def _discard(self, backup_root: Path) -> None:
        try:
            self.storage.remove(backup_root)
        except OSError as e:
            _logging.warning(f"Could not remove incomplete backup {backup_root}: {e}")

    @contextmanager
    def _history_lock(self, project: Path) -> Iterator[None]:
        """Hold the project's history lock file while the index is updated.

        Raises TimeoutError when another holder keeps the lock for longer
        than ``lock_timeout`` seconds.
        """
        lock_path = project_path(project, HISTORY_LOCK_FILE)
        owner = json.dumps(
            {
                "pid": os.getpid(),
                "hostname": platform.node(),
                "token": uuid.uuid4().hex,
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
            sort_keys=True,
        )
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                self.storage.create_exclusive(lock_path, owner.encode("utf-8"))
                break
            except FileExistsError:
                if time.monotonic() >= deadline:
                    raise TimeoutError(
                        f"Install history is locked by {self._lock_holder(lock_path)}; "
                        f"remove {lock_path} if no other sddkit process is running"
                    ) from None
                time.sleep(LOCK_POLL_INTERVAL)
        try:
            yield
        finally:
            self._release_lock(lock_path, owner)

    def _lock_holder(self, lock_path: Path) -> str:
        try:
            holder = json.loads(self.storage.read_text(lock_path))
        except (OSError, ValueError):
            return "an unknown process"
        if not isinstance(holder, dict):
            return "an unknown process"
        return f"pid {holder.get('pid')} on {holder.get('hostname')}"

    def _release_lock(self, lock_path: Path, owner: str) -> None:
        try:
            current = self.storage.read_text(lock_path)
        except FileNotFoundError:
            return
        # Leave a lock that someone else broke and re-acquired
        if current == owner:
            self.storage.remove(lock_path)

    def _read_index(self, project: Path) -> list[InstallHistory]:
        path = project_path(project, HISTORY_FILE)
        if not self.storage.exists(path):
            return []
        try:
            raw = json.loads(self.storage.read_text(path))
        except (OSError, ValueError) as e:
            _logging.warning(f"Ignoring unreadable install history: {e}")
            return []
        if not isinstance(raw, list):
            _logging.warning("Ignoring install history that is not a JSON array")
            return []
        entries = []
        for item in raw:
            entry = _entry_from_dict(item)
            if entry is not None:
                entries.append(entry)
        return entries

    def _write_index(self, project: Path, entries: list[InstallHistory]) -> None:
        data = [entry.to_dict() for entry in entries]
        self.storage.write_text(
            project_path(project, HISTORY_FILE), json.dumps(data, indent=2) + "\n"
        )

    def _record(self, project: Path, entry: InstallHistory) -> None:
        """Append ``entry`` and evict the oldest entries beyond MAX_HISTORY.

        The new entry is always kept, whatever its timestamp. The index is
        written before evicted folders are removed, so a failed write leaves
        every listed folder in place.
        """
        with self._history_lock(project):
            older = sort_history(self._read_index(project))
            kept, evicted = older[: MAX_HISTORY - 1], older[MAX_HISTORY - 1 :]
            # The index file stays oldest-first so ties keep recording order
            self._write_index(project, list(reversed(kept)) + [entry])
        for old in evicted:
            _logging.debug(f"Evicting backup {old.id}")
            self._discard(self.backup_dir(project, old.id))

    def get_history(self, project: Path) -> list[InstallHistory]:
        return sort_history(self._read_index(project))

    def rollback(self, project: Path, backup_id: str) -> Result[RollbackResult]:
        """Copy every file in a backup back into the project.

        Only backups listed in the history index can be restored. The backup
        itself is left in place, so a restore can be repeated.
        """
        if not is_valid_backup_id(backup_id):
            return Result.failure(BackupNotFoundError(backup_id))
        backup_root = self.backup_dir(project, backup_id)
        recorded = {entry.id for entry in self._read_index(project)}
        if backup_id not in recorded or not self.storage.is_dir(backup_root):
            return Result.failure(BackupNotFoundError(backup_id))

        result = RollbackResult()
        files = self.storage.list_files(backup_root)
        for path in files:
            relative = path.relative_to(backup_root).as_posix()
            try:
                self.storage.copy_file(path, project_path(project, relative))
                result.restored_files.append(relative)
            except OSError as e:
                _logging.warning(f"Could not restore {relative}: {e}")
                result.failed_files.append(relative)

        if files and not result.restored_files:
            return Result.failure(RestoreFailedError(result.failed_files))
        return Result.success(result)


__all__ = [
    "MAX_HISTORY",
    "LOCK_TIMEOUT",
    "sort_history",
    "is_valid_backup_id",
    "RollbackManager",
]
