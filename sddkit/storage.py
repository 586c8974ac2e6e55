"""Storage capability shared by every installer component.

Components never touch the file system directly. They receive a Storage
and use its small set of operations, so tests can substitute MemoryStorage
for LocalStorage without touching real disk.

All paths are absolute ``pathlib.Path`` values. ``list_files`` returns
absolute paths of regular files below a root, recursively, and an empty
list when the root does not exist.
"""

import errno
import shutil
import threading
from abc import ABC, abstractmethod
from pathlib import Path


class Storage(ABC):
    @abstractmethod
    def exists(self, path: Path) -> bool: ...

    @abstractmethod
    def is_dir(self, path: Path) -> bool: ...

    @abstractmethod
    def read_bytes(self, path: Path) -> bytes: ...

    @abstractmethod
    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path``, creating parent directories."""

    @abstractmethod
    def create_exclusive(self, path: Path, data: bytes) -> None:
        """Create ``path`` holding ``data``; raise FileExistsError if it exists."""

    @abstractmethod
    def remove(self, path: Path) -> None:
        """Remove a file or a whole directory tree. Missing paths are ignored."""

    @abstractmethod
    def list_files(self, root: Path) -> list[Path]: ...

    @abstractmethod
    def make_dirs(self, path: Path) -> None: ...

    def copy_file(self, source: Path, target: Path) -> None:
        self.write_bytes(target, self.read_bytes(source))

    def read_text(self, path: Path) -> str:
        return self.read_bytes(path).decode("utf-8")

    def write_text(self, path: Path, text: str) -> None:
        self.write_bytes(path, text.encode("utf-8"))


class LocalStorage(Storage):
    """Storage backed by the real file system."""

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def copy_file(self, source: Path, target: Path) -> None:
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)

    def create_exclusive(self, path: Path, data: bytes) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("xb") as f:
            f.write(data)

    def remove(self, path: Path) -> None:
        path = Path(path)
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()

    def list_files(self, root: Path) -> list[Path]:
        root = Path(root)
        if not root.is_dir():
            return []
        return sorted(p for p in root.rglob("*") if p.is_file())

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)


class MemoryStorage(Storage):
    """In-memory Storage for tests and dry runs.

    Paths registered with ``protect`` reject writes with PermissionError,
    mimicking a read-only location on disk.
    """

    def __init__(self, files: dict[str, bytes | str] | None = None):
        self._files: dict[Path, bytes] = {}
        self._dirs: set[Path] = set()
        self._protected: set[Path] = set()
        self._guard = threading.Lock()
        for name, content in (files or {}).items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            self.write_bytes(Path(name), content)

    def protect(self, path: Path) -> None:
        self._protected.add(Path(path))

    def _is_protected(self, path: Path) -> bool:
        return any(p == path or p in path.parents for p in self._protected)

    def exists(self, path: Path) -> bool:
        path = Path(path)
        return path in self._files or self.is_dir(path)

    def is_dir(self, path: Path) -> bool:
        path = Path(path)
        if path in self._dirs:
            return True
        return any(path in f.parents for f in self._files)

    def read_bytes(self, path: Path) -> bytes:
        path = Path(path)
        try:
            return self._files[path]
        except KeyError:
            raise FileNotFoundError(
                errno.ENOENT, "No such file or directory", str(path)
            ) from None

    def write_bytes(self, path: Path, data: bytes) -> None:
        path = Path(path)
        if self._is_protected(path):
            raise PermissionError(errno.EACCES, "Permission denied", str(path))
        self._files[path] = bytes(data)
        self._dirs.update(path.parents)

    def create_exclusive(self, path: Path, data: bytes) -> None:
        path = Path(path)
        with self._guard:
            if self.exists(path):
                raise FileExistsError(errno.EEXIST, "File exists", str(path))
            self.write_bytes(path, data)

    def remove(self, path: Path) -> None:
        path = Path(path)
        self._files.pop(path, None)
        for f in [f for f in self._files if path in f.parents]:
            del self._files[f]
        self._dirs = {d for d in self._dirs if d != path and path not in d.parents}

    def list_files(self, root: Path) -> list[Path]:
        root = Path(root)
        return sorted(f for f in self._files if root in f.parents)

    def make_dirs(self, path: Path) -> None:
        path = Path(path)
        self._dirs.add(path)
        self._dirs.update(path.parents)


__all__ = [
    "Storage",
    "LocalStorage",
    "MemoryStorage",
]
