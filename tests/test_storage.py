"""Tests for the Storage implementations."""

from pathlib import Path

import pytest

from sddkit.storage import LocalStorage, MemoryStorage


class TestMemoryStorage:
    def test_write_read(self):
        storage = MemoryStorage()
        storage.write_text(Path("/a/b/c.txt"), "hello")
        assert storage.read_text(Path("/a/b/c.txt")) == "hello"
        assert storage.exists(Path("/a/b/c.txt"))
        assert storage.is_dir(Path("/a/b"))
        assert not storage.is_dir(Path("/a/b/c.txt"))

    def test_read_missing(self):
        with pytest.raises(FileNotFoundError):
            MemoryStorage().read_bytes(Path("/missing"))

    def test_list_files_recursive(self):
        storage = MemoryStorage({"/root/a.txt": "a", "/root/sub/b.txt": "b", "/other/c.txt": "c"})
        assert storage.list_files(Path("/root")) == [Path("/root/a.txt"), Path("/root/sub/b.txt")]
        assert storage.list_files(Path("/nothing")) == []

    def test_remove_tree(self):
        storage = MemoryStorage({"/root/a.txt": "a", "/root/sub/b.txt": "b", "/keep.txt": "k"})
        storage.remove(Path("/root"))
        assert storage.list_files(Path("/")) == [Path("/keep.txt")]
        assert not storage.exists(Path("/root"))
        storage.remove(Path("/root"))

    def test_make_dirs(self):
        storage = MemoryStorage()
        storage.make_dirs(Path("/a/b"))
        assert storage.is_dir(Path("/a/b"))
        assert storage.list_files(Path("/a")) == []

    def test_protect(self):
        storage = MemoryStorage()
        storage.protect(Path("/locked"))
        with pytest.raises(PermissionError):
            storage.write_text(Path("/locked/deep/file.txt"), "x")
        storage.write_text(Path("/lockedness/file.txt"), "x")

    def test_copy_file(self):
        storage = MemoryStorage({"/src.bin": b"\x00\x01"})
        storage.copy_file(Path("/src.bin"), Path("/dst/out.bin"))
        assert storage.read_bytes(Path("/dst/out.bin")) == b"\x00\x01"

    def test_create_exclusive(self):
        storage = MemoryStorage()
        storage.create_exclusive(Path("/work/lock"), b"mine")
        with pytest.raises(FileExistsError):
            storage.create_exclusive(Path("/work/lock"), b"theirs")
        assert storage.read_bytes(Path("/work/lock")) == b"mine"


class TestLocalStorage:
    def test_write_creates_parents(self, temp_dir):
        storage = LocalStorage()
        target = temp_dir / "x" / "y" / "z.txt"
        storage.write_text(target, "content")
        assert target.read_text() == "content"

    def test_copy_preserves_bytes(self, temp_dir):
        storage = LocalStorage()
        source = temp_dir / "source.bin"
        source.write_bytes(b"\r\n\x00binary")
        storage.copy_file(source, temp_dir / "nested" / "copy.bin")
        assert (temp_dir / "nested" / "copy.bin").read_bytes() == b"\r\n\x00binary"

    def test_list_and_remove(self, temp_dir):
        storage = LocalStorage()
        storage.write_text(temp_dir / "tree" / "a.txt", "a")
        storage.write_text(temp_dir / "tree" / "sub" / "b.txt", "b")
        assert storage.list_files(temp_dir / "tree") == [
            temp_dir / "tree" / "a.txt",
            temp_dir / "tree" / "sub" / "b.txt",
        ]

        storage.remove(temp_dir / "tree")
        assert not (temp_dir / "tree").exists()
        assert storage.list_files(temp_dir / "tree") == []
        storage.remove(temp_dir / "tree")

    def test_remove_file(self, temp_dir):
        storage = LocalStorage()
        storage.write_text(temp_dir / "a.txt", "a")
        storage.remove(temp_dir / "a.txt")
        assert not storage.exists(temp_dir / "a.txt")

    def test_create_exclusive(self, temp_dir):
        storage = LocalStorage()
        lock = temp_dir / "locks" / "history.lock"
        storage.create_exclusive(lock, b"mine")
        with pytest.raises(FileExistsError):
            storage.create_exclusive(lock, b"theirs")
        assert lock.read_bytes() == b"mine"
