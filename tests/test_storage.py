"""Tests for key-value backends."""

import sqlite3
from unittest.mock import patch

import pytest

from postpad.errors import PersistenceError
from postpad.storage import FileBackend, MemoryBackend, SqliteBackend, open_backend


@pytest.fixture(params=["memory", "file", "sqlite"])
def any_backend(request, tmp_path):
    if request.param == "memory":
        return MemoryBackend()
    if request.param == "file":
        return FileBackend(tmp_path / "store")
    return SqliteBackend(tmp_path / "store" / "postpad.db")


class TestBackendContract:
    """Behaviour every backend shares."""

    def test_missing_key(self, any_backend):
        assert any_backend.get("posts") is None

    def test_set_get_overwrite(self, any_backend):
        any_backend.set("posts", "[1]")
        any_backend.set("posts", "[1, 2]")
        assert any_backend.get("posts") == "[1, 2]"

    def test_keys_are_independent(self, any_backend):
        any_backend.set("a", "1")
        any_backend.set("b", "2")
        assert any_backend.get("a") == "1"

    def test_delete(self, any_backend):
        any_backend.set("posts", "[]")
        any_backend.delete("posts")
        any_backend.delete("posts")
        assert any_backend.get("posts") is None


class TestFileBackend:
    """Tests for FileBackend."""

    def test_one_file_per_key(self, tmp_path):
        backend = FileBackend(tmp_path)
        backend.set("posts", "[]")
        assert (tmp_path / "posts.json").read_text(encoding="utf-8") == "[]"

    def test_leaves_no_temp_files(self, tmp_path):
        backend = FileBackend(tmp_path)
        backend.set("posts", "[]")
        backend.set("posts", "[1]")
        assert [p.name for p in tmp_path.iterdir()] == ["posts.json"]

    def test_write_failure_is_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        backend = FileBackend(blocker / "store")

        with pytest.raises(PersistenceError):
            backend.set("posts", "[]")

    def test_read_failure_is_persistence_error(self, tmp_path):
        backend = FileBackend(tmp_path)
        (tmp_path / "posts.json").mkdir()

        with pytest.raises(PersistenceError):
            backend.get("posts")

    def test_failed_replace_cleans_up(self, tmp_path):
        backend = FileBackend(tmp_path)
        with patch("postpad.storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                backend.set("posts", "[]")
        assert list(tmp_path.iterdir()) == []


class TestSqliteBackend:
    """Tests for SqliteBackend."""

    def test_creates_kv_table(self, tmp_path):
        db_path = tmp_path / "nested" / "postpad.db"
        SqliteBackend(db_path).set("posts", "[]")

        conn = sqlite3.connect(db_path)
        try:
            row = conn.execute("SELECT key, value, updated_at FROM kv").fetchone()
        finally:
            conn.close()
        assert row[0] == "posts"
        assert row[1] == "[]"
        assert row[2]

    def test_survives_reopen(self, tmp_path):
        db_path = tmp_path / "postpad.db"
        SqliteBackend(db_path).set("posts", "[42]")
        assert SqliteBackend(db_path).get("posts") == "[42]"

    def test_sqlite_error_is_persistence_error(self, tmp_path):
        backend = SqliteBackend(tmp_path / "postpad.db")
        with patch("postpad.storage.sqlite3.connect", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(PersistenceError):
                backend.set("posts", "[]")


class TestOpenBackend:
    """Tests for open_backend()."""

    def test_file(self, tmp_path):
        backend = open_backend({"postpad": {"home": str(tmp_path)}, "storage": {"backend": "file"}})
        assert isinstance(backend, FileBackend)
        assert backend.directory == tmp_path

    def test_sqlite_default_path(self, tmp_path):
        backend = open_backend({"postpad": {"home": str(tmp_path)}, "storage": {"backend": "sqlite"}})
        assert isinstance(backend, SqliteBackend)
        assert backend.db_path == tmp_path / "postpad.db"

    def test_sqlite_explicit_path(self, tmp_path):
        config = {"storage": {"backend": "sqlite", "path": str(tmp_path / "other.db")}}
        assert open_backend(config).db_path == tmp_path / "other.db"

    def test_memory(self):
        assert isinstance(open_backend({"storage": {"backend": "memory"}}), MemoryBackend)

    def test_unknown(self):
        with pytest.raises(ValueError):
            open_backend({"storage": {"backend": "redis"}})
