"""
Key-value storage backends for Postpad.

Each backend stores plain strings by key. Backend failures never leak
OSError or sqlite3.Error: they are raised as PersistenceError so the
store can treat every backend the same way.
"""

import logging
import os
import sqlite3
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from postpad.config import get_db_path, get_postpad_home
from postpad.errors import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL                -- ISO 8601
);
"""


class KeyValueBackend:
    """Interface shared by all backends."""

    name = "abstract"

    def get(self, key: str) -> str | None:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryBackend(KeyValueBackend):
    """Dict-backed storage that lives as long as the process."""

    name = "memory"

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileBackend(KeyValueBackend):
    """One ``<key>.json`` file per key inside a directory."""

    name = "file"

    def __init__(self, directory: Path | None = None):
        self.directory = directory or get_postpad_home()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write beside the target, then rename over it
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e
        logger.debug(f"Wrote {len(value)} chars to {path}")

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot delete {path}: {e}") from e


class SqliteBackend(KeyValueBackend):
    """Key-value table in a SQLite database file."""

    name = "sqlite"

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database exists and the kv table is present."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.executescript(SCHEMA)
        except OSError as e:
            raise PersistenceError(f"Cannot open {self.db_path}: {e}") from e

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"SQLite error on {self.db_path}: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            if row:
                return row[0]
        return None

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, now),
            )
        logger.debug(f"Wrote {len(value)} chars to {self.db_path}:{key}")

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))


def open_backend(config: dict[str, Any]) -> KeyValueBackend:
    """Build the backend named by ``[storage] backend``."""
    storage = config.get("storage", {})
    backend = storage.get("backend", "file")
    home = Path(config.get("postpad", {}).get("home") or get_postpad_home())

    if backend == "file":
        return FileBackend(home)
    if backend == "sqlite":
        return SqliteBackend(Path(storage["path"]) if storage.get("path") else home / "postpad.db")
    if backend == "memory":
        return MemoryBackend()
    raise ValueError(f"Unknown storage backend: {backend}")
