from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from .logging_utils import get_logger

log = get_logger(__name__)

STORAGE_PATH = Path.home() / ".local" / "share" / "streamvault" / "storage.sqlite"


def _resolve_storage_path(path: Optional[Path]) -> Path:
    if path is None:
        path = STORAGE_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _ensure_schema(connection: sqlite3.Connection) -> None:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        ) WITHOUT ROWID
        """
    )


class KeyValueStore:
    """Small persistent string store keyed by name, backed by SQLite."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path or STORAGE_PATH

    def get(self, key: str) -> Optional[str]:
        target = self.path
        if not target.exists():
            return None
        connection = sqlite3.connect(target)
        try:
            _ensure_schema(connection)
            row = connection.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        finally:
            connection.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        target = _resolve_storage_path(self._path)
        connection = sqlite3.connect(target)
        try:
            _ensure_schema(connection)
            with connection:
                connection.execute(
                    "INSERT INTO kv(key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        finally:
            connection.close()

    def delete(self, key: str) -> None:
        target = self.path
        if not target.exists():
            return
        connection = sqlite3.connect(target)
        try:
            _ensure_schema(connection)
            with connection:
                connection.execute("DELETE FROM kv WHERE key = ?", (key,))
        finally:
            connection.close()

    def clear(self) -> None:
        target = self.path
        if target.exists():
            try:
                target.unlink()
            except OSError as exc:  # pragma: no cover - best effort cleanup
                log.warning("Failed to remove storage at %s: %s", target, exc)


__all__ = ["KeyValueStore", "STORAGE_PATH"]
