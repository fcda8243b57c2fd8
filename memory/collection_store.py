"""Durable key-value storage for the wardrobe collections.

Each key holds one JSON array. The wardrobe uses two keys, ``locations`` and
``clothes``; a key that was never written loads as an empty list.
"""
from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import Any, Dict, List

from wardrobe_app.errors import PersistenceError

LOCATIONS_KEY = "locations"
CLOTHES_KEY = "clothes"


class CollectionStore:
    """Interface for persisting ordered record collections."""

    def load(self, key: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, key: str, records: List[Dict[str, Any]]) -> None:
        raise NotImplementedError


class JSONCollectionStore(CollectionStore):
    """One JSON file per key, suitable for local runs."""

    def __init__(self, base_dir: str | Path = "data/wardrobe") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def load(self, key: str) -> List[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text())
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read saved {key}.") from exc
        if not isinstance(payload, list):
            raise PersistenceError(f"Saved {key} are not a list.")
        return payload

    def save(self, key: str, records: List[Dict[str, Any]]) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(records, indent=2))
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Could not save {key}.") from exc


class SQLiteCollectionStore(CollectionStore):
    """SQLite-backed store keeping each collection as one JSON value."""

    def __init__(self, db_path: str | Path = "data/wardrobe.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS collections (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at REAL
                    );
                    """
                )
        except sqlite3.Error as exc:
            raise PersistenceError("Could not open the wardrobe database.") from exc

    def load(self, key: str) -> List[Dict[str, Any]]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM collections WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not read saved {key}.") from exc
        if row is None:
            return []
        try:
            payload = json.loads(row["value"])
        except ValueError as exc:
            raise PersistenceError(f"Could not read saved {key}.") from exc
        if not isinstance(payload, list):
            raise PersistenceError(f"Saved {key} are not a list.")
        return payload

    def save(self, key: str, records: List[Dict[str, Any]]) -> None:
        try:
            value = json.dumps(records)
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO collections(key, value, updated_at) VALUES (?, ?, ?)\n"
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                    (key, value, time.time()),
                )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise PersistenceError(f"Could not save {key}.") from exc


def build_collection_store(backend: str, path: str | None = None) -> CollectionStore:
    """Pick a store implementation from a backend name."""

    if backend.lower() == "sqlite":
        return SQLiteCollectionStore(path or "data/wardrobe.db")
    return JSONCollectionStore(path or "data/wardrobe")


__all__ = [
    "CLOTHES_KEY",
    "LOCATIONS_KEY",
    "CollectionStore",
    "JSONCollectionStore",
    "SQLiteCollectionStore",
    "build_collection_store",
]
