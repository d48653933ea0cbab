# src/services/favorites_store.py
"""
Local favorites cache.

One row per favorited recipe, tagged with the time of the last local
mutation, a tombstone flag and a dirty flag. The SQLite implementation keeps
a single connection per store instance; every operation runs inside its own
transaction and writes use BEGIN IMMEDIATE so they are serialized against
concurrent writers on the same file.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from starlette.concurrency import run_in_threadpool

from src.services.favorite_models import FavoriteRecord
from src.services.types import LocalFavoriteRow

logger = logging.getLogger(__name__)

TABLE_NAME = "favorites"

_COLUMNS = "recipe_id, recipe_json, updated_at, is_deleted, dirty"


class FavoritesStore(ABC):
    """
    Abstract interface for the local favorites cache.

    Implementations:
    - SQLiteFavoritesStore: embedded SQLite file
    """

    @abstractmethod
    async def get_all(self) -> list[LocalFavoriteRow]:
        """Return every row, tombstoned and dirty ones included."""
        pass

    @abstractmethod
    async def get(self, recipe_id: str) -> Optional[LocalFavoriteRow]:
        pass

    @abstractmethod
    async def upsert(self, row: LocalFavoriteRow) -> None:
        """Insert or overwrite the row keyed by ``row.recipe_id``."""
        pass

    @abstractmethod
    async def mark_clean(self, recipe_id: str, updated_at: int) -> bool:
        """
        Clear the dirty flag of a row after its push was confirmed.

        Only applies when the row still carries ``updated_at``; a newer
        local mutation keeps the row dirty.

        Returns:
            True if the row was updated
        """
        pass

    @abstractmethod
    async def replace_all(self, rows: Iterable[LocalFavoriteRow]) -> None:
        """Atomically replace the whole table with ``rows``."""
        pass

    @abstractmethod
    async def load_active(self) -> list[FavoriteRecord]:
        """Records that are not tombstoned, most recently touched first."""
        pass

    def close(self) -> None:
        pass


def _serialize_record(record: FavoriteRecord) -> str:
    return json.dumps(record.to_payload(), ensure_ascii=False)


def _row_params(row: LocalFavoriteRow) -> tuple[str, str, int, int, int]:
    return (
        row.recipe_id,
        _serialize_record(row.record),
        int(row.updated_at),
        1 if row.is_deleted else 0,
        1 if row.dirty else 0,
    )


def _row_from_sqlite(values: sqlite3.Row | tuple) -> LocalFavoriteRow:
    recipe_id, recipe_json, updated_at, is_deleted, dirty = values
    return LocalFavoriteRow(
        recipe_id=str(recipe_id),
        record=FavoriteRecord.model_validate(json.loads(recipe_json)),
        updated_at=int(updated_at),
        is_deleted=is_deleted == 1,
        dirty=dirty == 1,
    )


class SQLiteFavoritesStore(FavoritesStore):
    def __init__(self, db_path: str | Path = "fridge_cache.db") -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def __enter__(self) -> "SQLiteFavoritesStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                f"""CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    recipe_id TEXT PRIMARY KEY NOT NULL,
                    recipe_json TEXT NOT NULL,
                    updated_at INTEGER NOT NULL,
                    is_deleted INTEGER NOT NULL DEFAULT 0,
                    dirty INTEGER NOT NULL DEFAULT 0
                )"""
            )
            self._conn = conn
            logger.debug("Favorites cache opened: %s", self.db_path)
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            logger.debug("Favorites cache closed: %s", self.db_path)

    def _write(self, statements: list[tuple[str, tuple]]) -> int:
        with self._lock:
            conn = self._connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                changed = 0
                for sql, params in statements:
                    changed += conn.execute(sql, params).rowcount
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
            return changed

    def _read(self, sql: str, params: tuple = ()) -> list[tuple]:
        with self._lock:
            return self._connection().execute(sql, params).fetchall()

    # Blocking implementations

    def get_all_sync(self) -> list[LocalFavoriteRow]:
        rows = self._read(f"SELECT {_COLUMNS} FROM {TABLE_NAME}")
        return [_row_from_sqlite(row) for row in rows]

    def get_sync(self, recipe_id: str) -> Optional[LocalFavoriteRow]:
        rows = self._read(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} WHERE recipe_id = ?",
            (recipe_id,),
        )
        return _row_from_sqlite(rows[0]) if rows else None

    def upsert_sync(self, row: LocalFavoriteRow) -> None:
        self._write(
            [
                (
                    f"""INSERT INTO {TABLE_NAME} ({_COLUMNS})
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(recipe_id) DO UPDATE SET
                        recipe_json = excluded.recipe_json,
                        updated_at = excluded.updated_at,
                        is_deleted = excluded.is_deleted,
                        dirty = excluded.dirty""",
                    _row_params(row),
                )
            ]
        )

    def mark_clean_sync(self, recipe_id: str, updated_at: int) -> bool:
        changed = self._write(
            [
                (
                    f"UPDATE {TABLE_NAME} SET dirty = 0 WHERE recipe_id = ? AND updated_at = ?",
                    (recipe_id, int(updated_at)),
                )
            ]
        )
        return changed > 0

    def replace_all_sync(self, rows: Iterable[LocalFavoriteRow]) -> None:
        statements: list[tuple[str, tuple]] = [(f"DELETE FROM {TABLE_NAME}", ())]
        statements.extend(
            (f"INSERT INTO {TABLE_NAME} ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)", _row_params(row))
            for row in rows
        )
        self._write(statements)
        logger.debug("Favorites cache replaced: rows=%d", len(statements) - 1)

    def load_active_sync(self) -> list[FavoriteRecord]:
        rows = self._read(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} WHERE is_deleted = 0 ORDER BY updated_at DESC, recipe_id"
        )
        return [_row_from_sqlite(row).record for row in rows]

    # Async contract

    async def get_all(self) -> list[LocalFavoriteRow]:
        return await run_in_threadpool(self.get_all_sync)

    async def get(self, recipe_id: str) -> Optional[LocalFavoriteRow]:
        return await run_in_threadpool(self.get_sync, recipe_id)

    async def upsert(self, row: LocalFavoriteRow) -> None:
        await run_in_threadpool(self.upsert_sync, row)

    async def mark_clean(self, recipe_id: str, updated_at: int) -> bool:
        return await run_in_threadpool(self.mark_clean_sync, recipe_id, updated_at)

    async def replace_all(self, rows: Iterable[LocalFavoriteRow]) -> None:
        await run_in_threadpool(self.replace_all_sync, list(rows))

    async def load_active(self) -> list[FavoriteRecord]:
        return await run_in_threadpool(self.load_active_sync)
