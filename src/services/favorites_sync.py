# src/services/favorites_sync.py
"""
Offline-first favorites.

Local mutations land in the cache immediately and are marked dirty; a sync
cycle pushes dirty rows to the remote, pulls the remote set and replaces the
cache with the merged result.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Callable, Optional

from src.services.errors import RemoteErrorKind, RemoteOperationError
from src.services.favorite_models import FavoriteRecord
from src.services.favorites_merge import merge_favorites
from src.services.favorites_remote import FavoritesRemote
from src.services.favorites_store import FavoritesStore
from src.services.types import LocalFavoriteRow, SyncReport, ToggleResult

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


def drop_confirmed_tombstones(rows: list[LocalFavoriteRow]) -> list[LocalFavoriteRow]:
    """Tombstones whose delete reached the remote are not written back."""
    return [row for row in rows if not (row.is_deleted and not row.dirty)]


class MonotonicClock:
    """Millisecond wall clock that never repeats or goes backwards."""

    def __init__(self, source: Callable[[], int] = _wall_clock_ms) -> None:
        self._source = source
        self._last = 0
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        with self._lock:
            self._last = max(self._source(), self._last + 1)
            return self._last


class FavoritesSyncService:
    """
    Entry point for the favorites cache.

    Responsibilities:
    - Serve the active favorites from the local cache
    - Record toggles locally, before any network round trip
    - Run push-then-pull sync cycles against the remote
    """

    def __init__(
        self,
        store: FavoritesStore,
        remote: FavoritesRemote,
        clock: Optional[MonotonicClock] = None,
    ):
        self._store = store
        self._remote = remote
        self._clock = clock or MonotonicClock()
        self._write_lock = asyncio.Lock()

    async def load_active(self) -> list[FavoriteRecord]:
        return await self._store.load_active()

    async def toggle_favorite(self, record: FavoriteRecord) -> ToggleResult:
        """
        Flip the favorite state of a recipe in the local cache.

        Args:
            record: The recipe being favorited or unfavorited

        Returns:
            ToggleResult with the new favorite state
        """
        async with self._write_lock:
            existing = await self._store.get(record.id)
            will_delete = existing is not None and not existing.is_deleted

            updated_at = self._clock.now_ms()
            if existing is not None and updated_at <= existing.updated_at:
                updated_at = existing.updated_at + 1

            await self._store.upsert(
                LocalFavoriteRow(
                    recipe_id=record.id,
                    record=record,
                    updated_at=updated_at,
                    is_deleted=will_delete,
                    dirty=True,
                )
            )

        logger.info("favorites.toggled recipe=%s favorite=%s", record.id, not will_delete)
        return ToggleResult(is_favorite=not will_delete)

    async def sync_favorites(self) -> SyncReport:
        """
        Run one push-then-pull cycle.

        Push failures leave the affected rows dirty for the next cycle. A
        failure while listing the remote aborts the cycle before the cache is
        touched and is raised to the caller.

        Raises:
            RemoteOperationError: If the remote list can't be fetched
        """
        report = SyncReport()

        local_rows = await self._store.get_all()
        await self._push_dirty_rows(local_rows, report)

        remote_favorites = await self._remote.list()

        async with self._write_lock:
            local_after_push = await self._store.get_all()
            merged = drop_confirmed_tombstones(
                merge_favorites(local_after_push, remote_favorites)
            )
            await self._store.replace_all(merged)

        report.merged = len(merged)
        logger.info(
            "favorites.synced pushed=%d failed=%d rows=%d",
            len(report.pushed),
            len(report.failed),
            report.merged,
        )
        return report

    async def _push_dirty_rows(self, rows: list[LocalFavoriteRow], report: SyncReport) -> None:
        dirty_rows = sorted((row for row in rows if row.dirty), key=lambda row: row.updated_at)

        for row in dirty_rows:
            if not await self._push_row(row):
                report.failed.append(row.recipe_id)
                continue

            await self._store.mark_clean(row.recipe_id, row.updated_at)
            report.pushed.append(row.recipe_id)

    async def _push_row(self, row: LocalFavoriteRow) -> bool:
        if row.is_deleted:
            operation, tolerated = "remove", RemoteErrorKind.NOT_FOUND
        else:
            operation, tolerated = "add", RemoteErrorKind.ALREADY_EXISTS

        try:
            if row.is_deleted:
                await self._remote.remove(row.recipe_id)
            else:
                await self._remote.add(row.record)
        except RemoteOperationError as exc:
            if exc.kind is tolerated:
                logger.debug("favorites.push_idempotent recipe=%s op=%s", row.recipe_id, operation)
                return True
            logger.warning(
                "favorites.push_failed recipe=%s op=%s kind=%s error=%s",
                row.recipe_id,
                operation,
                exc.kind.value,
                exc,
            )
            return False

        return True
