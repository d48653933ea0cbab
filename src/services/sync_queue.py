from __future__ import annotations

import asyncio
import logging
from typing import Optional

from src.services.errors import RemoteOperationError
from src.services.favorites_sync import FavoritesSyncService

log = logging.getLogger("sync_queue")

DEFAULT_BASE_RETRY_DELAY = 5.0
DEFAULT_MAX_RETRY_DELAY = 300.0


def calculate_retry_delay(attempts: int, base_delay: float, max_delay: float) -> float:
    return min(base_delay * (2 ** attempts), max_delay)


class SyncQueue:
    def __init__(
        self,
        service: FavoritesSyncService,
        base_retry_delay: float = DEFAULT_BASE_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
    ) -> None:
        self._service = service
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task[None]] = None
        self._retry: Optional[asyncio.Task[None]] = None
        self._lock = asyncio.Lock()
        self._pending = False
        self._failed_attempts = 0
        self._base_retry_delay = base_retry_delay
        self._max_retry_delay = max_retry_delay
        self.cycles_completed = 0
        self.cycles_failed = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        async with self._lock:
            if self.running:
                return
            self._worker = asyncio.create_task(self._run(), name="favorites-sync-worker")

    async def stop(self) -> None:
        async with self._lock:
            if not self._worker:
                return
            if self._retry and not self._retry.done():
                self._retry.cancel()
            await self._queue.put(None)
            try:
                await self._worker
            finally:
                self._worker = None
                self._retry = None

    def request(self, reason: str = "manual") -> bool:
        """
        Ask for a sync cycle.

        Returns:
            False if a request was already waiting and this one was folded into it
        """
        if self._pending:
            log.debug("sync.request_coalesced reason=%s", reason)
            return False
        self._pending = True
        self._queue.put_nowait(reason)
        return True

    async def join(self) -> None:
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            reason = await self._queue.get()
            if reason is None:
                self._queue.task_done()
                break
            self._pending = False
            try:
                await self._run_cycle(reason)
            except Exception:
                log.exception("sync.worker_unexpected_error reason=%s", reason)
                self.cycles_failed += 1
                self._schedule_retry()
            finally:
                self._queue.task_done()

    async def _run_cycle(self, reason: str) -> None:
        try:
            report = await self._service.sync_favorites()
        except RemoteOperationError as exc:
            self.cycles_failed += 1
            log.warning(
                "sync.cycle_failed reason=%s kind=%s attempt=%d error=%s",
                reason,
                exc.kind.value,
                self._failed_attempts,
                exc,
            )
            self._schedule_retry()
            return

        self.cycles_completed += 1
        log.info(
            "sync.cycle_done reason=%s pushed=%d failed=%d",
            reason,
            len(report.pushed),
            len(report.failed),
        )
        # rows left dirty by a failed push get another cycle after a backoff
        if report.failed:
            self._schedule_retry()
        else:
            self._failed_attempts = 0

    def _schedule_retry(self) -> None:
        if self._retry and not self._retry.done():
            return
        delay = calculate_retry_delay(
            self._failed_attempts, self._base_retry_delay, self._max_retry_delay
        )
        self._failed_attempts += 1
        self._retry = asyncio.create_task(self._request_after(delay))

    async def _request_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self.request("retry")
