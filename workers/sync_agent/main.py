from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Sequence

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from pydantic import ValidationError

from src.services.errors import RemoteOperationError
from src.services.favorite_models import FavoriteRecord
from src.services.favorites_remote import FavoritesRemote, HttpFavoritesRemote
from src.services.favorites_store import FavoritesStore, SQLiteFavoritesStore
from src.services.favorites_sync import FavoritesSyncService
from src.services.sync_queue import SyncQueue
from workers.sync_agent.config import AgentConfig, get_config

logger = logging.getLogger("sync-agent")

EXIT_OK = 0
EXIT_SYNC_FAILED = 1
EXIT_USAGE = 2


class SyncAgent:
    def __init__(self, config: AgentConfig, store: FavoritesStore, remote: FavoritesRemote):
        self.config = config
        self.store = store
        self.remote = remote
        self.service = FavoritesSyncService(store, remote)
        self.queue = SyncQueue(
            self.service,
            base_retry_delay=config.base_retry_delay_seconds,
            max_retry_delay=config.max_retry_delay_seconds,
        )
        self.running = False
        self._stop_event: asyncio.Event | None = None

    async def list_favorites(self) -> list[dict]:
        return [record.to_payload() for record in await self.service.load_active()]

    async def toggle(self, raw_record: str) -> dict:
        record = FavoriteRecord.model_validate_json(raw_record)
        result = await self.service.toggle_favorite(record)
        return {"isFavorite": result.is_favorite}

    async def sync_once(self) -> dict:
        report = await self.service.sync_favorites()
        return {"pushed": report.pushed, "failed": report.failed, "rows": report.merged}

    async def run(self) -> None:
        self._stop_event = asyncio.Event()
        self._setup_signal_handlers()
        self._log_startup_info()
        self.running = True

        await self.queue.start()
        try:
            while self.running:
                self.queue.request("interval")
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=self.config.sync_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            await self._shutdown()

    def request_shutdown(self) -> None:
        logger.info("Shutdown requested")
        self.running = False
        if self._stop_event is not None:
            self._stop_event.set()

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                # Windows event loops
                signal.signal(sig, lambda signum, frame: self.request_shutdown())

    def _log_startup_info(self) -> None:
        logger.info(
            "Starting favorites sync agent: id=%s, db=%s, interval=%ds",
            self.config.agent_id,
            self.config.db_path,
            self.config.sync_interval_seconds,
        )

    async def _shutdown(self) -> None:
        await self.queue.stop()
        logger.info(
            "Sync agent stopped: cycles_completed=%d, cycles_failed=%d",
            self.queue.cycles_completed,
            self.queue.cycles_failed,
        )


def create_default_dependencies(config: AgentConfig) -> tuple[SQLiteFavoritesStore, HttpFavoritesRemote]:
    store = SQLiteFavoritesStore(config.db_path)
    remote = HttpFavoritesRemote(
        base_url=config.api_base_url,
        token_provider=lambda: config.api_token or None,
        timeout=config.http_timeout_seconds,
    )
    return store, remote


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sync-agent",
        description="Offline favorites cache and sync agent",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="Print the cached favorites")
    toggle = sub.add_parser("toggle", help="Toggle a favorite from a JSON recipe")
    toggle.add_argument("record", help='e.g. \'{"id": "42", "name": "Soup"}\'')
    sub.add_parser("sync", help="Run one sync cycle")
    sub.add_parser("run", help="Sync periodically until interrupted")
    return parser


async def _dispatch(agent: SyncAgent, args: argparse.Namespace) -> int:
    if args.command == "list":
        print(json.dumps(await agent.list_favorites(), ensure_ascii=False, indent=2))
        return EXIT_OK

    if args.command == "toggle":
        try:
            result = await agent.toggle(args.record)
        except ValidationError as exc:
            logger.error("Invalid favorite record: %s", exc)
            return EXIT_USAGE
        print(json.dumps(result))
        return EXIT_OK

    if args.command == "sync":
        try:
            result = await agent.sync_once()
        except RemoteOperationError as exc:
            logger.error("Sync failed: %s", exc)
            return EXIT_SYNC_FAILED
        print(json.dumps(result))
        return EXIT_OK

    await agent.run()
    return EXIT_OK


async def _amain(config: AgentConfig, args: argparse.Namespace) -> int:
    store, remote = create_default_dependencies(config)
    agent = SyncAgent(config=config, store=store, remote=remote)
    try:
        return await _dispatch(agent, args)
    finally:
        await remote.aclose()
        store.close()


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    args = build_parser().parse_args(argv)
    config = get_config()

    errors = config.validate(require_remote=args.command in ("sync", "run"))
    if errors:
        logger.error("Invalid configuration: %s", ", ".join(errors))
        return EXIT_USAGE

    return asyncio.run(_amain(config, args))


if __name__ == "__main__":
    sys.exit(main())
