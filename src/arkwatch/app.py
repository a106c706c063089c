"""Process bootstrap: wires configuration, storage, gateway and schedulers."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import sqlite3
import sys
from pathlib import Path
from typing import Optional

import structlog
from telegram.error import TelegramError

from .config.manager import ConfigManager, load_config
from .context import AppContext
from .gateway.dispatcher import NotificationDispatcher
from .gateway.telegram_client import TelegramClient
from .logging_config import configure_logging
from .monitor.periodic import PeriodicTask
from .monitor.poller import PollScheduler
from .monitor.prober import A2SProber
from .monitor.rate_limiter import RateLimiter
from .persistence.db import DatabaseManager
from .persistence.subscribers import SubscriberStore

logger = structlog.get_logger(__name__)


class StartupError(RuntimeError):
    """The process cannot establish a correct initial state."""


class ArkWatchService:
    """Owns every long-lived component and their start/stop order."""

    def __init__(self, config: ConfigManager):
        self.config = config
        self.db_manager = DatabaseManager(config.get("database.path"))
        self.subscribers = SubscriberStore(self.db_manager)
        self.context = AppContext(
            registry=config.servers,
            prober=A2SProber(timeout_seconds=config.get("probe.timeout_seconds")),
            subscribers=self.subscribers,
            rate_limiter=RateLimiter(
                max_messages_per_window=config.get("rate_limit.max_messages_per_window"),
                ban_windows=config.get("rate_limit.ban_windows"),
                enabled=config.get("rate_limit.enabled"),
            ),
            rate_limit_window_seconds=config.get("rate_limit.window_seconds"),
        )
        self.telegram = TelegramClient(config.get("telegram.bot_token"), self.context)
        self.dispatcher = NotificationDispatcher(self.telegram, self.subscribers)
        self.poller = PollScheduler(
            registry=self.context.registry,
            prober=self.context.prober,
            dispatcher=self.dispatcher,
            interval_seconds=config.get("poll.interval_ms") / 1000,
        )
        self.rate_limit_task: Optional[PeriodicTask] = None
        if self.context.rate_limiter.enabled:
            self.rate_limit_task = PeriodicTask(
                "rate-limit-reset",
                self.context.rate_limit_window_seconds,
                self._reset_rate_limits,
            )

    async def _reset_rate_limits(self) -> None:
        self.context.rate_limiter.tick()

    async def start(self) -> None:
        """
        Load persisted state, then start the gateway and schedulers.

        Raises:
            StartupError: If the subscriber store cannot be created or read, or
                the Telegram gateway rejects the token or cannot be reached
        """
        try:
            await self.subscribers.load()
        except (sqlite3.Error, OSError, RuntimeError) as e:
            raise StartupError(f"Cannot load subscriber store at {self.db_manager.db_path}: {e}") from e

        try:
            await self.telegram.start()
        except TelegramError as e:
            raise StartupError(f"Cannot start Telegram gateway: {e}") from e

        await self.poller.start()
        if self.rate_limit_task is not None:
            await self.rate_limit_task.start()
        logger.info(
            "arkwatch_started",
            servers=self.context.registry.names(),
            subscribers=len(self.subscribers),
            rate_limit_enabled=self.context.rate_limiter.enabled,
        )

    async def stop(self) -> None:
        if self.rate_limit_task is not None:
            await self.rate_limit_task.stop()
        await self.poller.stop()
        await self.telegram.stop()
        await self.db_manager.close()
        logger.info("arkwatch_stopped")


async def run(config: ConfigManager) -> None:
    service = ArkWatchService(config)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    try:
        await service.start()
        await stop_event.wait()
    finally:
        await service.stop()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="arkwatch", description="Game server status notifier")
    parser.add_argument("--config", type=Path, default=None, help="TOML config file (default: config/default.toml)")
    parser.add_argument("--env-file", type=Path, default=None, help=".env file (default: .env)")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args.config, args.env_file)
        if not config.get("telegram.bot_token"):
            raise ValueError("telegram.bot_token is required (set ARKWATCH_TELEGRAM_BOT_TOKEN)")
    except ValueError as e:
        logger.error("config_invalid", error=str(e))
        return 2

    configure_logging(config.get("logging.level"), config.get("logging.json"))

    try:
        asyncio.run(run(config))
    except StartupError as e:
        logger.error("startup_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
