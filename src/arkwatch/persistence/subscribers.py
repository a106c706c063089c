"""Subscriber store - persisted set of notification recipients."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from enum import Enum

import structlog

from .db import DatabaseManager

logger = structlog.get_logger(__name__)


class SubscriptionChange(str, Enum):
    ENABLED = "enabled"
    ALREADY_ENABLED = "already_enabled"
    DISABLED = "disabled"
    ALREADY_DISABLED = "already_disabled"


class SubscriberStore:
    """In-memory subscriber set backed by the ``subscribers`` table.

    The in-memory set is authoritative. Every mutation rewrites the whole
    table in one transaction before the call returns; writes are serialised
    by a lock so concurrent enable/disable calls cannot lose an update. If a
    write fails it is logged and the next successful write catches up.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self._subscribers: set[str] = set()
        self._write_lock = asyncio.Lock()

    async def load(self) -> None:
        """
        Load persisted subscribers, creating the store on first run.

        Raises:
            sqlite3.Error, OSError: If the backing database cannot be created
                or read. Callers treat this as fatal.
        """
        created = not self.db_manager.exists
        await self.db_manager.init_db()

        db = await self.db_manager.get_connection()
        cursor = await db.execute("SELECT subscriber_id FROM subscribers")
        rows = await cursor.fetchall()
        await cursor.close()

        self._subscribers = {row[0] for row in rows}

        if created:
            await self._persist()
            logger.info("subscriber_store_created", db_path=str(self.db_manager.db_path))
        logger.info("subscriber_store_loaded", subscriber_count=len(self._subscribers))

    def __contains__(self, subscriber_id: object) -> bool:
        return subscriber_id in self._subscribers

    def __len__(self) -> int:
        return len(self._subscribers)

    def snapshot(self) -> frozenset[str]:
        """Return an immutable copy of the current subscribers."""
        return frozenset(self._subscribers)

    async def enable(self, subscriber_id: str) -> SubscriptionChange:
        """Add a subscriber. Idempotent."""
        async with self._write_lock:
            if subscriber_id in self._subscribers:
                return SubscriptionChange.ALREADY_ENABLED
            self._subscribers.add(subscriber_id)
            await self._persist_or_log(subscriber_id, "enable")
        logger.info("subscriber_enabled", subscriber_id=subscriber_id)
        return SubscriptionChange.ENABLED

    async def disable(self, subscriber_id: str) -> SubscriptionChange:
        """Remove a subscriber. Idempotent."""
        async with self._write_lock:
            if subscriber_id not in self._subscribers:
                return SubscriptionChange.ALREADY_DISABLED
            self._subscribers.discard(subscriber_id)
            await self._persist_or_log(subscriber_id, "disable")
        logger.info("subscriber_disabled", subscriber_id=subscriber_id)
        return SubscriptionChange.DISABLED

    async def _persist_or_log(self, subscriber_id: str, action: str) -> None:
        try:
            await self._persist()
        except (sqlite3.Error, OSError) as e:
            logger.error(
                "subscriber_store_persist_failed",
                subscriber_id=subscriber_id,
                action=action,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _persist(self) -> None:
        """Rewrite the subscribers table from the in-memory set."""
        db = await self.db_manager.get_connection()
        now = int(datetime.now().timestamp())
        try:
            await db.execute("DELETE FROM subscribers")
            await db.executemany(
                "INSERT INTO subscribers (subscriber_id, persisted_at) VALUES (?, ?)",
                [(subscriber_id, now) for subscriber_id in sorted(self._subscribers)],
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
