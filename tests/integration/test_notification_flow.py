"""Integration tests for poll -> diff -> dispatch with a persisted subscriber set."""

from unittest.mock import AsyncMock

import pytest

from arkwatch.context import AppContext
from arkwatch.gateway.commands import handle_command
from arkwatch.gateway.dispatcher import NotificationDispatcher
from arkwatch.monitor.models import ServerConfig, ServerDetail, ServerStatus
from arkwatch.monitor.poller import PollScheduler
from arkwatch.monitor.rate_limiter import RateLimiter
from arkwatch.monitor.registry import ServerRegistry
from arkwatch.persistence.db import DatabaseManager
from arkwatch.persistence.subscribers import SubscriberStore


class ScriptedProber:
    """Returns the next scripted status per server on every probe."""

    def __init__(self, script):
        self.script = {name: list(statuses) for name, statuses in script.items()}

    async def probe(self, server):
        return self.script[server.name].pop(0)


class RecordingGateway:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def send_message(self, chat_id: str, text: str) -> bool:
        self.sent.append((chat_id, text))
        return True


def online(*players, max_players=10):
    return ServerStatus(
        online=True,
        detail=ServerDetail(name="ARK", map="TheIsland", max_players=max_players, players=frozenset(players)),
    )


@pytest.fixture
async def setup_database(tmp_path):
    db_manager = DatabaseManager(tmp_path / "test.db")
    yield db_manager
    await db_manager.close()


@pytest.fixture
def registry():
    return ServerRegistry([
        ServerConfig("Island", "192.0.2.1", 27015),
        ServerConfig("Ragnarok", "192.0.2.2", 27015),
    ])


@pytest.mark.asyncio
async def test_subscribe_then_receive_cycle_notifications(setup_database, registry):
    subscribers = SubscriberStore(setup_database)
    await subscribers.load()

    prober = ScriptedProber({
        "Island": [online("alice"), online("alice", "bob"), ServerStatus.offline()],
        "Ragnarok": [ServerStatus.offline(), online("carol"), online()],
    })
    gateway = RecordingGateway()
    scheduler = PollScheduler(
        registry=registry,
        prober=prober,
        dispatcher=NotificationDispatcher(gateway, subscribers),
        interval_seconds=60,
    )
    app = AppContext(
        registry=registry,
        prober=prober,
        subscribers=subscribers,
        rate_limiter=RateLimiter(max_messages_per_window=5, ban_windows=5, enabled=False),
    )

    assert await scheduler.run_cycle() == []
    assert gateway.sent == []

    await handle_command(app, "u1", "100", "/notifications enable", AsyncMock())
    await handle_command(app, "u2", "200", "/notifications enable", AsyncMock())

    await scheduler.run_cycle()
    assert gateway.sent == [
        ("100", "bob joined Island"),
        ("200", "bob joined Island"),
        ("100", "Ragnarok is now online"),
        ("200", "Ragnarok is now online"),
        ("100", "carol joined Ragnarok"),
        ("200", "carol joined Ragnarok"),
    ]

    gateway.sent.clear()
    await handle_command(app, "u2", "200", "/notifications disable", AsyncMock())

    await scheduler.run_cycle()
    assert gateway.sent == [
        ("100", "Island is now offline"),
        ("100", "carol left Ragnarok"),
    ]
    assert scheduler.store.current.players["Island"] == frozenset({"alice", "bob"})


@pytest.mark.asyncio
async def test_subscribers_survive_restart(tmp_path):
    db_path = tmp_path / "restart.db"

    first = DatabaseManager(db_path)
    store = SubscriberStore(first)
    await store.load()
    await store.enable("100")
    await store.enable("200")
    await store.disable("100")
    await first.close()

    second = DatabaseManager(db_path)
    reloaded = SubscriberStore(second)
    await reloaded.load()
    try:
        assert reloaded.snapshot() == frozenset({"200"})
    finally:
        await second.close()
