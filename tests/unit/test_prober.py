"""Unit tests for the A2S status prober."""

import asyncio
import socket
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from arkwatch.monitor.models import ServerConfig, ServerStatus
from arkwatch.monitor.prober import A2SProber, probe_all
from arkwatch.monitor.registry import ServerRegistry

SERVER = ServerConfig("The Island", "192.0.2.10", 27015)


def _info(name="ARK #1", map_name="TheIsland", max_players=70):
    return SimpleNamespace(server_name=name, map_name=map_name, max_players=max_players)


def _players(*names):
    return [SimpleNamespace(name=n, score=0, duration=1.0) for n in names]


@pytest.mark.asyncio
async def test_probe_online_with_players():
    with patch("arkwatch.monitor.prober.a2s.ainfo", AsyncMock(return_value=_info())) as ainfo, \
            patch("arkwatch.monitor.prober.a2s.aplayers", AsyncMock(return_value=_players("Rex", "Dodo"))):
        status = await A2SProber(timeout_seconds=2.0).probe(SERVER)

    ainfo.assert_awaited_once_with(("192.0.2.10", 27015), timeout=2.0)
    assert status.online
    assert status.detail.name == "ARK #1"
    assert status.detail.map == "TheIsland"
    assert status.detail.max_players == 70
    assert status.detail.players == frozenset({"Rex", "Dodo"})


@pytest.mark.asyncio
async def test_probe_drops_blank_player_names():
    with patch("arkwatch.monitor.prober.a2s.ainfo", AsyncMock(return_value=_info())), \
            patch("arkwatch.monitor.prober.a2s.aplayers", AsyncMock(return_value=_players("Rex", "", "   "))):
        status = await A2SProber().probe(SERVER)

    assert status.detail.players == frozenset({"Rex"})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [socket.timeout("timed out"), asyncio.TimeoutError(), ConnectionRefusedError(), ValueError("malformed")],
)
async def test_probe_failure_collapses_to_offline(error):
    with patch("arkwatch.monitor.prober.a2s.ainfo", AsyncMock(side_effect=error)), \
            patch("arkwatch.monitor.prober.a2s.aplayers", AsyncMock()) as aplayers:
        status = await A2SProber().probe(SERVER)

    assert status == ServerStatus.offline()
    aplayers.assert_not_awaited()


@pytest.mark.asyncio
async def test_player_query_failure_is_online_without_detail():
    with patch("arkwatch.monitor.prober.a2s.ainfo", AsyncMock(return_value=_info())), \
            patch("arkwatch.monitor.prober.a2s.aplayers", AsyncMock(side_effect=socket.timeout())):
        status = await A2SProber().probe(SERVER)

    assert status.online
    assert status.detail is None
    assert not status.has_detail


@pytest.mark.asyncio
async def test_probe_all_keeps_registry_order():
    registry = ServerRegistry([
        ServerConfig("Z", "h1", 1),
        ServerConfig("A", "h2", 2),
        ServerConfig("M", "h3", 3),
    ])

    class DelayedProber:
        async def probe(self, server):
            await asyncio.sleep({"Z": 0.03, "A": 0.0, "M": 0.01}[server.name])
            return ServerStatus(online=server.name != "M")

    statuses = await probe_all(registry, DelayedProber())

    assert list(statuses) == ["Z", "A", "M"]
    assert statuses["M"] == ServerStatus.offline()
