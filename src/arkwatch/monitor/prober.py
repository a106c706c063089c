"""
Status prober.

Queries game servers over the Steam A2S protocol. A probe never raises:
every transport error, timeout or malformed reply collapses to an offline
status so the diff engine and scheduler only ever see typed results.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import a2s
import structlog

from .models import ServerConfig, ServerDetail, ServerStatus
from .registry import ServerRegistry

logger = structlog.get_logger(__name__)


class StatusProber(Protocol):
    async def probe(self, server: ServerConfig) -> ServerStatus: ...


class A2SProber:
    """Probe servers with A2S_INFO and A2S_PLAYER queries."""

    def __init__(self, timeout_seconds: float = 3.0):
        """
        Initialize A2SProber.

        Args:
            timeout_seconds: Timeout applied to each individual A2S query
        """
        self.timeout_seconds = timeout_seconds

    async def probe(self, server: ServerConfig) -> ServerStatus:
        """
        Probe a single server.

        Args:
            server: Target to query

        Returns:
            Offline status if the info query fails, online status without
            detail if only the player query fails, full status otherwise.
        """
        try:
            info = await a2s.ainfo(server.address, timeout=self.timeout_seconds)
        except Exception as e:
            logger.info(
                "server_probe_failed",
                server=server.name,
                host=server.host,
                port=server.port,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ServerStatus.offline()

        try:
            players = await a2s.aplayers(server.address, timeout=self.timeout_seconds)
        except Exception as e:
            logger.warning(
                "player_query_failed",
                server=server.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ServerStatus(online=True)

        # Connecting players are reported with an empty name
        names = frozenset(p.name for p in players if p.name and p.name.strip())
        detail = ServerDetail(
            name=info.server_name,
            map=info.map_name,
            max_players=info.max_players,
            players=names,
        )
        logger.debug("server_probed", server=server.name, player_count=len(names))
        return ServerStatus(online=True, detail=detail)


async def probe_all(registry: ServerRegistry, prober: StatusProber) -> dict[str, ServerStatus]:
    """Probe every registry entry concurrently and wait for all of them.

    Returns:
        Mapping of server name to status, in registry order
    """
    servers = list(registry)
    results = await asyncio.gather(*(prober.probe(server) for server in servers))
    return {server.name: status for server, status in zip(servers, results)}
