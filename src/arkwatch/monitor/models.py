"""Data types shared by the poll, diff and dispatch pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ServerConfig:
    """A configured probe target. Immutable after load."""

    name: str
    host: str
    port: int

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)


@dataclass(frozen=True)
class ServerDetail:
    """Detail reported by an online server."""

    name: str
    map: str
    max_players: int
    players: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ServerStatus:
    """One server's probe result for a single poll cycle.

    ``detail`` is only ever set when ``online`` is True. An online status
    without detail means the server answered but its player list is unknown.
    """

    online: bool
    detail: Optional[ServerDetail] = None

    @classmethod
    def offline(cls) -> "ServerStatus":
        return cls(online=False)

    @property
    def has_detail(self) -> bool:
        return self.online and self.detail is not None


class NotificationType(str, Enum):
    SERVER_UP = "server_up"
    SERVER_DOWN = "server_down"
    PLAYER_JOIN = "player_join"
    PLAYER_LEAVE = "player_leave"


@dataclass(frozen=True)
class Notification:
    """A state transition to fan out to subscribers."""

    kind: NotificationType
    server: str
    message: str
    player: Optional[str] = None

    @classmethod
    def server_up(cls, server: str) -> "Notification":
        return cls(NotificationType.SERVER_UP, server, f"{server} is now online")

    @classmethod
    def server_down(cls, server: str) -> "Notification":
        return cls(NotificationType.SERVER_DOWN, server, f"{server} is now offline")

    @classmethod
    def player_join(cls, server: str, player: str) -> "Notification":
        return cls(NotificationType.PLAYER_JOIN, server, f"{player} joined {server}", player)

    @classmethod
    def player_leave(cls, server: str, player: str) -> "Notification":
        return cls(NotificationType.PLAYER_LEAVE, server, f"{player} left {server}", player)
