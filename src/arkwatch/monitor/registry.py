"""Server registry - the fixed list of probe targets loaded at startup."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .models import ServerConfig


class ServerRegistry:
    """Immutable, ordered collection of ServerConfig entries keyed by name."""

    def __init__(self, servers: Iterable[ServerConfig]):
        entries = tuple(servers)
        names = [server.name for server in entries]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate server names: {', '.join(duplicates)}")
        self._servers = entries

    @classmethod
    def from_config(cls, raw_servers: Any) -> "ServerRegistry":
        """Build a registry from the raw ``[[servers]]`` configuration list.

        Args:
            raw_servers: List of mappings with name, host and port

        Returns:
            Validated ServerRegistry

        Raises:
            ValueError: If any entry is malformed or names collide
        """
        if not isinstance(raw_servers, list):
            raise ValueError(f"'servers' must be a list, got {type(raw_servers).__name__}")

        servers = []
        for index, raw in enumerate(raw_servers):
            servers.append(_parse_server(index, raw))
        return cls(servers)

    def __iter__(self) -> Iterator[ServerConfig]:
        return iter(self._servers)

    def __len__(self) -> int:
        return len(self._servers)

    def __contains__(self, name: object) -> bool:
        return any(server.name == name for server in self._servers)

    def names(self) -> list[str]:
        return [server.name for server in self._servers]


def _parse_server(index: int, raw: Any) -> ServerConfig:
    if not isinstance(raw, Mapping):
        raise ValueError(f"servers[{index}] must be a table, got {type(raw).__name__}")

    missing = [key for key in ("name", "host", "port") if key not in raw]
    if missing:
        raise ValueError(f"servers[{index}] missing required keys: {', '.join(missing)}")

    name, host, port = raw["name"], raw["host"], raw["port"]
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"servers[{index}].name must be a non-empty string")
    if not isinstance(host, str) or not host.strip():
        raise ValueError(f"servers[{index}].host must be a non-empty string")
    # bool is an int subclass
    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise ValueError(f"servers[{index}].port must be an integer in 1..65535, got {port!r}")

    return ServerConfig(name=name.strip(), host=host.strip(), port=port)
