"""In-memory holder for the latest completed snapshot set."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .models import ServerStatus


@dataclass(frozen=True)
class SnapshotSet:
    """Statuses and carried-forward player sets from one completed cycle."""

    statuses: Mapping[str, ServerStatus] = field(default_factory=dict)
    players: Mapping[str, frozenset[str]] = field(default_factory=dict)
    cycle: int = 0


class SnapshotStore:
    """Owns the current SnapshotSet and swaps it as a whole."""

    def __init__(self) -> None:
        self._current = SnapshotSet()

    @property
    def current(self) -> SnapshotSet:
        return self._current

    @property
    def is_empty(self) -> bool:
        return self._current.cycle == 0

    def replace(
        self,
        statuses: Mapping[str, ServerStatus],
        players: Mapping[str, frozenset[str]],
    ) -> SnapshotSet:
        """Install a new snapshot set; readers never see a partial update."""
        self._current = SnapshotSet(
            statuses=MappingProxyType(dict(statuses)),
            players=MappingProxyType(dict(players)),
            cycle=self._current.cycle + 1,
        )
        return self._current
