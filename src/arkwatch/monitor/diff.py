"""State diff engine.

Compares the previous cycle's snapshot set against a freshly probed one and
produces the ordered list of notifications plus the updated player sets.

Rules, per server matched by name:
- availability flip false -> true emits SERVER_UP, true -> false SERVER_DOWN
- the player diff only runs when the new status carries detail; the symmetric
  difference is walked in lexicographic order, joins are added to the stored
  set and leaves removed from it
- without detail the stored player set is carried forward untouched, so a
  server that drops and comes back with the same players reports no joins
- a server missing from the previous snapshot set is a cold start: its player
  set is seeded from the new detail and nothing is emitted for it

This module is pure: it performs no I/O and never mutates its inputs.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .models import Notification, ServerStatus

PlayerSets = Mapping[str, frozenset[str]]
Snapshots = Mapping[str, ServerStatus]


@dataclass(frozen=True)
class DiffResult:
    """Output of one diff pass."""

    notifications: list[Notification] = field(default_factory=list)
    players: dict[str, frozenset[str]] = field(default_factory=dict)


def diff_snapshots(
    previous: Snapshots,
    previous_players: PlayerSets,
    current: Snapshots,
) -> DiffResult:
    """Diff two snapshot sets.

    Args:
        previous: Last cycle's statuses keyed by server name (empty on first run)
        previous_players: Carried-forward player sets keyed by server name
        current: This cycle's statuses keyed by server name, in registry order

    Returns:
        DiffResult with notifications in registry order (availability first,
        then player events) and the player sets to store for the next cycle
    """
    notifications: list[Notification] = []
    players: dict[str, frozenset[str]] = {}

    for name, status in current.items():
        old_status = previous.get(name)
        stored = previous_players.get(name)

        if old_status is None or stored is None:
            players[name] = _seed_players(status)
            continue

        notifications.extend(availability_changes(name, old_status, status))

        if not status.has_detail:
            players[name] = stored
            continue

        events, players[name] = player_changes(name, stored, status.detail.players)
        notifications.extend(events)

    return DiffResult(notifications=notifications, players=players)


def availability_changes(name: str, old: ServerStatus, new: ServerStatus) -> list[Notification]:
    if old.online == new.online:
        return []
    if new.online:
        return [Notification.server_up(name)]
    return [Notification.server_down(name)]


def player_changes(
    server: str,
    stored: frozenset[str],
    observed: frozenset[str],
) -> tuple[list[Notification], frozenset[str]]:
    """Walk the symmetric difference of two player sets.

    Returns:
        Tuple of (join/leave notifications, updated player set)
    """
    events: list[Notification] = []
    updated = set(stored)

    for player in sorted(stored ^ observed):
        if player in observed:
            events.append(Notification.player_join(server, player))
            updated.add(player)
        else:
            events.append(Notification.player_leave(server, player))
            updated.discard(player)

    return events, frozenset(updated)


def _seed_players(status: ServerStatus) -> frozenset[str]:
    if status.has_detail:
        return status.detail.players
    return frozenset()
