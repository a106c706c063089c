"""
Server monitoring pipeline.

Probes the configured servers, diffs consecutive snapshot sets and produces
the notifications fanned out by the gateway dispatcher.
"""

from .diff import DiffResult, diff_snapshots
from .models import (
    Notification,
    NotificationType,
    ServerConfig,
    ServerDetail,
    ServerStatus,
)
from .periodic import PeriodicTask
from .poller import PollScheduler
from .prober import A2SProber, probe_all
from .rate_limiter import Allowed, Banned, RateLimiter
from .registry import ServerRegistry
from .store import SnapshotSet, SnapshotStore

__all__ = [
    "A2SProber",
    "Allowed",
    "Banned",
    "DiffResult",
    "Notification",
    "NotificationType",
    "PeriodicTask",
    "PollScheduler",
    "RateLimiter",
    "ServerConfig",
    "ServerDetail",
    "ServerRegistry",
    "ServerStatus",
    "SnapshotSet",
    "SnapshotStore",
    "diff_snapshots",
    "probe_all",
]
