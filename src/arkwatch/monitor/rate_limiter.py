"""Per-subscriber rate limiting for the on-demand status command.

Each subscriber moves through a small state machine:

    Normal --(count > max in one window)--> Banned(n) --(tick, n-1 == 0)--> Normal

``tick()`` is driven by an independent timer once per window. It resets all
request counters and decrements every active ban by one window.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Allowed:
    """Request accepted."""

    count: int


@dataclass(frozen=True)
class Banned:
    """Request rejected; ``remaining`` ban windows until the subscriber is released."""

    remaining: int


RateLimitDecision = Union[Allowed, Banned]


@dataclass
class RateLimitRecord:
    request_count: int = 0
    ban_windows_remaining: int = 0

    @property
    def banned(self) -> bool:
        return self.ban_windows_remaining > 0


class RateLimiter:
    """Count status requests per subscriber and ban repeat offenders."""

    def __init__(
        self,
        max_messages_per_window: int,
        ban_windows: int,
        enabled: bool = True,
    ):
        """
        Initialize RateLimiter.

        Args:
            max_messages_per_window: Requests allowed per window before a ban
            ban_windows: Number of windows a ban lasts (minimum 1)
            enabled: When False every request is allowed
        """
        if max_messages_per_window < 1:
            raise ValueError("max_messages_per_window must be >= 1")
        if ban_windows < 1:
            raise ValueError("ban_windows must be >= 1")

        self.max_messages_per_window = max_messages_per_window
        self.ban_windows = ban_windows
        self.enabled = enabled
        self._records: dict[str, RateLimitRecord] = {}

    def record(self, subscriber_id: str) -> RateLimitDecision:
        """Register one request and decide whether it may proceed."""
        if not self.enabled:
            return Allowed(count=0)

        record = self._records.setdefault(subscriber_id, RateLimitRecord())
        if record.banned:
            return Banned(remaining=record.ban_windows_remaining)

        record.request_count += 1
        if record.request_count > self.max_messages_per_window:
            record.ban_windows_remaining = self.ban_windows
            logger.warning(
                "subscriber_rate_limited",
                subscriber_id=subscriber_id,
                request_count=record.request_count,
                ban_windows=self.ban_windows,
            )
            return Banned(remaining=record.ban_windows_remaining)

        return Allowed(count=record.request_count)

    def tick(self) -> None:
        """Close the current window: reset counters and age out bans."""
        released = []
        for subscriber_id, record in list(self._records.items()):
            record.request_count = 0
            if record.banned:
                record.ban_windows_remaining -= 1
                if not record.banned:
                    released.append(subscriber_id)
            if not record.banned:
                del self._records[subscriber_id]

        for subscriber_id in released:
            logger.info("subscriber_ban_lifted", subscriber_id=subscriber_id)

    def is_banned(self, subscriber_id: str) -> bool:
        record = self._records.get(subscriber_id)
        return record is not None and record.banned

    def remaining_ban(self, subscriber_id: str) -> int:
        record = self._records.get(subscriber_id)
        return record.ban_windows_remaining if record else 0
