"""Explicit dependency object shared by command handlers and services."""

from dataclasses import dataclass

from .monitor.prober import StatusProber
from .monitor.rate_limiter import RateLimiter
from .monitor.registry import ServerRegistry
from .persistence.subscribers import SubscriberStore


@dataclass
class AppContext:
    """Everything a command handler may touch.

    Attributes:
        registry: Configured probe targets
        prober: Status prober used for on-demand status queries
        subscribers: Notification roster
        rate_limiter: Gate for the status command
        rate_limit_window_seconds: Length of one rate-limit window
    """

    registry: ServerRegistry
    prober: StatusProber
    subscribers: SubscriberStore
    rate_limiter: RateLimiter
    rate_limit_window_seconds: int = 60
