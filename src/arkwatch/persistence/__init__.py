# Persistence Layer - SQLite-backed subscriber store

from .db import DatabaseManager, calculate_checksum, discover_migrations
from .subscribers import SubscriberStore, SubscriptionChange

__all__ = [
    "DatabaseManager",
    "SubscriberStore",
    "SubscriptionChange",
    "calculate_checksum",
    "discover_migrations",
]
