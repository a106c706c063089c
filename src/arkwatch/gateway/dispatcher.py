"""Fan out cycle notifications to subscribers."""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog

from ..monitor.models import Notification
from ..persistence.subscribers import SubscriberStore

logger = structlog.get_logger(__name__)


class MessageGateway(Protocol):
    async def send_message(self, chat_id: str, text: str) -> bool: ...


class NotificationDispatcher:
    """Deliver notifications at most once to every current subscriber.

    Notifications go out in the order given. For each notification all
    subscribers are sent to concurrently; a failed send is logged and
    dropped without touching the other recipients.
    """

    def __init__(self, gateway: MessageGateway, subscribers: SubscriberStore):
        self.gateway = gateway
        self.subscribers = subscribers

    async def dispatch(self, notifications: list[Notification]) -> None:
        recipients = sorted(self.subscribers.snapshot())
        if not notifications or not recipients:
            logger.debug(
                "dispatch_skipped",
                notification_count=len(notifications),
                recipient_count=len(recipients),
            )
            return

        failures = 0
        for notification in notifications:
            results = await asyncio.gather(
                *(self._deliver(recipient, notification) for recipient in recipients)
            )
            failures += results.count(False)

        logger.info(
            "dispatch_complete",
            notification_count=len(notifications),
            recipient_count=len(recipients),
            failed_sends=failures,
        )

    async def _deliver(self, recipient: str, notification: Notification) -> bool:
        try:
            sent = await self.gateway.send_message(recipient, notification.message)
        except Exception as e:
            logger.error(
                "notification_send_failed",
                recipient=recipient,
                kind=notification.kind.value,
                server=notification.server,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if not sent:
            logger.warning(
                "notification_send_failed",
                recipient=recipient,
                kind=notification.kind.value,
                server=notification.server,
            )
        return bool(sent)
