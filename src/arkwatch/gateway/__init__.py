"""
Messaging Gateway module.

Routes inbound Telegram messages through the command table and fans out
poll-cycle notifications to subscribers.
"""

from .commands import COMMANDS, CommandContext, handle_command, parse_command
from .dispatcher import MessageGateway, NotificationDispatcher
from .formatters import format_for_telegram, format_status_report
from .telegram_client import TelegramClient

__all__ = [
    "COMMANDS",
    "CommandContext",
    "MessageGateway",
    "NotificationDispatcher",
    "TelegramClient",
    "format_for_telegram",
    "format_status_report",
    "handle_command",
    "parse_command",
]
