"""Gateway command table and handlers.

Transport-independent: the Telegram client parses nothing beyond handing
the raw text, the requesting user and the originating chat to
``handle_command``. Replies are sent through the ``reply`` callback so a
handler can answer more than once (e.g. the status progress message).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Optional

import structlog

from ..context import AppContext
from ..monitor.prober import probe_all
from ..monitor.rate_limiter import Banned
from ..persistence.subscribers import SubscriptionChange
from .formatters import USAGE_TEXT, format_ban_message, format_status_report

logger = structlog.get_logger(__name__)

Reply = Callable[[str], Awaitable[None]]


@dataclass
class CommandContext:
    """One inbound command invocation."""

    app: AppContext
    sender_id: str
    chat_id: str
    reply: Reply
    args: list[str] = field(default_factory=list)


CommandHandler = Callable[[CommandContext], Awaitable[None]]

_SUBSCRIPTION_REPLIES = {
    SubscriptionChange.ENABLED: "Notifications enabled",
    SubscriptionChange.ALREADY_ENABLED: "Notifications already enabled",
    SubscriptionChange.DISABLED: "Notifications disabled",
    SubscriptionChange.ALREADY_DISABLED: "Notifications already disabled",
}


def parse_command(text: str) -> Optional[tuple[str, list[str]]]:
    """Split a message into a lower-cased command name and its arguments.

    Accepts ``status``, ``/status`` and ``/status@SomeBot``.

    Returns:
        (name, args), or None for an empty message
    """
    parts = text.strip().lower().split()
    if not parts:
        return None
    name = parts[0].lstrip("/").split("@", 1)[0]
    return name, parts[1:]


async def handle_help(ctx: CommandContext) -> None:
    await ctx.reply(USAGE_TEXT)


async def handle_status(ctx: CommandContext) -> None:
    """Probe all servers now, subject to the sender's rate limit."""
    decision = ctx.app.rate_limiter.record(ctx.sender_id)
    if isinstance(decision, Banned):
        logger.info(
            "status_request_rejected",
            sender_id=ctx.sender_id,
            remaining_windows=decision.remaining,
        )
        await ctx.reply(format_ban_message(decision.remaining, ctx.app.rate_limit_window_seconds))
        return

    logger.info("status_requested", sender_id=ctx.sender_id, chat_id=ctx.chat_id)
    await ctx.reply("Checking servers...")
    statuses = await probe_all(ctx.app.registry, ctx.app.prober)
    await ctx.reply(format_status_report(statuses))


async def handle_notifications(ctx: CommandContext) -> None:
    """Handle notifications enable|disable."""
    if len(ctx.args) != 1 or ctx.args[0] not in ("enable", "disable"):
        await ctx.reply(USAGE_TEXT)
        return

    if ctx.args[0] == "enable":
        change = await ctx.app.subscribers.enable(ctx.chat_id)
    else:
        change = await ctx.app.subscribers.disable(ctx.chat_id)
    await ctx.reply(_SUBSCRIPTION_REPLIES[change])


COMMANDS: dict[str, CommandHandler] = {
    "help": handle_help,
    "start": handle_help,
    "status": handle_status,
    "notifications": handle_notifications,
}


async def handle_command(
    app: AppContext,
    sender_id: str,
    chat_id: str,
    text: str,
    reply: Reply,
) -> bool:
    """Parse ``text`` and run the matching handler.

    A bare word is only a command when it names one in ``COMMANDS``; other
    plain chat text is ignored. An unknown ``/command`` gets the usage text.

    Returns:
        False if the message was ignored, True otherwise
    """
    parsed = parse_command(text)
    if parsed is None:
        return False

    name, args = parsed
    if name not in COMMANDS and not text.lstrip().startswith("/"):
        return False
    handler = COMMANDS.get(name, handle_help)
    logger.debug("command_dispatched", command=name, sender_id=sender_id, known=name in COMMANDS)
    await handler(CommandContext(app=app, sender_id=sender_id, chat_id=chat_id, reply=reply, args=args))
    return True
