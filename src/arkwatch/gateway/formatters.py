"""
Message formatting utilities.

Renders status reports and splits long replies for Telegram's constraints.
"""

import math
from collections.abc import Mapping

from ..monitor.models import ServerStatus

USAGE_TEXT = (
    "Usage:\n"
    "/help - show this message\n"
    "/status - check all servers now\n"
    "/notifications enable - get notified about server and player changes\n"
    "/notifications disable - stop notifications"
)


def format_status_report(statuses: Mapping[str, ServerStatus]) -> str:
    """
    Render one block per server.

    Examples:
        >>> print(format_status_report({"Island": ServerStatus.offline()}))
        Server status:
        ----- Island -----
        Status: Offline
    """
    lines = ["Server status:"]
    for name, status in statuses.items():
        lines.append(f"----- {name} -----")
        lines.append("Status: " + ("Online" if status.online else "Offline"))
        if not status.online:
            continue
        if status.detail is None:
            lines.append("Details unavailable")
            continue
        lines.append(f"Name: {status.detail.name}")
        lines.append(f"Players: {len(status.detail.players)}/{status.detail.max_players}")
        lines.append(f"Map: {status.detail.map}")
    if not statuses:
        lines.append("No servers configured.")
    return "\n".join(lines)


def format_ban_message(remaining_windows: int, window_seconds: int) -> str:
    minutes = max(1, math.ceil(remaining_windows * window_seconds / 60))
    unit = "minute" if minutes == 1 else "minutes"
    return f"You have been rate limited. Please try again in {minutes} {unit}"


def format_for_telegram(response: str, max_length: int = 4096) -> list[str]:
    """
    Split long responses for Telegram's 4096-character limit.

    Args:
        response: The response text to format
        max_length: Maximum length per message (default: 4096)

    Returns:
        List of message chunks, each under max_length characters

    Examples:
        >>> format_for_telegram("Short message")
        ['Short message']
    """
    if len(response) <= max_length:
        return [response]

    messages = []
    current = ""

    for line in response.split("\n"):
        # A single line longer than the limit is hard-wrapped
        while len(line) > max_length:
            if current:
                messages.append(current)
                current = ""
            messages.append(line[:max_length])
            line = line[max_length:]

        if len(current) + len(line) + 1 > max_length:
            if current:
                messages.append(current)
            current = line
        else:
            current += "\n" + line if current else line

    if current:
        messages.append(current)

    return messages
