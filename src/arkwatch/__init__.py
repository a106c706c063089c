"""arkwatch - game server status notifier.

Polls configured A2S game servers, diffs consecutive snapshots and pushes
availability and player join/leave notifications to opted-in Telegram chats.
"""

__version__ = "0.1.0"
