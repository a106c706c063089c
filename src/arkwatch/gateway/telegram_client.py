"""
Telegram Bot Client.

Messaging gateway: routes inbound text to the command table and sends
outbound notifications.
"""

import structlog
from telegram import Update
from telegram.ext import Application, CommandHandler, MessageHandler, filters

from ..context import AppContext
from .commands import COMMANDS, handle_command
from .formatters import format_for_telegram

logger = structlog.get_logger(__name__)


class TelegramClient:
    """Async Telegram Bot API integration."""

    def __init__(self, token: str, app: AppContext):
        """
        Initialize TelegramClient.

        Args:
            token: Telegram bot token from @BotFather
            app: Application context handed to command handlers
        """
        self.token = token
        self.app = app
        self.application = None

    async def start(self):
        """Initialize and start the bot with polling."""
        logger.info("telegram_bot_starting", commands=sorted(COMMANDS))

        self.application = Application.builder().token(self.token).build()

        self.application.add_handler(CommandHandler(list(COMMANDS), self.handle_message))
        self.application.add_handler(MessageHandler(filters.TEXT, self.handle_message))

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling()

        logger.info("telegram_bot_started")

    async def stop(self):
        """Stop the bot gracefully."""
        if self.application:
            logger.info("telegram_bot_stopping")
            if self.application.updater and self.application.updater.running:
                await self.application.updater.stop()
            if self.application.running:
                await self.application.stop()
            await self.application.shutdown()
            logger.info("telegram_bot_stopped")

    async def handle_message(self, update: Update, context):
        """
        Handle an inbound text or /command message.

        Args:
            update: Telegram Update object
            context: Telegram context (unused)
        """
        if not update.message or not update.effective_chat:
            logger.warning("received_update_without_message_or_chat")
            return

        if update.effective_user and update.effective_user.is_bot:
            logger.debug("bot_message_ignored", chat_id=str(update.effective_chat.id))
            return

        chat_id = str(update.effective_chat.id)
        sender_id = str(update.effective_user.id) if update.effective_user else chat_id
        message_text = update.message.text or ""

        async def reply(text: str) -> None:
            for chunk in format_for_telegram(text):
                await update.message.reply_text(chunk)

        logger.info(
            "telegram_message_received",
            chat_id=chat_id,
            sender_id=sender_id,
            message_length=len(message_text),
        )

        try:
            await handle_command(self.app, sender_id, chat_id, message_text, reply)
        except Exception as e:
            logger.error(
                "command_handling_error",
                chat_id=chat_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            await update.message.reply_text("An error occurred processing your request.")

    async def send_message(self, chat_id: str, text: str) -> bool:
        """
        Send message to specific chat (for notifications).

        Args:
            chat_id: Telegram chat ID
            text: Message text to send

        Returns:
            True if successful, False otherwise
        """
        try:
            target = int(chat_id)
        except (TypeError, ValueError):
            logger.error("send_message_invalid_chat_id", chat_id=chat_id)
            return False

        if self.application is None:
            logger.error("send_message_before_start", chat_id=chat_id)
            return False

        try:
            for chunk in format_for_telegram(text):
                await self.application.bot.send_message(chat_id=target, text=chunk)
            logger.info("notification_sent", chat_id=chat_id)
            return True
        except Exception as e:
            logger.error(
                "send_message_error",
                chat_id=chat_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
