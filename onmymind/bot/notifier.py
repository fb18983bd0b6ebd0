"""Telegram delivery of reminder notifications."""

import logging
from typing import Protocol

from telegram import Bot
from telegram.error import TelegramError

from onmymind.errors import DeliveryError, InvalidRecipientError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers a text message to the user a reminder belongs to."""

    async def send(self, user_id: str, text: str) -> None: ...


def parse_chat_id(user_id: str) -> int:
    """Turn a stored user id into a Telegram chat id.

    Raises:
        InvalidRecipientError: if the id is not an integer
    """
    try:
        return int(str(user_id).strip())
    except ValueError:
        raise InvalidRecipientError(f"invalid user ID: {user_id!r}")


class TelegramNotifier:
    """Sends text messages to the chat identified by a reminder's user id."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send(self, user_id: str, text: str) -> None:
        """Send a message.

        Raises:
            InvalidRecipientError: if ``user_id`` is not numeric
            DeliveryError: if Telegram rejects the message
        """
        chat_id = parse_chat_id(user_id)
        try:
            await self.bot.send_message(chat_id=chat_id, text=text)
        except TelegramError as e:
            raise DeliveryError(f"failed to send message: {e}") from e
