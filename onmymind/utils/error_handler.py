"""Global error handler for the bot."""

import logging
import traceback

from telegram import Update
from telegram.error import NetworkError, TimedOut
from telegram.ext import ContextTypes

from onmymind.errors import OnMyMindError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = (
    "😅 Oops! Something went wrong.\n\n"
    "The error has been logged. Please try again or use /help for assistance."
)


def user_message_for(error: BaseException | None) -> str:
    """Pick the reply shown to the user for an unhandled error."""
    if isinstance(error, OnMyMindError):
        return f"❌ Error: {error}"
    if isinstance(error, TimedOut):
        return "⏱️ Request timed out.\n\nPlease try again in a moment."
    if isinstance(error, NetworkError):
        return "🌐 Network error.\n\nPlease try again in a moment."
    return GENERIC_ERROR_MESSAGE


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors raised by handlers and tell the user something went wrong."""
    logger.error("Exception while handling an update:", exc_info=context.error)

    if context.error is not None:
        tb_string = "".join(
            traceback.format_exception(None, context.error, context.error.__traceback__)
        )
        logger.debug(f"Traceback:\n{tb_string}")

    if isinstance(update, Update) and update.effective_message:
        try:
            await update.effective_message.reply_text(user_message_for(context.error))
        except Exception as e:
            logger.error(f"Failed to send error message to user: {e}")
