"""Note store command handlers."""

import logging
from datetime import timedelta

from telegram import Update
from telegram.ext import ContextTypes

from onmymind.bot.formatters import (
    format_backup_caption,
    format_deleted_items,
    format_import_result,
    format_items,
)
from onmymind.bot.sessions import SessionStore
from onmymind.db.backup import backup_from_json, backup_to_json
from onmymind.db.repository import Repository
from onmymind.errors import NotFoundError
from onmymind.utils.time_utils import format_duration, utcnow

logger = logging.getLogger(__name__)


async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add <text>."""
    if not update.message:
        return

    if not context.args:
        await update.message.reply_text("Usage: /add something")
        return

    repo: Repository = context.bot_data["repo"]
    text = " ".join(context.args)

    await repo.add_item(text)
    await update.message.reply_text(f"Added: {text} ✅")


async def pull_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /pull - show a random item and remember it for /delete."""
    if not update.message or not update.effective_chat:
        return

    repo: Repository = context.bot_data["repo"]
    sessions: SessionStore = context.bot_data["sessions"]

    item = await repo.random_item()
    if item is None:
        await update.message.reply_text("No items available.")
        return

    await sessions.set_pulled(update.effective_chat.id, item.text)
    await update.message.reply_text(f"🎲 {item.text}")


async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete - move the last pulled item to the deleted list."""
    if not update.message or not update.effective_chat:
        return

    repo: Repository = context.bot_data["repo"]
    sessions: SessionStore = context.bot_data["sessions"]
    chat_id = update.effective_chat.id

    session = await sessions.get(chat_id)
    if session.last_pulled is None:
        await update.message.reply_text("Pull an item first using /pull")
        return

    try:
        deleted = await repo.delete_item(session.last_pulled)
    except NotFoundError:
        await update.message.reply_text("That item is already gone. Pull another with /pull")
        return

    await sessions.mark_deleted(chat_id, deleted.text, deleted.deleted_at)
    await update.message.reply_text(f"Deleted: {deleted.text} 🗑️")


async def undo_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /undo - restore the last deleted item within the undo window."""
    if not update.message or not update.effective_chat:
        return

    repo: Repository = context.bot_data["repo"]
    sessions: SessionStore = context.bot_data["sessions"]
    window_minutes: int = context.bot_data.get("undo_window_minutes", 60)
    chat_id = update.effective_chat.id

    session = await sessions.get(chat_id)
    if session.last_deleted is None or session.deleted_at is None:
        await update.message.reply_text("❌ Nothing to undo")
        return

    if utcnow() - session.deleted_at > timedelta(minutes=window_minutes):
        await update.message.reply_text(
            f"❌ Can't undo deletions older than {format_duration(window_minutes)}"
        )
        return

    try:
        await repo.restore_item(session.last_deleted)
    except NotFoundError:
        await update.message.reply_text("❌ Failed to restore item")
        return

    await sessions.clear_deleted(chat_id)
    await update.message.reply_text(f"✅ Restored: {session.last_deleted}")


async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list - show all stored items."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    await update.message.reply_text(format_items(await repo.list_items()))


async def deleted_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /deleted - show deleted items."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    await update.message.reply_text(format_deleted_items(await repo.list_deleted()))


async def export_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export - send a JSON backup of the note store."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]

    preparing = await update.message.reply_text("📦 Preparing your data export...")

    backup = await repo.export_backup()
    filename = f"onmymind-backup-{backup.exported_at:%Y-%m-%d-%H%M%S}.json"

    await update.message.reply_document(
        document=backup_to_json(backup),
        filename=filename,
        caption=format_backup_caption(backup),
    )
    await preparing.delete()

    logger.info(f"Exported backup with {len(backup.items)} items")


async def import_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /import with an attached JSON backup."""
    if not update.message:
        return

    document = update.message.document
    if document is None:
        await update.message.reply_text(
            "Please attach a backup file (JSON format) with the /import command"
        )
        return

    repo: Repository = context.bot_data["repo"]

    file = await document.get_file()
    content = await file.download_as_bytearray()

    try:
        backup = backup_from_json(bytes(content))
    except ValueError as e:
        logger.warning(f"Rejected backup file: {e}")
        await update.message.reply_text("Invalid backup file format")
        return

    result = await repo.import_backup(backup)
    await update.message.reply_text(format_import_result(result, backup.exported_at))
