"""Reminder command handlers."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from onmymind.bot.formatters import (
    format_created,
    format_help_message,
    format_reminder_list,
    format_welcome_message,
)
from onmymind.db.models import ListFilter, Reminder
from onmymind.engine.recurrence import RecurrenceEngine
from onmymind.engine.service import ReminderService
from onmymind.errors import (
    FormatError,
    NotFoundError,
    UnsupportedRecurrenceError,
    ValidationError,
)
from onmymind.parser.time_parser import TimeExpressionParser, is_recurring

logger = logging.getLogger(__name__)

REMINDME_USAGE = (
    "Usage: /remindme <time> to <message> [-call]\n"
    "Examples:\n"
    "• /remindme in 2 hours to check email\n"
    "• /remindme tomorrow at 3pm to call mom -call\n"
    "• /remindme every Sunday at 10am to water plants\n"
    "• /remindme 2024-03-20 15:00 to submit report"
)

# /reminders argument -> priority filter
PRIORITY_FILTERS = {
    "priority": True,
    "call": True,
    "regular": False,
}


async def resolve_reminder(service: ReminderService, user_id: str, ref: str) -> Reminder:
    """Find one of the user's reminders by full id or listed id prefix.

    Raises:
        NotFoundError: if no reminder, or more than one, matches
    """
    ref = ref.strip().lower()
    matches = [r for r in await service.list(user_id) if r.id and r.id.startswith(ref)]
    if len(matches) != 1:
        raise NotFoundError(f"reminder not found: {ref}")
    return matches[0]


def build_reminder(
    text: str,
    user_id: str,
    parser: TimeExpressionParser,
    engine: RecurrenceEngine,
) -> Reminder:
    """Turn /remindme arguments into an unsaved Reminder."""
    if is_recurring(text):
        parsed = parser.parse_recurring_command(text)
        due_time = engine.first_occurrence(
            parsed.recurrence, parsed.anchor, parser.now()  # type: ignore[arg-type]
        )
    else:
        parsed = parser.parse_command(text)
        due_time = parsed.due_time

    return Reminder(
        user_id=user_id,
        title=parsed.title,
        due_time=due_time,
        recurrence=parsed.recurrence,
        priority=parsed.is_priority,
    )


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.message:
        return

    await update.message.reply_text(format_welcome_message())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_text(format_help_message())


async def remindme_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /remindme <time> to <message> [-call]."""
    if not update.effective_user or not update.message:
        return

    if not context.args:
        await update.message.reply_text(REMINDME_USAGE)
        return

    service: ReminderService = context.bot_data["service"]
    parser: TimeExpressionParser = context.bot_data["parser"]
    engine: RecurrenceEngine = context.bot_data["engine"]

    text = " ".join(context.args)
    user_id = str(update.effective_user.id)

    try:
        reminder = build_reminder(text, user_id, parser, engine)
        reminder = await service.create(reminder)
    except (FormatError, ValidationError, UnsupportedRecurrenceError) as e:
        await update.message.reply_text(f"❌ Error: {e}")
        return

    logger.info(f"User {user_id} created reminder {reminder.id}")
    await update.message.reply_text(format_created(reminder, parser.location.key))


async def reminders_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reminders [priority|call|regular]."""
    if not update.effective_user or not update.message:
        return

    service: ReminderService = context.bot_data["service"]
    parser: TimeExpressionParser = context.bot_data["parser"]

    filter = ListFilter()
    if context.args:
        filter.priority = PRIORITY_FILTERS.get(context.args[0].lower())

    reminders = await service.list(str(update.effective_user.id), filter)
    await update.message.reply_text(format_reminder_list(reminders, parser.location.key))


async def complete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /complete <id>."""
    await _transition_command(update, context, "complete")


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel <id>."""
    await _transition_command(update, context, "cancel")


async def forget_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /forget <id> - delete a reminder and its notification history."""
    await _transition_command(update, context, "delete")


_TRANSITION_REPLIES = {
    "complete": "✅ Reminder marked as completed",
    "cancel": "✅ Reminder cancelled",
    "delete": "✅ Reminder deleted",
}


async def _transition_command(
    update: Update, context: ContextTypes.DEFAULT_TYPE, action: str
) -> None:
    if not update.effective_user or not update.message:
        return

    if not context.args or len(context.args) != 1:
        command = "forget" if action == "delete" else action
        await update.message.reply_text(f"Usage: /{command} <reminder_id>")
        return

    service: ReminderService = context.bot_data["service"]
    user_id = str(update.effective_user.id)

    try:
        reminder = await resolve_reminder(service, user_id, context.args[0])
        await getattr(service, action)(reminder.id)
    except NotFoundError:
        await update.message.reply_text("❌ Reminder not found")
        return
    except ValidationError as e:
        await update.message.reply_text(f"❌ Failed to {action} reminder: {e}")
        return

    await update.message.reply_text(f"{_TRANSITION_REPLIES[action]}: {reminder.title}")
