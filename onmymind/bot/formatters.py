"""Message text formatters."""

from datetime import datetime

from onmymind.db.models import Backup, DeletedItem, ImportResult, Item, Reminder, ReminderStatus
from onmymind.utils.time_utils import format_relative_time, from_utc


def format_time(dt: datetime, tz: str) -> str:
    """Format a due time as "Mon, Jan 2 at 3:04 PM (2006-01-02 15:04)"."""
    local = from_utc(dt, tz)
    hour = local.hour % 12 or 12
    return (
        f"{local:%a, %b} {local.day} at {hour}:{local:%M %p} "
        f"({local:%Y-%m-%d %H:%M})"
    )


def format_reminder(reminder: Reminder, tz: str, now: datetime | None = None) -> str:
    """Format a reminder as a listing entry."""
    lines = [f"🔔 [{reminder.short_id}] {reminder.title}"]

    due = format_time(reminder.due_time, tz)  # type: ignore[arg-type]
    if reminder.status == ReminderStatus.PENDING:
        due += f" - {format_relative_time(reminder.due_time, now)}"  # type: ignore[arg-type]
    lines.append(f"   📅 {due}")

    if reminder.recurrence:
        lines.append(f"   🔄 {reminder.recurrence.encode()}")

    if reminder.priority:
        lines.append("   ⭐ Priority")

    return "\n".join(lines)


def format_reminder_list(reminders: list[Reminder], tz: str) -> str:
    """Format reminders grouped into Pending and Completed sections."""
    if not reminders:
        return "No reminders found"

    pending = [r for r in reminders if r.status == ReminderStatus.PENDING]
    completed = [r for r in reminders if r.status == ReminderStatus.COMPLETED]

    sections = ["📅 Your Reminders"]
    if pending:
        sections.append("Pending:\n" + "\n".join(format_reminder(r, tz) for r in pending))
    if completed:
        sections.append("Completed:\n" + "\n".join(format_reminder(r, tz) for r in completed))

    return "\n\n".join(sections)


def format_notification(reminder: Reminder) -> str:
    """Format the primary notification sent when a reminder is due."""
    parts = ["🔔 Reminder!", reminder.title]

    if reminder.description:
        parts.append(reminder.description)
    if reminder.priority:
        parts.append("⭐ This is a priority reminder!")
    if reminder.is_recurring:
        parts.append("🔄 This reminder will recur.")

    return "\n\n".join(parts)


def format_escalation(reminder: Reminder) -> str:
    """Format the follow-up sent when a priority reminder is not acknowledged."""
    return (
        f"⚠️ Priority Reminder: {reminder.title}\n\n"
        f"Reply /complete {reminder.short_id} once it's done."
    )


def format_created(reminder: Reminder, tz: str) -> str:
    """Format the confirmation for a newly created reminder."""
    if reminder.is_recurring:
        return f"✅ Recurring reminder set\n{format_reminder(reminder, tz)}"
    return (
        f"✅ Reminder set for {format_time(reminder.due_time, tz)}\n"  # type: ignore[arg-type]
        f"{format_reminder(reminder, tz)}"
    )


# Notes

def format_items(items: list[Item]) -> str:
    if not items:
        return "No items stored."
    return "📝 Stored items:\n" + "\n".join(f"• {item.text}" for item in items)


def format_deleted_items(items: list[DeletedItem]) -> str:
    if not items:
        return "No deleted items."
    return "🗑️ Deleted items:\n" + "\n".join(f"• {item.text}" for item in items)


def format_backup_caption(backup: Backup) -> str:
    return (
        "📦 Your OnMyMind Backup\n"
        f"• {len(backup.items)} items\n"
        f"• {len(backup.deleted_items)} deleted items"
    )


def format_import_result(result: ImportResult, exported_at: datetime | None) -> str:
    exported = exported_at.strftime("%Y-%m-%d %H:%M:%S") if exported_at else "unknown"
    return (
        "Import completed successfully!\n\n"
        f"📥 Items imported: {result.imported}\n"
        f"⏭️ Items skipped (duplicates): {result.skipped}\n"
        f"🗑️ Deleted items imported: {result.imported_deleted}\n"
        f"⏭️ Deleted items skipped: {result.skipped_deleted}\n\n"
        f"Backup was from: {exported}"
    )


def format_welcome_message() -> str:
    """Format the welcome message for /start."""
    return """
Welcome to OnMyMind! 🧠

I keep your notes and remind you of things at the right time.

• /add something - Store a note
• /remindme in 2 hours to check email - Set a reminder
• /help - Full command list
""".strip()


def format_help_message() -> str:
    """Format the help message."""
    return """
I understand these commands:

Notes:
/add <text> - Store new text
/pull - Get a random item
/delete - Delete the last pulled item
/undo - Restore the last deleted item (within 1 hour)
/list - Show all stored items
/deleted - Show deleted items
/export - Download a backup of all your data
/import - Import items from a backup file

Reminders:
/remindme <time> to <message> [-call] - Set a reminder
/reminders [priority|regular] - List your reminders
/complete <id> - Mark a reminder as done
/cancel <id> - Cancel a reminder
/forget <id> - Delete a reminder

Examples:
• /remindme in 2 hours to check email
• /remindme tomorrow at 3pm to call mom -call
• /remindme every Sunday at 10am to water plants
• /remindme every month on the last at 9am to pay rent
• /remindme 2024-03-20 15:00 to submit report

/help - Show this help message
""".strip()
