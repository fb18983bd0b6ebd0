"""Main entry point for the OnMyMind bot."""

import logging
import sys

from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    filters,
)

from onmymind.bot.handlers import (
    cancel_command,
    complete_command,
    forget_command,
    help_command,
    reminders_command,
    remindme_command,
    start_command,
)
from onmymind.bot.notes_handlers import (
    add_command,
    delete_command,
    deleted_command,
    export_command,
    import_command,
    list_command,
    pull_command,
    undo_command,
)
from onmymind.bot.notifier import TelegramNotifier
from onmymind.bot.sessions import SessionStore
from onmymind.config import Config
from onmymind.db.migrations import run_migrations
from onmymind.db.repository import Repository
from onmymind.engine.recurrence import RecurrenceEngine
from onmymind.engine.scheduler import ReminderScheduler
from onmymind.engine.service import ReminderService
from onmymind.parser.time_parser import TimeExpressionParser
from onmymind.utils.error_handler import error_handler

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    stream=sys.stdout,
)
# Keep the polling requests out of INFO logs
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def post_init(application: Application) -> None:
    """Initialize bot resources after application is created."""
    # Initialize database
    await run_migrations(Config.DATABASE_PATH)

    repo = Repository(Config.DATABASE_PATH)
    await repo.connect()

    service = ReminderService(repo)
    engine = RecurrenceEngine(Config.TIMEZONE)
    scheduler = ReminderScheduler(
        service,
        TelegramNotifier(application.bot),
        engine,
        application.job_queue,
        interval=Config.SCHEDULER_INTERVAL,
        escalation_delay=Config.ESCALATION_DELAY,
    )

    application.bot_data.update(
        repo=repo,
        service=service,
        engine=engine,
        parser=TimeExpressionParser(Config.TIMEZONE),
        scheduler=scheduler,
        sessions=SessionStore(),
        undo_window_minutes=Config.UNDO_WINDOW_MINUTES,
    )

    scheduler.start()

    logger.info("OnMyMind initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Stop the scheduler and close the database."""
    scheduler: ReminderScheduler | None = application.bot_data.get("scheduler")
    if scheduler:
        scheduler.stop()

    repo: Repository | None = application.bot_data.get("repo")
    if repo:
        await repo.close()

    logger.info("OnMyMind shut down")


def main() -> None:
    """Start the bot."""
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # General
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))

    # Notes
    application.add_handler(CommandHandler("add", add_command))
    application.add_handler(CommandHandler("pull", pull_command))
    application.add_handler(CommandHandler("delete", delete_command))
    application.add_handler(CommandHandler("undo", undo_command))
    application.add_handler(CommandHandler("list", list_command))
    application.add_handler(CommandHandler("deleted", deleted_command))
    application.add_handler(CommandHandler("export", export_command))
    application.add_handler(CommandHandler("import", import_command))
    # A document sent with "/import" as its caption
    application.add_handler(
        MessageHandler(filters.Document.ALL & filters.CaptionRegex(r"^/import\b"), import_command)
    )

    # Reminders
    application.add_handler(CommandHandler("remindme", remindme_command))
    application.add_handler(CommandHandler("reminders", reminders_command))
    application.add_handler(CommandHandler("complete", complete_command))
    application.add_handler(CommandHandler("cancel", cancel_command))
    application.add_handler(CommandHandler("forget", forget_command))

    application.add_error_handler(error_handler)

    logger.info("Starting OnMyMind bot...")
    application.run_polling(allowed_updates=["message"])


if __name__ == "__main__":
    main()
