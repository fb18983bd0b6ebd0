"""Shared fixtures."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from telegram import Chat, Message, Update, User
from telegram.ext import Application, ContextTypes

from onmymind.db.migrations import run_migrations
from onmymind.db.repository import Repository

UTC = ZoneInfo("UTC")

# Seconds are nonzero so recurrence anchors (whole minutes) never equal "now"
NOW = datetime(2024, 3, 13, 10, 0, 30, tzinfo=UTC)  # a Wednesday


class FixedClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeNotifier:
    """Records sent messages; fails while ``fail`` is set."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    async def send(self, user_id: str, text: str) -> None:
        if self.fail:
            raise RuntimeError("delivery failed")
        self.sent.append((user_id, text))


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest_asyncio.fixture
async def repo(tmp_path):
    db_path = tmp_path / "test.db"
    await run_migrations(db_path)
    repository = Repository(db_path)
    await repository.connect()
    yield repository
    await repository.close()


@pytest_asyncio.fixture
async def job_queue():
    """A running job queue from an application that never connects to Telegram."""
    application = Application.builder().token("123456:TEST").build()
    await application.job_queue.start()
    yield application.job_queue
    await application.job_queue.stop(wait=False)


@pytest.fixture
def mock_update():
    update = MagicMock(spec=Update)

    user = MagicMock(spec=User)
    user.id = 12345
    update.effective_user = user

    chat = MagicMock(spec=Chat)
    chat.id = 12345
    update.effective_chat = chat

    message = MagicMock(spec=Message)
    message.chat = chat
    message.document = None
    message.reply_text = AsyncMock()
    # The sent message can be deleted
    sent_msg = AsyncMock()
    message.reply_text.return_value = sent_msg
    message.reply_document = AsyncMock()
    update.message = message
    update.effective_message = message

    return update


@pytest.fixture
def mock_context():
    context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)
    context.args = []
    context.bot_data = {}
    return context
