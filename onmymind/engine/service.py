"""Reminder service - validation and orchestration on top of the store."""

import logging
from datetime import datetime
from typing import Awaitable, Callable, List

from onmymind.db.models import ListFilter, NotificationLog, Reminder, ReminderStatus
from onmymind.db.store import Store
from onmymind.errors import ValidationError
from onmymind.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

ReminderListener = Callable[[Reminder], Awaitable[None]]


class ReminderService:
    """Create, update and transition reminders.

    Complete and Cancel are plain read-modify-write cycles; two concurrent
    callers both succeed and the last write wins.
    """

    def __init__(self, store: Store, clock: Callable[[], datetime] | None = None):
        self.store = store
        self._clock = clock or utcnow
        self._listeners: List[ReminderListener] = []

    def subscribe(self, listener: ReminderListener) -> None:
        """Register a callback run after a reminder leaves Pending."""
        self._listeners.append(listener)

    async def create(self, reminder: Reminder) -> Reminder:
        """Validate and persist a new reminder.

        Raises:
            ValidationError: if the title is empty or the due time is missing
                or not in the future
        """
        self._validate(reminder)
        if reminder.status is None:
            reminder.status = ReminderStatus.PENDING
        return await self.store.create_reminder(reminder)

    async def update(self, reminder: Reminder) -> Reminder:
        """Validate and persist changes to an existing reminder.

        Raises:
            ValidationError: as for create
            NotFoundError: if the reminder no longer exists
        """
        self._validate(reminder)
        return await self.store.update_reminder(reminder)

    async def get(self, reminder_id: str) -> Reminder:
        return await self.store.get_reminder(reminder_id)

    async def list(
        self, user_id: str | None, filter: ListFilter | None = None
    ) -> List[Reminder]:
        """List reminders ordered by due time. ``user_id=None`` means all users."""
        return await self.store.list_reminders(user_id, filter or ListFilter())

    async def delete(self, reminder_id: str) -> None:
        reminder = await self.store.get_reminder(reminder_id)
        await self.store.delete_reminder(reminder_id)
        if reminder.status == ReminderStatus.PENDING:
            await self._notify(reminder)

    async def complete(self, reminder_id: str) -> Reminder:
        """Mark a reminder completed.

        Completing an already completed reminder keeps it completed.

        Raises:
            NotFoundError: if the reminder does not exist
            ValidationError: if the reminder was cancelled
        """
        return await self._transition(reminder_id, ReminderStatus.COMPLETED)

    async def cancel(self, reminder_id: str) -> Reminder:
        """Mark a reminder cancelled.

        Raises:
            NotFoundError: if the reminder does not exist
            ValidationError: if the reminder was already completed
        """
        return await self._transition(reminder_id, ReminderStatus.CANCELLED)

    async def log_notification(self, log: NotificationLog) -> NotificationLog:
        return await self.store.create_notification_log(log)

    async def notification_logs(self, reminder_id: str) -> List[NotificationLog]:
        return await self.store.get_notification_logs(reminder_id)

    async def _transition(self, reminder_id: str, status: ReminderStatus) -> Reminder:
        reminder = await self.store.get_reminder(reminder_id)
        previous = reminder.status

        if previous not in (ReminderStatus.PENDING, status):
            raise ValidationError(
                f"reminder is already {previous.value} and cannot be {status.value}"
            )

        reminder.status = status
        reminder = await self.store.update_reminder(reminder)
        logger.info(f"Reminder {reminder_id} {previous.value} -> {status.value}")

        if previous == ReminderStatus.PENDING:
            await self._notify(reminder)
        return reminder

    async def _notify(self, reminder: Reminder) -> None:
        for listener in self._listeners:
            try:
                await listener(reminder)
            except Exception as e:
                logger.error(f"Reminder listener failed for {reminder.id}: {e}")

    def _validate(self, reminder: Reminder) -> None:
        if not reminder.title or not reminder.title.strip():
            raise ValidationError("reminder title is required")
        if reminder.due_time is None:
            raise ValidationError("reminder due time is required")
        if reminder.due_time.tzinfo is None:
            raise ValidationError("reminder due time must be timezone-aware")
        if reminder.due_time <= self._clock():
            raise ValidationError("reminder due time must be in the future")
