"""Persistence contract consumed by the reminder service."""

from typing import List, Protocol

from onmymind.db.models import ListFilter, NotificationLog, Reminder


class Store(Protocol):
    """CRUD for reminders and their notification logs.

    Implementations must tolerate concurrent callers. ``get_reminder``,
    ``update_reminder`` and ``delete_reminder`` raise ``NotFoundError`` when
    the reminder does not exist.
    """

    async def create_reminder(self, reminder: Reminder) -> Reminder: ...

    async def get_reminder(self, reminder_id: str) -> Reminder: ...

    async def list_reminders(
        self, user_id: str | None, filter: ListFilter
    ) -> List[Reminder]: ...

    async def update_reminder(self, reminder: Reminder) -> Reminder: ...

    async def delete_reminder(self, reminder_id: str) -> None: ...

    async def create_notification_log(self, log: NotificationLog) -> NotificationLog: ...

    async def get_notification_logs(self, reminder_id: str) -> List[NotificationLog]: ...
