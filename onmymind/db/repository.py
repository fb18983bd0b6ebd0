"""Database repository - all SQL queries."""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, List

import aiosqlite

from onmymind.db.models import (
    Backup,
    DeletedItem,
    ImportResult,
    Item,
    ListFilter,
    NotificationLog,
    NotificationStatus,
    NotificationType,
    Recurrence,
    Reminder,
    ReminderStatus,
)
from onmymind.errors import NotFoundError, UnsupportedRecurrenceError
from onmymind.utils.time_utils import from_db, to_db, utcnow

logger = logging.getLogger(__name__)


class Repository:
    """Database access layer.

    Implements the reminder ``Store`` contract and the note store.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open database connection."""
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run a write as one transaction.

        Writes share one connection, so they are serialized: another
        coroutine's commit or rollback can't land in the middle of this one.
        """
        async with self._lock:
            try:
                yield self.db
                await self.db.commit()
            except BaseException:
                await self.db.rollback()
                raise

    # Reminder operations

    async def create_reminder(self, reminder: Reminder) -> Reminder:
        """Create a new reminder, assigning its id and timestamps."""
        now = utcnow()
        if not reminder.id:
            reminder.id = uuid.uuid4().hex
        if reminder.created_at is None:
            reminder.created_at = now
        reminder.updated_at = now

        async with self.transaction() as db:
            await db.execute(
                """
                INSERT INTO reminders (
                    id, user_id, title, description, due_time,
                    recurrence_pattern, priority, status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    reminder.id,
                    reminder.user_id,
                    reminder.title,
                    reminder.description,
                    to_db(reminder.due_time),  # type: ignore[arg-type]
                    reminder.recurrence.encode() if reminder.recurrence else None,
                    1 if reminder.priority else 0,
                    reminder.status.value,
                    to_db(reminder.created_at),
                    to_db(reminder.updated_at),
                ),
            )
        return reminder

    async def get_reminder(self, reminder_id: str) -> Reminder:
        """Get a reminder by ID.

        Raises:
            NotFoundError: if no reminder has this id
        """
        async with self.db.execute(
            "SELECT * FROM reminders WHERE id = ?", (reminder_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row is None:
                raise NotFoundError(f"reminder not found: {reminder_id}")
            return self._row_to_reminder(row)

    async def list_reminders(
        self, user_id: str | None, filter: ListFilter | None = None
    ) -> List[Reminder]:
        """List reminders ordered by due time.

        ``user_id=None`` lists across all users.
        """
        filter = filter or ListFilter()
        conditions = []
        params: list = []

        if user_id is not None:
            conditions.append("user_id = ?")
            params.append(user_id)
        if filter.status is not None:
            conditions.append("status = ?")
            params.append(filter.status.value)
        if filter.priority is not None:
            conditions.append("priority = ?")
            params.append(1 if filter.priority else 0)
        if filter.from_time is not None:
            conditions.append("due_time >= ?")
            params.append(to_db(filter.from_time))
        if filter.to_time is not None:
            conditions.append("due_time <= ?")
            params.append(to_db(filter.to_time))

        query = "SELECT * FROM reminders"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY due_time ASC"

        async with self.db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    async def update_reminder(self, reminder: Reminder) -> Reminder:
        """Update a reminder.

        Raises:
            NotFoundError: if the reminder no longer exists
        """
        reminder.updated_at = utcnow()
        async with self.transaction() as db:
            cursor = await db.execute(
                """
                UPDATE reminders SET
                    user_id = ?,
                    title = ?,
                    description = ?,
                    due_time = ?,
                    recurrence_pattern = ?,
                    priority = ?,
                    status = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    reminder.user_id,
                    reminder.title,
                    reminder.description,
                    to_db(reminder.due_time),  # type: ignore[arg-type]
                    reminder.recurrence.encode() if reminder.recurrence else None,
                    1 if reminder.priority else 0,
                    reminder.status.value,
                    to_db(reminder.updated_at),
                    reminder.id,
                ),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"reminder not found: {reminder.id}")
        return reminder

    async def delete_reminder(self, reminder_id: str) -> None:
        """Delete a reminder and, by cascade, its notification logs.

        Raises:
            NotFoundError: if no reminder has this id
        """
        async with self.transaction() as db:
            cursor = await db.execute("DELETE FROM reminders WHERE id = ?", (reminder_id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"reminder not found: {reminder_id}")

    # Notification log operations

    async def create_notification_log(self, log: NotificationLog) -> NotificationLog:
        """Append a notification attempt."""
        if not log.id:
            log.id = uuid.uuid4().hex
        if log.attempted_at is None:
            log.attempted_at = utcnow()

        async with self.transaction() as db:
            await db.execute(
                """
                INSERT INTO reminder_logs (
                    id, reminder_id, notification_type, status, error_message, attempted_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    log.id,
                    log.reminder_id,
                    log.notification_type.value,
                    log.status.value,
                    log.error_message,
                    to_db(log.attempted_at),
                ),
            )
        return log

    async def get_notification_logs(self, reminder_id: str) -> List[NotificationLog]:
        """Get notification attempts for a reminder, newest first."""
        async with self.db.execute(
            "SELECT * FROM reminder_logs WHERE reminder_id = ? ORDER BY attempted_at DESC",
            (reminder_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [
                NotificationLog(
                    id=row["id"],
                    reminder_id=row["reminder_id"],
                    notification_type=NotificationType(row["notification_type"]),
                    status=NotificationStatus(row["status"]),
                    error_message=row["error_message"],
                    attempted_at=from_db(row["attempted_at"]),
                )
                for row in rows
            ]

    # Note operations

    async def add_item(self, text: str, created_at: datetime | None = None) -> Item:
        """Store a new note."""
        created_at = created_at or utcnow()
        async with self.transaction() as db:
            async with db.execute(
                "INSERT INTO items (text, created_at) VALUES (?, ?) RETURNING *",
                (text, to_db(created_at)),
            ) as cursor:
                row = await cursor.fetchone()
        return Item(id=row["id"], text=row["text"], created_at=from_db(row["created_at"]))

    async def list_items(self) -> List[Item]:
        """Get all notes, newest first."""
        async with self.db.execute(
            "SELECT * FROM items ORDER BY created_at DESC, id DESC"
        ) as cursor:
            rows = await cursor.fetchall()
            return [
                Item(id=row["id"], text=row["text"], created_at=from_db(row["created_at"]))
                for row in rows
            ]

    async def random_item(self) -> Item | None:
        """Get a random note, or None when the store is empty."""
        async with self.db.execute(
            "SELECT * FROM items ORDER BY RANDOM() LIMIT 1"
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return Item(id=row["id"], text=row["text"], created_at=from_db(row["created_at"]))
            return None

    async def list_deleted(self) -> List[DeletedItem]:
        """Get all deleted notes, most recently deleted first."""
        async with self.db.execute(
            "SELECT * FROM deleted ORDER BY deleted_at DESC, id DESC"
        ) as cursor:
            rows = await cursor.fetchall()
            return [
                DeletedItem(id=row["id"], text=row["text"], deleted_at=from_db(row["deleted_at"]))
                for row in rows
            ]

    async def delete_item(self, text: str) -> DeletedItem:
        """Move a note to the deleted table in one transaction.

        Raises:
            NotFoundError: if no note has this text
        """
        deleted_at = utcnow()
        async with self.transaction() as db:
            cursor = await db.execute("DELETE FROM items WHERE text = ?", (text,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"item not found: {text}")
            await db.execute(
                "INSERT INTO deleted (text, deleted_at) VALUES (?, ?)",
                (text, to_db(deleted_at)),
            )
        return DeletedItem(text=text, deleted_at=deleted_at)

    async def restore_item(self, text: str) -> Item:
        """Move a deleted note back to the active list in one transaction.

        Raises:
            NotFoundError: if no deleted note has this text
        """
        created_at = utcnow()
        async with self.transaction() as db:
            cursor = await db.execute("DELETE FROM deleted WHERE text = ?", (text,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"deleted item not found: {text}")
            await db.execute(
                "INSERT INTO items (text, created_at) VALUES (?, ?)",
                (text, to_db(created_at)),
            )
        return Item(text=text, created_at=created_at)

    async def export_backup(self) -> Backup:
        """Snapshot both note tables, oldest first."""
        async with self.db.execute("SELECT * FROM items ORDER BY created_at, id") as cursor:
            item_rows = await cursor.fetchall()
        async with self.db.execute("SELECT * FROM deleted ORDER BY deleted_at, id") as cursor:
            deleted_rows = await cursor.fetchall()

        return Backup(
            items=[
                Item(id=row["id"], text=row["text"], created_at=from_db(row["created_at"]))
                for row in item_rows
            ],
            deleted_items=[
                DeletedItem(id=row["id"], text=row["text"], deleted_at=from_db(row["deleted_at"]))
                for row in deleted_rows
            ],
            exported_at=utcnow(),
        )

    async def import_backup(self, backup: Backup) -> ImportResult:
        """Import a backup, skipping texts that already exist.

        Original timestamps are kept. Runs in a single transaction.
        """
        result = ImportResult()
        async with self.transaction() as db:
            for item in backup.items:
                if await self._exists("items", item.text):
                    result.skipped += 1
                    continue
                await db.execute(
                    "INSERT INTO items (text, created_at) VALUES (?, ?)",
                    (item.text, to_db(item.created_at)),
                )
                result.imported += 1

            for deleted in backup.deleted_items:
                if await self._exists("deleted", deleted.text):
                    result.skipped_deleted += 1
                    continue
                await db.execute(
                    "INSERT INTO deleted (text, deleted_at) VALUES (?, ?)",
                    (deleted.text, to_db(deleted.deleted_at)),
                )
                result.imported_deleted += 1

        logger.info(
            f"Imported backup: {result.imported} items ({result.skipped} skipped), "
            f"{result.imported_deleted} deleted items ({result.skipped_deleted} skipped)"
        )
        return result

    # Helper methods

    async def _exists(self, table: str, text: str) -> bool:
        async with self.db.execute(
            f"SELECT EXISTS(SELECT 1 FROM {table} WHERE text = ?)", (text,)
        ) as cursor:
            row = await cursor.fetchone()
            return bool(row[0])

    def _row_to_reminder(self, row: aiosqlite.Row) -> Reminder:
        """Convert a database row to a Reminder object."""
        pattern = row["recurrence_pattern"]
        recurrence = None
        if pattern:
            try:
                recurrence = Recurrence.decode(pattern)
            except UnsupportedRecurrenceError:
                logger.warning(f"Reminder {row['id']} has unsupported pattern {pattern!r}")
                recurrence = Recurrence.unsupported(pattern)

        return Reminder(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row["description"],
            due_time=from_db(row["due_time"]),
            recurrence=recurrence,
            priority=bool(row["priority"]),
            status=ReminderStatus(row["status"]),
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
        )
