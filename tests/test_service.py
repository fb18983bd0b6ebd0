"""Tests for reminder validation and lifecycle transitions."""

from datetime import datetime, timedelta

import pytest

from onmymind.db.models import (
    ListFilter,
    NotificationLog,
    NotificationStatus,
    NotificationType,
    Recurrence,
    Reminder,
    ReminderStatus,
)
from onmymind.engine.service import ReminderService
from onmymind.errors import NotFoundError, ValidationError

from conftest import NOW


@pytest.fixture
def service(repo, clock):
    return ReminderService(repo, clock=clock)


def make_reminder(**kwargs) -> Reminder:
    fields = dict(user_id="12345", title="check email", due_time=NOW + timedelta(hours=2))
    fields.update(kwargs)
    return Reminder(**fields)


@pytest.mark.asyncio
async def test_create_and_get(service):
    """Test that a created reminder is pending and reads back intact."""
    created = await service.create(
        make_reminder(recurrence=Recurrence.decode("weekly:sunday"), priority=True)
    )

    assert created.id
    assert created.status == ReminderStatus.PENDING

    loaded = await service.get(created.id)
    assert loaded.title == "check email"
    assert loaded.due_time == NOW + timedelta(hours=2)
    assert loaded.recurrence == Recurrence.decode("weekly:sunday")
    assert loaded.priority


@pytest.mark.asyncio
async def test_create_validation(service):
    """Test that blank titles and non-future or naive times are rejected."""
    with pytest.raises(ValidationError):
        await service.create(make_reminder(title="   "))

    with pytest.raises(ValidationError):
        await service.create(make_reminder(due_time=None))

    with pytest.raises(ValidationError):
        await service.create(make_reminder(due_time=datetime(2030, 1, 1, 9, 0)))

    # Due exactly now is not in the future
    with pytest.raises(ValidationError):
        await service.create(make_reminder(due_time=NOW))

    with pytest.raises(ValidationError):
        await service.create(make_reminder(due_time=NOW - timedelta(minutes=1)))


@pytest.mark.asyncio
async def test_update(service):
    """Test that updates are validated and need an existing reminder."""
    created = await service.create(make_reminder())
    created.title = "check inbox"
    await service.update(created)

    assert (await service.get(created.id)).title == "check inbox"

    created.due_time = NOW - timedelta(hours=1)
    with pytest.raises(ValidationError):
        await service.update(created)

    missing = make_reminder(id="does-not-exist")
    with pytest.raises(NotFoundError):
        await service.update(missing)


@pytest.mark.asyncio
async def test_complete_is_idempotent(service):
    """Test that completing twice keeps the reminder completed."""
    created = await service.create(make_reminder())

    first = await service.complete(created.id)
    second = await service.complete(created.id)

    assert first.status == ReminderStatus.COMPLETED
    assert second.status == ReminderStatus.COMPLETED


@pytest.mark.asyncio
async def test_terminal_states_are_final(service):
    """Test that completed and cancelled reminders never change status."""
    completed = await service.create(make_reminder())
    await service.complete(completed.id)
    with pytest.raises(ValidationError):
        await service.cancel(completed.id)

    cancelled = await service.create(make_reminder())
    await service.cancel(cancelled.id)
    with pytest.raises(ValidationError):
        await service.complete(cancelled.id)

    assert (await service.get(cancelled.id)).status == ReminderStatus.CANCELLED


@pytest.mark.asyncio
async def test_missing_reminder(service):
    """Test that unknown ids raise NotFoundError."""
    with pytest.raises(NotFoundError):
        await service.get("missing")
    with pytest.raises(NotFoundError):
        await service.complete("missing")
    with pytest.raises(NotFoundError):
        await service.delete("missing")


@pytest.mark.asyncio
async def test_listeners_run_once_per_close(service):
    """Test that listeners run once per close and a failing one is contained."""
    closed = []

    async def listener(reminder):
        closed.append((reminder.id, reminder.status))

    async def broken(reminder):
        raise RuntimeError("boom")

    service.subscribe(broken)
    service.subscribe(listener)

    first = await service.create(make_reminder())
    await service.complete(first.id)
    await service.complete(first.id)

    second = await service.create(make_reminder())
    await service.delete(second.id)

    assert closed == [
        (first.id, ReminderStatus.COMPLETED),
        (second.id, ReminderStatus.PENDING),
    ]


@pytest.mark.asyncio
async def test_list_filters(service):
    """Test listing by user, priority, status and time."""
    soon = await service.create(make_reminder(due_time=NOW + timedelta(minutes=5)))
    later = await service.create(make_reminder(due_time=NOW + timedelta(days=1), priority=True))
    other_user = await service.create(make_reminder(user_id="999"))
    await service.complete(later.id)

    mine = await service.list("12345")
    assert [r.id for r in mine] == [soon.id, later.id]

    everyone = await service.list(None)
    assert {r.id for r in everyone} == {soon.id, later.id, other_user.id}

    priority = await service.list("12345", ListFilter(priority=True))
    assert [r.id for r in priority] == [later.id]

    pending = await service.list(None, ListFilter(status=ReminderStatus.PENDING))
    assert {r.id for r in pending} == {soon.id, other_user.id}

    # Time bounds are inclusive
    window = await service.list(None, ListFilter(to_time=NOW + timedelta(minutes=5)))
    assert [r.id for r in window] == [soon.id]


@pytest.mark.asyncio
async def test_delete_removes_notification_logs(service):
    """Test that deleting a reminder deletes its logs."""
    created = await service.create(make_reminder())
    await service.log_notification(
        NotificationLog(
            reminder_id=created.id,
            notification_type=NotificationType.MESSAGE,
            status=NotificationStatus.SUCCESS,
        )
    )
    assert len(await service.notification_logs(created.id)) == 1

    await service.delete(created.id)

    assert await service.notification_logs(created.id) == []
