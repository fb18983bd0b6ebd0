"""Reminder scheduler - the polling loop that fires due reminders."""

import logging
from datetime import datetime, timedelta
from typing import Callable

from telegram.ext import ContextTypes, Job, JobQueue

from onmymind.bot.formatters import format_escalation, format_notification
from onmymind.bot.notifier import Notifier
from onmymind.db.models import (
    ListFilter,
    NotificationLog,
    NotificationStatus,
    NotificationType,
    Reminder,
    ReminderStatus,
)
from onmymind.engine.escalation import EscalationTimers
from onmymind.engine.recurrence import RecurrenceEngine
from onmymind.engine.service import ReminderService
from onmymind.utils.constants import DEFAULT_ESCALATION_DELAY, DEFAULT_TICK_INTERVAL
from onmymind.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

SCHEDULER_JOB_NAME = "reminder-scheduler"


class ReminderScheduler:
    """Finds due reminders on a fixed interval and notifies their owners.

    Per due reminder:
    1. Send the notification and log the attempt. A failed send leaves the
       reminder Pending so the next tick retries it.
    2. Regular reminders are finalized at once: one-time ones are completed,
       recurring ones are completed and a successor occurrence is created.
    3. Priority reminders stay Pending for the escalation delay. If the user
       has not completed or cancelled them by then, an escalation is sent and
       the reminder is finalized as in 2.
    """

    def __init__(
        self,
        service: ReminderService,
        notifier: Notifier,
        engine: RecurrenceEngine,
        job_queue: JobQueue,
        interval: float = DEFAULT_TICK_INTERVAL,
        escalation_delay: float = DEFAULT_ESCALATION_DELAY,
        clock: Callable[[], datetime] | None = None,
    ):
        self.service = service
        self.notifier = notifier
        self.engine = engine
        self.job_queue = job_queue
        self.interval = interval
        self._clock = clock or utcnow
        self.escalations = EscalationTimers(job_queue, escalation_delay, self._escalate)
        self._job: Job | None = None

        service.subscribe(self._on_reminder_closed)

    @property
    def running(self) -> bool:
        return self._job is not None and not self._job.removed

    def start(self) -> None:
        """Schedule the repeating tick job."""
        if self.running:
            return
        self._job = self.job_queue.run_repeating(
            self._tick_job,
            interval=self.interval,
            first=self.interval,
            name=SCHEDULER_JOB_NAME,
        )
        logger.info(f"Reminder scheduler started (interval: {self.interval}s)")

    def stop(self) -> None:
        """Remove the tick job and drop escalations that have not fired."""
        for job in self.job_queue.get_jobs_by_name(SCHEDULER_JOB_NAME):
            job.schedule_removal()
        self._job = None
        self.escalations.cancel_all()
        logger.info("Reminder scheduler stopped")

    async def _tick_job(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Job callback for the scheduler tick."""
        await self.tick()

    async def tick(self) -> int:
        """Process every reminder that is due now.

        Returns:
            Number of reminders whose notification was delivered
        """
        now = self._clock()
        delivered = 0

        try:
            candidates = await self.service.list(
                None,
                ListFilter(
                    status=ReminderStatus.PENDING,
                    to_time=now + timedelta(seconds=self.interval),
                ),
            )
        except Exception as e:
            logger.error(f"Error fetching reminders: {e}")
            return 0

        for reminder in candidates:
            if reminder.due_time > now:
                continue
            if reminder.id in self.escalations:
                # Already notified, waiting for acknowledgement
                continue

            try:
                if await self._fire(reminder):
                    delivered += 1
            except Exception as e:
                logger.error(f"Error processing reminder {reminder.id}: {e}")

        if delivered:
            logger.info(f"Tick: {delivered} reminder(s) delivered")
        return delivered

    async def _fire(self, reminder: Reminder) -> bool:
        sent = await self._send(
            reminder, format_notification(reminder), NotificationType.MESSAGE
        )
        if not sent:
            return False

        if reminder.priority:
            self.escalations.arm(reminder.id)  # type: ignore[arg-type]
        else:
            await self._finalize(reminder)
        return True

    async def _send(
        self, reminder: Reminder, text: str, notification_type: NotificationType
    ) -> bool:
        """Send one notification and record the attempt."""
        log = NotificationLog(
            reminder_id=reminder.id,  # type: ignore[arg-type]
            notification_type=notification_type,
            status=NotificationStatus.SUCCESS,
            attempted_at=self._clock(),
        )

        try:
            await self.notifier.send(reminder.user_id, text)
            logger.info(f"Sent {notification_type.value} for reminder {reminder.id}")
        except Exception as e:
            # Left Pending; the next tick retries
            logger.error(
                f"Failed to send {notification_type.value} for reminder {reminder.id}: {e}"
            )
            log.status = NotificationStatus.FAILED
            log.error_message = str(e)

        try:
            await self.service.log_notification(log)
        except Exception as e:
            logger.error(f"Error logging notification for reminder {reminder.id}: {e}")

        return log.status == NotificationStatus.SUCCESS

    async def _finalize(self, reminder: Reminder) -> None:
        """Complete the fired occurrence and, if recurring, enroll the next one."""
        completed = await self.service.complete(reminder.id)  # type: ignore[arg-type]
        if completed.is_recurring:
            await self._reenroll(completed)

    async def _reenroll(self, reminder: Reminder) -> Reminder | None:
        """Create the successor of a completed recurring occurrence.

        Failures are logged and not rolled back: the completed occurrence
        stays completed and no successor exists.
        """
        try:
            next_time = self.engine.next_occurrence(
                reminder.recurrence, reminder.due_time, self._clock()  # type: ignore[arg-type]
            )
            successor = await self.service.create(
                Reminder(
                    user_id=reminder.user_id,
                    title=reminder.title,
                    description=reminder.description,
                    due_time=next_time,
                    recurrence=reminder.recurrence,
                    priority=reminder.priority,
                )
            )
        except Exception as e:
            logger.error(f"Error scheduling next recurrence for reminder {reminder.id}: {e}")
            return None

        logger.info(
            f"Reminder {reminder.id} re-enrolled as {successor.id} at {next_time.isoformat()}"
        )
        return successor

    async def _escalate(self, reminder_id: str) -> None:
        """Escalation timer callback: runs once the delay has elapsed."""
        reminder = await self.service.get(reminder_id)

        if reminder.status != ReminderStatus.PENDING:
            logger.info(f"Reminder {reminder_id} is {reminder.status.value}, no escalation")
            if reminder.status == ReminderStatus.COMPLETED and reminder.is_recurring:
                await self._reenroll(reminder)
            return

        await self._send(reminder, format_escalation(reminder), NotificationType.CALL)
        await self._finalize(reminder)

    async def _on_reminder_closed(self, reminder: Reminder) -> None:
        """Service listener: a reminder left Pending outside the scheduler."""
        if not self.escalations.cancel(reminder.id):  # type: ignore[arg-type]
            return
        if reminder.status == ReminderStatus.COMPLETED and reminder.is_recurring:
            await self._reenroll(reminder)
