"""Deferred escalation jobs for priority reminders."""

import logging
from typing import Awaitable, Callable, Dict, Set

from telegram.ext import ContextTypes, Job, JobQueue

logger = logging.getLogger(__name__)

EscalationCallback = Callable[[str], Awaitable[None]]


def job_name(reminder_id: str) -> str:
    return f"escalation-{reminder_id}"


class EscalationTimers:
    """One one-shot job per reminder id on the bot's job queue.

    An id is armed from ``arm`` until its job has fired and the callback has
    returned. While the callback runs the id is in flight: it still counts as
    armed but can no longer be cancelled, so exactly one party (the firing
    job or the code that closed the reminder) handles the follow-up.
    """

    def __init__(self, job_queue: JobQueue, delay: float, callback: EscalationCallback):
        self.job_queue = job_queue
        self.delay = delay
        self._callback = callback
        self._jobs: Dict[str, Job] = {}
        self._firing: Set[str] = set()

    def __contains__(self, reminder_id: str) -> bool:
        return reminder_id in self._jobs or reminder_id in self._firing

    def __len__(self) -> int:
        return len(self._jobs) + len(self._firing)

    def arm(self, reminder_id: str) -> None:
        """Schedule the escalation for a reminder (no-op if already armed)."""
        if reminder_id in self:
            return
        self._jobs[reminder_id] = self.job_queue.run_once(
            self._fire,
            when=self.delay,
            data=reminder_id,
            name=job_name(reminder_id),
        )
        logger.debug(f"Escalation armed for reminder {reminder_id} ({self.delay}s)")

    def cancel(self, reminder_id: str) -> bool:
        """Cancel an escalation that has not fired yet.

        Returns:
            True if this call took the escalation away from its job
        """
        if self._jobs.pop(reminder_id, None) is None:
            return False
        self._remove_jobs(reminder_id)
        logger.info(f"Escalation cancelled for reminder {reminder_id}")
        return True

    def cancel_all(self) -> None:
        """Drop every escalation that has not fired yet."""
        reminder_ids = list(self._jobs)
        self._jobs.clear()
        for reminder_id in reminder_ids:
            self._remove_jobs(reminder_id)
        if reminder_ids:
            logger.info(f"Dropped {len(reminder_ids)} pending escalation(s)")

    def _remove_jobs(self, reminder_id: str) -> None:
        for job in self.job_queue.get_jobs_by_name(job_name(reminder_id)):
            job.schedule_removal()

    async def _fire(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        reminder_id: str = context.job.data  # type: ignore[union-attr,assignment]
        if self._jobs.pop(reminder_id, None) is None:
            # Cancelled after the job was already due
            return

        self._firing.add(reminder_id)
        try:
            await self._callback(reminder_id)
        except Exception as e:
            logger.error(f"Escalation failed for reminder {reminder_id}: {e}")
        finally:
            self._firing.discard(reminder_id)
