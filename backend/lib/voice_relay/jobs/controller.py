"""Single-flight job controller.

Owns the one "current job" reference. Starting a job cancels whatever was
running; an explicit interrupt cancels without replacing. Cancellation is
cooperative: the flag is only read by the work holding the Job.
"""

import itertools
import logging
from threading import Lock
from typing import Optional

from ..broadcast.hub import BroadcastHub
from ..core.types import CancelReason, Job, JobKind, RelayEvent

logger = logging.getLogger(__name__)


class JobController:
    """
    Serializes user turns so a new request always preempts a stale one.

    The swap of the current reference and the cancel flag of the previous
    job happen together under a lock with no await in between. The `stop`
    announcement goes out after the swap.

    Usage:
        jobs = JobController(hub)
        job = await jobs.start_job(JobKind.TEXT)   # cancels any live job
        ...
        if job.cancelled:
            return
    """

    def __init__(self, hub: BroadcastHub):
        self._hub = hub
        self._lock = Lock()
        self._current: Optional[Job] = None
        self._ids = itertools.count(1)

    @property
    def current(self) -> Optional[Job]:
        return self._current

    def _swap(self, kind: JobKind) -> tuple:
        with self._lock:
            previous = self._current
            job = Job(id=next(self._ids), kind=kind)
            self._current = job
            superseded = previous is not None and previous.cancel(CancelReason.SUPERSEDED)
        return job, previous if superseded else None

    def _cancel_current(self) -> Optional[Job]:
        with self._lock:
            job = self._current
            if job is not None and job.cancel(CancelReason.INTERRUPTED):
                return job
        return None

    async def start_job(self, kind: JobKind) -> Job:
        """
        Install a new current job, cancelling the previous one if it was live.

        Args:
            kind: Request origin

        Returns:
            The new current job
        """
        job, superseded = self._swap(kind)
        if superseded is not None:
            logger.info(f"🛑 Job #{superseded.id} superseded by job #{job.id}")
            await self._hub.publish(RelayEvent.stop())
        logger.info(f"▶️ Job #{job.id} started ({kind.value})")
        return job

    async def interrupt(self) -> bool:
        """
        Cancel the current job on explicit request.

        Returns:
            True if a live job was cancelled, False if nothing was running
        """
        job = self._cancel_current()
        if job is None:
            return False
        logger.warning(f"🛑 Job #{job.id} interrupted")
        await self._hub.publish(RelayEvent.stop())
        return True

    def is_cancelled(self, job_id: int) -> bool:
        """True unless job_id names the current, live job."""
        job = self._current
        return job is None or job.id != job_id or job.cancelled
