"""Periodic background job scheduler.

Runs registered jobs on a fixed interval from a single daemon thread. The
cache warmer registers itself here (hourly by default).
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class PeriodicJob:
    """A job registered with the scheduler."""

    job_id: str
    func: Callable[[], Any]
    interval_seconds: float
    next_run: float
    enabled: bool = True
    run_count: int = 0
    error_count: int = 0
    last_error: str | None = None
    last_result: Any = field(default=None, repr=False)

    def execute(self, now: float) -> None:
        """Run the job once and schedule the next run.

        Exceptions are logged and counted; they never escape into the
        scheduler loop.
        """
        self.next_run = now + self.interval_seconds
        try:
            self.last_result = self.func()
            self.last_error = None
        except Exception as e:  # noqa: BLE001
            self.error_count += 1
            self.last_error = str(e)
            logger.exception("Periodic job %s failed", self.job_id)
        finally:
            self.run_count += 1


class PeriodicScheduler:
    """Scheduler for periodic jobs.

    Args:
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.jobs: dict[str, PeriodicJob] = {}
        self._lock = threading.Lock()
        self.scheduler_thread: threading.Thread | None = None
        self.running = False
        self.stop_event = threading.Event()

    def register_periodic(
        self,
        job: Callable[[], Any],
        interval: float,
        job_id: str | None = None,
        *,
        run_immediately: bool = False,
    ) -> PeriodicJob:
        """Register a job to run every `interval` seconds.

        Args:
            job: Zero-argument callable
            interval: Interval between runs in seconds
            job_id: Unique id (defaults to the callable's name)
            run_immediately: Make the job due at the next scheduler tick

        Returns:
            The registered PeriodicJob

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            msg = f"Interval must be positive, got {interval}"
            raise ValueError(msg)

        job_id = job_id or getattr(job, "__qualname__", None) or repr(job)
        now = self._clock()
        periodic = PeriodicJob(
            job_id=job_id,
            func=job,
            interval_seconds=float(interval),
            next_run=now if run_immediately else now + interval,
        )
        with self._lock:
            self.jobs[job_id] = periodic

        logger.info("Registered periodic job %s with %ss interval", job_id, interval)
        return periodic

    def remove_job(self, job_id: str) -> bool:
        """Remove a job; returns False if it was not registered."""
        with self._lock:
            removed = self.jobs.pop(job_id, None) is not None
        if removed:
            logger.info("Removed periodic job %s", job_id)
        return removed

    def run_pending(self) -> int:
        """Run every enabled job that is due.

        Returns:
            Number of jobs executed
        """
        now = self._clock()
        with self._lock:
            due = [j for j in self.jobs.values() if j.enabled and j.next_run <= now]

        for job in due:
            logger.debug("Running periodic job %s", job.job_id)
            job.execute(now)
        return len(due)

    def run_job_now(self, job_id: str) -> Any:
        """Run a job immediately regardless of its schedule.

        Returns:
            The job's return value, or None if the job is unknown
        """
        with self._lock:
            job = self.jobs.get(job_id)
        if job is None:
            logger.warning("Periodic job %s not found", job_id)
            return None
        job.execute(self._clock())
        return job.last_result

    def start(self, check_interval: float = 1.0) -> None:
        """Start the scheduler thread.

        Args:
            check_interval: How often to check for due jobs (seconds)
        """
        if self.running:
            logger.warning("Scheduler is already running")
            return

        self.running = True
        self.stop_event.clear()
        self.scheduler_thread = threading.Thread(
            target=self._scheduler_loop,
            args=(check_interval,),
            daemon=True,
            name="CineCacheScheduler",
        )
        self.scheduler_thread.start()
        logger.info("Started scheduler with %ss check interval", check_interval)

    def stop(self, timeout: float = 10.0) -> None:
        """Stop the scheduler thread."""
        if not self.running:
            logger.warning("Scheduler is not running")
            return

        self.running = False
        self.stop_event.set()
        if self.scheduler_thread and self.scheduler_thread.is_alive():
            self.scheduler_thread.join(timeout=timeout)
        logger.info("Stopped scheduler")

    def _scheduler_loop(self, check_interval: float) -> None:
        while not self.stop_event.is_set():
            self.run_pending()
            self.stop_event.wait(check_interval)
