"""Tests for PeriodicScheduler."""

from __future__ import annotations

import threading

import pytest

from cinecache.core.scheduler import PeriodicScheduler


class ManualClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> PeriodicScheduler:
    return PeriodicScheduler(clock=clock)


class TestPeriodicScheduler:
    def test_job_runs_once_per_interval(self, clock: ManualClock, scheduler: PeriodicScheduler) -> None:
        # Given
        calls: list[float] = []
        job = scheduler.register_periodic(lambda: calls.append(clock.now), 60, "tick")

        # When / Then
        assert scheduler.run_pending() == 0
        clock.now += 60
        assert scheduler.run_pending() == 1
        assert scheduler.run_pending() == 0
        clock.now += 60
        scheduler.run_pending()

        assert calls == [160.0, 220.0]
        assert job.run_count == 2

    def test_run_immediately(self, scheduler: PeriodicScheduler) -> None:
        scheduler.register_periodic(lambda: "done", 3600, "warm", run_immediately=True)

        assert scheduler.run_pending() == 1
        assert scheduler.jobs["warm"].last_result == "done"

    def test_failing_job_is_counted(self, scheduler: PeriodicScheduler) -> None:
        def broken() -> None:
            raise RuntimeError("warming failed")

        job = scheduler.register_periodic(broken, 10, "broken", run_immediately=True)

        scheduler.run_pending()

        assert job.error_count == 1
        assert job.last_error == "warming failed"
        assert job.next_run == 110.0

    def test_disabled_job_is_skipped(self, scheduler: PeriodicScheduler) -> None:
        job = scheduler.register_periodic(lambda: None, 10, "off", run_immediately=True)
        job.enabled = False

        assert scheduler.run_pending() == 0

    def test_invalid_interval(self, scheduler: PeriodicScheduler) -> None:
        with pytest.raises(ValueError, match="positive"):
            scheduler.register_periodic(lambda: None, 0)

    def test_run_job_now_and_remove(self, scheduler: PeriodicScheduler) -> None:
        scheduler.register_periodic(lambda: 42, 3600, "answer")

        assert scheduler.run_job_now("answer") == 42
        assert scheduler.run_job_now("missing") is None
        assert scheduler.remove_job("answer") is True
        assert scheduler.remove_job("answer") is False

    def test_background_thread_runs_due_jobs(self) -> None:
        # Given
        ran = threading.Event()
        scheduler = PeriodicScheduler()
        scheduler.register_periodic(ran.set, 3600, "signal", run_immediately=True)

        # When
        scheduler.start(check_interval=0.01)
        try:
            assert ran.wait(timeout=2.0)
        finally:
            scheduler.stop()

        # Then
        assert not scheduler.running
