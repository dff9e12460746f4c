"""Timed jobs with an optional cool-down period."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SoftTimer:
    """A polled timer measuring milliseconds against a clock."""

    def __init__(self, timeout_ms: int = 0, clock: Clock | None = None) -> None:
        self.timeout_ms = timeout_ms
        self._clock = clock or _monotonic_ms
        self._start = self._clock()

    def reset(self) -> None:
        self._start = self._clock()

    def _elapsed(self) -> float:
        return self._clock() - self._start

    def has_timed_out(self) -> bool:
        return self._elapsed() >= self.timeout_ms

    def remaining_time(self) -> int:
        return max(0, int(self.timeout_ms - self._elapsed()))


class JobManager:
    """Runs a job for a fixed time, then optionally holds off before it may run again."""

    def __init__(
        self,
        job_duration: int,
        enable: Callable[[], None],
        disable: Callable[[], None] | None = None,
        backoff_duration: int = 0,
        run_once: bool = False,
        start_in_backoff: bool = False,
        clock: Clock | None = None,
    ) -> None:
        self._enable = enable
        self._disable = disable
        self._job_duration = job_duration
        self._backoff_duration = backoff_duration
        self._run_once = run_once
        self._has_run = False
        self._running = False
        self._in_backoff = False
        self._job_timer = SoftTimer(job_duration, clock)
        self._backoff_timer = SoftTimer(backoff_duration, clock)
        if start_in_backoff and backoff_duration:
            self._backoff_timer.reset()
            self._in_backoff = True

    @property
    def job_duration(self) -> int:
        return self._job_duration

    @property
    def backoff_duration(self) -> int:
        return self._backoff_duration

    def start_job(self) -> None:
        """Start the job unless it is running, backing off, or already used up."""
        if self._running or self._in_backoff:
            return
        if self._run_once and self._has_run:
            return
        self._running = True
        self._has_run = True
        self._enable()
        self._job_timer.reset()

    def reset_job(self) -> None:
        """Allow a run-once job to run again, once idle and out of backoff."""
        if not self._running and not self._in_backoff:
            self._has_run = False

    def restart_job_timer(self) -> None:
        if self._running and not self._in_backoff:
            self._job_timer.reset()

    def renew_backoff(self) -> None:
        if self._in_backoff and not self._backoff_timer.has_timed_out():
            self._backoff_timer.reset()

    def end_job(self) -> None:
        if self._running:
            if self._disable is not None:
                self._disable()
            self._running = False
        if self._backoff_duration != 0:
            self._in_backoff = True
            self._backoff_timer.reset()

    def handle_job(self) -> None:
        """Poll the timers: end an expired job and lift an expired backoff."""
        if self._running and self._job_timer.has_timed_out():
            self.end_job()
        if self._in_backoff and self._backoff_timer.has_timed_out():
            self._in_backoff = False

    def remaining_job_time(self) -> int:
        return self._job_timer.remaining_time()

    def remaining_backoff_time(self) -> int:
        return self._backoff_timer.remaining_time()

    def set_job_duration(self, duration: int) -> None:
        self._job_duration = duration
        self._job_timer.timeout_ms = duration

    def set_backoff_duration(self, duration: int) -> None:
        self._backoff_duration = duration
        self._backoff_timer.timeout_ms = duration

    def is_job_active(self) -> bool:
        return self._running

    def is_backoff_active(self) -> bool:
        return self._in_backoff