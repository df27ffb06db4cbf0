# jobs/services/job_timer.py

"""
JOB TIMER (pause/resume accumulator)

Stored: accumulated seconds + the start of the current running segment.
Displayed elapsed time is always derived from those timestamps, so a reload or
a second device never drifts.

States:
- idle     neither timestamp set (before start / after stop)
- running  work_started_at set
- paused   timer_paused_at set
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .exceptions import TimerStateError


@dataclass(frozen=True)
class TimerState:
    timer_seconds: int = 0
    work_started_at: Optional[datetime] = None
    timer_paused_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self.work_started_at is not None and self.timer_paused_at is None

    @property
    def is_paused(self) -> bool:
        return self.timer_paused_at is not None

    @property
    def is_idle(self) -> bool:
        return self.work_started_at is None and self.timer_paused_at is None


def _segment_seconds(timer: TimerState, now: datetime) -> int:
    if not timer.is_running:
        return 0
    return max(0, math.floor((now - timer.work_started_at).total_seconds()))


def elapsed_seconds(timer: TimerState, now: datetime) -> int:
    return int(timer.timer_seconds) + _segment_seconds(timer, now)


def start(timer: TimerState, now: datetime) -> TimerState:
    if not timer.is_idle:
        raise TimerStateError("Timer has already been started")
    return TimerState(timer_seconds=timer.timer_seconds, work_started_at=now)


def pause(timer: TimerState, now: datetime) -> TimerState:
    if not timer.is_running:
        raise TimerStateError("Timer is not running")
    return TimerState(
        timer_seconds=elapsed_seconds(timer, now),
        work_started_at=None,
        timer_paused_at=now,
    )


def resume(timer: TimerState, now: datetime) -> TimerState:
    if not timer.is_paused:
        raise TimerStateError("Timer is not paused")
    return TimerState(timer_seconds=timer.timer_seconds, work_started_at=now)


def stop(timer: TimerState, now: datetime) -> TimerState:
    """Fold the running segment in and leave the timer idle."""
    return TimerState(timer_seconds=elapsed_seconds(timer, now))
