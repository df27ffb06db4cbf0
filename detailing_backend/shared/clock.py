# shared/clock.py

"""
CLOCK SOURCE

Every "now" read in the order/job core goes through a Clock so that timer
and expiry behaviour can be driven deterministically in tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone

from django.utils import timezone


class Clock:
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return timezone.now()


class FixedClock(Clock):
    """
    Manually advanced clock.

    Always timezone-aware (UTC) so comparisons against DB timestamps are safe.
    """

    def __init__(self, start: datetime | None = None):
        start = start or datetime(2025, 1, 1, 9, 0, 0, tzinfo=dt_timezone.utc)
        if timezone.is_naive(start):
            start = start.replace(tzinfo=dt_timezone.utc)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value


system_clock = SystemClock()
