# jobs/tests/test_job_timer.py

from datetime import timedelta

from django.test import SimpleTestCase

from jobs.services import job_timer
from jobs.services.exceptions import TimerStateError
from jobs.services.job_timer import TimerState
from shared.clock import FixedClock


class JobTimerTests(SimpleTestCase):
    def setUp(self):
        self.clock = FixedClock()
        self.t0 = self.clock.now()

    def test_resume_then_pause_accumulates_segment(self):
        paused = TimerState(timer_seconds=0, timer_paused_at=self.t0 - timedelta(minutes=5))

        running = job_timer.resume(paused, self.t0)
        result = job_timer.pause(running, self.t0 + timedelta(seconds=125))

        self.assertEqual(result.timer_seconds, 125)
        self.assertIsNone(result.work_started_at)
        self.assertEqual(result.timer_paused_at, self.t0 + timedelta(seconds=125))

    def test_elapsed_includes_running_segment(self):
        running = job_timer.start(TimerState(), self.t0)
        self.assertEqual(job_timer.elapsed_seconds(running, self.t0 + timedelta(seconds=42)), 42)

    def test_elapsed_is_stored_value_while_paused(self):
        paused = TimerState(timer_seconds=300, timer_paused_at=self.t0)
        self.assertEqual(job_timer.elapsed_seconds(paused, self.t0 + timedelta(hours=3)), 300)

    def test_pause_resume_pause_with_no_time_between_is_unchanged(self):
        running = job_timer.start(TimerState(), self.t0)
        first = job_timer.pause(running, self.t0 + timedelta(seconds=90))

        later = self.t0 + timedelta(minutes=10)
        second = job_timer.pause(job_timer.resume(first, later), later)

        self.assertEqual(second.timer_seconds, first.timer_seconds)

    def test_exactly_one_of_running_or_paused(self):
        running = job_timer.start(TimerState(), self.t0)
        self.assertTrue(running.is_running)
        self.assertFalse(running.is_paused)

        paused = job_timer.pause(running, self.t0 + timedelta(seconds=1))
        self.assertTrue(paused.is_paused)
        self.assertFalse(paused.is_running)

    def test_pause_when_paused_raises(self):
        paused = TimerState(timer_seconds=10, timer_paused_at=self.t0)
        with self.assertRaises(TimerStateError):
            job_timer.pause(paused, self.t0)

    def test_resume_when_running_raises(self):
        running = job_timer.start(TimerState(), self.t0)
        with self.assertRaises(TimerStateError):
            job_timer.resume(running, self.t0)

    def test_start_twice_raises(self):
        running = job_timer.start(TimerState(), self.t0)
        with self.assertRaises(TimerStateError):
            job_timer.start(running, self.t0)

    def test_stop_folds_segment_and_goes_idle(self):
        running = job_timer.start(TimerState(timer_seconds=20), self.t0)
        stopped = job_timer.stop(running, self.t0 + timedelta(seconds=40))

        self.assertEqual(stopped.timer_seconds, 60)
        self.assertTrue(stopped.is_idle)
