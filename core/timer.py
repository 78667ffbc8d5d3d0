"""Attempt timing: countdown for exams, count-up with checkpoints for practice."""
from __future__ import annotations

import enum
import logging
import threading
from typing import Callable

from core.clock import Clock, RealClock
from core.navigation import RunningTotals
from models import IntervalStats, Test, TestMode

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 420  # 7 minutes


class TimerMode(str, enum.Enum):
    COUNTDOWN = "countdown"
    COUNTUP = "countup"


class CheckpointTracker:
    """Drives one timing discipline, one ``tick()`` per elapsed second.

    Countdown: ``time_remaining`` goes from the time limit down to 0 and
    ``on_time_up`` fires exactly once. There is no pause.

    Count-up: ``elapsed`` grows while not paused. Every ``interval_seconds`` a
    checkpoint is recorded against the baseline totals taken at the start of
    the interval, the timer pauses and ``on_interval_reached`` is notified.
    ``resume()`` opens the next interval.
    """

    def __init__(
        self,
        *,
        mode: TimerMode,
        totals: Callable[[], RunningTotals],
        time_limit: int | None = None,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        on_time_up: Callable[[], None] | None = None,
        on_interval_reached: Callable[[IntervalStats], None] | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if mode is TimerMode.COUNTDOWN and time_limit is None:
            raise ValueError("countdown requires a time limit")

        self._mode = mode
        self._totals = totals
        self._interval_seconds = int(interval_seconds)
        self._on_time_up = on_time_up
        self._on_interval_reached = on_interval_reached

        self._elapsed = 0
        self._time_remaining = max(0, int(time_limit)) if time_limit is not None else None
        self._time_up_fired = False

        self._is_paused = False
        self._awaiting_review = False
        self._intervals: list[IntervalStats] = []
        self._last_interval_index = 0
        self._interval_start = 0
        self._baseline = RunningTotals()

    @classmethod
    def for_test(
        cls,
        test: Test,
        totals: Callable[[], RunningTotals],
        **kwargs,
    ) -> "CheckpointTracker":
        """Pick the discipline from the test's mode."""
        if test.mode is TestMode.TEST and test.time_limit is not None:
            return cls(mode=TimerMode.COUNTDOWN, totals=totals, time_limit=test.time_limit, **kwargs)
        return cls(mode=TimerMode.COUNTUP, totals=totals, **kwargs)

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def time_remaining(self) -> int | None:
        return self._time_remaining

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def is_time_up(self) -> bool:
        return self._time_up_fired

    @property
    def awaiting_review(self) -> bool:
        return self._awaiting_review

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    @property
    def interval_start(self) -> int:
        return self._interval_start

    @property
    def intervals(self) -> list[IntervalStats]:
        return list(self._intervals)

    def display_seconds(self) -> int:
        if self._mode is TimerMode.COUNTDOWN:
            return self._time_remaining or 0
        return self._elapsed

    def tick(self) -> None:
        if self._mode is TimerMode.COUNTDOWN:
            self._tick_countdown()
        else:
            self._tick_countup()

    def _tick_countdown(self) -> None:
        assert self._time_remaining is not None
        if self._time_remaining > 0:
            self._time_remaining -= 1
            self._elapsed += 1
        if self._time_remaining == 0 and not self._time_up_fired:
            self._time_up_fired = True
            logger.info("Time is up after %ss", self._elapsed)
            if self._on_time_up is not None:
                self._on_time_up()

    def _tick_countup(self) -> None:
        if self._is_paused:
            return
        self._elapsed += 1
        current_interval = self._elapsed // self._interval_seconds
        if current_interval > self._last_interval_index:
            self._last_interval_index = current_interval
            self._record_checkpoint()

    def _delta(self, start: int) -> IntervalStats:
        totals = self._totals()
        attempted = totals.attempted - self._baseline.attempted
        duration = self._elapsed - start
        return IntervalStats(
            interval_number=len(self._intervals) + 1,
            start_time=start,
            end_time=self._elapsed,
            questions_attempted=attempted,
            correct=totals.correct - self._baseline.correct,
            incorrect=totals.incorrect - self._baseline.incorrect,
            avg_time_per_question=duration / attempted if attempted > 0 else 0.0,
        )

    def _record_checkpoint(self) -> None:
        stats = self._delta(self._interval_start)
        self._intervals.append(stats)
        self._is_paused = True
        self._awaiting_review = True
        logger.info(
            "Checkpoint %s at %ss: %s attempted, %s correct",
            stats.interval_number,
            stats.end_time,
            stats.questions_attempted,
            stats.correct,
        )
        if self._on_interval_reached is not None:
            self._on_interval_reached(stats)

    def resume(self) -> None:
        """Clear the pause; after a checkpoint this also opens the next interval."""
        if not self._is_paused:
            return
        if self._awaiting_review:
            self._baseline = self._totals()
            self._interval_start = self._elapsed
            self._awaiting_review = False
        self._is_paused = False

    def finalize_intervals(self) -> list[IntervalStats]:
        """Recorded intervals plus one covering any time after the last checkpoint."""
        intervals = list(self._intervals)
        last_end = intervals[-1].end_time if intervals else 0
        if self._elapsed > last_end:
            intervals.append(self._delta(last_end))
        return intervals


class Ticker:
    """Calls ``callback`` once per ``period`` seconds of the injected clock.

    ``poll()`` fires every tick that has come due since the last poll, so a
    test can drive it with a manual clock. ``start()`` polls from a daemon
    thread.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        *,
        period: float = 1.0,
        clock: Clock | None = None,
        name: str = "ticker",
    ) -> None:
        if period <= 0:
            raise ValueError("period must be > 0")
        self._callback = callback
        self._period = float(period)
        self._clock = clock or RealClock()
        self._name = name
        self._anchor = self._clock.now()
        self._fired = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def poll(self) -> int:
        due = int((self._clock.now() - self._anchor) // self._period) - self._fired
        for _ in range(max(due, 0)):
            self._fired += 1
            self._callback()
        return max(due, 0)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._anchor = self._clock.now()
        self._fired = 0
        self._stop.clear()

        def _worker() -> None:
            while not self._stop.wait(min(self._period / 4, 0.25)):
                try:
                    self.poll()
                except Exception:
                    logger.exception("%s callback failed", self._name)

        self._thread = threading.Thread(target=_worker, name=self._name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2)
