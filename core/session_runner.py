"""Client-side runtime of one attempt.

Timer ticks, keyboard input and autosave all go through the machine's lock,
so the navigation state only ever sees one writer at a time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import requests

from core.api_client import ApiClient
from core.clock import Clock, RealClock
from core.navigation import NavigationState, SessionMachine
from core.scoring import score_test
from core.timer import DEFAULT_INTERVAL_SECONDS, CheckpointTracker, Ticker
from models import IntervalStats, Test, TestResult
from serialization import deserialize_result

logger = logging.getLogger(__name__)

AUTOSAVE_SECONDS = 5


@dataclass
class SubmissionOutcome:
    result: TestResult
    persisted: bool


class SessionRunner:
    def __init__(
        self,
        test: Test,
        client: ApiClient | None = None,
        *,
        clock: Clock | None = None,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        autosave_seconds: float = AUTOSAVE_SECONDS,
        on_interval_reached: Callable[[IntervalStats], None] | None = None,
        on_time_up: Callable[[], None] | None = None,
    ) -> None:
        clock = clock or RealClock()
        self.client = client
        self.machine = SessionMachine(test, clock=clock)
        self.tracker = CheckpointTracker.for_test(
            test,
            self.machine.totals,
            interval_seconds=interval_seconds,
            on_time_up=self._handle_time_up,
            on_interval_reached=on_interval_reached,
        )
        self._external_time_up = on_time_up
        self._timer = Ticker(self.tick, clock=clock, name="session-timer")
        self._autosaver = Ticker(
            self.autosave, period=autosave_seconds, clock=clock, name="autosave"
        )
        self.last_saved_at: datetime | None = None
        self._outcome: SubmissionOutcome | None = None
        self._dirty = False
        self.machine.subscribe(self._mark_dirty)

    @property
    def state(self) -> NavigationState:
        return self.machine.state

    @property
    def finished(self) -> bool:
        return self.machine.state.finished

    @property
    def outcome(self) -> SubmissionOutcome | None:
        return self._outcome

    def start(self) -> None:
        self._timer.start()
        if self.client is not None:
            self._autosaver.start()

    def stop(self) -> None:
        self._timer.stop()
        self._autosaver.stop()

    # --- timer ---------------------------------------------------------------

    def tick(self) -> None:
        with self.machine.lock:
            if self.finished:
                return
            self.tracker.tick()

    def resume(self) -> None:
        with self.machine.lock:
            self.tracker.resume()

    def _handle_time_up(self) -> None:
        self.machine.finish()
        if self._external_time_up is not None:
            self._external_time_up()

    # --- input ---------------------------------------------------------------

    def answer(self, raw: str) -> NavigationState:
        return self.machine.set_response(raw)

    def next(self) -> NavigationState:
        return self.machine.next()

    def prev(self) -> NavigationState:
        return self.machine.prev()

    def go_to(self, section_index: int, question_index: int) -> NavigationState:
        return self.machine.go_to(section_index, question_index)

    def toggle_bookmark(self) -> NavigationState:
        return self.machine.toggle_bookmark()

    def finish(self) -> NavigationState:
        return self.machine.finish()

    # --- server --------------------------------------------------------------

    def _mark_dirty(self, state: NavigationState) -> None:
        self._dirty = True

    def autosave(self) -> bool:
        """Push the latest responses and position if anything changed. Last write wins."""
        if self.client is None or self._outcome is not None:
            return False
        with self.machine.lock:
            if not self._dirty:
                return False
            state = self.machine.state
            self._dirty = False
        try:
            self.client.save_progress(
                state.test.id,
                dict(state.responses),
                state.section_index,
                state.question_index,
            )
        except requests.RequestException as exc:
            logger.warning("Autosave of %s failed: %s", state.test.id, exc)
            self._dirty = True
            return False
        self.last_saved_at = datetime.now(timezone.utc)
        return True

    def local_result(self) -> TestResult:
        with self.machine.lock:
            state = self.machine.state
            intervals = self.tracker.finalize_intervals()
            elapsed = self.tracker.elapsed
        return score_test(state.test, state.responses, elapsed, intervals)

    def submit(self) -> SubmissionOutcome:
        """Submit once; on failure fall back to the locally computed result."""
        if self._outcome is not None:
            return self._outcome
        self.stop()
        self.machine.finish()

        local = self.local_result()
        if self.client is None:
            self._outcome = SubmissionOutcome(result=local, persisted=False)
            return self._outcome

        state = self.machine.state
        try:
            payload = self.client.submit_test(
                state.test.id,
                dict(state.responses),
                local.time_taken,
                local.intervals,
            )
        except requests.RequestException as exc:
            logger.error("Submitting %s failed, showing local result: %s", state.test.id, exc)
            self._outcome = SubmissionOutcome(result=local, persisted=False)
            return self._outcome

        result = deserialize_result(payload)
        # the tracker's intervals are what the student saw during the attempt
        result.intervals = local.intervals
        self._outcome = SubmissionOutcome(result=result, persisted=True)
        return self._outcome

    def close(self) -> SubmissionOutcome:
        """Best-effort final submit before teardown."""
        return self.submit()
