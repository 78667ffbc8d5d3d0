import pytest

from conftest import build_test
from core.clock import ManualClock
from core.navigation import RunningTotals, SessionMachine
from core.scoring import score_test
from core.timer import CheckpointTracker, Ticker, TimerMode
from models import TestMode


def test_countdown_fires_once_and_stops_at_zero() -> None:
    fired = []
    tracker = CheckpointTracker(
        mode=TimerMode.COUNTDOWN,
        totals=RunningTotals,
        time_limit=3600,
        on_time_up=lambda: fired.append(True),
    )

    for _ in range(3599):
        tracker.tick()
    assert tracker.time_remaining == 1
    assert fired == []

    for _ in range(5):
        tracker.tick()
    assert tracker.time_remaining == 0
    assert tracker.elapsed == 3600
    assert fired == [True]
    assert tracker.is_time_up


def test_countdown_never_pauses() -> None:
    tracker = CheckpointTracker(mode=TimerMode.COUNTDOWN, totals=RunningTotals, time_limit=10)
    tracker.resume()
    tracker.tick()
    assert not tracker.is_paused
    assert tracker.time_remaining == 9


def test_for_test_picks_discipline() -> None:
    exam = CheckpointTracker.for_test(build_test(mode=TestMode.TEST), RunningTotals)
    practice = CheckpointTracker.for_test(build_test(), RunningTotals)
    assert exam.mode is TimerMode.COUNTDOWN
    assert exam.display_seconds() == 3600
    assert practice.mode is TimerMode.COUNTUP
    assert practice.time_remaining is None


def test_invalid_interval_rejected() -> None:
    with pytest.raises(ValueError):
        CheckpointTracker(mode=TimerMode.COUNTUP, totals=RunningTotals, interval_seconds=0)


def test_practice_checkpoints_and_final_interval() -> None:
    test = build_test(section_sizes=(10,))
    machine = SessionMachine(test)
    reached = []
    tracker = CheckpointTracker.for_test(
        test, machine.totals, interval_seconds=420, on_interval_reached=reached.append
    )

    # six answers in the first seven minutes
    for second in range(420):
        if second % 60 == 0 and machine.state.question_index < 6:
            question = machine.state.current_question()
            machine.set_response(str(question.correct_answer))
            machine.next()
        tracker.tick()

    assert tracker.is_paused and tracker.awaiting_review
    assert len(reached) == 1
    first = reached[0]
    assert (first.interval_number, first.start_time, first.end_time) == (1, 0, 420)
    assert first.questions_attempted == 6
    assert first.correct == 6
    assert first.avg_time_per_question == pytest.approx(70.0)

    # paused: ticks do not count
    tracker.tick()
    assert tracker.elapsed == 420
    tracker.resume()
    assert tracker.interval_start == 420

    for _ in range(4):
        for _ in range(30):
            tracker.tick()
        question = machine.state.current_question()
        machine.set_response(str(question.correct_answer))
        machine.next()

    intervals = tracker.finalize_intervals()
    assert len(intervals) == 2
    last = intervals[-1]
    assert (last.interval_number, last.start_time, last.end_time) == (2, 420, 540)
    assert last.questions_attempted == 4
    assert last.correct == 4

    result = score_test(machine.state.test, machine.state.responses, tracker.elapsed, intervals)
    assert result.score == 100.0
    assert sum(i.questions_attempted for i in result.intervals) == result.attempted


def test_final_interval_recorded_without_answers() -> None:
    tracker = CheckpointTracker(mode=TimerMode.COUNTUP, totals=RunningTotals, interval_seconds=10)
    for _ in range(10):
        tracker.tick()
    tracker.resume()
    for _ in range(3):
        tracker.tick()

    intervals = tracker.finalize_intervals()
    assert [(i.start_time, i.end_time) for i in intervals] == [(0, 10), (10, 13)]
    assert intervals[-1].avg_time_per_question == 0.0


def test_no_extra_interval_exactly_at_checkpoint() -> None:
    tracker = CheckpointTracker(mode=TimerMode.COUNTUP, totals=RunningTotals, interval_seconds=5)
    for _ in range(5):
        tracker.tick()
    assert len(tracker.finalize_intervals()) == 1


def test_ticker_polls_with_manual_clock() -> None:
    clock = ManualClock()
    calls = []
    ticker = Ticker(lambda: calls.append(clock.now()), period=1.0, clock=clock)

    assert ticker.poll() == 0
    clock.advance(2.5)
    assert ticker.poll() == 2
    clock.advance(0.4)
    assert ticker.poll() == 0
    clock.advance(0.6)
    assert ticker.poll() == 1
    assert len(calls) == 3


def test_ticker_rejects_bad_period() -> None:
    with pytest.raises(ValueError):
        Ticker(lambda: None, period=0)
