"""Navigation and response state machine for a live attempt.

State changes only through ``reduce(state, action)``, a pure function over a
closed set of action variants. ``SessionMachine`` wraps it with a single
serialized ``dispatch`` entry point shared by user input and timer callbacks.
"""
from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Mapping, Union

from core.clock import Clock, RealClock
from core.scoring import is_correct_answer
from models import MAX_ANSWER_LENGTH, Question, Response, Section, Test, TestMode

logger = logging.getLogger(__name__)

_VALID_ANSWER = re.compile(r"-?[0-9]*")


# --- actions -----------------------------------------------------------------


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Prev:
    pass


@dataclass(frozen=True)
class GoTo:
    section_index: int
    question_index: int


@dataclass(frozen=True)
class SetResponse:
    question_id: str
    answer: str | None
    answered_at: datetime | None = None
    time_spent: float | None = None


@dataclass(frozen=True)
class ToggleBookmark:
    question_id: str


@dataclass(frozen=True)
class Finish:
    pass


Action = Union[Next, Prev, GoTo, SetResponse, ToggleBookmark, Finish]


# --- state -------------------------------------------------------------------


@dataclass(frozen=True)
class NavigationState:
    test: Test
    section_index: int = 0
    question_index: int = 0
    responses: Mapping[str, Response] = field(default_factory=dict)
    finished: bool = False

    @property
    def is_test_mode(self) -> bool:
        return self.test.mode is TestMode.TEST

    @property
    def position(self) -> tuple[int, int]:
        return self.section_index, self.question_index

    def current_section(self) -> Section | None:
        if 0 <= self.section_index < len(self.test.sections):
            return self.test.sections[self.section_index]
        return None

    def current_question(self) -> Question | None:
        section = self.current_section()
        if section is None or not 0 <= self.question_index < len(section.questions):
            return None
        return section.questions[self.question_index]

    def is_last_question(self) -> bool:
        section = self.current_section()
        if section is None:
            return True
        return (
            self.section_index >= len(self.test.sections) - 1
            and self.question_index >= len(section.questions) - 1
        )


@dataclass(frozen=True)
class RunningTotals:
    attempted: int = 0
    correct: int = 0
    incorrect: int = 0


def running_totals(responses: Mapping[str, Response]) -> RunningTotals:
    """Totals as seen by the client, from the eagerly computed flags."""
    attempted = correct = incorrect = 0
    for response in responses.values():
        if response.is_answered:
            attempted += 1
        if response.is_correct is True:
            correct += 1
        elif response.is_correct is False:
            incorrect += 1
    return RunningTotals(attempted=attempted, correct=correct, incorrect=incorrect)


def sanitize_answer(raw: str | None) -> str:
    """Reduce raw keyboard input to ``-?[0-9]*``, at most MAX_ANSWER_LENGTH chars."""
    if not raw:
        return ""
    if not _VALID_ANSWER.fullmatch(raw):
        negative = raw.strip().startswith("-")
        digits = "".join(ch for ch in raw if ch in "0123456789")
        raw = ("-" if negative else "") + digits
    return raw[:MAX_ANSWER_LENGTH]


# --- section helpers ---------------------------------------------------------


def _replace_section(test: Test, index: int, section: Section) -> Test:
    sections = list(test.sections)
    sections[index] = section
    return replace(test, sections=tuple(sections))


def _complete_section(test: Test, index: int) -> Test:
    section = test.sections[index]
    return _replace_section(
        test,
        index,
        replace(section, is_locked=True, is_completed=True, progress=100.0),
    )


def section_progress(section: Section, responses: Mapping[str, Response]) -> float:
    if not section.questions:
        return 0.0
    answered = sum(
        1
        for q in section.questions
        if q.id in responses and responses[q.id].is_answered
    )
    return answered / len(section.questions) * 100


def _section_index_of(test: Test, question_id: str) -> int | None:
    for index, section in enumerate(test.sections):
        if any(q.id == question_id for q in section.questions):
            return index
    return None


# --- transitions -------------------------------------------------------------


def _next(state: NavigationState) -> NavigationState:
    section = state.current_section()
    if section is None:
        return state

    is_last_in_section = state.question_index >= len(section.questions) - 1
    is_last_section = state.section_index >= len(state.test.sections) - 1

    if not is_last_in_section:
        return replace(state, question_index=state.question_index + 1)
    if is_last_section:
        return replace(state, finished=True)

    test = state.test
    if state.is_test_mode:
        test = _complete_section(test, state.section_index)
    return replace(
        state,
        test=test,
        section_index=state.section_index + 1,
        question_index=0,
    )


def _prev(state: NavigationState) -> NavigationState:
    if state.is_test_mode:
        return state
    if state.question_index > 0:
        return replace(state, question_index=state.question_index - 1)
    if state.section_index > 0:
        previous = state.test.sections[state.section_index - 1]
        return replace(
            state,
            section_index=state.section_index - 1,
            question_index=max(len(previous.questions) - 1, 0),
        )
    return state


def _go_to(state: NavigationState, action: GoTo) -> NavigationState:
    target_section, target_question = action.section_index, action.question_index
    sections = state.test.sections
    if not 0 <= target_section < len(sections):
        return state
    if not 0 <= target_question < len(sections[target_section].questions):
        return state
    if sections[target_section].is_locked:
        return state

    test = state.test
    if state.is_test_mode:
        if (target_section, target_question) < state.position:
            return state
        # every section jumped past is closed for good
        for index in range(state.section_index, target_section):
            test = _complete_section(test, index)

    return replace(
        state,
        test=test,
        section_index=target_section,
        question_index=target_question,
    )


def _set_response(state: NavigationState, action: SetResponse) -> NavigationState:
    section_index = _section_index_of(state.test, action.question_id)
    if section_index is None:
        logger.debug("Ignoring response for unknown question %s", action.question_id)
        return state
    section = state.test.sections[section_index]
    if section.is_locked:
        return state

    question = state.test.find_question(action.question_id)
    assert question is not None
    response = Response(
        question_id=action.question_id,
        user_answer=action.answer,
        is_correct=is_correct_answer(action.answer, question.correct_answer),
        answered_at=action.answered_at or datetime.now(timezone.utc),
        time_spent=action.time_spent,
    )
    responses = dict(state.responses)
    responses[action.question_id] = response

    test = state.test
    if not state.is_test_mode:
        test = _replace_section(
            test,
            section_index,
            replace(section, progress=section_progress(section, responses)),
        )
    return replace(state, test=test, responses=responses)


def _toggle_bookmark(state: NavigationState, action: ToggleBookmark) -> NavigationState:
    if state.is_test_mode:
        return state
    section_index = _section_index_of(state.test, action.question_id)
    if section_index is None:
        return state
    section = state.test.sections[section_index]
    questions = tuple(
        replace(q, is_bookmarked=not q.is_bookmarked) if q.id == action.question_id else q
        for q in section.questions
    )
    return replace(
        state,
        test=_replace_section(state.test, section_index, replace(section, questions=questions)),
    )


def reduce(state: NavigationState, action: Action) -> NavigationState:
    """Apply one action. Rejected actions return ``state`` unchanged."""
    if state.finished:
        return state
    if isinstance(action, Next):
        return _next(state)
    if isinstance(action, Prev):
        return _prev(state)
    if isinstance(action, GoTo):
        return _go_to(state, action)
    if isinstance(action, SetResponse):
        return _set_response(state, action)
    if isinstance(action, ToggleBookmark):
        return _toggle_bookmark(state, action)
    if isinstance(action, Finish):
        return replace(state, finished=True)
    raise TypeError(f"Unknown action: {action!r}")


# --- machine -----------------------------------------------------------------


class SessionMachine:
    """Holds the authoritative navigation state behind one lock."""

    def __init__(
        self,
        test: Test,
        *,
        clock: Clock | None = None,
        responses: Mapping[str, Response] | None = None,
    ) -> None:
        self._clock = clock or RealClock()
        self._lock = threading.RLock()
        self._state = NavigationState(test=test, responses=dict(responses or {}))
        self._entered_at = self._clock.now()
        self._listeners: list[Callable[[NavigationState], None]] = []

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def subscribe(self, listener: Callable[[NavigationState], None]) -> None:
        self._listeners.append(listener)

    def dispatch(self, action: Action) -> NavigationState:
        with self._lock:
            before = self._state
            after = reduce(before, action)
            if after is before:
                return before
            self._state = after
            if after.position != before.position:
                self._entered_at = self._clock.now()
            if after.finished and not before.finished:
                logger.info("Attempt %s reached its end", after.test.id)
        for listener in list(self._listeners):
            listener(after)
        return after

    def totals(self) -> RunningTotals:
        return running_totals(self._state.responses)

    def next(self) -> NavigationState:
        return self.dispatch(Next())

    def prev(self) -> NavigationState:
        return self.dispatch(Prev())

    def go_to(self, section_index: int, question_index: int) -> NavigationState:
        return self.dispatch(GoTo(section_index, question_index))

    def finish(self) -> NavigationState:
        return self.dispatch(Finish())

    def toggle_bookmark(self, question_id: str | None = None) -> NavigationState:
        if question_id is None:
            question = self._state.current_question()
            if question is None:
                return self._state
            question_id = question.id
        return self.dispatch(ToggleBookmark(question_id))

    def set_response(self, raw: str | None, question_id: str | None = None) -> NavigationState:
        """Record an answer (default: the current question) after filtering input."""
        with self._lock:
            if question_id is None:
                question = self._state.current_question()
                if question is None:
                    return self._state
                question_id = question.id
            time_spent = round(self._clock.now() - self._entered_at, 3)
        return self.dispatch(
            SetResponse(
                question_id=question_id,
                answer=sanitize_answer(raw),
                answered_at=datetime.now(timezone.utc),
                time_spent=time_spent,
            )
        )
