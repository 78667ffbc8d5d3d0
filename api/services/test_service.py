"""Service layer for live test operations (autosave and submission)."""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from api.services import persistence_service
from api.services.session_store import LiveSession, SessionStore
from api.utils import utc_now
from core.navigation import section_progress
from core.scoring import score_test
from models import IntervalStats, Responses, TestMode, TestResult, TestStatus

logger = logging.getLogger(__name__)


def get_live_session(store: SessionStore, test_id: str) -> LiveSession:
    """Get a live test; 404 if it was never generated here or has expired."""
    live = store.get(test_id)
    if live is None:
        raise HTTPException(status_code=404, detail="Test not found")
    return live


def save_progress(
    store: SessionStore,
    test_id: str,
    responses: Responses,
    current_section_index: int,
    current_question_index: int,
) -> datetime:
    """Overwrite the working snapshot of a live test. Last write wins."""
    live = get_live_session(store, test_id)
    test = live.test

    sections = []
    for index, section in enumerate(test.sections):
        section = replace(section, progress=section_progress(section, responses))
        # sections behind the cursor are closed in exam mode
        if test.mode is TestMode.TEST and index < current_section_index:
            section = replace(section, is_locked=True, is_completed=True)
        sections.append(section)

    live.test = replace(test, sections=tuple(sections), status=TestStatus.IN_PROGRESS)
    live.responses = dict(responses)
    live.section_index = current_section_index
    live.question_index = current_question_index
    store.put(test_id, live)
    return utc_now()


def submit_test(
    store: SessionStore,
    test_id: str,
    responses: Responses,
    time_taken: int,
    intervals: Iterable[IntervalStats] | None = None,
    db: DbSession | None = None,
) -> TestResult:
    """
    Score a finished attempt and archive it when it belongs to a student.

    The result is returned even when archiving fails; the session row then
    stays in_progress and a retried submit can still complete it.
    """
    live = get_live_session(store, test_id)
    result = score_test(live.test, responses, time_taken, intervals)

    test = live.test
    live.test = replace(
        test,
        sections=tuple(
            replace(s, is_locked=True, is_completed=True, progress=100.0)
            for s in test.sections
        ),
        status=TestStatus.COMPLETED,
    )
    live.responses = dict(responses)
    store.put(test_id, live)

    if live.session_id and db is not None:
        try:
            persistence_service.complete_session(
                db, live.session_id, result, responses, test.questions()
            )
        except (SQLAlchemyError, LookupError):
            logger.exception(f"Failed to persist session {live.session_id} for test {test_id}")

    logger.info(
        f"Submitted test {test_id}: {result.correct}/{result.total_questions} correct, "
        f"score {result.score:.2f}"
    )
    return result
