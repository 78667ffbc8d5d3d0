"""Builds a live test from a practice sheet."""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from api import config
from api.services import persistence_service
from api.services.question_set_service import load_question_set
from api.services.session_store import LiveSession, SessionStore
from models import Question, Section, SectionType, Test, TestMode, TestStatus

logger = logging.getLogger(__name__)


def generate_test(
    store: SessionStore,
    mode: TestMode,
    practice_sheet_id: str,
    db: DbSession | None = None,
    student_id: str | None = None,
) -> Test:
    """
    Create a new attempt at a practice sheet.

    Args:
        store: Live session store the test is registered in
        mode: practice (untimed) or test (fixed time budget)
        practice_sheet_id: Sheet to draw questions from; 404 if unknown
        db: Database session, needed only for authenticated students
        student_id: Authenticated student; anonymous attempts are not archived
    """
    mode = TestMode(mode)
    question_set = load_question_set(practice_sheet_id)

    section_id = uuid.uuid4().hex
    questions = tuple(
        Question(
            id=uuid.uuid4().hex,
            section_id=section_id,
            question_number=index,
            expression=item.expression,
            correct_answer=item.answer,
        )
        for index, item in enumerate(question_set.questions, start=1)
    )
    section = Section(
        id=section_id,
        name=question_set.name,
        type=SectionType.ADDITION_SUBTRACTION,
        questions=questions,
    )
    test = Test(
        id=uuid.uuid4().hex,
        name=question_set.name,
        mode=mode,
        practice_sheet_id=practice_sheet_id,
        sections=(section,),
        time_limit=config.TEST_TIME_LIMIT_SECONDS if mode is TestMode.TEST else None,
        created_at=datetime.now(timezone.utc),
        status=TestStatus.NOT_STARTED,
    )

    live = LiveSession(test=test, student_id=student_id)
    if student_id and db is not None:
        try:
            live.session_id = persistence_service.create_session(
                db,
                student_id,
                practice_sheet_id,
                question_set.name,
                mode,
                test.total_questions,
            )
        except SQLAlchemyError:
            # the attempt still runs, it just will not show up in history
            logger.exception(f"Failed to create database session for test {test.id}")

    store.put(test.id, live)
    logger.info(
        f"Generated {mode.value} test {test.id} from sheet {practice_sheet_id} "
        f"({test.total_questions} questions)"
    )
    return test
