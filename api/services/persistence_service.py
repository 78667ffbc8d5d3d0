"""Service layer for archived sessions using the SQL database."""
import json
import logging
from datetime import datetime
from typing import Any, Iterable, Mapping

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session as DbSession, selectinload

from api.database import transaction
from api.models.db.practice_session import PracticeSession, SessionResponse, SessionStatus
from core.scoring import is_correct_answer
from models import Question, Response, TestMode, TestResult
from serialization import serialize_interval, serialize_section_result

logger = logging.getLogger(__name__)


def create_session(
    db: DbSession,
    student_id: str | None,
    practice_sheet_id: str,
    practice_sheet_name: str,
    mode: TestMode,
    total_questions: int,
) -> str:
    """Insert an in_progress session row and return its id."""
    session = PracticeSession(
        student_id=student_id,
        practice_sheet_id=practice_sheet_id,
        practice_sheet_name=practice_sheet_name,
        mode=TestMode(mode).value,
        total_questions=total_questions,
        status=SessionStatus.IN_PROGRESS.value,
    )
    with transaction(db):
        db.add(session)
        db.flush()
        session_id = session.id
    return session_id


def _response_values(
    session_id: str,
    question: Question,
    response: Response | None,
) -> dict[str, Any]:
    user_answer = response.user_answer if response is not None else None
    return {
        "session_id": session_id,
        "question_number": question.question_number,
        "expression": question.expression,
        "correct_answer": question.correct_answer,
        "user_answer": user_answer or None,
        "is_correct": is_correct_answer(user_answer, question.correct_answer),
        "answered_at": response.answered_at if response is not None else None,
        "time_spent": response.time_spent if response is not None else None,
    }


_UPDATABLE = ("user_answer", "is_correct", "answered_at", "time_spent")


def _upsert_response(db: DbSession, values: dict[str, Any]) -> None:
    """Insert or update the row keyed by (session_id, question_number)."""
    dialect = db.get_bind().dialect.name
    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert

        stmt = insert(SessionResponse).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["session_id", "question_number"],
            set_={name: stmt.excluded[name] for name in _UPDATABLE},
        )
        db.execute(stmt)
        return

    existing = db.execute(
        select(SessionResponse).where(
            SessionResponse.session_id == values["session_id"],
            SessionResponse.question_number == values["question_number"],
        )
    ).scalar_one_or_none()
    if existing is None:
        db.add(SessionResponse(**values))
        db.flush()
        return
    for name in _UPDATABLE:
        setattr(existing, name, values[name])


def complete_session(
    db: DbSession,
    session_id: str,
    result: TestResult,
    responses: Mapping[str, Response],
    questions: Iterable[Question],
) -> None:
    """
    Record the final result and every per-question response atomically.

    Safe to call again with the same arguments: the session row is overwritten
    and response rows are upserted by question number.
    """
    with transaction(db):
        updated = db.execute(
            update(PracticeSession)
            .where(PracticeSession.id == session_id)
            .values(
                status=SessionStatus.COMPLETED.value,
                attempted=result.attempted,
                correct=result.correct,
                incorrect=result.incorrect,
                unanswered=result.unanswered,
                score=result.score,
                time_taken=result.time_taken,
                completed_at=result.completed_at,
                section_results_json=json.dumps(
                    [serialize_section_result(s) for s in result.section_results]
                ),
                intervals_json=json.dumps([serialize_interval(i) for i in result.intervals]),
            )
            .execution_options(synchronize_session=False)
        )
        if updated.rowcount == 0:
            raise LookupError(f"Session not found: {session_id}")

        for question in questions:
            _upsert_response(
                db, _response_values(session_id, question, responses.get(question.id))
            )
    db.expire_all()
    logger.info(f"Completed session {session_id}: score {result.score:.2f}")


def get_session(db: DbSession, session_id: str) -> PracticeSession | None:
    """Get session by ID."""
    return db.get(PracticeSession, session_id)


def get_session_detail(
    db: DbSession,
    session_id: str,
    student_id: str,
) -> PracticeSession | None:
    """Get a student's session with its responses loaded."""
    return db.execute(
        select(PracticeSession)
        .options(selectinload(PracticeSession.responses))
        .where(
            PracticeSession.id == session_id,
            PracticeSession.student_id == student_id,
        )
    ).scalar_one_or_none()


def list_completed_sessions(
    db: DbSession,
    student_id: str,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[PracticeSession], int]:
    """Completed sessions of a student, newest first, with the total count."""
    query = (
        select(PracticeSession)
        .where(
            PracticeSession.student_id == student_id,
            PracticeSession.status == SessionStatus.COMPLETED.value,
        )
        .order_by(PracticeSession.completed_at.desc())
        .limit(limit)
        .offset(offset)
    )
    total = db.execute(
        select(func.count(PracticeSession.id)).where(
            PracticeSession.student_id == student_id,
            PracticeSession.status == SessionStatus.COMPLETED.value,
        )
    ).scalar() or 0
    return list(db.execute(query).scalars().all()), total


def delete_session(db: DbSession, session_id: str, student_id: str) -> bool:
    """Delete a student's session and all its responses."""
    session = get_session(db, session_id)
    if session is None or session.student_id != student_id:
        return False

    with transaction(db):
        db.delete(session)
    return True


def abandon_stale_sessions(db: DbSession, cutoff: datetime) -> int:
    """Mark in_progress sessions started before ``cutoff`` as abandoned."""
    with transaction(db):
        result = db.execute(
            update(PracticeSession)
            .where(
                PracticeSession.status == SessionStatus.IN_PROGRESS.value,
                PracticeSession.started_at < cutoff,
            )
            .values(status=SessionStatus.ABANDONED.value)
            .execution_options(synchronize_session=False)
        )
    return result.rowcount or 0
