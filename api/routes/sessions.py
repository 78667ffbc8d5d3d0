"""Session history endpoints for authenticated students."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import get_current_student
from api.models.db import PracticeSession, SessionResponse
from api.services import persistence_service
from api.utils import validate_id

router = APIRouter(prefix="/api/progress", tags=["progress"])


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _session_summary(session: PracticeSession) -> dict[str, object]:
    return {
        "id": session.id,
        "practiceSheetId": session.practice_sheet_id,
        "practiceSheetName": session.practice_sheet_name,
        "mode": session.mode,
        "status": session.status,
        "totalQuestions": session.total_questions,
        "attempted": session.attempted,
        "correct": session.correct,
        "incorrect": session.incorrect,
        "unanswered": session.unanswered,
        "score": session.score,
        "timeTaken": session.time_taken,
        "startedAt": _iso(session.started_at),
        "completedAt": _iso(session.completed_at),
    }


def _response_row(row: SessionResponse) -> dict[str, object]:
    return {
        "questionNumber": row.question_number,
        "expression": row.expression,
        "correctAnswer": row.correct_answer,
        "userAnswer": row.user_answer,
        "isCorrect": row.is_correct,
        "answeredAt": _iso(row.answered_at),
        "timeSpent": row.time_spent,
    }


@router.get("/sessions")
def list_sessions(
    student_id: Annotated[str, Depends(get_current_student)],
    db: Annotated[DbSession, Depends(get_db)],
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> dict[str, object]:
    """List the student's completed sessions, newest first."""
    sessions, total = persistence_service.list_completed_sessions(
        db, student_id, limit=limit, offset=offset
    )
    return {
        "sessions": [_session_summary(s) for s in sessions],
        "total": total,
    }


@router.get("/sessions/{session_id}")
def get_session(
    session_id: str,
    student_id: Annotated[str, Depends(get_current_student)],
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Get one session with its per-question responses."""
    session_id = validate_id("sessionId", session_id)
    session = persistence_service.get_session_detail(db, session_id, student_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    detail = _session_summary(session)
    detail["sectionResults"] = session.section_results
    detail["intervals"] = session.intervals
    detail["responses"] = [_response_row(row) for row in session.responses]
    return detail


@router.delete("/sessions/{session_id}")
def delete_session(
    session_id: str,
    student_id: Annotated[str, Depends(get_current_student)],
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Delete a session and its responses."""
    session_id = validate_id("sessionId", session_id)
    if not persistence_service.delete_session(db, session_id, student_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "sessionId": session_id}
