"""Live test endpoints: generation, autosave and submission."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import get_optional_student
from api.models import (
    GenerateTestRequest,
    ResponsePayload,
    SaveProgressRequest,
    SaveProgressResponse,
    SubmitTestRequest,
)
from api.services.generator_service import generate_test
from api.services.question_set_service import list_question_sets
from api.services.session_store import SessionStore, get_session_store
from api.services.test_service import get_live_session, save_progress, submit_test
from api.utils import validate_id
from models import Responses
from serialization import (
    deserialize_intervals,
    deserialize_responses,
    serialize_responses,
    serialize_result,
    serialize_test,
)

router = APIRouter(prefix="/api/test", tags=["tests"])


def _responses(payload: dict[str, ResponsePayload]) -> Responses:
    return deserialize_responses(
        {question_id: item.model_dump() for question_id, item in payload.items()}
    )


def _check_body_id(test_id: str, body_id: str | None) -> None:
    if body_id and body_id != test_id:
        raise HTTPException(status_code=400, detail="Mismatched testId")


@router.get("/practice-sheets")
def get_practice_sheets() -> dict[str, object]:
    """List the practice sheets a test can be generated from."""
    return {"sheets": list_question_sets()}


@router.post("/generate")
def create_test(
    payload: GenerateTestRequest,
    store: Annotated[SessionStore, Depends(get_session_store)],
    db: Annotated[DbSession, Depends(get_db)],
    student_id: Annotated[str | None, Depends(get_optional_student)],
) -> dict[str, object]:
    """Generate a new attempt at a practice sheet."""
    sheet_id = validate_id("practiceSheetId", payload.practiceSheetId)
    if not payload.candidateName.strip():
        raise HTTPException(status_code=400, detail="Candidate name is required")

    test = generate_test(store, payload.mode, sheet_id, db=db, student_id=student_id)
    return {"test": serialize_test(test)}


@router.get("/{test_id}")
def get_test(
    test_id: str,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> dict[str, object]:
    """Get a live test with its last saved responses."""
    test_id = validate_id("testId", test_id)
    live = get_live_session(store, test_id)
    return {
        "test": serialize_test(live.test),
        "responses": serialize_responses(live.responses),
        "currentSectionIndex": live.section_index,
        "currentQuestionIndex": live.question_index,
    }


@router.post("/{test_id}/save", response_model=SaveProgressResponse)
def save_test_progress(
    test_id: str,
    payload: SaveProgressRequest,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> dict[str, object]:
    """Autosave the working snapshot of an attempt."""
    test_id = validate_id("testId", test_id)
    _check_body_id(test_id, payload.testId)

    saved_at = save_progress(
        store,
        test_id,
        _responses(payload.responses),
        payload.currentSectionIndex,
        payload.currentQuestionIndex,
    )
    return {"success": True, "savedAt": saved_at}


@router.post("/{test_id}/submit")
def submit(
    test_id: str,
    payload: SubmitTestRequest,
    store: Annotated[SessionStore, Depends(get_session_store)],
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Score a finished attempt and archive it."""
    test_id = validate_id("testId", test_id)
    _check_body_id(test_id, payload.testId)

    intervals = None
    if payload.intervals is not None:
        intervals = deserialize_intervals([item.model_dump() for item in payload.intervals])

    result = submit_test(
        store,
        test_id,
        _responses(payload.responses),
        payload.timeTaken,
        intervals,
        db=db,
    )
    return {"result": serialize_result(result)}
