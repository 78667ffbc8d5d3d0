"""Service layer for practice sheets (read-only question sets)."""
import logging
from dataclasses import dataclass

from fastapi import HTTPException

from api.utils import (
    read_json_file,
    sheet_path,
    sheets_dir,
    validate_id,
    validate_sheet_exists,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionItem:
    expression: str
    answer: int


@dataclass(frozen=True)
class QuestionSet:
    id: str
    name: str
    questions: tuple[QuestionItem, ...]


def _parse_question_set(sheet_id: str, payload: object) -> QuestionSet:
    """Build a question set from a sheet file payload."""
    if not isinstance(payload, dict):
        raise ValueError("sheet payload must be an object")
    raw_questions = payload.get("questions", [])
    if not isinstance(raw_questions, list):
        raise ValueError("questions must be a list")

    questions = []
    for index, item in enumerate(raw_questions, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"question {index} must be an object")
        expression = str(item.get("expression", "")).strip()
        if not expression:
            raise ValueError(f"question {index} has no expression")
        questions.append(QuestionItem(expression=expression, answer=int(item["answer"])))

    return QuestionSet(
        id=str(payload.get("id") or sheet_id),
        name=str(payload.get("name") or sheet_id),
        questions=tuple(questions),
    )


def load_question_set(sheet_id: str) -> QuestionSet:
    """Load a practice sheet by id; 404 if it does not exist."""
    sheet_id = validate_id("practiceSheetId", sheet_id)
    validate_sheet_exists(sheet_id)
    try:
        return _parse_question_set(sheet_id, read_json_file(sheet_path(sheet_id), {}))
    except (ValueError, KeyError, TypeError) as exc:
        logger.error(f"Practice sheet {sheet_id} is malformed: {exc}")
        raise HTTPException(status_code=500, detail="Practice sheet is malformed")


def list_question_sets() -> list[dict[str, object]]:
    """List available practice sheets with their question counts."""
    directory = sheets_dir()
    if not directory.is_dir():
        return []

    sheets = []
    for path in sorted(directory.glob("*.json")):
        try:
            question_set = _parse_question_set(path.stem, read_json_file(path, {}))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning(f"Skipping malformed practice sheet {path.name}: {exc}")
            continue
        sheets.append(
            {
                "id": path.stem,
                "name": question_set.name,
                "questionCount": len(question_set.questions),
            }
        )
    sheets.sort(key=lambda sheet: sheet["name"])
    return sheets
