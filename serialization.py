from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from models import (
    IntervalStats,
    Question,
    Response,
    Responses,
    Section,
    SectionResult,
    SectionType,
    Test,
    TestMode,
    TestResult,
    TestStatus,
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def serialize_question(question: Question) -> dict[str, Any]:
    return {
        "id": question.id,
        "sectionId": question.section_id,
        "questionNumber": question.question_number,
        "expression": question.expression,
        "correctAnswer": question.correct_answer,
        "isBookmarked": question.is_bookmarked,
    }


def serialize_section(section: Section) -> dict[str, Any]:
    return {
        "id": section.id,
        "name": section.name,
        "type": section.type.value,
        "questions": [serialize_question(q) for q in section.questions],
        "isLocked": section.is_locked,
        "isCompleted": section.is_completed,
        "progress": section.progress,
        "questionCount": section.question_count,
    }


def serialize_test(test: Test) -> dict[str, Any]:
    return {
        "id": test.id,
        "name": test.name,
        "mode": test.mode.value,
        "practiceSheetId": test.practice_sheet_id,
        "sections": [serialize_section(s) for s in test.sections],
        "totalQuestions": test.total_questions,
        "timeLimit": test.time_limit,
        "createdAt": _iso(test.created_at),
        "status": test.status.value,
    }


def deserialize_test(payload: Mapping[str, Any]) -> Test:
    sections = []
    for raw_section in payload.get("sections", []):
        questions = tuple(
            Question(
                id=q["id"],
                section_id=q.get("sectionId", raw_section["id"]),
                question_number=int(q["questionNumber"]),
                expression=q["expression"],
                correct_answer=int(q["correctAnswer"]),
                is_bookmarked=bool(q.get("isBookmarked", False)),
            )
            for q in raw_section.get("questions", [])
        )
        sections.append(
            Section(
                id=raw_section["id"],
                name=raw_section["name"],
                type=SectionType(raw_section.get("type", SectionType.ADDITION_SUBTRACTION.value)),
                questions=questions,
                is_locked=bool(raw_section.get("isLocked", False)),
                is_completed=bool(raw_section.get("isCompleted", False)),
                progress=float(raw_section.get("progress", 0)),
            )
        )
    return Test(
        id=payload["id"],
        name=payload["name"],
        mode=TestMode(payload["mode"]),
        practice_sheet_id=payload.get("practiceSheetId", ""),
        sections=tuple(sections),
        time_limit=payload.get("timeLimit"),
        created_at=_parse_dt(payload.get("createdAt")) or datetime.now().astimezone(),
        status=TestStatus(payload.get("status", TestStatus.NOT_STARTED.value)),
    )


def serialize_response(response: Response) -> dict[str, Any]:
    return {
        "questionId": response.question_id,
        "userAnswer": response.user_answer,
        "isCorrect": response.is_correct,
        "answeredAt": _iso(response.answered_at),
        "timeSpent": response.time_spent,
    }


def serialize_responses(responses: Responses) -> dict[str, dict[str, Any]]:
    return {question_id: serialize_response(r) for question_id, r in responses.items()}


def deserialize_response(question_id: str, payload: Mapping[str, Any]) -> Response:
    return Response(
        question_id=payload.get("questionId") or question_id,
        user_answer=payload.get("userAnswer"),
        is_correct=payload.get("isCorrect"),
        answered_at=_parse_dt(payload.get("answeredAt")),
        time_spent=payload.get("timeSpent"),
    )


def deserialize_responses(payload: Mapping[str, Mapping[str, Any]] | None) -> Responses:
    if not payload:
        return {}
    return {
        question_id: deserialize_response(question_id, raw)
        for question_id, raw in payload.items()
    }


def serialize_interval(interval: IntervalStats) -> dict[str, Any]:
    return {
        "intervalNumber": interval.interval_number,
        "startTime": interval.start_time,
        "endTime": interval.end_time,
        "questionsAttempted": interval.questions_attempted,
        "correct": interval.correct,
        "incorrect": interval.incorrect,
        "avgTimePerQuestion": interval.avg_time_per_question,
    }


def deserialize_intervals(payload: Iterable[Mapping[str, Any]] | None) -> list[IntervalStats]:
    if not payload:
        return []
    return [
        IntervalStats(
            interval_number=int(item["intervalNumber"]),
            start_time=int(item["startTime"]),
            end_time=int(item["endTime"]),
            questions_attempted=int(item["questionsAttempted"]),
            correct=int(item["correct"]),
            incorrect=int(item["incorrect"]),
            avg_time_per_question=float(item["avgTimePerQuestion"]),
        )
        for item in payload
    ]


def serialize_section_result(result: SectionResult) -> dict[str, Any]:
    return {
        "sectionId": result.section_id,
        "sectionName": result.section_name,
        "sectionType": result.section_type.value,
        "total": result.total,
        "attempted": result.attempted,
        "correct": result.correct,
        "accuracy": result.accuracy,
    }


def serialize_result(result: TestResult) -> dict[str, Any]:
    return {
        "testId": result.test_id,
        "totalQuestions": result.total_questions,
        "attempted": result.attempted,
        "correct": result.correct,
        "incorrect": result.incorrect,
        "unanswered": result.unanswered,
        "score": result.score,
        "timeTaken": result.time_taken,
        "sectionResults": [serialize_section_result(s) for s in result.section_results],
        "completedAt": _iso(result.completed_at),
        "intervals": [serialize_interval(i) for i in result.intervals],
    }


def deserialize_result(payload: Mapping[str, Any]) -> TestResult:
    return TestResult(
        test_id=payload["testId"],
        total_questions=int(payload["totalQuestions"]),
        attempted=int(payload["attempted"]),
        correct=int(payload["correct"]),
        incorrect=int(payload["incorrect"]),
        unanswered=int(payload["unanswered"]),
        score=float(payload["score"]),
        time_taken=int(payload["timeTaken"]),
        section_results=[
            SectionResult(
                section_id=item["sectionId"],
                section_name=item["sectionName"],
                section_type=SectionType(item["sectionType"]),
                total=int(item["total"]),
                attempted=int(item["attempted"]),
                correct=int(item["correct"]),
                accuracy=float(item["accuracy"]),
            )
            for item in payload.get("sectionResults", [])
        ],
        completed_at=_parse_dt(payload.get("completedAt")) or datetime.now().astimezone(),
        intervals=deserialize_intervals(payload.get("intervals")),
    )
