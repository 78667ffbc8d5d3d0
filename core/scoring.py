"""Scoring of captured responses against a test's answer key.

The same functions run on the server at submission time and on the client as a
fallback when submission fails, so both sides always agree on the numbers.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, Mapping

from models import IntervalStats, Response, SectionResult, Test, TestResult

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_answer(raw: str | None) -> int | None:
    """Parse the leading integer of an answer string, None if there is none."""
    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # over the interpreter's int string limit
        return None


def is_correct_answer(raw: str | None, correct_answer: int) -> bool | None:
    """Correctness of a raw answer; None for an empty answer."""
    if raw is None or raw == "":
        return None
    return parse_answer(raw) == correct_answer


def score_test(
    test: Test,
    responses: Mapping[str, Response],
    time_taken: int,
    intervals: Iterable[IntervalStats] | None = None,
    completed_at: datetime | None = None,
) -> TestResult:
    """Compute the result of an attempt.

    Correctness is recomputed from ``user_answer``; the ``is_correct`` flag
    carried by a response is ignored.
    """
    total_correct = 0
    total_attempted = 0
    section_results: list[SectionResult] = []

    for section in test.sections:
        section_correct = 0
        section_attempted = 0

        for question in section.questions:
            response = responses.get(question.id)
            if response is None or not response.is_answered:
                continue
            section_attempted += 1
            total_attempted += 1
            if parse_answer(response.user_answer) == question.correct_answer:
                section_correct += 1
                total_correct += 1

        section_results.append(
            SectionResult(
                section_id=section.id,
                section_name=section.name,
                section_type=section.type,
                total=section.question_count,
                attempted=section_attempted,
                correct=section_correct,
                accuracy=(
                    section_correct / section_attempted * 100
                    if section_attempted > 0
                    else 0.0
                ),
            )
        )

    total_questions = test.total_questions
    return TestResult(
        test_id=test.id,
        total_questions=total_questions,
        attempted=total_attempted,
        correct=total_correct,
        incorrect=total_attempted - total_correct,
        unanswered=total_questions - total_attempted,
        score=total_correct / total_questions * 100 if total_questions > 0 else 0.0,
        time_taken=time_taken,
        section_results=section_results,
        completed_at=completed_at or datetime.now(timezone.utc),
        intervals=list(intervals or []),
    )
