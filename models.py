from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List


class TestMode(str, enum.Enum):
    __test__ = False

    PRACTICE = "practice"
    TEST = "test"


class TestStatus(str, enum.Enum):
    __test__ = False

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SectionType(str, enum.Enum):
    ADDITION_SUBTRACTION = "addition_subtraction"
    MULTIPLICATION = "multiplication"
    EXTRAS = "extras"


@dataclass(frozen=True)
class Question:
    id: str
    section_id: str
    question_number: int  # global, 1-based
    expression: str
    correct_answer: int
    is_bookmarked: bool = False


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    type: SectionType
    questions: tuple[Question, ...]
    is_locked: bool = False
    is_completed: bool = False
    progress: float = 0.0

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class Test:
    __test__ = False

    id: str
    name: str
    mode: TestMode
    practice_sheet_id: str
    sections: tuple[Section, ...]
    time_limit: int | None
    created_at: datetime
    status: TestStatus = TestStatus.NOT_STARTED

    @property
    def total_questions(self) -> int:
        return sum(section.question_count for section in self.sections)

    def questions(self) -> List[Question]:
        return [q for section in self.sections for q in section.questions]

    def find_question(self, question_id: str) -> Question | None:
        for section in self.sections:
            for question in section.questions:
                if question.id == question_id:
                    return question
        return None


@dataclass(frozen=True)
class Response:
    question_id: str
    user_answer: str | None
    is_correct: bool | None = None
    answered_at: datetime | None = None
    time_spent: float | None = None  # seconds

    @property
    def is_answered(self) -> bool:
        return self.user_answer is not None and self.user_answer != ""


@dataclass(frozen=True)
class IntervalStats:
    interval_number: int
    start_time: int
    end_time: int
    questions_attempted: int
    correct: int
    incorrect: int
    avg_time_per_question: float


@dataclass(frozen=True)
class SectionResult:
    section_id: str
    section_name: str
    section_type: SectionType
    total: int
    attempted: int
    correct: int
    accuracy: float


@dataclass
class TestResult:
    __test__ = False

    test_id: str
    total_questions: int
    attempted: int
    correct: int
    incorrect: int
    unanswered: int
    score: float
    time_taken: int
    section_results: List[SectionResult]
    completed_at: datetime
    intervals: List[IntervalStats] = field(default_factory=list)


Responses = Dict[str, Response]

# longest answer kept; matches session_responses.user_answer
MAX_ANSWER_LENGTH = 32
