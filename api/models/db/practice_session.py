"""
PracticeSession and SessionResponse database models for archived attempts.
"""

from __future__ import annotations

import enum
import json
import uuid
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.database import Base
from models import MAX_ANSWER_LENGTH


class SessionStatus(str, enum.Enum):
    """Status of an archived attempt."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


def _load_json_list(raw: str | None) -> list[dict[str, Any]]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return []
    return value if isinstance(value, list) else []


class PracticeSession(Base):
    """
    One attempt of one student at one practice sheet.
    Created in_progress at generation time, completed at submission.
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, index=True, default=lambda: uuid.uuid4().hex
    )

    # References
    student_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    practice_sheet_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    practice_sheet_name: Mapped[str] = mapped_column(String(200), nullable=False)
    mode: Mapped[str] = mapped_column(String(20), nullable=False)

    # Status and results
    status: Mapped[str] = mapped_column(
        String(20), default=SessionStatus.IN_PROGRESS.value, nullable=False, index=True
    )
    total_questions: Mapped[int] = mapped_column(default=0, nullable=False)
    attempted: Mapped[int] = mapped_column(default=0, nullable=False)
    correct: Mapped[int] = mapped_column(default=0, nullable=False)
    incorrect: Mapped[int] = mapped_column(default=0, nullable=False)
    unanswered: Mapped[int] = mapped_column(default=0, nullable=False)
    score: Mapped[float] = mapped_column(default=0.0, nullable=False)
    time_taken: Mapped[int] = mapped_column(default=0, nullable=False)  # seconds

    # Timing
    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    # Rollups (stored as JSON strings)
    section_results_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    intervals_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    responses: Mapped[list["SessionResponse"]] = relationship(
        "SessionResponse",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionResponse.question_number",
    )

    @property
    def section_results(self) -> list[dict[str, Any]]:
        return _load_json_list(self.section_results_json)

    @section_results.setter
    def section_results(self, value: list[dict[str, Any]] | None) -> None:
        self.section_results_json = json.dumps(value or [])

    @property
    def intervals(self) -> list[dict[str, Any]]:
        return _load_json_list(self.intervals_json)

    @intervals.setter
    def intervals(self, value: list[dict[str, Any]] | None) -> None:
        self.intervals_json = json.dumps(value or [])

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED.value

    def __repr__(self) -> str:
        return f"<PracticeSession(id='{self.id}', status='{self.status}', score={self.score})>"


class SessionResponse(Base):
    """
    Answer to a single question within an archived attempt.
    Carries a snapshot of the expression so history survives sheet edits.
    """

    __tablename__ = "session_responses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )

    question_number: Mapped[int] = mapped_column(nullable=False)
    expression: Mapped[str] = mapped_column(String(200), nullable=False)
    correct_answer: Mapped[int] = mapped_column(nullable=False)

    user_answer: Mapped[str | None] = mapped_column(String(MAX_ANSWER_LENGTH), nullable=True)
    is_correct: Mapped[bool | None] = mapped_column(nullable=True)
    answered_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    time_spent: Mapped[float | None] = mapped_column(nullable=True)  # seconds

    __table_args__ = (
        UniqueConstraint("session_id", "question_number", name="uq_session_question"),
    )

    session: Mapped["PracticeSession"] = relationship(
        "PracticeSession", back_populates="responses"
    )
