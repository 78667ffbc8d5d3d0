"""Live-test Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, Field

from models import MAX_ANSWER_LENGTH, TestMode


class GenerateTestRequest(BaseModel):
    """Model for generating a new attempt."""

    mode: TestMode
    practiceSheetId: str = Field(..., min_length=1)
    candidateName: str = Field(..., min_length=1)


class ResponsePayload(BaseModel):
    """One captured answer, keyed by question id in the request."""

    questionId: str | None = None
    userAnswer: str | None = Field(None, max_length=MAX_ANSWER_LENGTH)
    isCorrect: bool | None = None
    answeredAt: datetime | None = None
    timeSpent: float | None = None


class IntervalPayload(BaseModel):
    """Checkpoint snapshot recorded by the client."""

    intervalNumber: int = Field(..., ge=1)
    startTime: int = Field(..., ge=0)
    endTime: int = Field(..., ge=0)
    questionsAttempted: int = Field(..., ge=0)
    correct: int = Field(..., ge=0)
    incorrect: int = Field(..., ge=0)
    avgTimePerQuestion: float = Field(..., ge=0)


class SaveProgressRequest(BaseModel):
    """Model for the periodic autosave."""

    testId: str | None = None
    responses: dict[str, ResponsePayload] = Field(default_factory=dict)
    currentSectionIndex: int = Field(0, ge=0)
    currentQuestionIndex: int = Field(0, ge=0)


class SaveProgressResponse(BaseModel):
    """Autosave acknowledgement."""

    success: bool
    savedAt: datetime


class SubmitTestRequest(BaseModel):
    """Model for submitting a finished attempt."""

    testId: str | None = None
    responses: dict[str, ResponsePayload] = Field(default_factory=dict)
    timeTaken: int = Field(..., ge=0)
    intervals: list[IntervalPayload] | None = None
