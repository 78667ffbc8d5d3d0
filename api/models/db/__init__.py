"""Database models."""
from api.models.db.practice_session import PracticeSession, SessionResponse, SessionStatus

__all__ = [
    "PracticeSession",
    "SessionResponse",
    "SessionStatus",
]
