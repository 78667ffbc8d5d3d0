"""Pydantic models."""
from api.models.tests import (
    GenerateTestRequest,
    IntervalPayload,
    ResponsePayload,
    SaveProgressRequest,
    SaveProgressResponse,
    SubmitTestRequest,
)

__all__ = [
    "GenerateTestRequest",
    "IntervalPayload",
    "ResponsePayload",
    "SaveProgressRequest",
    "SaveProgressResponse",
    "SubmitTestRequest",
]
