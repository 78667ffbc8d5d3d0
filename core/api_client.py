from __future__ import annotations

import logging
import os
from typing import Any, Iterable

import requests

from models import IntervalStats, Responses, Test, TestMode
from serialization import (
    deserialize_test,
    serialize_interval,
    serialize_responses,
)

log = logging.getLogger(__name__)

DEFAULT_SERVER_URL = os.environ.get("DRILL_SERVER_URL", "http://127.0.0.1:8000")


class ApiClient:
    """Thin HTTP client for the drill server. Non-2xx responses raise."""

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        token: str | None = None,
        timeout: float = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/test{path}"

    def list_practice_sheets(self) -> list[dict[str, Any]]:
        response = self.session.get(self._url("/practice-sheets"), timeout=self.timeout)
        response.raise_for_status()
        return response.json().get("sheets", [])

    def generate_test(
        self,
        mode: TestMode,
        practice_sheet_id: str,
        candidate_name: str,
    ) -> Test:
        response = self.session.post(
            self._url("/generate"),
            json={
                "mode": TestMode(mode).value,
                "practiceSheetId": practice_sheet_id,
                "candidateName": candidate_name,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        test = deserialize_test(response.json()["test"])
        log.info("Generated test %s (%d questions)", test.id, test.total_questions)
        return test

    def save_progress(
        self,
        test_id: str,
        responses: Responses,
        section_index: int,
        question_index: int,
    ) -> dict[str, Any]:
        response = self.session.post(
            self._url(f"/{test_id}/save"),
            json={
                "testId": test_id,
                "responses": serialize_responses(responses),
                "currentSectionIndex": section_index,
                "currentQuestionIndex": question_index,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def submit_test(
        self,
        test_id: str,
        responses: Responses,
        time_taken: int,
        intervals: Iterable[IntervalStats] | None = None,
    ) -> dict[str, Any]:
        """Submit an attempt; returns the server's result payload (camelCase)."""
        response = self.session.post(
            self._url(f"/{test_id}/submit"),
            json={
                "testId": test_id,
                "responses": serialize_responses(responses),
                "timeTaken": time_taken,
                "intervals": [serialize_interval(i) for i in intervals or []],
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()["result"]
