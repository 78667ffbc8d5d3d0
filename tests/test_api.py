import pytest
from fastapi.testclient import TestClient
from jose import jwt

from api.app import app
from api.config import ALGORITHM, SECRET_KEY
from api.database import get_db
from api.models.db import SessionResponse
from api.services.session_store import get_session_store


def _auth(student_id: str = "student-1") -> dict[str, str]:
    token = jwt.encode({"sub": student_id}, SECRET_KEY, algorithm=ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(sheets_dir, session_factory, store):
    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_session_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _generate(client, mode="practice", headers=None) -> dict:
    response = client.post(
        "/api/test/generate",
        json={"mode": mode, "practiceSheetId": "aa-2", "candidateName": "Ada"},
        headers=headers or {},
    )
    assert response.status_code == 200, response.text
    return response.json()["test"]


def _answers(test: dict, values: list[str]) -> dict:
    questions = test["sections"][0]["questions"]
    return {
        q["id"]: {"questionId": q["id"], "userAnswer": value}
        for q, value in zip(questions, values)
    }


def test_practice_sheets_listed(client) -> None:
    response = client.get("/api/test/practice-sheets")
    assert response.status_code == 200
    assert response.json() == {"sheets": [{"id": "aa-2", "name": "AA-2", "questionCount": 4}]}


def test_generate_practice_test(client) -> None:
    test = _generate(client)
    assert test["mode"] == "practice"
    assert test["timeLimit"] is None
    assert test["status"] == "not_started"
    assert test["totalQuestions"] == 4
    numbers = [q["questionNumber"] for q in test["sections"][0]["questions"]]
    assert numbers == [1, 2, 3, 4]


def test_generate_exam_has_time_limit(client) -> None:
    test = _generate(client, mode="test")
    assert test["timeLimit"] == 3600


def test_generate_unknown_sheet_returns_404(client) -> None:
    response = client.post(
        "/api/test/generate",
        json={"mode": "practice", "practiceSheetId": "nope", "candidateName": "Ada"},
    )
    assert response.status_code == 404


def test_generate_rejects_blank_name_and_bad_mode(client) -> None:
    blank = client.post(
        "/api/test/generate",
        json={"mode": "practice", "practiceSheetId": "aa-2", "candidateName": "  "},
    )
    assert blank.status_code == 400
    bad_mode = client.post(
        "/api/test/generate",
        json={"mode": "exam", "practiceSheetId": "aa-2", "candidateName": "Ada"},
    )
    assert bad_mode.status_code == 422


def test_save_progress_then_fetch(client) -> None:
    test = _generate(client)
    response = client.post(
        f"/api/test/{test['id']}/save",
        json={
            "testId": test["id"],
            "responses": _answers(test, ["9", "6"]),
            "currentSectionIndex": 0,
            "currentQuestionIndex": 2,
        },
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["savedAt"]

    live = client.get(f"/api/test/{test['id']}").json()
    assert live["test"]["status"] == "in_progress"
    assert live["test"]["sections"][0]["progress"] == 50.0
    assert len(live["responses"]) == 2
    assert live["currentQuestionIndex"] == 2


def test_save_unknown_test_returns_404(client) -> None:
    response = client.post("/api/test/unknown/save", json={"responses": {}})
    assert response.status_code == 404


def test_save_with_mismatched_id_returns_400(client) -> None:
    test = _generate(client)
    response = client.post(f"/api/test/{test['id']}/save", json={"testId": "other"})
    assert response.status_code == 400


def test_submit_scores_on_server(client) -> None:
    test = _generate(client)
    answers = _answers(test, ["9", "5", "7"])
    # client flags are not trusted
    for item in answers.values():
        item["isCorrect"] = True

    response = client.post(
        f"/api/test/{test['id']}/submit",
        json={"responses": answers, "timeTaken": 95},
    )
    assert response.status_code == 200
    result = response.json()["result"]
    assert result["testId"] == test["id"]
    assert (result["attempted"], result["correct"], result["incorrect"], result["unanswered"]) == (3, 2, 1, 1)
    assert result["score"] == 50.0
    assert result["timeTaken"] == 95
    assert result["sectionResults"][0]["total"] == 4

    live = client.get(f"/api/test/{test['id']}").json()
    assert live["test"]["status"] == "completed"
    assert live["test"]["sections"][0]["isLocked"] is True


def test_submit_unknown_test_returns_404(client) -> None:
    response = client.post("/api/test/unknown/submit", json={"responses": {}, "timeTaken": 0})
    assert response.status_code == 404


def test_submit_rejects_negative_time(client) -> None:
    test = _generate(client)
    response = client.post(f"/api/test/{test['id']}/submit", json={"timeTaken": -1})
    assert response.status_code == 422


def test_submit_bounds_answer_length(client) -> None:
    test = _generate(client)
    too_long = client.post(
        f"/api/test/{test['id']}/submit",
        json={"responses": _answers(test, ["1" * 5000]), "timeTaken": 10},
    )
    assert too_long.status_code == 422

    response = client.post(
        f"/api/test/{test['id']}/submit",
        json={"responses": _answers(test, ["9" * 32]), "timeTaken": 10},
    )
    assert response.status_code == 200
    result = response.json()["result"]
    assert (result["attempted"], result["incorrect"]) == (1, 1)


def test_signed_in_attempt_is_archived_once(client, session_factory) -> None:
    headers = _auth()
    test = _generate(client, headers=headers)
    body = {
        "responses": _answers(test, ["9", "6", "7", "5"]),
        "timeTaken": 120,
        "intervals": [
            {
                "intervalNumber": 1,
                "startTime": 0,
                "endTime": 120,
                "questionsAttempted": 4,
                "correct": 4,
                "incorrect": 0,
                "avgTimePerQuestion": 30.0,
            }
        ],
    }
    first = client.post(f"/api/test/{test['id']}/submit", json=body)
    retry = client.post(f"/api/test/{test['id']}/submit", json=body)
    assert first.status_code == retry.status_code == 200
    assert first.json()["result"]["score"] == 100.0

    history = client.get("/api/progress/sessions", headers=headers).json()
    assert history["total"] == 1
    summary = history["sessions"][0]
    assert summary["score"] == 100.0
    assert summary["practiceSheetName"] == "AA-2"

    db = session_factory()
    try:
        assert db.query(SessionResponse).filter_by(session_id=summary["id"]).count() == 4
    finally:
        db.close()

    detail = client.get(f"/api/progress/sessions/{summary['id']}", headers=headers).json()
    assert [r["userAnswer"] for r in detail["responses"]] == ["9", "6", "7", "5"]
    assert detail["intervals"][0]["questionsAttempted"] == 4


def test_anonymous_attempt_is_not_archived(client) -> None:
    test = _generate(client)
    client.post(f"/api/test/{test['id']}/submit", json={"timeTaken": 1})
    history = client.get("/api/progress/sessions", headers=_auth()).json()
    assert history == {"sessions": [], "total": 0}


def test_history_requires_authentication(client) -> None:
    assert client.get("/api/progress/sessions").status_code == 401
    bad = client.get("/api/progress/sessions", headers={"Authorization": "Bearer junk"})
    assert bad.status_code == 401


def test_delete_session(client) -> None:
    headers = _auth()
    test = _generate(client, headers=headers)
    client.post(f"/api/test/{test['id']}/submit", json={"timeTaken": 1})
    session_id = client.get("/api/progress/sessions", headers=headers).json()["sessions"][0]["id"]

    assert client.delete(f"/api/progress/sessions/{session_id}", headers=_auth("other")).status_code == 404
    assert client.delete(f"/api/progress/sessions/{session_id}", headers=headers).status_code == 200
    assert client.get(f"/api/progress/sessions/{session_id}", headers=headers).status_code == 404
