from types import SimpleNamespace

import pytest

from app.api.routes import quiz as quiz_routes
from app.core.errors import NotFoundError
from app.schemas.quiz import QuizCreateRequest


ALICE = {"X-User-Id": "u-alice", "X-User-Name": "Alice"}
BOB = {"X-User-Id": "u-bob"}

SAFETY_101 = {
    "title": "Safety 101",
    "description": "Shop floor basics",
    "questions": [
        {
            "prompt": "What do you wear on the shop floor?",
            "options": [{"text": "Helmet", "is_correct": True}, {"text": "Sandals"}],
        },
        {
            "prompt": "Where is the fire exit?",
            "options": [{"text": "Roof"}, {"text": "Marked door", "is_correct": True}, {"text": "Basement"}],
        },
    ],
}


def _create(client, payload=SAFETY_101):
    res = client.post("/api/quizzes", json=payload)
    assert res.status_code == 200, res.text
    return res.json()["data"]


def test_create_rejects_blank_title(client):
    res = client.post("/api/quizzes", json={**SAFETY_101, "title": "   "})
    assert res.status_code == 400
    error = res.json()["error"]
    assert (error["code"], error["message"]) == ("VALIDATION_ERROR", "Quiz title is required.")
    assert client.get("/api/quizzes").json()["data"] == []


def test_create_list_and_get(client):
    quiz = _create(client)
    assert quiz["title"] == "Safety 101"
    assert [len(q["options"]) for q in quiz["questions"]] == [2, 3]
    assert quiz["questions"][0]["options"][0]["is_correct"] is True

    listed = client.get("/api/quizzes").json()["data"]
    assert [q["id"] for q in listed] == [quiz["id"]]

    fetched = client.get(f"/api/quizzes/{quiz['id']}").json()["data"]
    assert fetched == quiz


def test_unknown_quiz_is_404(client):
    res = client.get("/api/quizzes/4040")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


def test_attempts_require_identity(client):
    quiz = _create(client)
    res = client.post(f"/api/quizzes/{quiz['id']}/attempts")
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Not identified"


def test_take_quiz_end_to_end(client):
    quiz = _create(client)
    q1, q2 = quiz["questions"]

    res = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=ALICE)
    assert res.status_code == 200
    attempt = res.json()["data"]
    assert attempt["state"] == "in_progress"
    assert attempt["total_questions"] == 2
    assert all(o["is_correct"] is None for q in attempt["questions"] for o in q["options"])
    attempt_url = f"/api/attempts/{attempt['attempt_id']}"

    res = client.put(
        f"{attempt_url}/answers",
        json={"question_id": q1["id"], "option_id": q1["options"][0]["id"]},
        headers=ALICE,
    )
    assert res.json()["data"]["answered_count"] == 1
    assert res.json()["data"]["progress_percent"] == 50

    res = client.post(f"{attempt_url}/submit", headers=ALICE)
    assert res.status_code == 400
    assert "1 unanswered" in res.json()["error"]["message"]

    # another user cannot see or touch the attempt
    assert client.get(attempt_url, headers=BOB).status_code == 404

    client.put(
        f"{attempt_url}/answers",
        json={"question_id": str(q2["id"]), "option_id": q2["options"][0]["id"]},
        headers=ALICE,
    )
    res = client.post(f"{attempt_url}/submit", headers=ALICE)
    assert res.status_code == 200
    result = res.json()["data"]
    assert (result["score"], result["total_questions"], result["percentage"]) == (1, 2, 50)
    assert result["persisted"] is True

    res = client.post(f"{attempt_url}/submit", headers=ALICE)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "INVALID_STATE"

    view = client.get(attempt_url, headers=ALICE).json()["data"]
    assert view["state"] == "submitted"
    assert view["result"]["score"] == 1


def test_answer_for_foreign_question_is_404(client):
    quiz = _create(client)
    attempt = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=ALICE).json()["data"]
    res = client.put(
        f"/api/attempts/{attempt['attempt_id']}/answers",
        json={"question_id": 987654, "option_id": 1},
        headers=ALICE,
    )
    assert res.status_code == 404


def test_quiz_create_route_function_calls_service(monkeypatch):
    captured = {}

    def _fake_create(gateway, *, title, description, questions):
        captured.update(title=title, description=description, questions=questions)
        raise NotFoundError("stop here")

    monkeypatch.setattr(quiz_routes, "create_quiz", _fake_create)
    req = SimpleNamespace(state=SimpleNamespace(request_id="test"))
    payload = QuizCreateRequest(title="T", questions=[{"prompt": "P", "options": []}])

    with pytest.raises(NotFoundError):
        quiz_routes.quiz_create(request=req, payload=payload, gateway=object())

    assert captured["title"] == "T"
    assert captured["description"] is None
    assert captured["questions"][0].prompt == "P"


def test_quiz_list_route_function_wraps_envelope(monkeypatch):
    monkeypatch.setattr(
        quiz_routes,
        "list_quizzes",
        lambda gateway: [{"id": 3, "title": "Fire drill", "description": "", "created_at": None}],
    )
    req = SimpleNamespace(state=SimpleNamespace(request_id="rid-1"))

    out = quiz_routes.quiz_list(request=req, gateway=object())

    assert out["request_id"] == "rid-1"
    assert out["error"] is None
    assert out["data"] == [{"id": 3, "title": "Fire drill", "description": "", "created_at": None}]


def test_null_option_is_rejected(client):
    quiz = _create(client)
    q1 = quiz["questions"][0]
    attempt = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=ALICE).json()["data"]
    attempt_url = f"/api/attempts/{attempt['attempt_id']}"

    res = client.put(f"{attempt_url}/answers", json={"question_id": q1["id"], "option_id": None}, headers=ALICE)
    assert res.status_code == 422
    res = client.put(f"{attempt_url}/answers", json={"question_id": q1["id"]}, headers=ALICE)
    assert res.status_code == 422

    assert client.get(attempt_url, headers=ALICE).json()["data"]["answered_count"] == 0
    assert client.post(f"{attempt_url}/submit", headers=ALICE).status_code == 400
