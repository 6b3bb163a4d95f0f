"""
Integration tests for the adaptive quiz HTTP API.

The app is built around an engine with in-memory collaborators, so these
run without a database.
"""

import pytest
from fastapi.testclient import TestClient

from adaptive_quiz.adaptive.engine import AdaptiveQuizEngine
from adaptive_quiz.api.main import create_app
from adaptive_quiz.repositories.memory import InMemoryResultStore

HEADERS = {"X-User-Id": "alice"}


@pytest.fixture
def client(quiz_engine):
    with TestClient(create_app(quiz_engine)) as test_client:
        yield test_client


def start(client, headers=HEADERS, **body):
    return client.post("/api/quizzes/adaptive/start", json=body, headers=headers)


def answer(client, session_id, question_id, selected=0, headers=HEADERS, time_spent=7):
    return client.post(
        "/api/quizzes/adaptive/answer",
        json={
            "session_id": session_id,
            "question_id": question_id,
            "selected_answer": selected,
            "time_spent": time_spent,
        },
        headers=headers,
    )


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "adaptive-quiz"

    def test_health_reports_sessions(self, client):
        start(client)

        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["components"]["active_sessions"] == 1
        assert data["components"]["database"] == "not_configured"

    def test_config(self, client):
        data = client.get("/config").json()
        assert data["min_questions"] == 5
        assert data["max_questions"] == 50
        assert data["passing_score"] == 70


class TestStartQuiz:
    def test_start(self, client):
        response = start(client, subject="python", question_count=5)

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"].startswith("adaptive_")
        assert data["current_difficulty"] == "medium"
        assert data["total_questions"] == 5
        assert data["current_question_number"] == 1
        assert data["question"]["subject"] == "python"
        assert "correct_index" not in data["question"]

    def test_requires_user_header(self, client):
        assert start(client, headers={}).status_code == 422

    def test_question_count_out_of_bounds(self, client):
        response = start(client, question_count=3)

        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "validation_error"

    def test_no_questions(self, client):
        response = start(client, subject="chemistry")

        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "no_questions_available"


class TestSubmitAnswer:
    def test_full_quiz(self, client):
        data = start(client, question_count=5).json()
        session_id, question_id = data["session_id"], data["question"]["id"]

        for number in range(2, 6):
            response = answer(client, session_id, question_id)
            assert response.status_code == 200
            body = response.json()
            assert body["completed"] is False
            assert body["current_question_number"] == number
            assert body["last_answer"]["is_correct"] is True
            question_id = body["next_question"]["id"]

        body = answer(client, session_id, question_id).json()
        assert body["completed"] is True
        assert body["completion_reason"] == "target_reached"
        assert body["next_question"] is None
        result = body["result"]
        assert result["score"] == 100
        assert result["passed"] is True
        assert result["is_adaptive"] is True
        assert result["adaptive_data"]["final_difficulty"] == "hard"
        assert len(result["adaptive_data"]["difficulty_progression"]) == 5

        page = client.get("/api/quizzes/results", headers=HEADERS).json()
        assert [r["id"] for r in page["results"]] == [result["id"]]
        assert page["pagination"] == {"current": 1, "pages": 1, "total": 1, "limit": 10}
        assert client.get("/api/quizzes/results", headers={"X-User-Id": "bob"}).json()["results"] == []

    def test_wrong_answer_feedback(self, client):
        data = start(client).json()

        body = answer(client, data["session_id"], data["question"]["id"], selected=2).json()
        assert body["last_answer"] == {
            "is_correct": False,
            "correct_index": 0,
            "explanation": f"Explanation for {data['question']['id']}",
        }

    def test_other_user_gets_not_found(self, client):
        data = start(client).json()

        response = answer(client, data["session_id"], data["question"]["id"], headers={"X-User-Id": "mallory"})
        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "not_found"

    def test_replay_is_rejected(self, client):
        data = start(client).json()
        answer(client, data["session_id"], data["question"]["id"])

        response = answer(client, data["session_id"], data["question"]["id"])
        assert response.status_code == 400

    def test_selected_answer_out_of_range(self, client):
        data = start(client).json()

        response = answer(client, data["session_id"], data["question"]["id"], selected=4)
        assert response.status_code == 422


def finish_quiz(client, headers=HEADERS, **start_body):
    data = start(client, headers=headers, question_count=5, **start_body).json()
    session_id, question_id = data["session_id"], data["question"]["id"]
    for _ in range(5):
        body = answer(client, session_id, question_id, headers=headers).json()
        if body["completed"]:
            return body["result"]
        question_id = body["next_question"]["id"]


class TestResults:
    def test_get_result(self, client):
        result = finish_quiz(client)

        response = client.get(f"/api/quizzes/results/{result['id']}", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["score"] == result["score"]

    def test_get_result_of_other_user(self, client):
        result = finish_quiz(client)

        response = client.get(f"/api/quizzes/results/{result['id']}", headers={"X-User-Id": "bob"})
        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "not_found"

    def test_get_unknown_result(self, client):
        response = client.get("/api/quizzes/results/missing", headers=HEADERS)
        assert response.status_code == 404

    def test_pages(self, client, clock):
        ids = []
        for _ in range(3):
            clock.advance(minutes=5)
            ids.append(finish_quiz(client)["id"])

        page = client.get("/api/quizzes/results", params={"page": 2, "limit": 2}, headers=HEADERS).json()
        assert [r["id"] for r in page["results"]] == [ids[0]]
        assert page["pagination"] == {"current": 2, "pages": 2, "total": 3, "limit": 2}

    def test_subject_filter(self, client):
        finish_quiz(client, subject="python")
        finish_quiz(client, subject="networking")

        page = client.get("/api/quizzes/results", params={"subject": "networking"}, headers=HEADERS).json()
        assert [r["subject"] for r in page["results"]] == ["networking"]
        assert page["pagination"]["total"] == 1

    def test_bad_page(self, client):
        response = client.get("/api/quizzes/results", params={"page": 0}, headers=HEADERS)
        assert response.status_code == 422

    def test_subjects(self, client):
        response = client.get("/api/quizzes/subjects", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == ["networking", "python"]

    def test_subjects_requires_user_header(self, client):
        assert client.get("/api/quizzes/subjects").status_code == 422


class FailingResultStore(InMemoryResultStore):
    def save(self, result):
        raise ConnectionError("results database unreachable")


def test_save_failure_returns_store_error(question_repo, settings, clock):
    engine = AdaptiveQuizEngine(question_repo, FailingResultStore(), settings=settings, clock=clock)

    with TestClient(create_app(engine)) as client:
        data = start(client, question_count=5).json()
        session_id, question_id = data["session_id"], data["question"]["id"]
        for _ in range(4):
            question_id = answer(client, session_id, question_id).json()["next_question"]["id"]

        response = answer(client, session_id, question_id)

    assert response.status_code == 503
    detail = response.json()["detail"]
    assert detail["kind"] == "store_error"
    assert detail["result"]["total_questions"] == 5
