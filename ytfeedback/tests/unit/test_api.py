"""
Unit tests for the HTTP API.

Routes run against a real EvaluationService backed by a mocked repository
and a mocked model client factory.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from ytfeedback.api import create_app
from ytfeedback.config import Settings
from ytfeedback.core.errors import DatabaseError, UpstreamModelError
from ytfeedback.database.repository import EvaluationRepository
from ytfeedback.evaluation.service import EvaluationService


@pytest.fixture
def repository():
    repo = AsyncMock(spec=EvaluationRepository)
    repo.save_concept_evaluation.return_value = 1
    repo.save_project_evaluation.return_value = 2
    return repo


@pytest.fixture
def llm_client():
    client = MagicMock()
    client.evaluate_video = AsyncMock(return_value='{"Ability to explain": [{"Ability to explain": "Expert"}]}')
    return client


@pytest.fixture
def client(monkeypatch, repository, llm_client):
    monkeypatch.setenv("GEMINI_API_KEY", "server-key")
    monkeypatch.setenv("LLM_PROVIDER", "gemini")
    service = EvaluationService(repository, Settings(), client_factory=MagicMock(return_value=llm_client))
    return TestClient(create_app(service=service), raise_server_exceptions=False)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "time" in response.json()


class TestEvaluateRoute:
    def test_evaluate_returns_raw_and_parsed(self, client):
        response = client.post("/evaluate", json={"videoUrl": "https://youtu.be/abc", "evaluationType": "ability"})

        assert response.status_code == 200
        body = response.json()
        assert body["parsed"] == {"Ability to explain": [{"Ability to explain": "Expert"}]}
        assert body["raw"] == body["text"]

    def test_missing_video_url_is_400(self, client):
        response = client.post("/evaluate", json={"videoDetails": "x"})

        assert response.status_code == 400
        assert response.json() == {"error": "videoUrl is required"}

    def test_malformed_body_is_400(self, client):
        response = client.post("/evaluate", content="not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request")

    def test_upstream_failure_is_502(self, client, llm_client):
        llm_client.evaluate_video.side_effect = UpstreamModelError("API key not valid")

        response = client.post("/evaluate", json={"videoUrl": "v"})

        assert response.status_code == 502
        assert response.json() == {
            "error": "Upstream model API error",
            "message": "Upstream model API error: API key not valid",
        }

    def test_unexpected_failure_is_500(self, client, llm_client):
        llm_client.evaluate_video.side_effect = RuntimeError("boom")

        response = client.post("/evaluate", json={"videoUrl": "v"})

        assert response.status_code == 500
        assert response.json() == {"error": "boom"}


class TestStoreRoute:
    def test_store_concept(self, client, repository):
        response = client.post(
            "/store-evaluation",
            json={
                "userId": "u1",
                "userEmail": "student@example.com",
                "videoUrl": "https://youtu.be/abc",
                "videoType": "concept",
                "evaluationData": {"evaluation_result": {"accuracy": {"overallScore": 8}}},
            },
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "id": 1, "message": "Concept evaluation stored successfully"}
        record = repository.save_concept_evaluation.call_args.args[0]
        assert record.accuracy_score == 8

    def test_store_missing_email(self, client):
        response = client.post("/store-evaluation", json={"userId": "u1", "videoUrl": "v"})

        assert response.status_code == 400
        assert response.json() == {"error": "userEmail is required"}

    def test_store_database_failure_is_500(self, client, repository):
        repository.save_project_evaluation.side_effect = DatabaseError("Database error: connection refused")

        response = client.post(
            "/store-evaluation",
            json={"userId": "u1", "userEmail": "a@b.c", "videoUrl": "v", "evaluationData": {}},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Database error: connection refused"}


class TestStoredEvaluationRoutes:
    def test_concept_history(self, client, repository):
        repository.get_concept_history.return_value = [{"id": 3, "email": "a@b.c"}]

        response = client.get("/concept-history", params={"email": "a@b.c", "limit": 5, "offset": 10})

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": [{"id": 3, "email": "a@b.c"}]}
        repository.get_concept_history.assert_awaited_once_with("a@b.c", 5, 10)

    def test_project_history_requires_email(self, client):
        response = client.get("/project-history")

        assert response.status_code == 400
        assert response.json() == {"error": "Email parameter is required"}

    def test_get_evaluation(self, client, repository):
        repository.get_evaluation_by_id.return_value = {"id": 4, "evaluation_json": {"parameters": []}}

        response = client.get("/project-evaluation/4")

        assert response.status_code == 200
        assert response.json()["data"]["evaluation_json"] == {"parameters": []}

    def test_get_missing_evaluation_is_404(self, client, repository):
        repository.get_evaluation_by_id.return_value = None

        response = client.get("/concept-evaluation/404")

        assert response.status_code == 404
        assert response.json() == {"error": "Concept evaluation not found"}

    def test_non_integer_id_is_400(self, client):
        response = client.get("/concept-evaluation/abc")

        assert response.status_code == 400

    def test_delete_evaluation(self, client, repository):
        repository.delete_evaluation.return_value = True

        response = client.delete("/project-evaluation/8")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Project evaluation deleted successfully"}

    def test_stats(self, client, repository):
        stats = {"email": "a@b.c", "concept_count": 1, "project_count": 0, "total": 1, "average_accuracy": 90.0}
        repository.get_evaluation_stats.return_value = stats

        response = client.get("/stats", params={"email": "a@b.c"})

        assert response.json() == {"success": True, "data": stats}
