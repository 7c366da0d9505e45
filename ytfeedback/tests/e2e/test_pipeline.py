"""
End-to-end pipeline tests: raw model text through extraction, normalization,
record shaping and the HTTP store route. Only the database is mocked.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from ytfeedback.api import create_app
from ytfeedback.config import Settings
from ytfeedback.core.models.evaluation import EvaluationShape, StructuredFeedback
from ytfeedback.database.repository import EvaluationRepository
from ytfeedback.database.shaper import shape_concept_record, shape_project_record
from ytfeedback.evaluation.service import EvaluationService
from ytfeedback.ingestion.extractor import ResponseExtractor
from ytfeedback.ingestion.normalizer import EvaluationNormalizer

FEEDBACK = {
    "What could you do well?": "Good",
    "What can you do better?": "X",
    "Next Suggested Deep Dive?": "Y",
}


def _pipeline(text, kind):
    extracted = ResponseExtractor().extract(text)
    return EvaluationNormalizer().normalize(kind, extracted)


class TestExtractNormalizeShape:
    def test_fenced_structured_accuracy_to_record(self):
        text = "```json\n" + json.dumps({"Accuracy Level": [{"Accuracy Level": "92%", "Feedback": FEEDBACK}]}) + "\n```"

        accuracy = _pipeline(text, "accuracy")
        record = shape_concept_record(
            email="student@example.com",
            project_name="Phase1",
            page_name="Grid",
            video_url="v",
            accuracy=accuracy,
            ability=_pipeline(text, "ability"),
        )

        assert accuracy.shape is EvaluationShape.STRUCTURED
        assert record.accuracy_score == 92
        assert json.loads(record.accuracy_feedback) == FEEDBACK
        assert record.ability_level == ""
        assert record.ability_feedback == ""

    def test_feedback_with_list_and_number_answers_kept_verbatim(self):
        feedback = {
            "What could you do well?": ["Clear intro", "Good pace"],
            "What can you do better?": "X",
            "Next Suggested Deep Dive?": 3,
        }
        text = json.dumps({"Accuracy Level": [{"Accuracy Level": "80%", "Feedback": feedback}]})

        record = shape_concept_record(
            email="e",
            project_name="p",
            page_name="q",
            video_url="v",
            accuracy=_pipeline(text, "accuracy"),
            ability=_pipeline(text, "ability"),
        )

        assert json.loads(record.accuracy_feedback) == feedback

    def test_empty_model_output(self):
        accuracy = _pipeline("", "accuracy")
        ability = _pipeline("", "ability")
        project = _pipeline("", "project")

        assert accuracy.score is None
        assert accuracy.feedback == ""
        assert ability.level == ""
        assert ability.feedback == ""
        # The extractor envelope itself is the only candidate left
        assert project.summary_text == ""
        assert project.feedback_text == ""
        assert project.shape is EvaluationShape.NONE

    def test_project_feedback_shapes_through_record(self):
        evaluation = {
            "parameters": [
                {"name": "A", "weightage": 50, "level": "Expert", "feedback": FEEDBACK},
                {"name": "B", "weightage": 50, "level": "Beginner", "feedback": {"good": "G", "bad": "B", "ugly": "U"}},
            ]
        }

        project = _pipeline(json.dumps(evaluation), "project")
        record = shape_project_record(email="e", project_name="p", video_url="v", project=project)

        assert isinstance(project.parameters[0].feedback, StructuredFeedback)
        assert record.evaluation_summary_text == "A (50%): Expert; B (50%): Beginner"
        assert "  ✓ What could you do well?: Good" in record.evaluation_feedback_text
        assert "  ✗ Bad: B" in record.evaluation_feedback_text
        assert json.loads(record.evaluation_json) == evaluation


class TestStoreThroughApi:
    """Store a frontend-style payload: the envelope returned by /evaluate is posted back."""

    @pytest.fixture
    def repository(self):
        repo = AsyncMock(spec=EvaluationRepository)
        repo.save_concept_evaluation.return_value = 101
        repo.save_project_evaluation.return_value = 202
        return repo

    @pytest.fixture
    def llm_client(self):
        return MagicMock()

    @pytest.fixture
    def client(self, monkeypatch, repository, llm_client):
        monkeypatch.setenv("GEMINI_API_KEY", "server-key")
        monkeypatch.setenv("LLM_PROVIDER", "gemini")
        service = EvaluationService(repository, Settings(), client_factory=MagicMock(return_value=llm_client))
        return TestClient(create_app(service=service))

    def test_evaluate_then_store_concept(self, client, repository, llm_client):
        llm_client.evaluate_video = AsyncMock(
            side_effect=[
                'Result: {"Accuracy Level": [{"Accuracy Level": "75 out of 100", "Feedback": "Mostly right"}]}',
                '{"Ability to explain": [{"Ability to explain": "Intermediate", "Structured Feedback": '
                + json.dumps(FEEDBACK)
                + "}]}",
            ]
        )

        accuracy = client.post("/evaluate", json={"videoUrl": "v", "evaluationType": "accuracy"}).json()
        ability = client.post("/evaluate", json={"videoUrl": "v", "evaluationType": "ability"}).json()

        response = client.post(
            "/store-evaluation",
            json={
                "userId": "u1",
                "userEmail": "student@example.com",
                "videoUrl": "v",
                "videoType": "concept",
                "selectedPhase": "Phase3",
                "selectedVideoTitle": "Promises",
                "evaluationData": {"evaluation_result": {"accuracy": accuracy, "abilityToExplain": ability}},
            },
        )

        assert response.status_code == 200
        assert response.json()["id"] == 101
        record = repository.save_concept_evaluation.call_args.args[0]
        assert record.accuracy_score == 75
        assert record.accuracy_feedback == "Mostly right"
        assert record.ability_level == "Intermediate"
        assert json.loads(record.ability_feedback) == FEEDBACK
        assert record.page_name == "Promises"

    def test_store_project_from_evaluate_envelope(self, client, repository, llm_client):
        evaluation = {"parameters": [{"name": "API", "weightage": 100, "level": "Advanced", "feedback": FEEDBACK}]}
        llm_client.evaluate_video = AsyncMock(return_value=json.dumps(evaluation))

        envelope = client.post("/evaluate", json={"videoUrl": "v", "evaluationType": "project"}).json()
        response = client.post(
            "/store-evaluation",
            json={
                "userId": "u1",
                "userEmail": "student@example.com",
                "videoUrl": "v",
                "videoType": "project",
                "evaluationData": {"evaluation_result": envelope},
            },
        )

        assert response.json() == {"success": True, "id": 202, "message": "Project evaluation stored successfully"}
        record = repository.save_project_evaluation.call_args.args[0]
        assert record.evaluation_summary_text == "API (100%): Advanced"
        assert json.loads(record.evaluation_json) == evaluation
