"""Flat database record shapes written by the persistence shaper."""

from typing import Any

from pydantic import BaseModel

__all__: list[str] = ["ConceptEvaluationRecord", "ProjectEvaluationRecord"]


class ConceptEvaluationRecord(BaseModel):
    """Row of ``concept_evaluations``."""

    email: str
    project_name: str | None = None
    page_name: str | None = None
    video_url: str | None = None
    accuracy_score: float | None = None
    accuracy_feedback: str | None = None
    ability_level: str | None = None
    ability_feedback: str | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump()


class ProjectEvaluationRecord(BaseModel):
    """Row of ``project_evaluations``."""

    email: str
    project_name: str | None = None
    video_url: str | None = None
    evaluation_summary_text: str | None = None
    evaluation_feedback_text: str | None = None
    evaluation_json: str | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump()
