"""
Persistence shaper: normalized evaluations to flat database records.

Only serialization happens here. Structured feedback becomes compact JSON
text, strings are stored as they are, and null or empty values produced by
normalization pass through untouched.
"""

from typing import Any

from ytfeedback.core.models.evaluation import (
    NormalizedAbility,
    NormalizedAccuracy,
    NormalizedProject,
    StructuredFeedback,
)
from ytfeedback.core.models.records import ConceptEvaluationRecord, ProjectEvaluationRecord
from ytfeedback.core.utils.json_utils import to_json_text

__all__: list[str] = ["serialize_feedback", "shape_concept_record", "shape_project_record"]


def serialize_feedback(feedback: StructuredFeedback | str | None) -> str | None:
    """Structured feedback as JSON text with its prompt key names, text as-is."""
    if isinstance(feedback, StructuredFeedback):
        return to_json_text(feedback.to_external())
    return feedback


def shape_concept_record(
    *,
    email: str,
    project_name: str | None,
    page_name: str | None,
    video_url: str | None,
    accuracy: NormalizedAccuracy,
    ability: NormalizedAbility,
) -> ConceptEvaluationRecord:
    """
    Build the concept-video record from the accuracy and ability results.

    Args:
        email: Owner of the evaluation
        project_name: Project phase the video belongs to
        page_name: Title of the explained concept page
        video_url: Evaluated video
        accuracy: Normalized accuracy result
        ability: Normalized ability-to-explain result

    Returns:
        ConceptEvaluationRecord ready for insertion
    """
    return ConceptEvaluationRecord(
        email=email,
        project_name=project_name,
        page_name=page_name,
        video_url=video_url,
        accuracy_score=accuracy.score,
        accuracy_feedback=serialize_feedback(accuracy.feedback),
        ability_level=ability.level,
        ability_feedback=serialize_feedback(ability.feedback),
    )


def shape_project_record(
    *,
    email: str,
    project_name: str | None,
    video_url: str | None,
    project: NormalizedProject,
) -> ProjectEvaluationRecord:
    """Build the project-video record; the full evaluation is kept as JSON text."""
    evaluation: Any = project.evaluation
    return ProjectEvaluationRecord(
        email=email,
        project_name=project_name,
        video_url=video_url,
        evaluation_summary_text=project.summary_text,
        evaluation_feedback_text=project.feedback_text,
        evaluation_json=to_json_text(evaluation) if evaluation is not None else None,
    )
