"""Evaluation storage: engine client, record shaping and repository."""

from ytfeedback.database.client import FeedbackDBClient
from ytfeedback.database.repository import EvaluationRepository
from ytfeedback.database.shaper import serialize_feedback, shape_concept_record, shape_project_record

__all__ = [
    "FeedbackDBClient",
    "EvaluationRepository",
    "serialize_feedback",
    "shape_concept_record",
    "shape_project_record",
]
