"""Pydantic models shared across ytfeedback."""

from ytfeedback.core.models.evaluation import (
    EvaluationKind,
    EvaluationShape,
    ExtractedResponse,
    LegacyFeedback,
    NormalizedAbility,
    NormalizedAccuracy,
    NormalizedProject,
    NormalizerKind,
    ProjectParameter,
    StructuredFeedback,
)
from ytfeedback.core.models.records import ConceptEvaluationRecord, ProjectEvaluationRecord
from ytfeedback.core.models.requests import EvaluationRequest, StoreEvaluationRequest

__all__: list[str] = [
    "EvaluationKind",
    "EvaluationShape",
    "ExtractedResponse",
    "LegacyFeedback",
    "NormalizedAbility",
    "NormalizedAccuracy",
    "NormalizedProject",
    "NormalizerKind",
    "ProjectParameter",
    "StructuredFeedback",
    "ConceptEvaluationRecord",
    "ProjectEvaluationRecord",
    "EvaluationRequest",
    "StoreEvaluationRequest",
]
