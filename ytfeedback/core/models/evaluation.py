"""Evaluation data models.

Internally the feedback questions are plain named fields; the prompt's
punctuated key names only appear as aliases, used when reading model output
and when writing JSON text back out for storage.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from ytfeedback.core.utils.constants import IMPROVEMENTS_KEY, NEXT_STEPS_KEY, STRENGTHS_KEY
from ytfeedback.core.utils.json_utils import to_json_text

__all__: list[str] = [
    "EvaluationKind",
    "NormalizerKind",
    "EvaluationShape",
    "ExtractedResponse",
    "StructuredFeedback",
    "LegacyFeedback",
    "ProjectParameter",
    "NormalizedAccuracy",
    "NormalizedAbility",
    "NormalizedProject",
]


class EvaluationKind(str, Enum):
    """Video type, which decides the target table."""
    CONCEPT = "concept"
    PROJECT = "project"


class NormalizerKind(str, Enum):
    """Which normalized structure to extract from a model response."""
    ACCURACY = "accuracy"
    ABILITY = "ability"
    PROJECT = "project"


class EvaluationShape(str, Enum):
    """Response shape the normalizer recognized."""
    STRUCTURED = "structured"
    LEGACY_CRITERIA = "legacy-criteria"
    LEGACY_OVERALL = "legacy-overall"
    LEGACY_TEXT = "legacy-text"
    NONE = "none"


class ExtractedResponse(BaseModel):
    """Raw model output plus the best-effort parsed JSON value."""

    raw: str = ""
    parsed: Any = None

    def to_payload(self) -> dict[str, Any]:
        """Response body for the evaluate endpoint."""
        return {"raw": self.raw, "text": self.raw, "parsed": self.parsed}


def _as_text(value: Any) -> Any:
    """Render non-string feedback values (numbers, lists, objects) as text."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (dict, list, bool)):
        return to_json_text(value)
    return str(value)


_FEEDBACK_FIELD_NAMES = frozenset({"strengths", "improvements", "next_steps"})


class StructuredFeedback(BaseModel):
    """Answers to the three prompted feedback questions."""

    strengths: str | None = Field(None, alias=STRENGTHS_KEY)
    improvements: str | None = Field(None, alias=IMPROVEMENTS_KEY)
    next_steps: str | None = Field(None, alias=NEXT_STEPS_KEY)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # Model output as received; the typed fields above are its text rendering
    _source: dict[str, Any] | None = PrivateAttr(default=None)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)

    @model_validator(mode="wrap")
    @classmethod
    def keep_source(cls, data: Any, handler: Any) -> Any:
        feedback = handler(data)
        if isinstance(data, dict) and not _FEEDBACK_FIELD_NAMES.intersection(data):
            feedback._source = dict(data)
        return feedback

    @classmethod
    def matches(cls, data: Any) -> bool:
        """True when *data* carries at least one non-empty question answer."""
        if not isinstance(data, dict):
            return False
        return any(data.get(key) for key in (STRENGTHS_KEY, IMPROVEMENTS_KEY, NEXT_STEPS_KEY))

    def to_external(self) -> dict[str, Any]:
        """The feedback object with the prompt's key names and original values.

        Feedback read from model output is returned exactly as it arrived;
        feedback built from field names is dumped by alias, keeping only the
        keys that were set.
        """
        if self._source is not None:
            return dict(self._source)
        data = self.model_dump(by_alias=True, exclude_unset=True)
        for key, value in (self.model_extra or {}).items():
            data.setdefault(key, value)
        return data


class LegacyFeedback(BaseModel):
    """Older good/bad/ugly feedback shape."""

    good: str | None = None
    bad: str | None = None
    ugly: str | None = None

    model_config = ConfigDict(extra="allow")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class ProjectParameter(BaseModel):
    """One weighted rubric parameter of a project evaluation."""

    name: str = ""
    weightage: float | str | None = None
    level: str = ""
    feedback: Union[StructuredFeedback, LegacyFeedback] = Field(default_factory=LegacyFeedback)

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    @field_validator("name", "level", mode="before")
    @classmethod
    def label_text(cls, v: Any) -> Any:
        return "" if v is None else _as_text(v)

    @field_validator("weightage", mode="before")
    @classmethod
    def weightage_value(cls, v: Any) -> Any:
        if isinstance(v, (dict, list, bool)):
            return _as_text(v)
        return v

    @field_validator("feedback", mode="before")
    @classmethod
    def classify_feedback(cls, v: Any) -> StructuredFeedback | LegacyFeedback:
        """Pick the feedback shape from the keys present, never by trial validation."""
        if isinstance(v, (StructuredFeedback, LegacyFeedback)):
            return v
        if not isinstance(v, dict):
            return LegacyFeedback()
        if StructuredFeedback.matches(v):
            return StructuredFeedback.model_validate(v)
        return LegacyFeedback.model_validate(v)


class NormalizedAccuracy(BaseModel):
    """Accuracy score (0-100 structured, 1-10 legacy) and its feedback."""

    score: float | None = None
    feedback: Union[StructuredFeedback, str] = ""
    shape: EvaluationShape = EvaluationShape.NONE


class NormalizedAbility(BaseModel):
    """Ability-to-explain level label and its feedback."""

    level: str = ""
    feedback: Union[StructuredFeedback, str] = ""
    shape: EvaluationShape = EvaluationShape.NONE


class NormalizedProject(BaseModel):
    """Project evaluation plus the derived summary and feedback text."""

    evaluation: Any = None
    parameters: list[ProjectParameter] = Field(default_factory=list)
    summary_text: str = ""
    feedback_text: str = ""
    shape: EvaluationShape = EvaluationShape.NONE
