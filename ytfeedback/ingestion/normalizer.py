"""
Evaluation normalizer for ytfeedback.

Classifies a parsed model response into one of the known response shapes
and extracts typed fields from it. Shapes are tried in a fixed order; within
each shape the inner ``parsed`` object of an extractor envelope is inspected
before the envelope itself. Normalization never raises on malformed input:
whatever cannot be recovered is left null or empty and logged.
"""

import json
import logging
import math
import re
from typing import Any, Callable

from pydantic import ValidationError

from ytfeedback.core.models.evaluation import (
    EvaluationShape,
    ExtractedResponse,
    NormalizedAbility,
    NormalizedAccuracy,
    NormalizedProject,
    NormalizerKind,
    ProjectParameter,
    StructuredFeedback,
)
from ytfeedback.core.utils.constants import (
    ABILITY_TO_EXPLAIN_KEY,
    ACCURACY_LEVEL_KEY,
    FEEDBACK_KEY,
    IMPROVEMENTS_KEY,
    LEGACY_TEXT_FEEDBACK_FIELDS,
    LEGACY_TEXT_SCORE_FIELDS,
    LEGACY_TEXT_SECTIONS,
    MAX_LEGACY_SCORE,
    MIN_LEGACY_SCORE,
    NEXT_STEPS_KEY,
    STRENGTHS_KEY,
    STRUCTURED_FEEDBACK_KEY,
)
from ytfeedback.core.utils.json_utils import to_json_text

__all__: list[str] = [
    "EvaluationNormalizer",
    "extract_score",
    "clamp_legacy_score",
    "render_parameter_feedback",
    "render_parameter_summary",
]

logger = logging.getLogger(__name__)

_PERCENT_RE = re.compile(r"(\d+)\s*%")
_OUT_OF_100_RE = re.compile(r"(\d+)\s*(?:out of|/)\s*100")
# Longest numeric prefix, the way a browser's parseFloat reads "7.5 (good)"
_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")

NOT_AVAILABLE = "N/A"


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _format_number(value: Any) -> str:
    """Render a number without a trailing ``.0`` for integral values."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return "" if value is None else str(value)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None or value is False:
        return ""
    if isinstance(value, (dict, list)):
        return to_json_text(value)
    return _format_number(value)


def extract_score(text: str) -> float | None:
    """
    Extract a 0-100 score from an accuracy label.

    Tries ``85%``, then ``85 out of 100`` / ``85/100``, then a leading number.
    No clamping is applied.

    Args:
        text: Accuracy label from the model, e.g. ``"92%"``

    Returns:
        The score, or None when no number can be recovered
    """
    match = _PERCENT_RE.search(text) or _OUT_OF_100_RE.search(text)
    if match:
        return float(int(match.group(1)))

    leading = _LEADING_NUMBER_RE.match(text)
    if leading:
        number = float(leading.group(1))
        if math.isfinite(number):
            return number
    return None


def clamp_legacy_score(value: Any) -> float:
    """Clamp a legacy 1-10 score; missing, zero or non-numeric values become 1."""
    number = _to_number(value)
    if not number:
        number = float(MIN_LEGACY_SCORE)
    return max(float(MIN_LEGACY_SCORE), min(float(MAX_LEGACY_SCORE), number))


def render_parameter_summary(parameter: ProjectParameter) -> str:
    return f"{parameter.name} ({_format_number(parameter.weightage)}%): {parameter.level}"


def render_parameter_feedback(parameter: ProjectParameter) -> str:
    """
    Render one parameter's feedback block.

    Three-question feedback and good/bad/ugly feedback use the same
    ``✓ ✗ ⚠`` markers but keep their own labels.
    """
    feedback = parameter.feedback
    if isinstance(feedback, StructuredFeedback):
        lines = [
            f"  ✓ {STRENGTHS_KEY}: {feedback.strengths or NOT_AVAILABLE}",
            f"  ✗ {IMPROVEMENTS_KEY}: {feedback.improvements or NOT_AVAILABLE}",
            f"  ⚠ {NEXT_STEPS_KEY}: {feedback.next_steps or NOT_AVAILABLE}",
        ]
    else:
        lines = [
            f"  ✓ Good: {feedback.good or NOT_AVAILABLE}",
            f"  ✗ Bad: {feedback.bad or NOT_AVAILABLE}",
            f"  ⚠ Improvements: {feedback.ugly or NOT_AVAILABLE}",
        ]
    return "\n".join([f"{parameter.name}:", *lines])


class EvaluationNormalizer:
    """Extract normalized accuracy, ability and project results from model output."""

    def normalize(
        self, kind: NormalizerKind | str, source: Any
    ) -> NormalizedAccuracy | NormalizedAbility | NormalizedProject:
        """
        Normalize *source* as the given kind.

        Args:
            kind: ``accuracy``, ``ability`` or ``project``
            source: Parsed JSON value, an extractor envelope dict, an
                ExtractedResponse, or None

        Returns:
            The normalized result for *kind*

        Raises:
            ValueError: If *kind* is not a known normalizer kind
        """
        kind = NormalizerKind(kind)
        if kind is NormalizerKind.ACCURACY:
            return self.normalize_accuracy(source)
        if kind is NormalizerKind.ABILITY:
            return self.normalize_ability(source)
        return self.normalize_project(source)

    def normalize_accuracy(self, source: Any) -> NormalizedAccuracy:
        decoders = (
            self._structured_accuracy,
            self._criteria_accuracy,
            self._overall_accuracy,
            self._text_accuracy,
        )
        result = self._dispatch(decoders, self._candidates(source))
        return result if result is not None else NormalizedAccuracy()

    def normalize_ability(self, source: Any) -> NormalizedAbility:
        decoders = (
            self._structured_ability,
            self._criteria_ability,
            self._level_ability,
        )
        result = self._dispatch(decoders, self._candidates(source))
        return result if result is not None else NormalizedAbility()

    def normalize_project(self, source: Any) -> NormalizedProject:
        candidates = self._candidates(source)
        result = self._dispatch((self._parameters_project,), candidates)
        if result is not None:
            return result
        if not candidates:
            return NormalizedProject()
        return self._overall_project(candidates[0])

    # Shape dispatch

    def _candidates(self, source: Any) -> list[dict[str, Any]]:
        """Objects to inspect, inner ``parsed`` first, then the envelope."""
        if isinstance(source, ExtractedResponse):
            source = source.to_payload()
        if not isinstance(source, dict):
            if source is not None:
                logger.debug(f"Ignoring non-object evaluation of type {type(source).__name__}")
            return []
        inner = source.get("parsed")
        if isinstance(inner, dict):
            return [inner, source]
        return [source]

    def _dispatch(self, decoders: tuple[Callable[[dict[str, Any]], Any], ...], candidates: list[dict[str, Any]]) -> Any:
        for decode in decoders:
            for candidate in candidates:
                try:
                    result = decode(candidate)
                except Exception as e:
                    logger.warning(f"Failed to decode evaluation with {decode.__name__}: {e}")
                    continue
                if result is not None:
                    return result
        return None

    def _first_item(self, candidate: dict[str, Any], key: str) -> dict[str, Any] | None:
        """Element 0 of a non-empty array under *key*, as an object."""
        items = candidate.get(key)
        if not isinstance(items, list) or not items:
            return None
        item = items[0]
        if not isinstance(item, dict):
            logger.warning(f"First '{key}' entry is {type(item).__name__}, not an object")
            return {}
        return item

    def _feedback(self, value: Any) -> StructuredFeedback | str:
        """Keep feedback objects structured and strings verbatim."""
        if isinstance(value, dict):
            try:
                return StructuredFeedback.model_validate(value)
            except ValidationError as e:
                logger.warning(f"Feedback object did not validate, storing as text: {e}")
                return to_json_text(value)
        return _as_text(value)

    # Accuracy shapes

    def _structured_accuracy(self, candidate: dict[str, Any]) -> NormalizedAccuracy | None:
        item = self._first_item(candidate, ACCURACY_LEVEL_KEY)
        if item is None:
            return None

        label = item.get(ACCURACY_LEVEL_KEY)
        score = None
        if isinstance(label, str):
            score = extract_score(label)
        elif label is not None:
            logger.warning(f"Accuracy level is {type(label).__name__}, not text; score left empty")

        return NormalizedAccuracy(
            score=score,
            feedback=self._feedback(item.get(FEEDBACK_KEY)),
            shape=EvaluationShape.STRUCTURED,
        )

    def _criteria_accuracy(self, candidate: dict[str, Any]) -> NormalizedAccuracy | None:
        first = self._first_item(candidate, "criteria")
        if first is None:
            return None
        return NormalizedAccuracy(
            score=clamp_legacy_score(first.get("score")),
            feedback=self._feedback(first.get("feedback")),
            shape=EvaluationShape.LEGACY_CRITERIA,
        )

    def _overall_accuracy(self, candidate: dict[str, Any]) -> NormalizedAccuracy | None:
        if "overallScore" not in candidate:
            return None
        return NormalizedAccuracy(
            score=clamp_legacy_score(candidate["overallScore"]),
            feedback=self._feedback(candidate.get("overallFeedback")),
            shape=EvaluationShape.LEGACY_OVERALL,
        )

    def _text_accuracy(self, candidate: dict[str, Any]) -> NormalizedAccuracy | None:
        text = candidate.get("text")
        if not isinstance(text, str):
            return None
        match = _FENCED_JSON_RE.search(text)
        if not match:
            return None
        try:
            block = json.loads(match.group(1))
        except (ValueError, RecursionError) as e:
            logger.debug(f"Fenced JSON block in text did not parse: {e}")
            return None
        if not isinstance(block, dict):
            return None

        section = next(
            (block[name] for name in LEGACY_TEXT_SECTIONS if isinstance(block.get(name), dict)),
            None,
        )
        if section is None:
            return None

        parts = [_as_text(section.get(name)).strip() for name in LEGACY_TEXT_FEEDBACK_FIELDS]
        score = None
        for name in LEGACY_TEXT_SCORE_FIELDS:
            value = section.get(name)
            if isinstance(value, str):
                score = extract_score(value)
            else:
                score = _to_number(value)
            if score is not None:
                break

        return NormalizedAccuracy(
            score=score,
            feedback=" ".join(part for part in parts if part),
            shape=EvaluationShape.LEGACY_TEXT,
        )

    # Ability shapes

    def _structured_ability(self, candidate: dict[str, Any]) -> NormalizedAbility | None:
        item = self._first_item(candidate, ABILITY_TO_EXPLAIN_KEY)
        if item is None:
            return None
        # An empty object still counts as structured feedback
        feedback = item.get(STRUCTURED_FEEDBACK_KEY)
        if not feedback and not isinstance(feedback, (dict, list)):
            feedback = item.get(FEEDBACK_KEY)
        return NormalizedAbility(
            level=_as_text(item.get(ABILITY_TO_EXPLAIN_KEY)),
            feedback=self._feedback(feedback),
            shape=EvaluationShape.STRUCTURED,
        )

    def _criteria_ability(self, candidate: dict[str, Any]) -> NormalizedAbility | None:
        first = self._first_item(candidate, "criteria")
        if first is None:
            return None
        return NormalizedAbility(
            level=_as_text(first.get("name")),
            feedback=self._feedback(first.get("feedback")),
            shape=EvaluationShape.LEGACY_CRITERIA,
        )

    def _level_ability(self, candidate: dict[str, Any]) -> NormalizedAbility | None:
        if not candidate.get("level"):
            return None
        return NormalizedAbility(
            level=_as_text(candidate["level"]),
            feedback=self._feedback(candidate.get("overallFeedback")),
            shape=EvaluationShape.LEGACY_OVERALL,
        )

    # Project shapes

    def _parameters_project(self, candidate: dict[str, Any]) -> NormalizedProject | None:
        raw_parameters = candidate.get("parameters")
        if not isinstance(raw_parameters, list):
            return None

        parameters: list[ProjectParameter] = []
        for index, raw in enumerate(raw_parameters):
            if not isinstance(raw, dict):
                logger.warning(f"Skipping project parameter {index}: not an object")
                continue
            parameters.append(ProjectParameter.model_validate(raw))

        return NormalizedProject(
            evaluation=candidate,
            parameters=parameters,
            summary_text="; ".join(render_parameter_summary(p) for p in parameters),
            feedback_text="\n\n".join(render_parameter_feedback(p) for p in parameters),
            shape=EvaluationShape.STRUCTURED,
        )

    def _overall_project(self, candidate: dict[str, Any]) -> NormalizedProject:
        overall_score = candidate.get("overallScore")
        recognized = "overallScore" in candidate or "overallFeedback" in candidate
        return NormalizedProject(
            evaluation=candidate,
            summary_text=f"Overall Score: {_format_number(overall_score)}" if overall_score else "",
            feedback_text=_as_text(candidate.get("overallFeedback")),
            shape=EvaluationShape.LEGACY_OVERALL if recognized else EvaluationShape.NONE,
        )
