"""
Evaluation use cases.

Wires the pipeline together: model call, response extraction, normalization,
record shaping and storage. Components are passed in explicitly; nothing here
reaches for a module-level client or engine.
"""

import logging
from typing import Any, Callable, Optional

from ytfeedback.config import Settings, get_settings
from ytfeedback.core.errors import DatabaseError, EvaluationNotFoundError, InvalidRequestError
from ytfeedback.core.models.evaluation import EvaluationKind, ExtractedResponse
from ytfeedback.core.models.requests import EvaluationRequest, StoreEvaluationRequest
from ytfeedback.core.utils.constants import DEFAULT_HISTORY_LIMIT
from ytfeedback.database.repository import EvaluationRepository
from ytfeedback.database.shaper import shape_concept_record, shape_project_record
from ytfeedback.ingestion.extractor import ResponseExtractor
from ytfeedback.ingestion.normalizer import EvaluationNormalizer
from ytfeedback.llm.client import VideoEvaluationClient, create_llm_client

__all__: list[str] = ["EvaluationService"]

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str, Optional[str]], VideoEvaluationClient]


class EvaluationService:
    """Evaluate videos and manage stored evaluations."""

    def __init__(
        self,
        repository: Optional[EvaluationRepository] = None,
        settings: Optional[Settings] = None,
        client_factory: ClientFactory = create_llm_client,
        extractor: Optional[ResponseExtractor] = None,
        normalizer: Optional[EvaluationNormalizer] = None,
    ):
        """
        Initialize the service.

        Args:
            repository: Evaluation storage; storage operations fail without one
            settings: Configuration; the cached settings when omitted
            client_factory: Builds a provider client from (provider, api_key, model)
            extractor: Response extractor
            normalizer: Evaluation normalizer
        """
        self.repository = repository
        self.settings = settings or get_settings()
        self.client_factory = client_factory
        self.extractor = extractor or ResponseExtractor()
        self.normalizer = normalizer or EvaluationNormalizer()

    def _require_repository(self) -> EvaluationRepository:
        if self.repository is None:
            raise DatabaseError("Database error: DATABASE_URL is not configured")
        return self.repository

    # ==================== Evaluation ====================

    async def evaluate(self, request: EvaluationRequest) -> ExtractedResponse:
        """
        Run a video evaluation through the configured model provider.

        Args:
            request: Validated request body

        Returns:
            ExtractedResponse holding the raw model text and parsed JSON

        Raises:
            InvalidRequestError: If videoUrl or an API key is missing
            UpstreamModelError: If the provider call fails
        """
        request.validate_required()

        provider = (request.llm_provider or self.settings.llm_provider).lower()
        api_key = request.api_key or self.settings.api_key_for(provider)
        if not api_key:
            raise InvalidRequestError("apiKey")

        client = self.client_factory(provider, api_key, self.settings.model_for(provider))
        logger.info(
            f"Evaluating video ({request.evaluation_type or 'unspecified'} evaluation) with {provider}"
        )
        text = await client.evaluate_video(request.build_prompt(), request.video_url, request.api_config())

        extracted = self.extractor.extract(text)
        if extracted.parsed is None:
            logger.warning("Model response contained no parseable JSON")
        return extracted

    # ==================== Storage ====================

    async def store(self, request: StoreEvaluationRequest) -> dict[str, Any]:
        """Normalize a finished evaluation and store it in the table for its video type."""
        request.validate_required()
        repository = self._require_repository()
        kind = request.kind()
        result = request.evaluation_result

        logger.info(f"Storing {kind.value} evaluation for {request.user_email}")
        if kind is EvaluationKind.CONCEPT:
            parts = result if isinstance(result, dict) else {}
            accuracy = self.normalizer.normalize_accuracy(parts.get("accuracy"))
            ability = self.normalizer.normalize_ability(parts.get("abilityToExplain"))
            logger.debug(f"Normalized concept evaluation: score={accuracy.score}, level={ability.level!r}")
            record = shape_concept_record(
                email=request.user_email,
                project_name=request.selected_phase or "",
                page_name=request.selected_video_title or "",
                video_url=request.video_url,
                accuracy=accuracy,
                ability=ability,
            )
            evaluation_id = await repository.save_concept_evaluation(record)
        else:
            project = self.normalizer.normalize_project(result)
            record = shape_project_record(
                email=request.user_email,
                project_name=request.selected_phase or "",
                video_url=request.video_url,
                project=project,
            )
            evaluation_id = await repository.save_project_evaluation(record)

        return {
            "success": True,
            "id": evaluation_id,
            "message": f"{kind.value.capitalize()} evaluation stored successfully",
        }

    async def history(
        self,
        kind: EvaluationKind | str,
        email: Optional[str],
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Stored evaluations of *kind* for *email*, newest first."""
        kind = EvaluationKind(kind)
        if not email:
            raise InvalidRequestError("email", "Email parameter is required")
        if limit < 1:
            raise InvalidRequestError("limit", "limit must be a positive integer")
        if offset < 0:
            raise InvalidRequestError("offset", "offset must not be negative")

        repository = self._require_repository()
        if kind is EvaluationKind.CONCEPT:
            return await repository.get_concept_history(email, limit, offset)
        return await repository.get_project_history(email, limit, offset)

    async def get(self, kind: EvaluationKind | str, evaluation_id: int) -> dict[str, Any]:
        kind = EvaluationKind(kind)
        row = await self._require_repository().get_evaluation_by_id(evaluation_id, kind)
        if row is None:
            raise EvaluationNotFoundError(kind.value, evaluation_id)
        return row

    async def delete(self, kind: EvaluationKind | str, evaluation_id: int) -> str:
        """Delete one evaluation and return the confirmation message."""
        kind = EvaluationKind(kind)
        deleted = await self._require_repository().delete_evaluation(evaluation_id, kind)
        if not deleted:
            raise EvaluationNotFoundError(kind.value, evaluation_id)
        return f"{kind.value.capitalize()} evaluation deleted successfully"

    async def stats(self, email: Optional[str]) -> dict[str, Any]:
        if not email:
            raise InvalidRequestError("email", "Email parameter is required")
        return await self._require_repository().get_evaluation_stats(email)
