"""
Evaluation repository.

Parameterized CRUD over the two evaluation tables. Every SQLAlchemy failure
is logged and re-raised as :class:`DatabaseError`; nothing is retried.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ytfeedback.core.errors import DatabaseError
from ytfeedback.core.models.evaluation import EvaluationKind
from ytfeedback.core.models.records import ConceptEvaluationRecord, ProjectEvaluationRecord
from ytfeedback.core.utils.constants import DEFAULT_HISTORY_LIMIT
from ytfeedback.database.client import FeedbackDBClient
from ytfeedback.database.utils import convert_row_to_dict

__all__: list[str] = ["EvaluationRepository", "TABLES"]

logger = logging.getLogger(__name__)

TABLES: dict[EvaluationKind, str] = {
    EvaluationKind.CONCEPT: "concept_evaluations",
    EvaluationKind.PROJECT: "project_evaluations",
}

_CONCEPT_COLUMNS = (
    "id, email, project_name, page_name, video_url, accuracy_score, accuracy_feedback, "
    "ability_level, ability_feedback, created_at"
)
_PROJECT_COLUMNS = (
    "id, email, project_name, video_url, evaluation_summary_text, evaluation_feedback_text, "
    "evaluation_json, created_at"
)
_COLUMNS: dict[EvaluationKind, str] = {
    EvaluationKind.CONCEPT: _CONCEPT_COLUMNS,
    EvaluationKind.PROJECT: _PROJECT_COLUMNS,
}


class EvaluationRepository:
    """
    Storage for concept and project evaluation records.

    Rows are append-only; the only mutation besides insert is delete by id.
    """

    def __init__(self, db_client: FeedbackDBClient):
        """
        Initialize the repository with a database client.

        Args:
            db_client: FeedbackDBClient owning the engine
        """
        self.db = db_client

    # ==================== Inserts ====================

    async def save_concept_evaluation(self, record: ConceptEvaluationRecord) -> int:
        """Insert a concept evaluation and return its id."""
        query = text("""
            INSERT INTO concept_evaluations (
                email, project_name, page_name, video_url,
                accuracy_score, accuracy_feedback, ability_level, ability_feedback
            ) VALUES (
                :email, :project_name, :page_name, :video_url,
                :accuracy_score, :accuracy_feedback, :ability_level, :ability_feedback
            )
            RETURNING id
        """)
        evaluation_id = await self._insert(query, record.to_params(), "concept")
        logger.info(f"Concept evaluation stored with id {evaluation_id}")
        return evaluation_id

    async def save_project_evaluation(self, record: ProjectEvaluationRecord) -> int:
        """Insert a project evaluation and return its id."""
        query = text("""
            INSERT INTO project_evaluations (
                email, project_name, video_url,
                evaluation_summary_text, evaluation_feedback_text, evaluation_json
            ) VALUES (
                :email, :project_name, :video_url,
                :evaluation_summary_text, :evaluation_feedback_text, :evaluation_json
            )
            RETURNING id
        """)
        evaluation_id = await self._insert(query, record.to_params(), "project")
        logger.info(f"Project evaluation stored with id {evaluation_id}")
        return evaluation_id

    async def _insert(self, query, params: dict[str, Any], kind: str) -> int:
        try:
            async with self.db.engine.begin() as conn:
                result = await conn.execute(query, params)
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Failed to store {kind} evaluation: {e}")
            raise DatabaseError(f"Database error: {e}") from e

    # ==================== Queries ====================

    async def get_concept_history(
        self, email: str, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0
    ) -> list[dict[str, Any]]:
        """Concept evaluations for *email*, newest first."""
        return await self._history(EvaluationKind.CONCEPT, email, limit, offset)

    async def get_project_history(
        self, email: str, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0
    ) -> list[dict[str, Any]]:
        """Project evaluations for *email*, newest first."""
        return await self._history(EvaluationKind.PROJECT, email, limit, offset)

    async def _history(self, kind: EvaluationKind, email: str, limit: int, offset: int) -> list[dict[str, Any]]:
        query = text(f"""
            SELECT {_COLUMNS[kind]}
            FROM {TABLES[kind]}
            WHERE email = :email
            ORDER BY created_at DESC, id DESC
            LIMIT :limit OFFSET :offset
        """)
        try:
            async with self.db.engine.begin() as conn:
                result = await conn.execute(query, {"email": email, "limit": limit, "offset": offset})
                rows = [convert_row_to_dict(row) for row in result]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch {kind.value} history: {e}")
            raise DatabaseError(f"Database error: {e}") from e

        logger.info(f"Retrieved {len(rows)} {kind.value} evaluations for {email}")
        return rows

    async def get_evaluation_by_id(self, evaluation_id: int, kind: EvaluationKind | str) -> dict[str, Any] | None:
        """
        Fetch one evaluation.

        Args:
            evaluation_id: Row id
            kind: ``concept`` or ``project``

        Returns:
            The row as a dict, or None when no such row exists

        Raises:
            ValueError: If *kind* is not a known evaluation kind
            DatabaseError: If the query fails
        """
        kind = EvaluationKind(kind)
        query = text(f"SELECT {_COLUMNS[kind]} FROM {TABLES[kind]} WHERE id = :id")
        try:
            async with self.db.engine.begin() as conn:
                result = await conn.execute(query, {"id": evaluation_id})
                row = result.first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch {kind.value} evaluation {evaluation_id}: {e}")
            raise DatabaseError(f"Database error: {e}") from e

        return convert_row_to_dict(row) if row else None

    async def delete_evaluation(self, evaluation_id: int, kind: EvaluationKind | str) -> bool:
        """Delete one evaluation; False when the id does not exist."""
        kind = EvaluationKind(kind)
        query = text(f"DELETE FROM {TABLES[kind]} WHERE id = :id RETURNING id")
        try:
            async with self.db.engine.begin() as conn:
                result = await conn.execute(query, {"id": evaluation_id})
                deleted = result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete {kind.value} evaluation {evaluation_id}: {e}")
            raise DatabaseError(f"Database error: {e}") from e

        if deleted:
            logger.info(f"Deleted {kind.value} evaluation {evaluation_id}")
        return deleted

    async def get_evaluation_stats(self, email: str) -> dict[str, Any]:
        """Evaluation counts per kind and the average concept accuracy for *email*."""
        query = text("""
            SELECT
                (SELECT COUNT(*) FROM concept_evaluations WHERE email = :email) AS concept_count,
                (SELECT COUNT(*) FROM project_evaluations WHERE email = :email) AS project_count,
                (SELECT AVG(accuracy_score) FROM concept_evaluations
                    WHERE email = :email AND accuracy_score IS NOT NULL) AS average_accuracy
        """)
        try:
            async with self.db.engine.begin() as conn:
                result = await conn.execute(query, {"email": email})
                data = convert_row_to_dict(result.first())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch evaluation stats: {e}")
            raise DatabaseError(f"Database error: {e}") from e

        concept_count = int(data.get("concept_count") or 0)
        project_count = int(data.get("project_count") or 0)
        average = data.get("average_accuracy")
        return {
            "email": email,
            "concept_count": concept_count,
            "project_count": project_count,
            "total": concept_count + project_count,
            "average_accuracy": float(average) if average is not None else None,
        }
