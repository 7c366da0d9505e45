"""HTTP API for video evaluation.

Exposes evaluation, storage and history routes over :class:`EvaluationService`.
``create_app`` accepts a ready service (tests, embedding); otherwise the
lifespan hook builds the database client, repository and service from
settings and disposes the engine on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ytfeedback.api.errors import register_exception_handlers
from ytfeedback.api.middleware import RequestLoggingMiddleware
from ytfeedback.api.models import (
    DataResponse,
    EvaluationResponse,
    HealthResponse,
    HistoryResponse,
    MessageResponse,
    StoreResponse,
)
from ytfeedback.config import get_settings
from ytfeedback.core.models.evaluation import EvaluationKind
from ytfeedback.core.models.requests import EvaluationRequest, StoreEvaluationRequest
from ytfeedback.core.utils.constants import DEFAULT_HISTORY_LIMIT
from ytfeedback.database.client import FeedbackDBClient
from ytfeedback.database.repository import EvaluationRepository
from ytfeedback.evaluation.service import EvaluationService

__all__: list[str] = ["create_app", "app", "run"]

logger = logging.getLogger(__name__)


def _service(request: Request) -> EvaluationService:
    return request.app.state.service


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "service", None) is not None:
        yield
        return

    settings = get_settings()
    settings.log_summary()
    db_client = FeedbackDBClient(settings.database_url, ssl=settings.database_ssl) if settings.database_url else None
    repository = EvaluationRepository(db_client) if db_client else None
    app.state.service = EvaluationService(repository, settings)
    try:
        yield
    finally:
        if db_client is not None:
            await db_client.close()
            logger.info("Database engine disposed")


def create_app(service: Optional[EvaluationService] = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="ytfeedback API",
        description="AI feedback for YouTube concept and project explanation videos",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.service = service

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["system"], response_model=HealthResponse)
    def health() -> dict[str, str]:  # noqa: D401
        """Simple health-check endpoint."""

        return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}

    @app.post("/evaluate", tags=["evaluation"], response_model=EvaluationResponse)
    async def evaluate(body: EvaluationRequest, request: Request) -> dict:
        extracted = await _service(request).evaluate(body)
        return extracted.to_payload()

    @app.post("/store-evaluation", tags=["storage"], response_model=StoreResponse)
    async def store_evaluation(body: StoreEvaluationRequest, request: Request) -> dict:
        return await _service(request).store(body)

    @app.get("/concept-history", tags=["storage"], response_model=HistoryResponse)
    async def concept_history(
        request: Request, email: Optional[str] = None, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0
    ) -> dict:
        rows = await _service(request).history(EvaluationKind.CONCEPT, email, limit, offset)
        return {"success": True, "data": rows}

    @app.get("/project-history", tags=["storage"], response_model=HistoryResponse)
    async def project_history(
        request: Request, email: Optional[str] = None, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0
    ) -> dict:
        rows = await _service(request).history(EvaluationKind.PROJECT, email, limit, offset)
        return {"success": True, "data": rows}

    @app.get("/concept-evaluation/{evaluation_id}", tags=["storage"], response_model=DataResponse)
    async def get_concept_evaluation(evaluation_id: int, request: Request) -> dict:
        row = await _service(request).get(EvaluationKind.CONCEPT, evaluation_id)
        return {"success": True, "data": row}

    @app.get("/project-evaluation/{evaluation_id}", tags=["storage"], response_model=DataResponse)
    async def get_project_evaluation(evaluation_id: int, request: Request) -> dict:
        row = await _service(request).get(EvaluationKind.PROJECT, evaluation_id)
        return {"success": True, "data": row}

    @app.delete("/concept-evaluation/{evaluation_id}", tags=["storage"], response_model=MessageResponse)
    async def delete_concept_evaluation(evaluation_id: int, request: Request) -> dict:
        message = await _service(request).delete(EvaluationKind.CONCEPT, evaluation_id)
        return {"success": True, "message": message}

    @app.delete("/project-evaluation/{evaluation_id}", tags=["storage"], response_model=MessageResponse)
    async def delete_project_evaluation(evaluation_id: int, request: Request) -> dict:
        message = await _service(request).delete(EvaluationKind.PROJECT, evaluation_id)
        return {"success": True, "message": message}

    @app.get("/stats", tags=["storage"], response_model=DataResponse)
    async def stats(request: Request, email: Optional[str] = None) -> dict:
        return {"success": True, "data": await _service(request).stats(email)}

    return app


app = create_app()


def run() -> None:  # pragma: no cover
    """Launch the API server with Uvicorn."""

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run("ytfeedback.api:app", host=settings.host, port=settings.port)  # type: ignore[arg-type]
