"""Translate service exceptions into JSON error responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ytfeedback.core.errors import (
    DatabaseError,
    EvaluationNotFoundError,
    InvalidRequestError,
    UpstreamModelError,
)

__all__: list[str] = ["register_exception_handlers"]

logger = logging.getLogger(__name__)


async def _invalid_request(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    message = "; ".join(problems) or "Invalid request"
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {message}"})


async def _not_found(request: Request, exc: EvaluationNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc)})


async def _upstream(request: Request, exc: UpstreamModelError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed upstream: {exc}")
    return JSONResponse(
        status_code=502,
        content={"error": UpstreamModelError.PREFIX, "message": str(exc)},
    )


async def _database(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed in storage: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error-to-status mapping on *app*."""
    app.add_exception_handler(InvalidRequestError, _invalid_request)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(EvaluationNotFoundError, _not_found)
    app.add_exception_handler(UpstreamModelError, _upstream)
    app.add_exception_handler(DatabaseError, _database)
    app.add_exception_handler(Exception, _unhandled)
