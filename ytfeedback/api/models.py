"""Shared response models for the evaluation API."""

from typing import Any

from pydantic import BaseModel, Field

__all__: list[str] = [
    "HealthResponse",
    "EvaluationResponse",
    "StoreResponse",
    "DataResponse",
    "HistoryResponse",
    "MessageResponse",
]


class HealthResponse(BaseModel):
    """Schema for the /health endpoint response."""

    status: str = Field(..., examples=["ok"])
    time: str = Field(..., examples=["2025-01-01T00:00:00+00:00"])


class EvaluationResponse(BaseModel):
    """Raw model text plus the parsed JSON value (null when nothing parsed)."""

    raw: str
    text: str
    parsed: Any = None


class StoreResponse(BaseModel):
    success: bool = True
    id: int
    message: str


class DataResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class HistoryResponse(BaseModel):
    success: bool = True
    data: list[dict[str, Any]]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
