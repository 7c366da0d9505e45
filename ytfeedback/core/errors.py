"""Error taxonomy for the evaluation service.

Parse and shape failures never show up here: the normalization pipeline
recovers from them locally. Everything below is fatal to the current request
and is translated into a JSON error body at the HTTP boundary.
"""

from __future__ import annotations

__all__: list[str] = [
    "FeedbackError",
    "InvalidRequestError",
    "UpstreamModelError",
    "DatabaseError",
    "EvaluationNotFoundError",
]


class FeedbackError(Exception):
    """Base exception for ytfeedback."""


class InvalidRequestError(FeedbackError):
    """Raised when a required request field is missing or invalid."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"{field} is required")


class UpstreamModelError(FeedbackError):
    """Raised when the model provider call fails (bad key, quota, network)."""

    PREFIX = "Upstream model API error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.PREFIX}: {detail}")


class DatabaseError(FeedbackError):
    """Raised when a database operation fails."""


class EvaluationNotFoundError(FeedbackError):
    """Raised when an evaluation id does not exist for the requested kind."""

    def __init__(self, kind: str, evaluation_id: int):
        self.kind = kind
        self.evaluation_id = evaluation_id
        super().__init__(f"{kind.capitalize()} evaluation not found")
