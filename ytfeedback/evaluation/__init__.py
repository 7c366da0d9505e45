"""Evaluation use cases."""

from .service import EvaluationService

__all__ = ["EvaluationService"]
