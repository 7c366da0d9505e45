"""Model-response extraction and normalization."""

from .extractor import ResponseExtractor, extract_response
from .normalizer import EvaluationNormalizer

__all__ = ["ResponseExtractor", "extract_response", "EvaluationNormalizer"]
