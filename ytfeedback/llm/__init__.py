"""Model provider clients for video evaluation."""

from .client import GeminiVideoClient, OpenAIVideoClient, VideoEvaluationClient, create_llm_client

__all__ = ["VideoEvaluationClient", "GeminiVideoClient", "OpenAIVideoClient", "create_llm_client"]
