"""
Video evaluation clients.

Each client sends one prompt plus a video reference to a model provider and
returns the full response text. Provider failures surface as
:class:`UpstreamModelError`; they are never retried.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import openai
from google import genai
from google.genai import types
from pydantic import ValidationError

from ytfeedback.core.errors import InvalidRequestError, UpstreamModelError
from ytfeedback.core.utils.constants import DEFAULT_GEMINI_MODEL, DEFAULT_OPENAI_MODEL

__all__: list[str] = [
    "VideoEvaluationClient",
    "GeminiVideoClient",
    "OpenAIVideoClient",
    "create_llm_client",
]

logger = logging.getLogger(__name__)

VIDEO_MIME_TYPE = "video/*"


class VideoEvaluationClient(ABC):
    """Abstract base class for video evaluation clients."""

    provider: str = ""

    @abstractmethod
    async def evaluate_video(
        self, prompt: str, video_uri: str, response_config: Optional[dict[str, Any]] = None
    ) -> str:
        """Evaluate the video at *video_uri* and return the model's text."""
        pass


class GeminiVideoClient(VideoEvaluationClient):
    """Gemini client; the video is passed by file URI and the response is streamed."""

    provider = "gemini"

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL):
        if not api_key:
            raise InvalidRequestError("apiKey")
        self.client = genai.Client(api_key=api_key)
        self.model = model
        logger.info(f"Initialized Gemini client with model: {model}")

    def _build_config(self, response_config: Optional[dict[str, Any]]) -> Optional[types.GenerateContentConfig]:
        if not response_config:
            return None
        try:
            return types.GenerateContentConfig.model_validate(response_config)
        except ValidationError as e:
            raise InvalidRequestError(
                "structuredReturnedConfig", f"structuredReturnedConfig is invalid: {e.error_count()} error(s)"
            ) from e

    async def evaluate_video(
        self, prompt: str, video_uri: str, response_config: Optional[dict[str, Any]] = None
    ) -> str:
        config = self._build_config(response_config)
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_uri(file_uri=video_uri, mime_type=VIDEO_MIME_TYPE),
                    types.Part.from_text(text=prompt),
                ],
            )
        ]

        logger.info(f"Calling Gemini {self.model} for video evaluation (streaming)")
        chunks: list[str] = []
        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=self.model,
                contents=contents,
                config=config,
            )
            async for chunk in stream:
                if chunk.text:
                    chunks.append(chunk.text)
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise UpstreamModelError(str(e) or type(e).__name__) from e

        response_text = "".join(chunks)
        logger.debug(f"Gemini stream finished: {len(response_text)} characters")
        return response_text


class OpenAIVideoClient(VideoEvaluationClient):
    """
    OpenAI chat client.

    Chat models cannot fetch the video, so the URL is sent inside the prompt
    and the model works from the supplied video details.
    """

    provider = "openai"

    def __init__(self, api_key: str, model: str = DEFAULT_OPENAI_MODEL, temperature: float = 0.2):
        if not api_key:
            raise InvalidRequestError("apiKey")
        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        logger.info(f"Initialized OpenAI client with model: {model}")

    async def evaluate_video(
        self, prompt: str, video_uri: str, response_config: Optional[dict[str, Any]] = None
    ) -> str:
        kwargs: dict[str, Any] = {}
        if response_config and response_config.get("responseMimeType") == "application/json":
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": "You are an expert video evaluator. Respond with JSON only.",
                    },
                    {
                        "role": "user",
                        "content": f"{prompt}\n\nVIDEO URL: {video_uri}",
                    },
                ],
                temperature=self.temperature,
                **kwargs,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise UpstreamModelError(str(e) or type(e).__name__) from e

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated response using {self.model}: {len(content)} characters")
        return content


def create_llm_client(provider: str, api_key: str, model: Optional[str] = None) -> VideoEvaluationClient:
    """
    Factory function to create video evaluation clients.

    Args:
        provider: ``gemini`` or ``openai``; anything else falls back to Gemini
        api_key: Provider API key
        model: Model name; the provider default when omitted

    Returns:
        A ready VideoEvaluationClient

    Raises:
        InvalidRequestError: If *api_key* is empty
    """
    provider = (provider or "gemini").lower()
    if provider == "openai":
        return OpenAIVideoClient(api_key, model or DEFAULT_OPENAI_MODEL)
    if provider != "gemini":
        logger.warning(f"Unknown LLM provider: {provider}, falling back to Gemini")
    return GeminiVideoClient(api_key, model or DEFAULT_GEMINI_MODEL)
