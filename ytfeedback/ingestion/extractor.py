"""
Best-effort JSON extraction from raw model output.

Model responses arrive as clean JSON, JSON wrapped in prose or markdown
fences, or text that is not JSON at all. The extractor never raises: when
nothing parses, ``parsed`` is ``None`` and ``raw`` still carries the text.
"""

import json
import logging
from typing import Any

from ytfeedback.core.models.evaluation import ExtractedResponse

__all__: list[str] = ["ResponseExtractor", "extract_response"]

logger = logging.getLogger(__name__)

_MISSING = object()


class ResponseExtractor:
    """Turn raw model output into an :class:`ExtractedResponse`."""

    def extract(self, text: str | bytes | None, parsed: Any = _MISSING) -> ExtractedResponse:
        """
        Extract a JSON value from model output.

        Args:
            text: Raw text (or bytes) returned by the model; may be empty
            parsed: Value the HTTP layer already decoded, used as-is when given

        Returns:
            ExtractedResponse with ``raw`` text and the parsed value or None
        """
        raw = self._to_text(text)

        if parsed is not _MISSING and parsed is not None:
            return ExtractedResponse(raw=raw, parsed=parsed)

        value = self._parse_direct(raw)
        if value is _MISSING:
            value = self._parse_brace_span(raw)
        if value is _MISSING:
            if raw.strip():
                logger.warning(f"Could not extract JSON from model output ({len(raw)} chars)")
            value = None

        return ExtractedResponse(raw=raw, parsed=value)

    def _to_text(self, text: str | bytes | None) -> str:
        if text is None:
            return ""
        if isinstance(text, (bytes, bytearray)):
            return bytes(text).decode("utf-8", errors="replace")
        if not isinstance(text, str):
            return str(text)
        return text

    def _parse_direct(self, raw: str) -> Any:
        try:
            return json.loads(raw)
        except (ValueError, RecursionError):
            return _MISSING

    def _parse_brace_span(self, raw: str) -> Any:
        """Parse the span from the first ``{`` to the last ``}``.

        Stray braces in the surrounding prose defeat this; the result is then
        treated as unparseable.
        """
        start = raw.find("{")
        end = raw.rfind("}")
        if start == -1 or end == -1 or start >= end:
            return _MISSING

        try:
            value = json.loads(raw[start:end + 1])
        except (ValueError, RecursionError) as e:
            logger.debug(f"Brace-span JSON parse failed: {e}")
            return _MISSING

        logger.debug("Recovered JSON from brace span of model output")
        return value


_default_extractor = ResponseExtractor()


def extract_response(text: str | bytes | None, parsed: Any = _MISSING) -> ExtractedResponse:
    """Module-level shortcut for :meth:`ResponseExtractor.extract`."""
    return _default_extractor.extract(text, parsed)
