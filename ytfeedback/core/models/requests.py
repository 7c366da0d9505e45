"""Incoming request payloads for evaluation and storage."""

from __future__ import annotations

import json
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ytfeedback.core.errors import InvalidRequestError
from ytfeedback.core.models.evaluation import EvaluationKind

__all__: list[str] = ["EvaluationRequest", "StoreEvaluationRequest"]


class EvaluationRequest(BaseModel):
    """Body of ``POST /evaluate``."""

    video_url: str | None = Field(None, validation_alias=AliasChoices("videoUrl", "video_url"))
    video_details: Any = Field("", validation_alias=AliasChoices("videoDetails", "video_details"))
    # The web frontend posts the misspelled lower-case keys
    prompt_beginning: str = Field(
        "", validation_alias=AliasChoices("promptBeginning", "promptbegining", "prompt_beginning")
    )
    rubric: Any = None
    evaluation_type: str | None = Field(None, validation_alias=AliasChoices("evaluationType", "evaluation_type"))
    structured_returned_config: dict[str, Any] | None = Field(
        None,
        validation_alias=AliasChoices(
            "structuredReturnedConfig", "structuredreturnedconfig", "structured_returned_config"
        ),
    )
    api_key: str | None = Field(None, validation_alias=AliasChoices("apiKey", "api_key"))
    llm_provider: str | None = Field(None, validation_alias=AliasChoices("llmProvider", "llm_provider"))

    model_config = ConfigDict(extra="ignore")

    def validate_required(self) -> None:
        """Raise :class:`InvalidRequestError` for the first missing required field."""
        if not self.video_url:
            raise InvalidRequestError("videoUrl")

    def build_prompt(self) -> str:
        """Assemble prompt text: instructions, video details, then the rubric if any."""
        sections = [self.prompt_beginning or "", "VIDEO DETAILS:", f"{self.video_details or ''}"]
        if self.rubric:
            sections.append("")
            sections.append(f"RUBRIC:\n{json.dumps(self.rubric, ensure_ascii=False)}")
        return "\n".join(sections)

    def api_config(self) -> dict[str, Any] | None:
        """Response config, unwrapped from a ``generationConfig`` wrapper when present."""
        config = self.structured_returned_config
        if not config:
            return None
        wrapped = config.get("generationConfig")
        if isinstance(wrapped, dict):
            return wrapped
        return config


class StoreEvaluationRequest(BaseModel):
    """Body of ``POST /store-evaluation``."""

    user_id: str | None = Field(None, validation_alias=AliasChoices("userId", "user_id"))
    user_email: str | None = Field(None, validation_alias=AliasChoices("userEmail", "user_email"))
    video_url: str | None = Field(None, validation_alias=AliasChoices("videoUrl", "video_url"))
    video_type: str | None = Field(None, validation_alias=AliasChoices("videoType", "video_type"))
    evaluation_data: Any = Field(None, validation_alias=AliasChoices("evaluationData", "evaluation_data"))
    selected_phase: str | None = Field(None, validation_alias=AliasChoices("selectedPhase", "selected_phase"))
    selected_video_title: str | None = Field(
        None, validation_alias=AliasChoices("selectedVideoTitle", "selected_video_title")
    )

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    def validate_required(self) -> None:
        for field_name, alias in (
            ("user_id", "userId"),
            ("user_email", "userEmail"),
            ("video_url", "videoUrl"),
        ):
            if not getattr(self, field_name):
                raise InvalidRequestError(alias)
        self.kind()

    def kind(self) -> EvaluationKind:
        """Target table; a missing video type means a project video."""
        if not self.video_type:
            return EvaluationKind.PROJECT
        try:
            return EvaluationKind(self.video_type)
        except ValueError:
            raise InvalidRequestError(
                "videoType", f"videoType must be 'concept' or 'project', got '{self.video_type}'"
            ) from None

    @property
    def evaluation_result(self) -> Any:
        """``evaluationData.evaluation_result``, or the data itself when unwrapped."""
        data = self.evaluation_data
        if isinstance(data, dict) and "evaluation_result" in data:
            return data["evaluation_result"]
        return data
