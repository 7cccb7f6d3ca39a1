"""Pydantic models for gateway requests/responses and upstream payloads."""
from __future__ import annotations
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_MODEL = "meta-llama/Llama-3-8b-chat-hf"
DEFAULT_MAX_TOKENS = 512
DEFAULT_TEMPERATURE = 0.1


class _Payload(BaseModel):
    """Base for decoded JSON: unknown keys ignored, nulls read as absent."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class GenerationRequest(_Payload):
    """Inbound body of POST /generate."""

    model_config = ConfigDict(extra="ignore", frozen=True, strict=True)

    model: str = ""
    prompt: str = ""
    stream: bool = False
    max_tokens: int = 0
    temperature: float = 0.0

    def with_defaults(self, default_model: str = DEFAULT_MODEL) -> "GenerationRequest":
        """Return a copy with zero-valued optional fields replaced by defaults.

        A temperature of exactly 0 counts as unset, so it becomes 0.1 too.
        """
        update: dict[str, Any] = {}
        if not self.model:
            update["model"] = default_model
        if self.max_tokens == 0:
            update["max_tokens"] = DEFAULT_MAX_TOKENS
        if self.temperature == 0:
            update["temperature"] = DEFAULT_TEMPERATURE
        return self.model_copy(update=update)


class GenerationResponse(BaseModel):
    """Non-streaming reply returned to the caller."""

    model: str
    response: str
    created_at: str | None = None


class Delta(_Payload):
    content: str = ""


class ChunkChoice(_Payload):
    delta: Delta = Field(default_factory=Delta)


class UpstreamChunk(_Payload):
    """One decoded fragment of a streamed completion."""

    choices: list[ChunkChoice] = Field(default_factory=list)

    def fragment(self) -> str:
        """Incremental text of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].delta.content


class ResultChoice(_Payload):
    text: str = ""


class UpstreamResult(_Payload):
    """Decoded body of a non-streaming completion."""

    choices: list[ResultChoice] = Field(default_factory=list)
