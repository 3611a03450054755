# src/llm/models.py — v2
"""LLM-specific types: VendorConfig, AIRequestOptions, AIResponse, TokenUsage."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from snowgoose.core.content import ContentBlock
from snowgoose.core.models import Message


class VendorConfig(BaseModel):
    """Credentials for one vendor, registered once per process."""

    api_key: str
    organization_id: str | None = None
    base_url: str | None = None
    default_headers: dict[str, str] = Field(default_factory=dict)


class AIRequestOptions(BaseModel):
    """Normalized request handed to ``generate_response`` / ``stream_response``."""

    model: str
    messages: list[Message]
    max_tokens: int | None = None
    temperature: float | None = None
    system_prompt: str | None = None
    image_data: str | None = None
    vision_url: str | None = None
    thinking_mode: bool = False
    budget_tokens: int | None = None
    previous_response_id: str | None = None
    tools: list[dict[str, Any]] = Field(default_factory=list)


class AIResponse(BaseModel):
    """Normalized vendor reply."""

    role: str = "assistant"
    content: str | list[ContentBlock]
    response_id: str | None = None


class TokenUsage(BaseModel):
    """Token counts reported by a vendor for one call."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens
