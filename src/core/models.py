# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
Wire-facing models (Message, Chat, ChatResponse) use camelCase aliases and
accept either spelling on input.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from snowgoose.core.content import (
    ContentBlock,
    MessageContent,
    TextBlock,
    get_visible_text,
    normalize_content,
)

Role = Literal["user", "assistant", "system"]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, protected_namespaces=()
    )


# === CONVERSATION ===


class Message(_WireModel):
    """Single message in a conversation."""

    role: Role
    content: MessageContent

    @property
    def blocks(self) -> list[ContentBlock]:
        """Content in normalized block-list form."""
        return normalize_content(self.content)

    def normalized(self) -> Message:
        """Return a copy whose content is a block list."""
        return Message(role=self.role, content=self.blocks)


class ChatResponse(_WireModel):
    """Normalized assistant reply returned to the application."""

    role: Role = "assistant"
    content: MessageContent

    @property
    def visible_text(self) -> str:
        return get_visible_text(self.content)


class Chat(_WireModel):
    """Request/response envelope for one conversation turn.

    ``response_history`` is append-only during a turn and its last element
    is the user message being answered.
    """

    response_history: list[Message] = Field(default_factory=list)
    model: str
    model_id: int
    persona_id: int | None = None
    output_format_id: int | None = None
    system_prompt: str | None = None
    prompt: str | None = None
    max_tokens: int | None = None
    budget_tokens: int | None = None
    image_data: str | None = None
    vision_url: str | None = None
    mcp_tool_id: int | None = None
    use_web_search: bool = False
    use_image_generation: bool = False
    previous_response_id: str | None = None

    @property
    def current_message(self) -> Message | None:
        """The newest message (the one being answered), if any."""
        return self.response_history[-1] if self.response_history else None

    @property
    def previous_messages(self) -> list[Message]:
        return self.response_history[:-1]

    def effective_prompt(self) -> str:
        """Explicit prompt, else the visible text of the newest user message."""
        if self.prompt:
            return self.prompt
        current = self.current_message
        return get_visible_text(current.content) if current else ""

    def append_user_message(self, text: str) -> Message:
        """Append a new user turn in block-list form."""
        message = Message(role="user", content=[TextBlock(text=text)])
        self.response_history.append(message)
        return message


# === CONFIGURATION RECORDS (read-only to the orchestration layer) ===


class ApiVendor(BaseModel):
    """Vendor row: id and human name (e.g. "openai")."""

    id: int
    name: str


class ModelRecord(BaseModel):
    """Persisted model configuration.

    Token costs are prices per million tokens.
    """

    id: int
    api_name: str
    name: str
    api_vendor_id: int | None = None
    is_vision: bool = False
    is_image_generation: bool = False
    is_thinking: bool = False
    is_web_search: bool = False
    input_token_cost: float | None = None
    output_token_cost: float | None = None
    paid_only: bool = False


class MCPTool(BaseModel):
    """External tool-provider process: ``path`` is the command line to spawn."""

    id: int
    name: str
    path: str


# === USERS ===


class UserRecord(BaseModel):
    """Application user with running usage counters."""

    id: int
    username: str
    email: str | None = None
    period_usage: float = 0.0
    total_usage: float = 0.0
    usage_limit: float | None = None
    has_active_subscription: bool = False
    has_unlimited_credits: bool = False
