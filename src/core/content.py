# src/core/content.py — v1
"""Content Model: the closed set of content blocks shared by every vendor adapter.

A message's content is either a legacy plain string or a list of typed
blocks. Blocks serialize with camelCase keys (``generationId``,
``publicMessage``) so they can travel unchanged to the browser.

Visibility rules:
  - ``text`` is the only block rendered as answer text.
  - ``thinking`` is rendered separately as a reasoning trace.
  - ``redacted_thinking`` is kept for protocol continuity, never rendered.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _Block(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TextBlock(_Block):
    """Answer text."""

    type: Literal["text"] = "text"
    text: str


class ThinkingBlock(_Block):
    """Vendor-exposed reasoning trace.

    ``signature`` is opaque provenance: the vendor's own signature when it
    supplies one (Anthropic), otherwise the vendor name.
    """

    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str = ""


class RedactedThinkingBlock(_Block):
    """Reasoning the vendor declined to reveal."""

    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


class ImageBlock(_Block):
    """A finished image. ``generation_id`` links back to its preview."""

    type: Literal["image"] = "image"
    url: str
    generation_id: str | None = None


class ImageDataBlock(_Block):
    """In-progress image preview, superseded by an ImageBlock with the same id."""

    type: Literal["image_data"] = "image_data"
    id: str
    base64_data: str


class ToolUseBlock(_Block):
    """A tool invocation requested by the model."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ErrorBlock(_Block):
    """A recoverable failure surfaced inline in the conversation."""

    type: Literal["error"] = "error"
    public_message: str
    private_message: str = ""


ContentBlock = Annotated[
    Union[
        TextBlock,
        ThinkingBlock,
        RedactedThinkingBlock,
        ImageBlock,
        ImageDataBlock,
        ToolUseBlock,
        ErrorBlock,
    ],
    Field(discriminator="type"),
]

MessageContent = Union[str, list[ContentBlock]]

_BLOCK_LIST = TypeAdapter(list[ContentBlock])


def parse_blocks(raw: list[dict[str, Any]]) -> list[ContentBlock]:
    """Validate raw (wire) dicts into typed content blocks."""
    return _BLOCK_LIST.validate_python(raw)


def is_content_block_array(content: Any) -> bool:
    """Return True when ``content`` is a list made only of content blocks."""
    if not isinstance(content, list):
        return False
    return all(
        isinstance(
            block,
            (
                TextBlock,
                ThinkingBlock,
                RedactedThinkingBlock,
                ImageBlock,
                ImageDataBlock,
                ToolUseBlock,
                ErrorBlock,
            ),
        )
        for block in content
    )


def normalize_content(content: MessageContent) -> list[ContentBlock]:
    """Convert legacy string content into the block-list form."""
    if isinstance(content, str):
        return [TextBlock(text=content)] if content else []
    return list(content)


def content_block_to_string(block: ContentBlock) -> str:
    """Render a single block to plain text. Redacted thinking renders empty."""
    if isinstance(block, TextBlock):
        return block.text
    if isinstance(block, ThinkingBlock):
        return f"<thinking>{block.thinking}</thinking>"
    if isinstance(block, RedactedThinkingBlock):
        return ""
    if isinstance(block, ImageBlock):
        return f"[image: {block.url}]"
    if isinstance(block, ImageDataBlock):
        return f"[image preview: {block.id}]"
    if isinstance(block, ToolUseBlock):
        return f"[tool: {block.name}]"
    if isinstance(block, ErrorBlock):
        return f"[error: {block.public_message}]"
    return ""


def content_to_string(content: MessageContent) -> str:
    """Render a whole message content to plain text, newline-joined."""
    if isinstance(content, str):
        return content
    rendered = (content_block_to_string(b) for b in content)
    return "\n".join(r for r in rendered if r)


def get_visible_text(content: MessageContent) -> str:
    """Concatenate only ``text`` blocks, newline-separated."""
    if isinstance(content, str):
        return content
    return "\n".join(b.text for b in content if isinstance(b, TextBlock))


def get_thinking_blocks(
    content: MessageContent,
) -> list[ThinkingBlock | RedactedThinkingBlock]:
    """Return the thinking and redacted-thinking blocks, in order."""
    if isinstance(content, str):
        return []
    return [
        b for b in content if isinstance(b, (ThinkingBlock, RedactedThinkingBlock))
    ]


def has_thinking(content: MessageContent) -> bool:
    """True if the content carries any (possibly redacted) reasoning."""
    return bool(get_thinking_blocks(content))


def get_image_blocks(content: MessageContent) -> list[ImageBlock]:
    """Return finished image blocks, in order."""
    if isinstance(content, str):
        return []
    return [b for b in content if isinstance(b, ImageBlock)]
