# src/core/stream.py — v1
"""Incremental chunk protocol for streaming responses, and its pure fold.

Each chunk is a discriminated JSON object. Consumers rebuild the reply by
folding chunks into a block list:

  - ``text`` / ``thinking``: appended in place when the last block has the
    same type, otherwise inserted. A thinking chunk flagged ``newBlock``
    always starts a new block.
  - ``redacted_thinking``: inserted as an opaque block.
  - ``image_data``: replaces the preview with the same id, or is inserted.
  - ``image``: replaces the preview whose id equals its ``generationId``.
  - ``error``: inserted as an error block.
  - ``meta`` / ``stream-complete``: carry no content.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from snowgoose.core.content import (
    ContentBlock,
    ErrorBlock,
    ImageBlock,
    ImageDataBlock,
    RedactedThinkingBlock,
    TextBlock,
    ThinkingBlock,
)

CHUNK_SEPARATOR = "\n\n"


class _Chunk(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MetaChunk(_Chunk):
    type: Literal["meta"] = "meta"
    response_id: str


class TextChunk(_Chunk):
    type: Literal["text"] = "text"
    text: str


class ThinkingChunk(_Chunk):
    """Reasoning delta. ``signature`` arrives once, at the end of a block.

    ``new_block`` marks the first chunk of a reasoning block, so that two
    consecutive signed blocks are not folded together.
    """

    type: Literal["thinking"] = "thinking"
    thinking: str = ""
    signature: str | None = None
    new_block: bool | None = None


class RedactedThinkingChunk(_Chunk):
    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


class ImageDataChunk(_Chunk):
    type: Literal["image_data"] = "image_data"
    id: str
    base64_data: str


class ImageChunk(_Chunk):
    type: Literal["image"] = "image"
    generation_id: str
    url: str


class StreamCompleteChunk(_Chunk):
    type: Literal["stream-complete"] = "stream-complete"


class ErrorChunk(_Chunk):
    type: Literal["error"] = "error"
    public_message: str
    private_message: str = ""


StreamChunk = Annotated[
    Union[
        MetaChunk,
        TextChunk,
        ThinkingChunk,
        RedactedThinkingChunk,
        ImageDataChunk,
        ImageChunk,
        StreamCompleteChunk,
        ErrorChunk,
    ],
    Field(discriminator="type"),
]

_CHUNK = TypeAdapter(StreamChunk)


def encode_chunk(chunk: StreamChunk) -> str:
    """Serialize one chunk for the newline-delimited transport."""
    return chunk.model_dump_json(by_alias=True, exclude_none=True) + CHUNK_SEPARATOR


def decode_chunk(raw: str | dict[str, Any]) -> StreamChunk:
    """Parse one chunk from JSON text or an already-decoded dict."""
    data = json.loads(raw) if isinstance(raw, str) else raw
    return _CHUNK.validate_python(data)


def decode_chunks(payload: str) -> list[StreamChunk]:
    """Split a transport payload into chunks, skipping blank segments."""
    return [
        decode_chunk(part)
        for part in payload.split(CHUNK_SEPARATOR)
        if part.strip()
    ]


def accumulate_chunk(
    blocks: list[ContentBlock], chunk: StreamChunk
) -> list[ContentBlock]:
    """Fold one chunk into the accumulated blocks. Never mutates ``blocks``."""
    result = list(blocks)
    last = result[-1] if result else None

    if isinstance(chunk, TextChunk):
        if isinstance(last, TextBlock):
            result[-1] = TextBlock(text=last.text + chunk.text)
        else:
            result.append(TextBlock(text=chunk.text))
        return result

    if isinstance(chunk, ThinkingChunk):
        if isinstance(last, ThinkingBlock) and not chunk.new_block:
            result[-1] = ThinkingBlock(
                thinking=last.thinking + chunk.thinking,
                signature=chunk.signature or last.signature,
            )
        else:
            result.append(
                ThinkingBlock(thinking=chunk.thinking, signature=chunk.signature or "")
            )
        return result

    if isinstance(chunk, RedactedThinkingChunk):
        result.append(RedactedThinkingBlock(data=chunk.data))
        return result

    if isinstance(chunk, ImageDataChunk):
        preview = ImageDataBlock(id=chunk.id, base64_data=chunk.base64_data)
        index = _find_preview(result, chunk.id)
        if index is None:
            result.append(preview)
        else:
            result[index] = preview
        return result

    if isinstance(chunk, ImageChunk):
        image = ImageBlock(url=chunk.url, generation_id=chunk.generation_id)
        index = _find_preview(result, chunk.generation_id)
        if index is None:
            index = _find_image(result, chunk.generation_id)
        if index is None:
            result.append(image)
        else:
            result[index] = image
        return result

    if isinstance(chunk, ErrorChunk):
        result.append(
            ErrorBlock(
                public_message=chunk.public_message,
                private_message=chunk.private_message,
            )
        )
        return result

    # meta and stream-complete carry no content
    return result


def aggregate_chunks(
    chunks: Iterable[StreamChunk],
) -> tuple[list[ContentBlock], str | None]:
    """Fold a whole stream. Returns (blocks, vendor response id)."""
    blocks: list[ContentBlock] = []
    response_id: str | None = None
    for chunk in chunks:
        if isinstance(chunk, MetaChunk):
            response_id = chunk.response_id
        blocks = accumulate_chunk(blocks, chunk)
    return blocks, response_id


def _find_preview(blocks: list[ContentBlock], image_id: str) -> int | None:
    for i, block in enumerate(blocks):
        if isinstance(block, ImageDataBlock) and block.id == image_id:
            return i
    return None


def _find_image(blocks: list[ContentBlock], generation_id: str) -> int | None:
    for i, block in enumerate(blocks):
        if isinstance(block, ImageBlock) and block.generation_id == generation_id:
            return i
    return None
