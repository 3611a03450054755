# tests/unit/core/test_unit_content.py — v1
"""Tests for core/content.py — block types and content helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from snowgoose.core.content import (
    ErrorBlock,
    ImageBlock,
    ImageDataBlock,
    RedactedThinkingBlock,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
    content_block_to_string,
    content_to_string,
    get_image_blocks,
    get_thinking_blocks,
    get_visible_text,
    has_thinking,
    is_content_block_array,
    normalize_content,
    parse_blocks,
)


class TestParseBlocks:
    def test_discriminates_on_type(self):
        blocks = parse_blocks(
            [
                {"type": "text", "text": "hi"},
                {"type": "thinking", "thinking": "hmm", "signature": "sig"},
                {"type": "redacted_thinking", "data": "xyz"},
                {"type": "image", "url": "https://x/y.png", "generationId": "ig_1"},
                {"type": "image_data", "id": "ig_1", "base64Data": "AAAA"},
            ]
        )
        assert [type(b) for b in blocks] == [
            TextBlock, ThinkingBlock, RedactedThinkingBlock, ImageBlock, ImageDataBlock,
        ]
        assert blocks[3].generation_id == "ig_1"
        assert blocks[4].base64_data == "AAAA"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_blocks([{"type": "video", "url": "x"}])

    def test_thinking_signature_defaults_empty(self):
        (block,) = parse_blocks([{"type": "thinking", "thinking": "t"}])
        assert block.signature == ""


class TestIsContentBlockArray:
    def test_block_list(self):
        assert is_content_block_array([TextBlock(text="a"), ThinkingBlock(thinking="b")])

    def test_empty_list(self):
        assert is_content_block_array([])

    def test_string_is_not(self):
        assert not is_content_block_array("hello")

    def test_mixed_list_is_not(self):
        assert not is_content_block_array([TextBlock(text="a"), {"type": "text"}])


class TestNormalize:
    def test_string_becomes_text_block(self):
        assert normalize_content("hello") == [TextBlock(text="hello")]

    def test_empty_string_becomes_empty_list(self):
        assert normalize_content("") == []

    def test_list_is_copied(self):
        original = [TextBlock(text="a")]
        normalized = normalize_content(original)
        assert normalized == original
        assert normalized is not original


class TestVisibleText:
    def test_only_text_blocks(self):
        content = [
            ThinkingBlock(thinking="private"),
            TextBlock(text="Hello"),
            ImageBlock(url="https://x/y.png"),
            TextBlock(text="world"),
        ]
        assert get_visible_text(content) == "Hello\nworld"

    def test_string_passthrough(self):
        assert get_visible_text("plain") == "plain"

    def test_thinking_only_is_empty(self):
        assert get_visible_text([ThinkingBlock(thinking="t")]) == ""


class TestToString:
    def test_block_renderings(self):
        assert content_block_to_string(TextBlock(text="a")) == "a"
        assert content_block_to_string(ThinkingBlock(thinking="t")) == "<thinking>t</thinking>"
        assert content_block_to_string(RedactedThinkingBlock(data="x")) == ""
        assert content_block_to_string(ToolUseBlock(id="t1", name="get_weather")) == "[tool: get_weather]"
        assert content_block_to_string(ErrorBlock(public_message="oops")) == "[error: oops]"

    def test_content_to_string_skips_empty(self):
        content = [TextBlock(text="a"), RedactedThinkingBlock(data="x"), TextBlock(text="b")]
        assert content_to_string(content) == "a\nb"


class TestThinkingAndImages:
    def test_thinking_blocks_in_order(self):
        content = [
            ThinkingBlock(thinking="one"),
            TextBlock(text="answer"),
            RedactedThinkingBlock(data="opaque"),
        ]
        blocks = get_thinking_blocks(content)
        assert len(blocks) == 2
        assert isinstance(blocks[1], RedactedThinkingBlock)
        assert has_thinking(content)

    def test_no_thinking_in_string(self):
        assert not has_thinking("just text")

    def test_image_blocks_exclude_previews(self):
        content = [ImageDataBlock(id="p", base64_data="AA"), ImageBlock(url="u")]
        assert get_image_blocks(content) == [ImageBlock(url="u")]
