# tests/unit/core/test_unit_models.py — v2
"""Tests for core/models.py — Pydantic model validation and chat helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from snowgoose.core.content import TextBlock, ThinkingBlock
from snowgoose.core.models import Chat, ChatResponse, Message, ModelRecord, UserRecord


class TestMessage:
    def test_string_content(self):
        msg = Message(role="user", content="hi")
        assert msg.blocks == [TextBlock(text="hi")]

    def test_block_content_from_wire(self):
        msg = Message.model_validate(
            {"role": "assistant", "content": [{"type": "thinking", "thinking": "t"}, {"type": "text", "text": "a"}]}
        )
        assert isinstance(msg.content[0], ThinkingBlock)

    def test_normalized_copy(self):
        msg = Message(role="user", content="hi")
        assert msg.normalized().content == [TextBlock(text="hi")]
        assert msg.content == "hi"

    def test_invalid_role(self):
        with pytest.raises(ValidationError):
            Message(role="tool", content="x")


class TestChat:
    def test_camel_case_wire_names(self):
        chat = Chat.model_validate(
            {
                "model": "gpt-4o",
                "modelId": 2,
                "responseHistory": [{"role": "user", "content": "hi"}],
                "maxTokens": 500,
                "budgetTokens": 100,
                "previousResponseId": "resp_1",
            }
        )
        assert chat.model_id == 2
        assert chat.max_tokens == 500
        assert chat.previous_response_id == "resp_1"
        assert chat.current_message.role == "user"

    def test_effective_prompt_prefers_explicit(self):
        chat = Chat(model="m", model_id=1, prompt="draw a cat")
        chat.append_user_message("ignored")
        assert chat.effective_prompt() == "draw a cat"

    def test_effective_prompt_falls_back_to_newest_message(self):
        chat = Chat(model="m", model_id=1)
        chat.append_user_message("first")
        chat.append_user_message("second")
        assert chat.effective_prompt() == "second"
        assert [m.content[0].text for m in chat.previous_messages] == ["first"]

    def test_empty_history(self):
        chat = Chat(model="m", model_id=1)
        assert chat.current_message is None
        assert chat.effective_prompt() == ""


class TestRecords:
    def test_chat_response_visible_text(self):
        resp = ChatResponse(content=[ThinkingBlock(thinking="x"), TextBlock(text="y")])
        assert resp.visible_text == "y"

    def test_model_defaults(self):
        model = ModelRecord(id=1, api_name="m", name="M")
        assert not model.is_vision
        assert model.input_token_cost is None
        assert not model.paid_only

    def test_user_defaults(self):
        user = UserRecord(id=1, username="bob")
        assert user.period_usage == 0.0
        assert user.usage_limit is None
