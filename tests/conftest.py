# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides catalog records, in-memory stores, settings without a .env file,
and helpers that build fake vendor SDK streams. No network access: every
vendor client is a mock injected through the adapter's ``client=`` argument.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from snowgoose.config.settings import Settings, load_settings
from snowgoose.core.models import ApiVendor, Chat, MCPTool, ModelRecord, UserRecord
from snowgoose.llm.models import VendorConfig
from snowgoose.storage.base_user_store import set_current_user
from snowgoose.storage.memory_store import InMemoryModelStore, InMemoryUserStore
from snowgoose.tracking.call_logger import CallLogger
from snowgoose.tracking.usage_meter import UsageMeter


def _async_stream(items: list[Any]):
    async def _gen():
        for item in items:
            yield item

    return _gen()


def _anthropic_message(
    *blocks: Any, input_tokens: int = 100, output_tokens: int = 50
) -> SimpleNamespace:
    return SimpleNamespace(
        id="msg_01",
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
    )


# === FIXTURES: Request context ===


@pytest.fixture(autouse=True)
def no_current_user():
    """Start every test with no bound user and unbind whatever the test set."""
    set_current_user(None)
    yield
    set_current_user(None)


# === FIXTURES: Fake vendor SDK objects ===


@pytest.fixture
def async_stream():
    """Async iterator over a list, as returned by streaming SDK calls."""
    return _async_stream


@pytest.fixture
def anthropic_message():
    """Build an Anthropic Messages API response from content blocks."""
    return _anthropic_message


@pytest.fixture
def fake_anthropic_client():
    """Mock AsyncAnthropic whose ``messages.create`` returns responses in order."""

    def _make(*responses: Any) -> MagicMock:
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=list(responses))
        return client

    return _make


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return load_settings(_env_file=None, default_max_tokens=1024, default_temperature=0.7)


# === FIXTURES: Catalog records ===


@pytest.fixture
def vendors() -> list[ApiVendor]:
    return [
        ApiVendor(id=1, name="anthropic"),
        ApiVendor(id=2, name="OpenAI"),
        ApiVendor(id=3, name="google"),
        ApiVendor(id=4, name="openrouter"),
        ApiVendor(id=9, name="mistral"),
    ]


@pytest.fixture
def claude_model() -> ModelRecord:
    return ModelRecord(
        id=1,
        api_name="claude-sonnet-4-20250514",
        name="Claude Sonnet",
        api_vendor_id=1,
        is_vision=True,
        is_thinking=True,
        input_token_cost=3.0,
        output_token_cost=15.0,
    )


@pytest.fixture
def gpt_model() -> ModelRecord:
    return ModelRecord(
        id=2,
        api_name="gpt-4o",
        name="GPT-4o",
        api_vendor_id=2,
        is_vision=True,
        is_web_search=True,
        input_token_cost=2.5,
        output_token_cost=10.0,
    )


@pytest.fixture
def gemini_model() -> ModelRecord:
    return ModelRecord(
        id=3,
        api_name="gemini-2.0-flash",
        name="Gemini Flash",
        api_vendor_id=3,
        is_vision=True,
        input_token_cost=0.1,
        output_token_cost=0.4,
    )


@pytest.fixture
def openrouter_model() -> ModelRecord:
    return ModelRecord(
        id=4,
        api_name="deepseek/deepseek-r1",
        name="DeepSeek R1",
        api_vendor_id=4,
        is_thinking=True,
        input_token_cost=0.5,
        output_token_cost=2.0,
    )


@pytest.fixture
def dalle_model() -> ModelRecord:
    return ModelRecord(
        id=5,
        api_name="dall-e-3",
        name="DALL-E 3",
        api_vendor_id=2,
        is_image_generation=True,
    )


@pytest.fixture
def weather_tool() -> MCPTool:
    return MCPTool(id=7, name="weather", path="weather-server --stdio")


@pytest.fixture
def model_store(
    vendors, claude_model, gpt_model, gemini_model, openrouter_model, dalle_model, weather_tool
) -> InMemoryModelStore:
    return InMemoryModelStore(
        vendors=vendors,
        models=[claude_model, gpt_model, gemini_model, openrouter_model, dalle_model],
        mcp_tools=[weather_tool],
    )


# === FIXTURES: Users and metering ===


@pytest.fixture
def alice() -> UserRecord:
    return UserRecord(id=1, username="alice", email="alice@example.com", usage_limit=10.0)


@pytest.fixture
def user_store(alice: UserRecord) -> InMemoryUserStore:
    return InMemoryUserStore([alice])


@pytest.fixture
def call_logger() -> CallLogger:
    return CallLogger()


@pytest.fixture
def usage_meter(user_store: InMemoryUserStore, call_logger: CallLogger) -> UsageMeter:
    return UsageMeter(user_store, call_logger)


@pytest.fixture
def vendor_config() -> VendorConfig:
    return VendorConfig(api_key="sk-test")


# === FIXTURES: Chats ===


@pytest.fixture
def make_chat():
    """Build a one-turn Chat for a model record."""

    def _make(model: ModelRecord, prompt: str = "Hello", **fields: Any) -> Chat:
        chat = Chat(model=model.api_name, model_id=model.id, **fields)
        chat.append_user_message(prompt)
        return chat

    return _make
