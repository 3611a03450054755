# src/llm/adapters/openrouter_adapter.py — v1
"""OpenRouter adapter.

OpenRouter speaks the Chat Completions protocol, so this adapter reuses the
OpenAI client with OpenRouter's base URL and attribution headers. Reasoning
arrives in a ``reasoning`` field next to ``content`` and is replayed the
same way on the next turn.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from snowgoose.core.content import ContentBlock, TextBlock, ThinkingBlock, get_visible_text
from snowgoose.core.models import Chat
from snowgoose.core.stream import MetaChunk, StreamChunk, TextChunk, ThinkingChunk
from snowgoose.llm.adapters.openai_adapter import OpenAIAdapter
from snowgoose.llm.base_adapter import BaseVendorAdapter, VendorResponseError
from snowgoose.llm.models import AIRequestOptions, TokenUsage
from snowgoose.llm.token_budget import resolve_thinking_budget

logger = logging.getLogger(__name__)


class OpenRouterAdapter(OpenAIAdapter):
    """Adapter for models routed through OpenRouter."""

    vendor_name = "OpenRouter"
    vendor_key = "openrouter"

    def _create_client(self) -> Any:
        try:
            import openai
        except ImportError as e:
            raise ImportError("openai package required: pip install openai") from e
        headers = self._config.default_headers or {
            "HTTP-Referer": self._settings.site_url,
            "X-Title": self._settings.app_title,
        }
        return openai.AsyncOpenAI(
            api_key=self._config.api_key,
            base_url=self._config.base_url or self._settings.openrouter_base_url,
            default_headers=headers,
        )

    def build_request(self, chat: Chat) -> AIRequestOptions:
        # Responses API tools do not exist on OpenRouter.
        return BaseVendorAdapter.build_request(self, chat)

    async def generate_image(self, chat: Chat) -> str:
        return await BaseVendorAdapter.generate_image(self, chat)

    def _completion_params(self, options: AIRequestOptions) -> dict[str, Any]:
        max_tokens = self._max_tokens(options.max_tokens)
        params: dict[str, Any] = {
            "model": options.model,
            "messages": self._to_chat_messages(options),
            "max_tokens": max_tokens,
            "temperature": self._temperature(options),
        }
        if options.thinking_mode and self.is_thinking_capable:
            params["extra_body"] = {
                "reasoning": {"max_tokens": resolve_thinking_budget(max_tokens, options.budget_tokens)}
            }
        return params

    def _completion_blocks(self, response: Any) -> list[ContentBlock]:
        message = response.choices[0].message
        blocks: list[ContentBlock] = []
        reasoning = getattr(message, "reasoning", None)
        if reasoning:
            blocks.append(ThinkingBlock(thinking=reasoning, signature=self.vendor_key))
        if message.content:
            blocks.append(TextBlock(text=message.content))
        return blocks

    def _assistant_message(self, blocks: list[ContentBlock]) -> dict[str, Any]:
        message: dict[str, Any] = {"role": "assistant", "content": get_visible_text(blocks)}
        reasoning = "".join(b.thinking for b in blocks if isinstance(b, ThinkingBlock))
        if reasoning:
            message["reasoning"] = reasoning
        return message

    async def stream_response(self, options: AIRequestOptions) -> AsyncIterator[StreamChunk]:
        """Stream content and reasoning deltas; usage arrives in the last chunk."""
        import openai

        user = await self._require_user()
        params = self._completion_params(options)
        params["stream"] = True
        params["stream_options"] = {"include_usage": True}
        usage: TokenUsage | None = None
        response_id: str | None = None
        logger.info("Streaming %s response: model=%s", self.vendor_name, options.model)

        try:
            stream = await self._client.chat.completions.create(**params)
            async for chunk in stream:
                if response_id is None and getattr(chunk, "id", None):
                    response_id = chunk.id
                    yield MetaChunk(response_id=response_id)
                reported = getattr(chunk, "usage", None)
                if reported is not None:
                    usage = TokenUsage(
                        input_tokens=reported.prompt_tokens or 0,
                        output_tokens=reported.completion_tokens or 0,
                    )
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                reasoning = getattr(delta, "reasoning", None)
                if reasoning:
                    yield ThinkingChunk(thinking=reasoning, signature=self.vendor_key)
                if getattr(delta, "content", None):
                    yield TextChunk(text=delta.content)
        except openai.OpenAIError as e:
            raise VendorResponseError(f"{self.vendor_name} request failed: {e}") from e

        await self._record_usage(user, usage)
