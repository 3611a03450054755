# src/llm/adapters/openai_adapter.py — v2
"""OpenAI adapter.

Non-streaming chat uses Chat Completions; streaming uses the Responses API,
which adds reasoning summaries, web search, image generation with partial
previews and ``previous_response_id`` continuation. Image generation for
the ``dall-e`` family goes through the Images API.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from snowgoose.core.content import (
    ContentBlock,
    ImageBlock,
    TextBlock,
    get_visible_text,
    normalize_content,
)
from snowgoose.core.models import Chat
from snowgoose.core.stream import (
    ImageChunk,
    ImageDataChunk,
    MetaChunk,
    StreamChunk,
    TextChunk,
    ThinkingChunk,
)
from snowgoose.llm.base_adapter import (
    BaseVendorAdapter,
    VendorResponseError,
    last_user_index,
)
from snowgoose.llm.models import AIRequestOptions, AIResponse, TokenUsage
from snowgoose.llm.token_budget import reasoning_effort

logger = logging.getLogger(__name__)

_PARTIAL_IMAGES = 2


class OpenAIAdapter(BaseVendorAdapter):
    """Adapter for OpenAI models."""

    vendor_name = "OpenAI"
    vendor_key = "openai"

    def _create_client(self) -> Any:
        try:
            import openai
        except ImportError as e:
            raise ImportError("openai package required: pip install openai") from e
        return openai.AsyncOpenAI(
            api_key=self._config.api_key,
            organization=self._config.organization_id,
            base_url=self._config.base_url,
            default_headers=self._config.default_headers or None,
        )

    def build_request(self, chat: Chat) -> AIRequestOptions:
        options = super().build_request(chat)
        tools: list[dict[str, Any]] = []
        if chat.use_web_search and self._model.is_web_search:
            tools.append({"type": "web_search_preview"})
        if chat.use_image_generation and self.is_image_generation_capable:
            tools.append({"type": "image_generation", "partial_images": _PARTIAL_IMAGES})
        options.tools = tools
        return options

    # --- Chat Completions ---

    async def generate_response(self, options: AIRequestOptions) -> AIResponse:
        """Text completion via the Chat Completions API."""
        import openai

        user = await self._require_user()
        params = self._completion_params(options)
        logger.info("Requesting %s completion: model=%s", self.vendor_name, options.model)

        try:
            response = await self._client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            raise VendorResponseError(f"{self.vendor_name} request failed: {e}") from e

        if response.usage is not None:
            await self._record_usage(
                user,
                TokenUsage(
                    input_tokens=response.usage.prompt_tokens or 0,
                    output_tokens=response.usage.completion_tokens or 0,
                ),
            )

        blocks = self._completion_blocks(response)
        if not any(isinstance(b, TextBlock) and b.text for b in blocks):
            raise VendorResponseError(f"No content received from {self.vendor_name}")
        return AIResponse(content=blocks, response_id=getattr(response, "id", None))

    def _completion_params(self, options: AIRequestOptions) -> dict[str, Any]:
        max_tokens = self._max_tokens(options.max_tokens)
        params: dict[str, Any] = {
            "model": options.model,
            "messages": self._to_chat_messages(options),
        }
        if options.thinking_mode and self.is_thinking_capable:
            params["max_completion_tokens"] = max_tokens
            params["reasoning_effort"] = reasoning_effort(max_tokens, options.budget_tokens)
        else:
            params["max_tokens"] = max_tokens
            params["temperature"] = self._temperature(options)
        return params

    def _completion_blocks(self, response: Any) -> list[ContentBlock]:
        content = response.choices[0].message.content
        return [TextBlock(text=content)] if content else []

    def _temperature(self, options: AIRequestOptions) -> float:
        if options.temperature is not None:
            return options.temperature
        return self._settings.default_temperature

    def _to_chat_messages(self, options: AIRequestOptions) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if options.system_prompt:
            messages.append({"role": "system", "content": options.system_prompt})

        current = last_user_index(options.messages)
        for i, message in enumerate(options.messages):
            if message.role == "assistant":
                messages.append(self._assistant_message(message.blocks))
                continue
            text = get_visible_text(message.content)
            images = self._current_images(options) if i == current else []
            if not images:
                messages.append({"role": message.role, "content": text})
                continue
            parts: list[dict[str, Any]] = [{"type": "text", "text": text}]
            parts.extend(
                {"type": "image_url", "image_url": {"url": url, "detail": "low"}}
                for url in images
            )
            messages.append({"role": message.role, "content": parts})
        return messages

    def _assistant_message(self, blocks: list[ContentBlock]) -> dict[str, Any]:
        # Reasoning from earlier turns is not replayed to Chat Completions.
        return {"role": "assistant", "content": get_visible_text(blocks)}

    # --- Images API ---

    async def generate_image(self, chat: Chat) -> str:
        """Generate one image and return its URL."""
        import openai

        await self._require_user()
        prompt = chat.effective_prompt()
        if not prompt:
            raise ValueError("Prompt is required for image generation")

        try:
            response = await self._client.images.generate(
                model=chat.model or self._settings.openai_image_model,
                prompt=prompt,
                n=1,
                size=self._settings.openai_image_size,
                quality=self._settings.openai_image_quality,
            )
        except openai.OpenAIError as e:
            raise VendorResponseError(f"{self.vendor_name} image generation failed: {e}") from e

        data = response.data[0] if response.data else None
        if data is not None and data.url:
            return data.url
        if data is not None and getattr(data, "b64_json", None):
            return await self._image_store.save_base64_image(data.b64_json)
        raise VendorResponseError(f"No image URL received from {self.vendor_name}")

    # --- Responses API (streaming) ---

    async def stream_response(self, options: AIRequestOptions) -> AsyncIterator[StreamChunk]:
        """Stream a turn through the Responses API."""
        import openai

        user = await self._require_user()
        params = self._responses_params(options)
        usage: TokenUsage | None = None
        logger.info("Streaming %s response: model=%s", self.vendor_name, options.model)

        try:
            stream = await self._client.responses.create(**params)
            async for event in stream:
                etype = getattr(event, "type", "")
                if etype == "response.created":
                    yield MetaChunk(response_id=event.response.id)
                elif etype == "response.output_text.delta":
                    yield TextChunk(text=event.delta)
                elif etype == "response.reasoning_summary_text.delta":
                    yield ThinkingChunk(thinking=event.delta, signature=self.vendor_key)
                elif etype == "response.image_generation_call.partial_image":
                    yield ImageDataChunk(id=event.item_id, base64_data=event.partial_image_b64)
                elif etype == "response.output_item.done":
                    item = event.item
                    if getattr(item, "type", "") == "image_generation_call" and item.result:
                        url = await self._image_store.save_base64_image(item.result)
                        yield ImageChunk(generation_id=item.id, url=url)
                elif etype == "response.completed":
                    reported = getattr(event.response, "usage", None)
                    if reported is not None:
                        usage = TokenUsage(
                            input_tokens=reported.input_tokens or 0,
                            output_tokens=reported.output_tokens or 0,
                        )
                elif etype in ("error", "response.failed"):
                    raise VendorResponseError(
                        f"{self.vendor_name} stream failed: {_event_error(event)}"
                    )
        except openai.OpenAIError as e:
            raise VendorResponseError(f"{self.vendor_name} request failed: {e}") from e

        await self._record_usage(user, usage)

    def _responses_params(self, options: AIRequestOptions) -> dict[str, Any]:
        max_tokens = self._max_tokens(options.max_tokens)
        params: dict[str, Any] = {
            "model": options.model,
            "input": self._to_responses_input(options),
            "max_output_tokens": max_tokens,
            "stream": True,
        }
        if options.system_prompt:
            params["instructions"] = options.system_prompt
        if options.previous_response_id:
            params["previous_response_id"] = options.previous_response_id
        if options.tools:
            params["tools"] = options.tools
        if options.thinking_mode and self.is_thinking_capable:
            params["reasoning"] = {
                "effort": reasoning_effort(max_tokens, options.budget_tokens),
                "summary": "auto",
            }
        else:
            params["temperature"] = self._temperature(options)
        return params

    def _to_responses_input(self, options: AIRequestOptions) -> list[dict[str, Any]]:
        """Build Responses API input items.

        With a ``previous_response_id`` the vendor already holds the history,
        so only the newest user message is sent.
        """
        current = last_user_index(options.messages)
        messages = options.messages
        if options.previous_response_id and current is not None:
            messages = messages[current:]
            current = 0

        items: list[dict[str, Any]] = []
        for i, message in enumerate(messages):
            blocks = normalize_content(message.content)
            if message.role == "assistant":
                text = get_visible_text(blocks)
                if text:
                    items.append({"role": "assistant", "content": text})
                items.extend(_image_references(blocks))
                continue

            parts: list[dict[str, Any]] = [
                {"type": "input_text", "text": get_visible_text(blocks)}
            ]
            if i == current:
                parts.extend(
                    {"type": "input_image", "image_url": url}
                    for url in self._current_images(options)
                )
            items.append({"role": message.role, "content": parts})
            items.extend(_image_references(blocks))
        return items


def _image_references(blocks: list[ContentBlock]) -> list[dict[str, Any]]:
    """Reference earlier generated images so they can be edited."""
    return [
        {"type": "image_generation_call", "id": b.generation_id}
        for b in blocks
        if isinstance(b, ImageBlock) and b.generation_id
    ]


def _event_error(event: Any) -> str:
    message = getattr(event, "message", None)
    if message:
        return message
    error = getattr(getattr(event, "response", None), "error", None)
    return getattr(error, "message", None) or "unknown error"
