# src/llm/adapters/google_adapter.py — v2
"""Google Gemini adapter implementing BaseVendorAdapter.

Uses the google-generativeai SDK. Earlier reasoning is replayed as
``<thinking>`` text since Gemini accepts no foreign reasoning blocks.
Inline image parts in replies are persisted through the image store.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
import uuid
from typing import Any, AsyncIterator

from snowgoose.core.content import (
    ContentBlock,
    ImageBlock,
    TextBlock,
    ThinkingBlock,
    normalize_content,
)
from snowgoose.core.models import Chat
from snowgoose.core.stream import ImageChunk, StreamChunk, TextChunk, ThinkingChunk
from snowgoose.llm.base_adapter import (
    BaseVendorAdapter,
    VendorResponseError,
    last_user_index,
    split_data_url,
)
from snowgoose.llm.models import AIRequestOptions, AIResponse, TokenUsage

logger = logging.getLogger(__name__)


class GoogleAdapter(BaseVendorAdapter):
    """Adapter for Google Gemini models."""

    vendor_name = "Google"
    vendor_key = "google"

    def _create_client(self) -> Any:
        try:
            import google.generativeai as genai
        except ImportError as e:
            raise ImportError(
                "google-generativeai package required: pip install google-generativeai"
            ) from e
        genai.configure(api_key=self._config.api_key)
        return genai

    async def generate_response(self, options: AIRequestOptions) -> AIResponse:
        """Completion via ``generate_content_async``."""
        from google.api_core import exceptions as google_exceptions

        user = await self._require_user()
        model = self._generative_model(options)
        logger.info("Requesting %s completion: model=%s", self.vendor_name, options.model)

        try:
            response = await model.generate_content_async(self._to_contents(options))
        except google_exceptions.GoogleAPIError as e:
            raise VendorResponseError(f"{self.vendor_name} request failed: {e}") from e

        await self._record_usage(user, _usage(response))

        parts = _candidate_parts(response)
        if not parts:
            raise VendorResponseError(f"Invalid response structure from {self.vendor_name}")
        blocks: list[ContentBlock] = []
        for part in parts:
            block = await self._part_to_block(part)
            if block is not None:
                blocks.append(block)
        if not blocks:
            raise VendorResponseError(f"No content received from {self.vendor_name}")
        return AIResponse(content=blocks)

    async def generate_image(self, chat: Chat) -> str:
        """Generate one image with the configured Gemini image model."""
        from google.api_core import exceptions as google_exceptions

        user = await self._require_user()
        prompt = chat.effective_prompt()
        if not prompt:
            raise ValueError("Prompt is required for image generation")

        model = self._client.GenerativeModel(
            self._settings.google_image_model,
            generation_config={"response_modalities": ["Text", "Image"]},
        )
        try:
            response = await model.generate_content_async(prompt)
        except google_exceptions.GoogleAPIError as e:
            raise VendorResponseError(f"{self.vendor_name} image generation failed: {e}") from e

        await self._record_usage(user, _usage(response))

        for part in _candidate_parts(response):
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return await self._save_inline(inline)
        raise VendorResponseError("No image data found in response")

    async def stream_response(self, options: AIRequestOptions) -> AsyncIterator[StreamChunk]:
        """Stream text, thought and inline image parts."""
        from google.api_core import exceptions as google_exceptions

        user = await self._require_user()
        model = self._generative_model(options)
        usage: TokenUsage | None = None
        logger.info("Streaming %s response: model=%s", self.vendor_name, options.model)

        try:
            response = await model.generate_content_async(self._to_contents(options), stream=True)
            async for chunk in response:
                usage = _usage(chunk) or usage
                for part in _candidate_parts(chunk):
                    inline = getattr(part, "inline_data", None)
                    if inline is not None and inline.data:
                        url = await self._save_inline(inline)
                        yield ImageChunk(generation_id=uuid.uuid4().hex, url=url)
                    elif getattr(part, "text", ""):
                        if getattr(part, "thought", False):
                            yield ThinkingChunk(thinking=part.text, signature=self.vendor_key)
                        else:
                            yield TextChunk(text=part.text)
        except google_exceptions.GoogleAPIError as e:
            raise VendorResponseError(f"{self.vendor_name} request failed: {e}") from e

        await self._record_usage(user, usage)

    # --- Internal helpers ---

    def _generative_model(self, options: AIRequestOptions) -> Any:
        generation_config: dict[str, Any] = {
            "max_output_tokens": self._max_tokens(options.max_tokens),
            "temperature": (
                options.temperature
                if options.temperature is not None
                else self._settings.default_temperature
            ),
        }
        if self.is_image_generation_capable:
            generation_config["response_modalities"] = ["Text", "Image"]
        return self._client.GenerativeModel(
            options.model,
            system_instruction=options.system_prompt or None,
            generation_config=generation_config,
        )

    def _to_contents(self, options: AIRequestOptions) -> list[dict[str, Any]]:
        current = last_user_index(options.messages)
        contents: list[dict[str, Any]] = []
        for i, message in enumerate(options.messages):
            if message.role == "system":
                continue
            parts: list[dict[str, Any]] = []
            for block in normalize_content(message.content):
                if isinstance(block, TextBlock) and block.text:
                    parts.append({"text": block.text})
                elif isinstance(block, ThinkingBlock):
                    parts.append({"text": f"<thinking>{block.thinking}</thinking>"})
            if i == current:
                parts.extend(_image_part(url) for url in self._current_images(options))
            if parts:
                role = "model" if message.role == "assistant" else "user"
                contents.append({"role": role, "parts": parts})
        return contents

    async def _part_to_block(self, part: Any) -> ContentBlock | None:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return ImageBlock(url=await self._save_inline(inline))
        text = getattr(part, "text", "")
        if not text:
            return None
        if getattr(part, "thought", False):
            return ThinkingBlock(thinking=text, signature=self.vendor_key)
        return TextBlock(text=text)

    async def _save_inline(self, inline: Any) -> str:
        data = inline.data
        if isinstance(data, bytes):
            data = base64.b64encode(data).decode("ascii")
        return await self._image_store.save_base64_image(
            data, getattr(inline, "mime_type", None) or "image/png"
        )


def _image_part(url: str) -> dict[str, Any]:
    inline = split_data_url(url)
    if inline is not None:
        mime_type, data = inline
        return {"inline_data": {"mime_type": mime_type, "data": base64.b64decode(data)}}
    mime_type = mimetypes.guess_type(url)[0] or "image/jpeg"
    return {"file_data": {"mime_type": mime_type, "file_uri": url}}


def _candidate_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _usage(response: Any) -> TokenUsage | None:
    metadata = getattr(response, "usage_metadata", None)
    if metadata is None:
        return None
    return TokenUsage(
        input_tokens=getattr(metadata, "prompt_token_count", 0) or 0,
        output_tokens=getattr(metadata, "candidates_token_count", 0) or 0,
    )
