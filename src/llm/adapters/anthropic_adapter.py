# src/llm/adapters/anthropic_adapter.py — v3
"""Anthropic Claude adapter.

Uses the official anthropic SDK (Messages API). Supports vision, extended
thinking with signed reasoning blocks, and tool use through an MCP server.
Thinking blocks keep the vendor's signature so that they can be replayed
natively on the next turn.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator

from snowgoose.core.content import (
    ContentBlock,
    RedactedThinkingBlock,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
    get_visible_text,
    normalize_content,
)
from snowgoose.core.models import Chat, ChatResponse, MCPTool
from snowgoose.core.stream import (
    MetaChunk,
    RedactedThinkingChunk,
    StreamChunk,
    TextChunk,
    ThinkingChunk,
)
from snowgoose.llm.base_adapter import (
    BaseVendorAdapter,
    VendorResponseError,
    last_user_index,
    split_data_url,
)
from snowgoose.llm.models import AIRequestOptions, AIResponse, TokenUsage
from snowgoose.llm.token_budget import anthropic_thinking_budget
from snowgoose.mcp_bridge.tools import format_tools_for_anthropic, normalize_tool_result

if TYPE_CHECKING:
    from snowgoose.mcp_bridge.manager import MCPManager

logger = logging.getLogger(__name__)

# Signatures written by other vendors' adapters; Anthropic cannot verify them.
_FOREIGN_SIGNATURES = frozenset({"", "anthropic", "openai", "google", "openrouter"})


class AnthropicAdapter(BaseVendorAdapter):
    """Adapter for Anthropic Claude models."""

    vendor_name = "Anthropic"
    vendor_key = "anthropic"

    def _create_client(self) -> Any:
        try:
            import anthropic
        except ImportError as e:
            raise ImportError(
                "anthropic package required: pip install anthropic"
            ) from e
        return anthropic.AsyncAnthropic(api_key=self._config.api_key)

    @property
    def supports_mcp(self) -> bool:
        return True

    async def generate_response(self, options: AIRequestOptions) -> AIResponse:
        """Text completion via the Messages API."""
        user = await self._require_user()
        params = self._build_params(options)
        logger.info("Requesting %s completion: model=%s", self.vendor_name, options.model)

        response = await self._create(params)
        await self._record_usage(user, _usage(response))

        blocks = [b for b in _from_anthropic(response.content) if not isinstance(b, ToolUseBlock)]
        if not blocks:
            raise VendorResponseError(f"No content received from {self.vendor_name}")
        return AIResponse(content=blocks, response_id=getattr(response, "id", None))

    async def send_mcp_chat(
        self, chat: Chat, mcp_tool: MCPTool, manager: MCPManager
    ) -> ChatResponse:
        """Tool-augmented turn: one tool round, then one follow-up call.

        Tool failures are reported inline and end the turn without a
        follow-up call.
        """
        user = await self._require_user()
        options = self.build_request(chat)
        params = self._build_params(options)
        params["tools"] = format_tools_for_anthropic(await manager.get_available_tools(mcp_tool))
        logger.info(
            "Requesting %s tool turn: model=%s tool=%s (%d functions)",
            self.vendor_name, options.model, mcp_tool.name, len(params["tools"]),
        )

        response = await self._create(params)
        await self._record_usage(user, _usage(response))

        content: list[ContentBlock] = []
        tool_results: list[dict[str, Any]] = []
        failed = False
        for block in response.content:
            btype = getattr(block, "type", None)
            if btype != "tool_use":
                content.extend(_from_anthropic([block]))
                continue

            args = dict(block.input or {})
            content.append(
                TextBlock(text=f"[Calling tool {block.name} with args {json.dumps(args)}]")
            )
            try:
                result = await manager.call_tool(mcp_tool, block.name, args)
            except Exception as e:
                logger.warning("Tool %s on %s failed: %s", block.name, mcp_tool.name, e)
                content.append(TextBlock(text=f"Error calling tool {block.name}: {e}"))
                failed = True
                break
            tool_results.append(
                {
                    "type": "tool_result",
                    "tool_use_id": block.id,
                    "content": normalize_tool_result(result),
                }
            )

        if tool_results and not failed:
            params["messages"] = [
                *params["messages"],
                {"role": "assistant", "content": [_to_native(b) for b in response.content]},
                {"role": "user", "content": tool_results},
            ]
            follow_up = await self._create(params)
            await self._record_usage(user, _usage(follow_up))
            content.extend(
                b for b in _from_anthropic(follow_up.content) if not isinstance(b, ToolUseBlock)
            )

        if not content:
            raise VendorResponseError(f"No content received from {self.vendor_name}")
        return ChatResponse(role="assistant", content=content)

    async def stream_response(self, options: AIRequestOptions) -> AsyncIterator[StreamChunk]:
        """Stream raw message events as chunks, including redacted reasoning blocks."""
        import anthropic

        user = await self._require_user()
        params = self._build_params(options)
        params["stream"] = True
        input_tokens = 0
        output_tokens = 0
        logger.info("Streaming %s response: model=%s", self.vendor_name, options.model)

        try:
            stream = await self._client.messages.create(**params)
            async for event in stream:
                etype = getattr(event, "type", "")
                if etype == "message_start":
                    input_tokens = getattr(event.message.usage, "input_tokens", 0) or 0
                    yield MetaChunk(response_id=event.message.id)
                elif etype == "content_block_start":
                    block = getattr(event, "content_block", None)
                    btype = getattr(block, "type", None)
                    if btype == "thinking":
                        yield ThinkingChunk(thinking=getattr(block, "thinking", "") or "", new_block=True)
                    elif btype == "redacted_thinking":
                        yield RedactedThinkingChunk(data=block.data)
                elif etype == "content_block_delta":
                    delta = event.delta
                    if delta.type == "text_delta":
                        yield TextChunk(text=delta.text)
                    elif delta.type == "thinking_delta":
                        yield ThinkingChunk(thinking=delta.thinking)
                    elif delta.type == "signature_delta":
                        yield ThinkingChunk(thinking="", signature=delta.signature)
                elif etype == "message_delta":
                    output_tokens = getattr(event.usage, "output_tokens", 0) or 0
        except anthropic.AnthropicError as e:
            raise VendorResponseError(f"{self.vendor_name} request failed: {e}") from e

        await self._record_usage(
            user, TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens)
        )

    # --- Internal helpers ---

    async def _create(self, params: dict[str, Any]) -> Any:
        import anthropic

        try:
            return await self._client.messages.create(**params)
        except anthropic.AnthropicError as e:
            raise VendorResponseError(f"{self.vendor_name} request failed: {e}") from e

    def _build_params(self, options: AIRequestOptions) -> dict[str, Any]:
        max_tokens = self._max_tokens(options.max_tokens)
        system_parts = [options.system_prompt] if options.system_prompt else []
        system_parts.extend(
            get_visible_text(m.content) for m in options.messages if m.role == "system"
        )

        params: dict[str, Any] = {
            "model": options.model,
            "max_tokens": max_tokens,
            "messages": self._to_anthropic_messages(options),
        }
        if system_parts:
            params["system"] = "\n\n".join(system_parts)

        if options.thinking_mode and self.is_thinking_capable:
            max_tokens, budget = anthropic_thinking_budget(max_tokens, options.budget_tokens)
            params["max_tokens"] = max_tokens
            params["thinking"] = {"type": "enabled", "budget_tokens": budget}
        elif options.temperature is not None:
            params["temperature"] = options.temperature
        else:
            params["temperature"] = self._settings.default_temperature

        if options.tools:
            params["tools"] = options.tools
        return params

    def _to_anthropic_messages(self, options: AIRequestOptions) -> list[dict[str, Any]]:
        current = last_user_index(options.messages)
        messages: list[dict[str, Any]] = []
        for i, message in enumerate(options.messages):
            if message.role == "system":
                continue
            blocks = normalize_content(message.content)
            if message.role == "assistant":
                parts = [p for p in (_assistant_part(b) for b in blocks) if p is not None]
            else:
                text = get_visible_text(blocks)
                parts = [{"type": "text", "text": text}] if text else []
                if i == current:
                    parts.extend(_image_part(url) for url in self._current_images(options))
            if parts:
                messages.append({"role": message.role, "content": parts})
        return messages


def _assistant_part(block: ContentBlock) -> dict[str, Any] | None:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text} if block.text else None
    if isinstance(block, ThinkingBlock):
        if block.signature in _FOREIGN_SIGNATURES:
            return None
        return {"type": "thinking", "thinking": block.thinking, "signature": block.signature}
    if isinstance(block, RedactedThinkingBlock):
        return {"type": "redacted_thinking", "data": block.data}
    return None


def _image_part(url: str) -> dict[str, Any]:
    inline = split_data_url(url)
    if inline is not None:
        media_type, data = inline
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }
    return {"type": "image", "source": {"type": "url", "url": url}}


def _from_anthropic(content: list[Any]) -> list[ContentBlock]:
    """Convert SDK content blocks to content blocks, skipping unknown types."""
    blocks: list[ContentBlock] = []
    for block in content:
        btype = getattr(block, "type", None)
        if btype == "text":
            blocks.append(TextBlock(text=block.text))
        elif btype == "thinking":
            blocks.append(ThinkingBlock(thinking=block.thinking, signature=block.signature or ""))
        elif btype == "redacted_thinking":
            blocks.append(RedactedThinkingBlock(data=block.data))
        elif btype == "tool_use":
            blocks.append(ToolUseBlock(id=block.id, name=block.name, input=dict(block.input or {})))
    return blocks


def _to_native(block: Any) -> dict[str, Any]:
    """Echo an SDK content block back in request form."""
    btype = getattr(block, "type", None)
    if btype == "thinking":
        return {"type": "thinking", "thinking": block.thinking, "signature": block.signature}
    if btype == "redacted_thinking":
        return {"type": "redacted_thinking", "data": block.data}
    if btype == "tool_use":
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": dict(block.input or {})}
    return {"type": "text", "text": getattr(block, "text", "")}


def _usage(response: Any) -> TokenUsage | None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None
    return TokenUsage(
        input_tokens=getattr(usage, "input_tokens", 0) or 0,
        output_tokens=getattr(usage, "output_tokens", 0) or 0,
    )
