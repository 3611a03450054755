# src/llm/base_adapter.py — v1
"""Abstract vendor adapter interface.

One adapter instance is built per request from a VendorConfig and a
ModelRecord. Capability flags and token prices are read from the record at
construction time and exposed read-only.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, AsyncIterator

from snowgoose.config.settings import Settings
from snowgoose.core.content import get_image_blocks
from snowgoose.core.models import Chat, ChatResponse, MCPTool, Message, ModelRecord, UserRecord
from snowgoose.core.stream import StreamChunk
from snowgoose.llm.models import AIRequestOptions, AIResponse, TokenUsage, VendorConfig
from snowgoose.llm.token_budget import resolve_max_tokens
from snowgoose.storage.base_image_store import BaseImageStore
from snowgoose.storage.base_user_store import BaseUserStore
from snowgoose.storage.image_stores import DataUrlImageStore
from snowgoose.tracking.cost_calculator import compute_call_cost
from snowgoose.tracking.usage_meter import UsageMeter, UsageMeteringError

if TYPE_CHECKING:
    from snowgoose.mcp_bridge.manager import MCPManager

logger = logging.getLogger(__name__)


def to_image_url(data: str, mime_type: str = "image/jpeg") -> str:
    """Accept a URL, a data URL or bare base64 and return a fetchable URL."""
    if data.startswith(("http://", "https://", "data:")):
        return data
    return f"data:{mime_type};base64,{data}"


def split_data_url(url: str) -> tuple[str, str] | None:
    """Return ``(mime_type, base64_payload)`` for a base64 data URL, else None."""
    if not url.startswith("data:") or ";base64," not in url:
        return None
    header, payload = url.split(",", 1)
    mime_type = header[len("data:"):].split(";", 1)[0] or "image/jpeg"
    return mime_type, payload


def last_user_index(messages: list[Message]) -> int | None:
    for i in range(len(messages) - 1, -1, -1):
        if messages[i].role == "user":
            return i
    return None


class NotSupportedError(Exception):
    """The adapter's vendor or model lacks the requested capability."""


class AuthenticationError(Exception):
    """No application user can be resolved for the request."""


class VendorResponseError(Exception):
    """The vendor call failed or returned no usable content."""


class BaseVendorAdapter(ABC):
    """Unified interface for all vendor adapters.

    Args:
        config: Vendor credentials.
        model: Model configuration record.
        user_store: Resolves the current user and backs usage metering.
        usage_meter: Meter for call costs; a plain meter over ``user_store``
            is created when omitted.
        image_store: Destination for generated image payloads.
        settings: Application settings (defaults for tokens and images).
        client: Pre-built vendor SDK client, mainly for tests.
    """

    #: Human-readable vendor name used in error messages.
    vendor_name: str = ""
    #: Registry key (lowercase).
    vendor_key: str = ""

    def __init__(
        self,
        config: VendorConfig,
        model: ModelRecord,
        *,
        user_store: BaseUserStore,
        usage_meter: UsageMeter | None = None,
        image_store: BaseImageStore | None = None,
        settings: Settings | None = None,
        client: Any = None,
    ) -> None:
        self._config = config
        self._model = model
        self._user_store = user_store
        self._usage_meter = usage_meter or UsageMeter(user_store)
        self._image_store = image_store or DataUrlImageStore()
        self._settings = settings or Settings()
        self.__client = client

    @property
    def _client(self) -> Any:
        """Lazy-init vendor SDK client (only on first API call)."""
        if self.__client is None:
            self.__client = self._create_client()
        return self.__client

    @abstractmethod
    def _create_client(self) -> Any:
        """Build the vendor SDK client from ``self._config``."""

    # --- Capabilities ---

    @property
    def model_record(self) -> ModelRecord:
        return self._model

    @property
    def is_vision_capable(self) -> bool:
        return self._model.is_vision

    @property
    def is_image_generation_capable(self) -> bool:
        return self._model.is_image_generation

    @property
    def is_thinking_capable(self) -> bool:
        return self._model.is_thinking

    @property
    def input_token_cost(self) -> float | None:
        return self._model.input_token_cost

    @property
    def output_token_cost(self) -> float | None:
        return self._model.output_token_cost

    @property
    def supports_mcp(self) -> bool:
        """Whether ``send_mcp_chat`` is implemented for this vendor."""
        return False

    # --- Operations ---

    @abstractmethod
    async def generate_response(self, options: AIRequestOptions) -> AIResponse:
        """Single non-streaming vendor call.

        Raises:
            AuthenticationError: If no current user can be resolved.
            VendorResponseError: If the call fails or returns no content.
        """

    @abstractmethod
    def stream_response(self, options: AIRequestOptions) -> AsyncIterator[StreamChunk]:
        """Streaming vendor call yielding normalized chunks."""

    def build_request(self, chat: Chat) -> AIRequestOptions:
        """Assemble the request for a chat turn.

        The vision payload travels on the options and is attached by the
        adapter to the newest user message only. ``chat.image_data`` is
        cleared once copied so it is never resubmitted on a later turn.
        """
        self._check_vision(bool(chat.image_data or chat.vision_url))
        options = AIRequestOptions(
            model=chat.model,
            messages=list(chat.response_history),
            max_tokens=chat.max_tokens,
            system_prompt=chat.system_prompt or None,
            image_data=chat.image_data,
            vision_url=chat.vision_url,
            thinking_mode=True,
            budget_tokens=chat.budget_tokens,
            previous_response_id=chat.previous_response_id,
        )
        chat.image_data = None
        return options

    async def send_chat(self, chat: Chat) -> ChatResponse:
        """Run one chat turn and return the normalized reply."""
        options = self.build_request(chat)
        response = await self.generate_response(options)
        return ChatResponse(role="assistant", content=response.content)

    def stream_chat(self, chat: Chat) -> AsyncIterator[StreamChunk]:
        """Streaming counterpart of ``send_chat``."""
        return self.stream_response(self.build_request(chat))

    async def generate_image(self, chat: Chat) -> str:
        raise NotSupportedError(f"Image generation not supported by {self.vendor_name}")

    async def send_mcp_chat(
        self, chat: Chat, mcp_tool: MCPTool, manager: MCPManager
    ) -> ChatResponse:
        raise NotSupportedError(f"MCP tools not supported by {self.vendor_name}")

    # --- Shared helpers ---

    async def _require_user(self) -> UserRecord:
        user = await self._user_store.get_current_user()
        if user is None:
            raise AuthenticationError("User not found.")
        return user

    def _check_vision(self, has_image: bool) -> None:
        if has_image and not self.is_vision_capable:
            raise NotSupportedError(
                f"Vision input not supported by {self.vendor_name} model {self._model.api_name}"
            )

    def _current_images(self, options: AIRequestOptions) -> list[str]:
        """Image URLs to attach to the newest user message."""
        if not self.is_vision_capable:
            return []
        urls: list[str] = []
        index = last_user_index(options.messages)
        if index is not None:
            urls.extend(b.url for b in get_image_blocks(options.messages[index].content))
        for payload in (options.vision_url, options.image_data):
            if payload:
                url = to_image_url(payload)
                if url not in urls:
                    urls.append(url)
        return urls

    def _max_tokens(self, requested: int | None) -> int:
        return resolve_max_tokens(requested, self._settings.default_max_tokens)

    async def _record_usage(self, user: UserRecord, usage: TokenUsage | None) -> None:
        """Meter one call. Metering faults are logged, never raised."""
        if usage is None:
            return
        logger.info(
            "%s usage for %s: input=%d output=%d",
            self.vendor_name, self._model.api_name, usage.input_tokens, usage.output_tokens,
        )
        cost = compute_call_cost(self._model, usage)
        if cost is None:
            return
        try:
            await self._usage_meter.charge(
                user.id, self.vendor_key, self._model.api_name, usage, cost
            )
        except UsageMeteringError:
            logger.error(
                "Failed to record usage of %.6f for user %s", cost, user.id, exc_info=True
            )
