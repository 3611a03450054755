# src/api/facade.py — v2
"""Public API facade — single entry point for chat turns.

Usage:
    from snowgoose.api.facade import build_orchestrator
    orchestrator = build_orchestrator(settings)
    result = await orchestrator.send_chat(chat)

Dispatch order for a turn, first match wins:
  1. image-generation model → ``generate_image`` (returns a bare URL)
  2. MCP tool supplied and the vendor supports tools → ``send_mcp_chat``
  3. plain ``send_chat``
"""

from __future__ import annotations

import logging
import uuid
from typing import AsyncIterator

from snowgoose.config.settings import Settings
from snowgoose.core.content import ErrorBlock
from snowgoose.core.models import Chat, ChatResponse, MCPTool, ModelRecord, UserRecord
from snowgoose.core.stream import ErrorChunk, ImageChunk, StreamChunk, StreamCompleteChunk
from snowgoose.llm.base_adapter import AuthenticationError, BaseVendorAdapter, VendorResponseError
from snowgoose.llm.client_factory import AdapterFactory
from snowgoose.llm.config import resolve_vendor_configs
from snowgoose.logging.context import clear_context, set_request_context, set_vendor_context
from snowgoose.mcp_bridge.manager import MCPManager
from snowgoose.storage.base_image_store import BaseImageStore
from snowgoose.storage.base_model_store import BaseModelStore
from snowgoose.storage.base_user_store import BaseUserStore
from snowgoose.tracking.call_logger import CallLogger
from snowgoose.tracking.usage_meter import UsageMeter

logger = logging.getLogger(__name__)

PUBLIC_ERROR_MESSAGE = "Failed to process chat request. Please try again."


class ModelNotFoundError(LookupError):
    """Raised when a chat references an unknown model id."""


class AccessDeniedError(PermissionError):
    """Raised when the current user may not use the requested model."""


class UsageLimitExceededError(AccessDeniedError):
    """Raised when the user's period usage reached their limit."""


class ChatOrchestrator:
    """Resolves model, adapter and capability path for each chat turn."""

    def __init__(
        self,
        factory: AdapterFactory,
        model_store: BaseModelStore,
        user_store: BaseUserStore,
        *,
        mcp_manager: MCPManager | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._factory = factory
        self._model_store = model_store
        self._user_store = user_store
        self._settings = settings or Settings()
        self._mcp_manager = mcp_manager or MCPManager(self._settings)

    @property
    def mcp_manager(self) -> MCPManager:
        return self._mcp_manager

    async def aclose(self) -> None:
        """Disconnect MCP tool servers and close the user ledger."""
        try:
            await self._mcp_manager.disconnect_all()
        finally:
            self._user_store.close()

    def is_image_generation_model(self, api_name: str) -> bool:
        return api_name in self._settings.image_generation_models_list

    async def send_chat(self, chat: Chat, mcp_tool: MCPTool | None = None) -> ChatResponse | str:
        """Run one chat turn.

        Returns:
            A bare image URL for image-generation models, otherwise the
            assistant's ChatResponse. Vendor failures come back as a
            ChatResponse holding a single error block.

        Raises:
            AuthenticationError: If no current user can be resolved.
            AccessDeniedError: If the user may not use the model.
            ModelNotFoundError: If ``chat.model_id`` is unknown.
            VendorConfigurationError: If the model's vendor is not configured.
            NotSupportedError: If the request needs a missing capability.
        """
        request_id = uuid.uuid4().hex
        set_request_context(request_id)
        try:
            adapter, user = await self._prepare(chat, request_id)

            if self.is_image_generation_model(chat.model):
                logger.info("Dispatching image generation: model=%s", chat.model)
                return await adapter.generate_image(chat)

            tool = mcp_tool or await self._resolve_mcp_tool(chat)
            try:
                if tool is not None and adapter.supports_mcp:
                    logger.info("Dispatching tool chat: model=%s tool=%s", chat.model, tool.name)
                    return await adapter.send_mcp_chat(chat, tool, self._mcp_manager)
                logger.info("Dispatching chat: model=%s user=%s", chat.model, user.id)
                return await adapter.send_chat(chat)
            except VendorResponseError as e:
                logger.error("Vendor call failed: %s", e, exc_info=True)
                return ChatResponse(
                    role="assistant",
                    content=[ErrorBlock(public_message=PUBLIC_ERROR_MESSAGE, private_message=str(e))],
                )
        finally:
            clear_context()

    async def stream_chat(self, chat: Chat) -> AsyncIterator[StreamChunk]:
        """Stream one chat turn. Every stream ends with ``stream-complete``.

        Errors raised before streaming starts propagate; afterwards they are
        emitted as an ``error`` chunk.
        """
        request_id = uuid.uuid4().hex
        set_request_context(request_id)
        try:
            adapter, _ = await self._prepare(chat, request_id)

            if self.is_image_generation_model(chat.model):
                url = await adapter.generate_image(chat)
                yield ImageChunk(generation_id=uuid.uuid4().hex, url=url)
                yield StreamCompleteChunk()
                return

            stream = adapter.stream_chat(chat)
            try:
                async for chunk in stream:
                    yield chunk
            except Exception as e:
                logger.error("Stream failed: %s", e, exc_info=True)
                yield ErrorChunk(public_message=PUBLIC_ERROR_MESSAGE, private_message=str(e))
            yield StreamCompleteChunk()
        finally:
            clear_context()

    # --- Internal helpers ---

    async def _prepare(self, chat: Chat, request_id: str) -> tuple[BaseVendorAdapter, UserRecord]:
        user = await self._user_store.get_current_user()
        if user is None:
            raise AuthenticationError("Authentication required or user not found.")
        set_request_context(request_id, user.id)

        model = await self._model_store.find_model_by_id(chat.model_id)
        if model is None:
            raise ModelNotFoundError(f"Model with ID {chat.model_id} not found")
        self._check_access(user, model)

        adapter = await self._factory.get_adapter(model)
        set_vendor_context(adapter.vendor_key, model.api_name)
        return adapter, user

    @staticmethod
    def _check_access(user: UserRecord, model: ModelRecord) -> None:
        if user.has_unlimited_credits:
            return
        if user.usage_limit is not None and user.period_usage >= user.usage_limit:
            logger.warning("Usage limit exceeded for user %s", user.id)
            raise UsageLimitExceededError(
                f"Usage limit exceeded: {user.period_usage:.4f} of {user.usage_limit:.4f}"
            )
        if model.paid_only and not user.has_active_subscription:
            logger.warning("User %s attempted paid-only model %s", user.id, model.api_name)
            raise AccessDeniedError(
                "This model requires an active paid subscription or special access."
            )

    async def _resolve_mcp_tool(self, chat: Chat) -> MCPTool | None:
        if not chat.mcp_tool_id:
            return None
        tool = await self._model_store.find_mcp_tool_by_id(chat.mcp_tool_id)
        if tool is None:
            logger.warning("MCP tool %s not found; sending plain chat", chat.mcp_tool_id)
        return tool


def build_orchestrator(
    settings: Settings | None = None,
    model_store: BaseModelStore | None = None,
    user_store: BaseUserStore | None = None,
    *,
    image_store: BaseImageStore | None = None,
    mcp_manager: MCPManager | None = None,
    call_logger: CallLogger | None = None,
) -> ChatOrchestrator:
    """Wire settings, stores and vendor credentials into an orchestrator.

    Missing collaborators default to the configured JSON catalog, the
    SQLite user ledger and the configured image store.
    """
    settings = settings or Settings()
    if model_store is None:
        from snowgoose.storage.catalog import load_catalog

        model_store = load_catalog(settings.catalog_path)
    if user_store is None:
        from snowgoose.storage.sqlite_user_store import SqliteUserStore

        user_store = SqliteUserStore(settings.user_db_path)
    if image_store is None:
        from snowgoose.storage.image_stores import create_image_store

        image_store = create_image_store(settings)

    factory = AdapterFactory(
        model_store,
        user_store,
        usage_meter=UsageMeter(user_store, call_logger),
        image_store=image_store,
        settings=settings,
    )
    factory.register_vendor_configs(resolve_vendor_configs(settings))
    logger.info("Configured vendors: %s", ", ".join(factory.configured_vendors) or "none")

    return ChatOrchestrator(
        factory,
        model_store,
        user_store,
        mcp_manager=mcp_manager or MCPManager(settings),
        settings=settings,
    )
